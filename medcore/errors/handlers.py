# =============================================================================
# medcore/errors/handlers.py
# Error Handling Utilities for MedCore
# =============================================================================

from __future__ import annotations
import traceback
from typing import Optional

from medcore.logging import get_logger
from medcore.notifications.bus import NotificationBus, Severity
from .exceptions import MedCoreError

logger = get_logger(__name__)


def handle_error(
    error: Exception,
    notifier: Optional[NotificationBus] = None,
    log_error: bool = True,
    user_message: Optional[str] = None,
) -> None:
    """
    Centralized error handling function.

    Args:
        error: The exception to handle
        notifier: Bus to publish an Error notification on (skipped if None)
        log_error: Whether to log the error
        user_message: Custom message to show the user (uses error message if None)
    """
    if isinstance(error, MedCoreError):
        message = user_message or error.message
        code = error.code
        details = error.details
        recoverable = error.recoverable
    else:
        message = user_message or str(error)
        code = "UNKNOWN"
        details = {"traceback": traceback.format_exc()}
        recoverable = True

    if log_error:
        logger.error(
            f"[{code}] {message}",
            extra={"details": details},
            exc_info=error,
        )

    if notifier is not None:
        if recoverable:
            notifier.publish(message, Severity.ERROR)
        else:
            notifier.publish(f"Critical error: {message}. Please contact support.", Severity.ERROR)


class ErrorContext:
    """
    Context manager for error handling with automatic logging and user feedback.

    Usage:
        with ErrorContext("Saving consultation", notifier=bus):
            store.consultations.upsert(note)
    """

    def __init__(
        self,
        operation: str,
        notifier: Optional[NotificationBus] = None,
        recoverable: bool = True,
        show_success: bool = False,
        success_message: Optional[str] = None,
    ):
        self.operation = operation
        self.notifier = notifier
        self.recoverable = recoverable
        self.show_success = show_success
        self.success_message = success_message

    def __enter__(self) -> ErrorContext:
        logger.info(f"Starting: {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if exc_type is not None:
            if isinstance(exc_val, MedCoreError):
                handle_error(exc_val, notifier=self.notifier)
            else:
                handle_error(
                    exc_val,
                    notifier=self.notifier,
                    user_message=f"Error during: {self.operation}",
                )

            # Suppress exception if recoverable
            return self.recoverable

        logger.info(f"Completed: {self.operation}")
        if self.show_success and self.notifier is not None:
            self.notifier.publish(
                self.success_message or f"{self.operation} completed",
                Severity.SUCCESS,
            )
        return False
