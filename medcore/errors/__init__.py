# =============================================================================
# medcore/errors/__init__.py
# Centralized Error Handling for MedCore
# =============================================================================

from .exceptions import (
    MedCoreError,
    RemoteSyncError,
    AIServiceError,
    ConfigurationError,
)

from .handlers import (
    handle_error,
    ErrorContext,
)

__all__ = [
    # Exceptions
    "MedCoreError",
    "RemoteSyncError",
    "AIServiceError",
    "ConfigurationError",
    # Handlers
    "handle_error",
    "ErrorContext",
]
