# =============================================================================
# medcore/offline/sync_engine.py
# Offline Queue Replay
# =============================================================================
"""
SyncEngine - drains the OfflineQueue against the remote API.

Features:
- Strictly sequential replay, head first
- Halt on first failure: the failed item and everything after it stay queued
- Single-flight: a drain requested while one is running is ignored
- One drain scheduled per offline -> online transition
- Sync status tracking and event callbacks

There is no backoff or retry counter; a halted drain is retried on the next
online transition or explicit sync_now().
"""

from __future__ import annotations
import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
import logging

from medcore.data.supabase_client import RemoteAPI
from medcore.logging import LogContext
from medcore.notifications.bus import NotificationBus, Severity
from medcore.offline.connection_manager import ConnectionState, ConnectivityMonitor
from medcore.offline.offline_queue import OfflineQueue, OperationKind, QueuedOperation

logger = logging.getLogger(__name__)


# =============================================================================
# OPERATION -> REMOTE CALL
# =============================================================================

def _patient_row(p: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": p["id"],
        "name": p.get("name"),
        "age": p.get("age"),
        "gender": p.get("gender"),
        "blood_group": p.get("blood_group"),
        "last_visit": p.get("last_visit") or None,
        "philhealth_id": p.get("philhealth_id"),
        "is_senior": p.get("is_senior_citizen", False),
        "is_pwd": p.get("is_pwd", False),
        "hmo_provider": p.get("hmo_provider"),
        "address": p.get("address"),
    }


def _appointment_row(p: Dict[str, Any]) -> Dict[str, Any]:
    keys = ("id", "patient_id", "patient_name", "doctor_name", "time", "type", "status")
    row = {k: p.get(k) for k in keys}
    row["date"] = p.get("date") or None
    row["doctor_id"] = p.get("doctor_id")
    return row


def _consultation_row(p: Dict[str, Any]) -> Dict[str, Any]:
    keys = ("id", "patient_id", "patient_name", "subjective", "objective",
            "assessment", "plan", "transcript")
    row = {k: p.get(k) for k in keys}
    row["doctor_id"] = p.get("doctor_id")
    return row


def _invoice_row(p: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": p["id"],
        "patient": p.get("patient"),
        "total": p.get("total"),
        "disc": p.get("discount"),
        "ph": p.get("philhealth"),
        "net": p.get("net"),
        "status": p.get("status"),
        "method": p.get("method"),
        "date": p.get("date") or None,
    }


def _medicine_row(p: Dict[str, Any]) -> Dict[str, Any]:
    keys = ("id", "name", "stock", "price", "is_generic")
    row = {k: p.get(k) for k in keys}
    row["expiry"] = p.get("expiry") or None
    return row


async def apply_operation(remote: RemoteAPI, kind: OperationKind, payload: Dict[str, Any]) -> None:
    """
    Perform the remote call for one mutation.

    Raises:
        Whatever the remote raises; callers decide how to report it
    """
    kind = OperationKind(kind)

    if kind == OperationKind.ADD_PATIENT:
        await remote.insert("patients", _patient_row(payload))
    elif kind == OperationKind.REMOVE_PATIENT:
        await remote.delete("patients", payload["id"])
    elif kind == OperationKind.ADD_APPOINTMENT:
        await remote.insert("appointments", _appointment_row(payload))
    elif kind == OperationKind.UPDATE_APPOINTMENT_STATUS:
        await remote.update("appointments", payload["id"], {"status": payload["status"]})
    elif kind == OperationKind.ADD_CONSULTATION:
        await remote.insert("consultations", _consultation_row(payload))
    elif kind == OperationKind.ADD_INVOICE:
        await remote.insert("invoices", _invoice_row(payload))
    elif kind == OperationKind.ADD_MEDICINE:
        await remote.insert("inventory", _medicine_row(payload))


# =============================================================================
# ENGINE
# =============================================================================

@dataclass
class SyncState:
    """Current sync state."""
    is_syncing: bool = False
    last_sync: Optional[datetime] = None
    last_sync_success: Optional[datetime] = None
    pending_count: int = 0
    total_synced: int = 0
    drain_count: int = 0
    last_error: Optional[str] = None


@dataclass
class DrainResult:
    """Outcome of one drain cycle."""
    applied: int = 0
    remaining: int = 0
    failed_operation: Optional[QueuedOperation] = None
    error: Optional[str] = None
    skipped: bool = False

    @property
    def completed(self) -> bool:
        """True when the queue was fully drained."""
        return not self.skipped and self.failed_operation is None


class SyncEngine:
    """
    Replays queued operations when connectivity returns.

    Usage:
        engine = SyncEngine(store.queue, remote, monitor, bus)
        engine.initialize()          # drain on every went_online edge
        result = await engine.sync_now()
    """

    def __init__(
        self,
        queue: OfflineQueue,
        remote: RemoteAPI,
        monitor: ConnectivityMonitor,
        notifier: Optional[NotificationBus] = None,
    ):
        self.queue = queue
        self.remote = remote
        self.monitor = monitor
        self.notifier = notifier
        self._state = SyncState(pending_count=len(queue))
        self._drain_task: Optional[asyncio.Task] = None
        self._callbacks: List[Callable[[SyncState], None]] = []
        self._initialized = False

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def is_syncing(self) -> bool:
        return self._state.is_syncing

    @property
    def pending_count(self) -> int:
        return len(self.queue)

    def initialize(self) -> None:
        """Subscribe to the monitor's online edge."""
        if self._initialized:
            return
        self.monitor.on_went_online(self._on_went_online)
        self._initialized = True
        logger.info("SyncEngine initialized")

    def _on_went_online(self, state: ConnectionState) -> None:
        logger.info("Connection restored, triggering sync")
        if self.schedule_drain() is None:
            self.run_drain_blocking()

    def schedule_drain(self) -> Optional[asyncio.Task]:
        """
        Start a drain as a background task on the running loop.

        Returns:
            The drain task, the already-running one if a drain is in flight,
            or None when no event loop is running
        """
        if self._drain_task is not None and not self._drain_task.done():
            logger.debug("Drain already in progress; trigger ignored")
            return self._drain_task

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; drain not scheduled")
            return None

        self._drain_task = loop.create_task(self.drain())
        return self._drain_task

    def run_drain_blocking(self) -> DrainResult:
        """
        Drain to completion on a private event loop.

        For hosts with no running loop, such as Streamlit script reruns.
        Must not be called from inside a running loop.
        """
        if self._state.is_syncing:
            logger.debug("Drain already in progress; skipping")
            return DrainResult(remaining=len(self.queue), skipped=True)
        return asyncio.run(self.drain())

    async def wait_idle(self) -> None:
        """Wait for a scheduled drain to finish."""
        if self._drain_task is not None:
            await self._drain_task

    async def sync_now(self) -> DrainResult:
        """Drain immediately if online."""
        if not self.monitor.is_online:
            logger.debug("Cannot sync: offline")
            return DrainResult(remaining=len(self.queue), skipped=True)
        return await self.drain()

    async def drain(self) -> DrainResult:
        """
        Apply queued operations in order until the queue is empty or one fails.
        """
        if self._state.is_syncing:
            logger.debug("Drain already in progress; skipping")
            return DrainResult(remaining=len(self.queue), skipped=True)

        self._state.is_syncing = True
        self._state.last_sync = datetime.now()
        self._state.drain_count += 1
        self._notify_callbacks()

        result = DrainResult()
        try:
            if not self.queue:
                self._state.last_sync_success = datetime.now()
                return result

            with LogContext(logger, f"Draining {len(self.queue)} queued operations"):
                while self.queue:
                    op = self.queue.peek_head()
                    try:
                        await apply_operation(self.remote, op.kind, op.payload)
                    except Exception as e:
                        result.failed_operation = op
                        result.error = str(e)
                        logger.error(f"Sync halted at {op.kind.value} ({op.id}): {e}")
                        break
                    self.queue.remove_head()
                    result.applied += 1

            self._state.total_synced += result.applied
            if result.failed_operation is None:
                self._state.last_sync_success = datetime.now()
                self._state.last_error = None
            else:
                self._state.last_error = result.error
            self._report(result)
            return result

        finally:
            result.remaining = len(self.queue)
            self._state.pending_count = result.remaining
            self._state.is_syncing = False
            self._notify_callbacks()

    def _report(self, result: DrainResult) -> None:
        if self.notifier is None:
            return
        if result.failed_operation is not None:
            self.notifier.publish(
                f"Sync paused: {result.failed_operation.kind.value} could not be applied "
                f"({len(self.queue)} change(s) still pending).",
                Severity.ERROR,
            )
        elif result.applied:
            self.notifier.publish(f"Synced {result.applied} offline change(s).", Severity.SUCCESS)

    # =========================================================================
    # CALLBACKS
    # =========================================================================

    def register_callback(self, callback: Callable[[SyncState], None]) -> None:
        """Register a callback for sync state changes."""
        if callback not in self._callbacks:
            self._callbacks.append(callback)

    def unregister_callback(self, callback: Callable[[SyncState], None]) -> None:
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def _notify_callbacks(self) -> None:
        for callback in list(self._callbacks):
            try:
                callback(self._state)
            except Exception as e:
                logger.error(f"Error in sync callback: {e}")

    def get_status_display(self) -> Dict[str, Any]:
        """Get sync status for UI display."""
        return {
            "is_syncing": self._state.is_syncing,
            "last_sync": self._state.last_sync.isoformat() if self._state.last_sync else None,
            "last_success": self._state.last_sync_success.isoformat() if self._state.last_sync_success else None,
            "pending_count": self.pending_count,
            "total_synced": self._state.total_synced,
            "last_error": self._state.last_error,
        }
