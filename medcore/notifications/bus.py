# =============================================================================
# medcore/notifications/bus.py
# User-Facing Notification Feed
# =============================================================================
"""
NotificationBus - short-lived toasts plus a bounded, persisted history.

Every publish lands in two independent places:
- the live feed, from which it expires after ``ttl_seconds`` (3s default)
- the history, newest first, capped at ``history_limit`` (20 default)

Clearing the history leaves visible toasts alone, and expiry of a toast never
touches the history.
"""

from __future__ import annotations
import asyncio
import itertools
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional
import logging

from medcore.data.kv_store import NOTIFICATION_HISTORY_KEY, KeyValueStore

logger = logging.getLogger(__name__)


class Severity(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class Notification:
    id: str
    message: str
    severity: Severity = Severity.SUCCESS
    timestamp: datetime = field(default_factory=datetime.now)
    read: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "message": self.message,
            "severity": self.severity.value,
            "timestamp": self.timestamp.isoformat(),
            "read": self.read,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Notification:
        return cls(
            id=str(data["id"]),
            message=data["message"],
            severity=Severity(data.get("severity", Severity.INFO.value)),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            read=bool(data.get("read", False)),
        )


class NotificationBus:
    """
    Publishes notifications and owns both the live feed and the history.

    Usage:
        bus = NotificationBus(store)
        bus.publish("Patient Juan dela Cruz registered.")
        bus.publish("Sync failed", Severity.ERROR)
        bus.mark_all_read()
    """

    TTL_SECONDS = 3.0
    HISTORY_LIMIT = 20

    def __init__(
        self,
        store: Optional[KeyValueStore] = None,
        ttl_seconds: float = TTL_SECONDS,
        history_limit: int = HISTORY_LIMIT,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._store = store
        self.ttl_seconds = ttl_seconds
        self.history_limit = history_limit
        self._clock = clock
        self._seq = itertools.count(1)
        # notification id -> (notification, expires_at)
        self._live: Dict[str, tuple] = {}
        self._history: List[Notification] = self._load_history()
        self._listeners: List[Callable[[Notification], None]] = []

    # =========================================================================
    # PUBLISHING
    # =========================================================================

    def publish(self, message: str, severity: Severity = Severity.SUCCESS) -> Notification:
        """
        Publish a notification to the live feed and the history.

        Returns:
            The created Notification
        """
        notification = Notification(
            id=f"{next(self._seq)}-{uuid.uuid4().hex[:8]}",
            message=message,
            severity=Severity(severity),
        )

        self._live[notification.id] = (notification, self._clock() + self.ttl_seconds)
        self._schedule_expiry(notification.id)

        self._history.insert(0, notification)
        del self._history[self.history_limit:]
        self._persist_history()

        log = logger.error if notification.severity == Severity.ERROR else logger.info
        log(f"[{notification.severity.value}] {message}")

        for listener in list(self._listeners):
            try:
                listener(notification)
            except Exception as e:
                logger.error(f"Error in notification listener: {e}")

        return notification

    def _schedule_expiry(self, notification_id: str) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop: expiry is applied lazily when the live feed is read
            return
        loop.call_later(self.ttl_seconds, self.dismiss, notification_id)

    def dismiss(self, notification_id: str) -> None:
        """Remove a notification from the live feed (history is untouched)."""
        self._live.pop(notification_id, None)

    def subscribe(self, listener: Callable[[Notification], None]) -> None:
        """Register a callback invoked for every published notification."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Callable[[Notification], None]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # =========================================================================
    # LIVE FEED
    # =========================================================================

    @property
    def live(self) -> List[Notification]:
        """Currently visible notifications, oldest first."""
        now = self._clock()
        expired = [nid for nid, (_, expires_at) in self._live.items() if expires_at <= now]
        for nid in expired:
            del self._live[nid]
        return [n for n, _ in self._live.values()]

    # =========================================================================
    # HISTORY
    # =========================================================================

    @property
    def history(self) -> List[Notification]:
        """Historical notifications, most recent first."""
        return list(self._history)

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self._history if not n.read)

    def mark_all_read(self) -> None:
        for notification in self._history:
            notification.read = True
        self._persist_history()

    def clear_history(self) -> None:
        self._history = []
        if self._store is not None:
            self._store.remove(NOTIFICATION_HISTORY_KEY)

    def _load_history(self) -> List[Notification]:
        if self._store is None:
            return []

        raw = self._store.get(NOTIFICATION_HISTORY_KEY)
        if not isinstance(raw, list):
            return []

        history = []
        for item in raw[:self.history_limit]:
            try:
                history.append(Notification.from_dict(item))
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning(f"Dropping unreadable notification: {e}")
        return history

    def _persist_history(self) -> None:
        if self._store is not None:
            self._store.set(NOTIFICATION_HISTORY_KEY, [n.to_dict() for n in self._history])
