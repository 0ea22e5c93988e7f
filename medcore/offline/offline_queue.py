# =============================================================================
# medcore/offline/offline_queue.py
# Durable FIFO of Pending Remote Mutations
# =============================================================================
"""
OfflineQueue - ordered log of mutations made while offline.

Invariants:
- queue order equals enqueue order; nothing is ever reordered
- items leave only from the head, after the remote call succeeded
- operation ids increase strictly and are never reused, also across restarts
"""

from __future__ import annotations
import time
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Deque, Dict, List, Optional
import logging

from medcore.data.kv_store import OFFLINE_QUEUE_KEY, OFFLINE_QUEUE_SEQ_KEY, KeyValueStore

logger = logging.getLogger(__name__)


class OperationKind(str, Enum):
    """Mutations that can be queued for replay."""
    ADD_PATIENT = "AddPatient"
    REMOVE_PATIENT = "RemovePatient"
    ADD_APPOINTMENT = "AddAppointment"
    UPDATE_APPOINTMENT_STATUS = "UpdateAppointmentStatus"
    ADD_CONSULTATION = "AddConsultation"
    ADD_INVOICE = "AddInvoice"
    ADD_MEDICINE = "AddMedicine"


@dataclass
class QueuedOperation:
    """A mutation waiting to be applied remotely."""
    id: str
    kind: OperationKind
    payload: Dict[str, Any]
    enqueued_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "payload": self.payload,
            "enqueued_at": self.enqueued_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> QueuedOperation:
        return cls(
            id=data["id"],
            kind=OperationKind(data["kind"]),
            payload=dict(data.get("payload") or {}),
            enqueued_at=datetime.fromisoformat(data["enqueued_at"]),
        )


class OfflineQueue:
    """
    FIFO queue persisted under its own key after every change.

    Usage:
        queue = OfflineQueue(store)
        queue.enqueue(OperationKind.ADD_PATIENT, patient.to_dict())
        head = queue.peek_head()
        ...  # apply remotely
        queue.remove_head()
    """

    def __init__(self, store: KeyValueStore):
        self._store = store
        self._items: Deque[QueuedOperation] = deque(self._load())
        # High-water mark of issued ids, kept even when the queue is empty
        self._last_id_ns = self._load_last_id_ns()
        if self._items:
            self._last_id_ns = max(self._last_id_ns, self._id_to_ns(self._items[-1].id))

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def items(self) -> List[QueuedOperation]:
        """Snapshot of queued operations, head first."""
        return list(self._items)

    def enqueue(self, kind: OperationKind, payload: Dict[str, Any]) -> QueuedOperation:
        """Append an operation and persist the queue."""
        op = QueuedOperation(id=self._next_id(), kind=OperationKind(kind), payload=dict(payload))
        self._items.append(op)
        self._persist()
        logger.debug(f"Queued {op.kind.value} ({op.id}); {len(self._items)} pending")
        return op

    def peek_head(self) -> Optional[QueuedOperation]:
        return self._items[0] if self._items else None

    def remove_head(self) -> Optional[QueuedOperation]:
        """Drop the head after it was applied remotely."""
        if not self._items:
            return None
        op = self._items.popleft()
        self._persist()
        return op

    # =========================================================================
    # IDS
    # =========================================================================

    def _next_id(self) -> str:
        now_ns = time.time_ns()
        if now_ns <= self._last_id_ns:
            now_ns = self._last_id_ns + 1
        self._last_id_ns = now_ns
        self._store.set(OFFLINE_QUEUE_SEQ_KEY, now_ns)
        return f"op_{now_ns:020d}"

    @staticmethod
    def _id_to_ns(op_id: str) -> int:
        try:
            return int(op_id.rsplit("_", 1)[-1])
        except ValueError:
            return 0

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def _load(self) -> List[QueuedOperation]:
        raw = self._store.get(OFFLINE_QUEUE_KEY)
        if not isinstance(raw, list):
            return []

        ops = []
        for item in raw:
            try:
                ops.append(QueuedOperation.from_dict(item))
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning(f"Dropping unreadable queued operation: {e}")
        return ops

    def _load_last_id_ns(self) -> int:
        raw = self._store.get(OFFLINE_QUEUE_SEQ_KEY)
        return raw if isinstance(raw, int) else 0

    def _persist(self) -> None:
        self._store.set(OFFLINE_QUEUE_KEY, [op.to_dict() for op in self._items])
