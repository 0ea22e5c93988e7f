# =============================================================================
# medcore/offline/local_store.py
# In-Memory Entity Collections with Durable Snapshots
# =============================================================================
"""
LocalStore - the UI's source of truth, independent of remote sync state.

Features:
- One collection per entity type, each persisted under its own key
- Synchronous best-effort write of the full collection after every mutation
- Corrupt or missing snapshots load as empty collections
- Owns the OfflineQueue and the signed-in doctor profile
- pandas views for dashboards
"""

from __future__ import annotations
from typing import Dict, Generic, List, Optional, Type, TypeVar
import logging

import pandas as pd

from medcore.data.kv_store import (
    APPOINTMENTS_KEY,
    CONSULTATIONS_KEY,
    DOCTOR_KEY,
    INVENTORY_KEY,
    INVOICES_KEY,
    PATIENTS_KEY,
    KeyValueStore,
)
from medcore.models.entities import (
    Appointment,
    Consultation,
    DoctorProfile,
    Entity,
    Invoice,
    Medicine,
    Patient,
)
from medcore.offline.offline_queue import OfflineQueue

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Entity)


class EntityCollection(Generic[E]):
    """Records of one type keyed by id, written through to storage."""

    def __init__(
        self,
        store: KeyValueStore,
        key: str,
        entity_type: Type[E],
        prepend: bool = False,
    ):
        self._store = store
        self.key = key
        self.entity_type = entity_type
        # Invoices and consultations show newest first
        self._prepend = prepend
        self._items: Dict[str, E] = {}
        self._load()

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, entity_id: str) -> bool:
        return entity_id in self._items

    def get(self, entity_id: str) -> Optional[E]:
        return self._items.get(entity_id)

    def list(self) -> List[E]:
        return list(self._items.values())

    def upsert(self, entity: E) -> E:
        """Insert or replace by id."""
        if self._prepend and entity.id not in self._items:
            self._items = {entity.id: entity, **self._items}
        else:
            self._items[entity.id] = entity
        self._persist()
        return entity

    def remove(self, entity_id: str) -> Optional[E]:
        removed = self._items.pop(entity_id, None)
        if removed is not None:
            self._persist()
        return removed

    def to_dataframe(self) -> pd.DataFrame:
        """Flat DataFrame of the collection (empty frame if no records)."""
        records = [e.to_dict() for e in self._items.values()]
        if not records:
            return pd.DataFrame()
        return pd.json_normalize(records)

    def _load(self) -> None:
        raw = self._store.get(self.key)
        if raw is None:
            return
        if not isinstance(raw, list):
            logger.warning(f"Ignoring malformed snapshot for '{self.key}'")
            return

        for item in raw:
            try:
                entity = self.entity_type.from_dict(item)
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning(f"Dropping unreadable {self.entity_type.__name__}: {e}")
                continue
            self._items[entity.id] = entity

        logger.debug(f"Loaded {len(self._items)} records from '{self.key}'")

    def _persist(self) -> None:
        self._store.set(self.key, [e.to_dict() for e in self._items.values()])


class LocalStore:
    """
    All clinic collections plus the offline queue.

    Built once at startup from persisted snapshots and passed by reference to
    every consumer.

    Usage:
        store = LocalStore(SQLiteKeyValueStore())
        store.patients.upsert(patient)
        store.patients.list()
        len(store.queue)
    """

    def __init__(self, kv: KeyValueStore):
        self.kv = kv
        self.patients: EntityCollection[Patient] = EntityCollection(kv, PATIENTS_KEY, Patient)
        self.appointments: EntityCollection[Appointment] = EntityCollection(
            kv, APPOINTMENTS_KEY, Appointment
        )
        self.inventory: EntityCollection[Medicine] = EntityCollection(kv, INVENTORY_KEY, Medicine)
        self.invoices: EntityCollection[Invoice] = EntityCollection(
            kv, INVOICES_KEY, Invoice, prepend=True
        )
        self.consultations: EntityCollection[Consultation] = EntityCollection(
            kv, CONSULTATIONS_KEY, Consultation, prepend=True
        )
        self.queue = OfflineQueue(kv)
        self._doctor = self._load_doctor()

    @property
    def collections(self) -> Dict[str, EntityCollection]:
        return {
            "patients": self.patients,
            "appointments": self.appointments,
            "inventory": self.inventory,
            "invoices": self.invoices,
            "consultations": self.consultations,
        }

    # =========================================================================
    # SESSION
    # =========================================================================

    @property
    def doctor(self) -> Optional[DoctorProfile]:
        return self._doctor

    def set_doctor(self, doctor: Optional[DoctorProfile]) -> None:
        """Persist the signed-in doctor; None signs out."""
        self._doctor = doctor
        if doctor is None:
            self.kv.remove(DOCTOR_KEY)
        else:
            self.kv.set(DOCTOR_KEY, doctor.to_dict())

    def _load_doctor(self) -> Optional[DoctorProfile]:
        raw = self.kv.get(DOCTOR_KEY)
        if not isinstance(raw, dict):
            return None
        try:
            return DoctorProfile.from_dict(raw)
        except TypeError as e:
            logger.warning(f"Ignoring unreadable doctor profile: {e}")
            return None
