# =============================================================================
# medcore/offline/clinic_service.py
# Clinic Data Service - Single API for Online/Offline Mutations
# =============================================================================
"""
ClinicService - the entry point the UI calls for every mutation.

Each call:
1. applies the change to the LocalStore immediately (optimistic)
2. queues it when offline, or sends it when online as a tracked remote task
   chained behind the previous one, so the remote sees calls in order
3. reports the outcome through the NotificationBus

Local state is never rolled back when a remote call fails.

Usage:
------
service = app.service
service.add_patient(patient)             # visible in store.patients at once
service.update_appointment_status("A-1", AppointmentStatus.COMPLETED)
await service.wait_for_pending()         # flush in-flight remote calls
"""

from __future__ import annotations
import asyncio
import dataclasses
from typing import Any, Dict, Optional, Set
import logging

from medcore.data.supabase_client import RemoteAPI
from medcore.errors import handle_error
from medcore.models.entities import (
    Appointment,
    AppointmentStatus,
    Consultation,
    DoctorProfile,
    Invoice,
    Medicine,
    Patient,
)
from medcore.notifications.bus import NotificationBus, Severity
from medcore.offline.connection_manager import ConnectivityMonitor
from medcore.offline.local_store import LocalStore
from medcore.offline.offline_queue import OperationKind, QueuedOperation
from medcore.offline.sync_engine import DrainResult, SyncEngine, apply_operation

logger = logging.getLogger(__name__)


class ClinicService:
    """Optimistic mutations with offline queueing and tracked remote calls."""

    def __init__(
        self,
        store: LocalStore,
        monitor: ConnectivityMonitor,
        remote: RemoteAPI,
        notifier: NotificationBus,
        engine: SyncEngine,
    ):
        self.store = store
        self.monitor = monitor
        self.remote = remote
        self.notifier = notifier
        self.engine = engine
        self._tasks: Set[asyncio.Task] = set()
        # Most recent direct-path call; each new one waits for it
        self._last_push: Optional[asyncio.Task] = None

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def is_online(self) -> bool:
        return self.monitor.is_online

    @property
    def pending_sync_count(self) -> int:
        return len(self.store.queue)

    @property
    def in_flight_count(self) -> int:
        return len(self._tasks)

    @property
    def doctor(self) -> Optional[DoctorProfile]:
        return self.store.doctor

    def set_doctor(self, doctor: Optional[DoctorProfile]) -> None:
        self.store.set_doctor(doctor)

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def add_patient(self, patient: Patient) -> Patient:
        self.store.patients.upsert(patient)
        self._dispatch(OperationKind.ADD_PATIENT, patient.to_dict())
        self.notifier.publish(f"Patient {patient.name} registered.")
        return patient

    def remove_patient(self, patient_id: str) -> Optional[Patient]:
        removed = self.store.patients.remove(patient_id)
        self._dispatch(OperationKind.REMOVE_PATIENT, {"id": patient_id})
        self.notifier.publish("Patient removed.")
        return removed

    def add_appointment(self, appointment: Appointment) -> Appointment:
        self.store.appointments.upsert(appointment)
        self._dispatch(OperationKind.ADD_APPOINTMENT, self._with_doctor(appointment.to_dict()))
        self.notifier.publish(f"Appointment for {appointment.patient_name} scheduled.")
        return appointment

    def update_appointment_status(
        self,
        appointment_id: str,
        status: AppointmentStatus,
    ) -> Optional[Appointment]:
        status = AppointmentStatus(status)
        current = self.store.appointments.get(appointment_id)
        if current is None:
            logger.warning(f"Status update for unknown appointment {appointment_id}")
            self.notifier.publish("Appointment not found.", Severity.ERROR)
            return None

        updated = self.store.appointments.upsert(dataclasses.replace(current, status=status))
        self._dispatch(
            OperationKind.UPDATE_APPOINTMENT_STATUS,
            {"id": appointment_id, "status": status.value},
        )
        self.notifier.publish(f"Status updated to {status.value}.")
        return updated

    def add_consultation(self, consultation: Consultation) -> Consultation:
        self.store.consultations.upsert(consultation)
        self._dispatch(OperationKind.ADD_CONSULTATION, self._with_doctor(consultation.to_dict()))
        self.notifier.publish("EMR record saved.")
        return consultation

    def add_invoice(self, invoice: Invoice) -> Invoice:
        self.store.invoices.upsert(invoice)
        self._dispatch(OperationKind.ADD_INVOICE, invoice.to_dict())
        self.notifier.publish(f"Invoice {invoice.id} generated.")
        return invoice

    def add_medicine(self, medicine: Medicine) -> Medicine:
        self.store.inventory.upsert(medicine)
        self._dispatch(OperationKind.ADD_MEDICINE, medicine.to_dict())
        self.notifier.publish("Inventory updated.")
        return medicine

    # =========================================================================
    # REMOTE DISPATCH
    # =========================================================================

    def _with_doctor(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        doctor = self.store.doctor
        payload["doctor_id"] = doctor.id if doctor else None
        return payload

    def _dispatch(self, kind: OperationKind, payload: Dict[str, Any]) -> Optional[QueuedOperation]:
        """
        Queue the mutation or send it now.

        Goes to the queue when offline, and also while older operations are
        still queued so the remote sees changes in the order they were made.
        Direct calls are chained so they reach the remote in call order too.
        """
        if self.monitor.is_offline:
            return self.store.queue.enqueue(kind, payload)

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop to run a task on: send through the queue right away
            op = self.store.queue.enqueue(kind, payload)
            self.engine.run_drain_blocking()
            return op

        if self.store.queue:
            return self.store.queue.enqueue(kind, payload)

        task = loop.create_task(
            self._push(kind, payload, self._last_push),
            name=f"remote-{kind.value}",
        )
        self._last_push = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return None

    async def _push(
        self,
        kind: OperationKind,
        payload: Dict[str, Any],
        previous: Optional[asyncio.Task] = None,
    ) -> bool:
        if previous is not None and not previous.done():
            await asyncio.wait([previous])
        try:
            await apply_operation(self.remote, kind, payload)
            return True
        except Exception as e:
            handle_error(
                e,
                notifier=self.notifier,
                user_message=f"Could not save {kind.value} to the server: {e}",
            )
            return False

    async def wait_for_pending(self) -> None:
        """Wait for every in-flight remote call to settle."""
        while True:
            pending = [t for t in self._tasks if not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending)

    async def sync_now(self) -> DrainResult:
        """User-triggered sync."""
        return await self.engine.sync_now()
