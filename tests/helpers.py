# =============================================================================
# tests/helpers.py
# Test Doubles and Helpers
# =============================================================================

import asyncio
from collections import defaultdict

from medcore.data.supabase_client import RemoteAPI
from medcore.errors.exceptions import RemoteSyncError
from medcore.models.entities import Address, Patient


class FakeRemoteAPI(RemoteAPI):
    """In-memory backend that records every call and fails on demand."""

    def __init__(self):
        self.calls = []
        self.tables = defaultdict(dict)
        self.fail_ids = set()
        self.fail_all = False
        self.gate = None
        self.insert_delay = 0.0

    async def _attempt(self, operation, resource, record_id):
        if self.gate is not None:
            await self.gate.wait()
        self.calls.append((operation, resource, record_id))
        if self.fail_all or record_id in self.fail_ids:
            raise RemoteSyncError(
                "backend unavailable",
                resource=resource,
                operation=operation,
                record_id=record_id,
            )

    async def insert(self, resource, record):
        if self.insert_delay:
            await asyncio.sleep(self.insert_delay)
        await self._attempt("insert", resource, record["id"])
        self.tables[resource][record["id"]] = dict(record)

    async def update(self, resource, record_id, fields):
        await self._attempt("update", resource, record_id)
        self.tables[resource].setdefault(record_id, {"id": record_id}).update(fields)

    async def delete(self, resource, record_id):
        await self._attempt("delete", resource, record_id)
        self.tables[resource].pop(record_id, None)


class FakeClock:
    """Monotonic clock the tests advance by hand."""

    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def make_patient(patient_id="P-001", name="Juan dela Cruz", **kwargs):
    defaults = dict(
        age=67,
        gender="Male",
        blood_group="O+",
        last_visit="2026-10-01",
        history=["Hypertension"],
        allergies=["Penicillin"],
        philhealth_id="12-345678901-2",
        is_senior_citizen=True,
        address=Address(barangay="San Antonio", city="Makati", province="Metro Manila"),
    )
    defaults.update(kwargs)
    return Patient(id=patient_id, name=name, **defaults)


async def settle():
    """Let scheduled callbacks and tasks run."""
    for _ in range(5):
        await asyncio.sleep(0)
