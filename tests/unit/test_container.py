# =============================================================================
# tests/unit/test_container.py
# Unit Tests for the Composition Root
# =============================================================================

import pytest

from helpers import FakeRemoteAPI, make_patient
from medcore.data.kv_store import MemoryKeyValueStore
from medcore.notifications.bus import Severity
from medcore.state.container import create_clinic_app


class TestCreateClinicApp:
    """Test component wiring"""

    def test_components_share_state(self, settings):
        app = create_clinic_app(settings, kv=MemoryKeyValueStore(), remote=FakeRemoteAPI())

        assert app.service.store is app.store
        assert app.engine.queue is app.store.queue
        assert app.service.notifier is app.notifier
        assert app.notifier.ttl_seconds == settings.notification_ttl
        assert not app.assistant.is_available

    def test_defaults_to_sqlite_at_settings_path(self, settings):
        app = create_clinic_app(settings, remote=FakeRemoteAPI())
        app.store.patients.upsert(make_patient())

        assert settings.db_path.exists()
        app.kv.close()

    def test_restores_persisted_state(self, settings):
        kv = MemoryKeyValueStore()
        first = create_clinic_app(settings, kv=kv, remote=FakeRemoteAPI())
        first.service.add_patient(make_patient())

        second = create_clinic_app(settings, kv=kv, remote=FakeRemoteAPI())
        assert "P-001" in second.store.patients
        assert len(second.store.queue) == 1
        assert second.notifier.history[0].message == "Patient Juan dela Cruz registered."

    def test_connectivity_changes_are_announced(self, settings):
        app = create_clinic_app(settings, kv=MemoryKeyValueStore(), remote=FakeRemoteAPI(),
                                initial_online=True)
        app.monitor.set_online(False)

        assert app.notifier.history[0].severity == Severity.INFO
        assert app.notifier.history[0].message.startswith("You are offline")


class TestClinicAppLifecycle:
    """Test start/stop"""

    @pytest.mark.asyncio
    async def test_start_drains_leftover_queue(self, settings):
        kv = MemoryKeyValueStore()
        remote = FakeRemoteAPI()
        create_clinic_app(settings, kv=kv, remote=remote).service.add_patient(make_patient())

        app = create_clinic_app(settings, kv=kv, remote=remote, initial_online=True)
        await app.start()
        await app.stop()

        assert len(app.store.queue) == 0
        assert "P-001" in remote.tables["patients"]

    @pytest.mark.asyncio
    async def test_end_to_end_offline_session(self, settings):
        remote = FakeRemoteAPI()
        app = create_clinic_app(settings, kv=MemoryKeyValueStore(), remote=remote)
        await app.start()

        app.service.add_patient(make_patient("P1"))
        app.service.remove_patient("P1")
        assert remote.calls == []

        app.monitor.set_online(True)
        await app.stop()

        assert remote.calls == [("insert", "patients", "P1"), ("delete", "patients", "P1")]
        assert app.notifier.history[0].message == "Synced 2 offline change(s)."
