# =============================================================================
# tests/conftest.py
# Pytest Configuration and Fixtures
# =============================================================================

import sys
from unittest.mock import MagicMock

import pytest

from helpers import FakeClock, FakeRemoteAPI, make_patient
from medcore.config.settings import Settings
from medcore.data.kv_store import MemoryKeyValueStore
from medcore.models.entities import Appointment, Consultation, Invoice, Medicine
from medcore.notifications.bus import NotificationBus
from medcore.offline.clinic_service import ClinicService
from medcore.offline.connection_manager import ConnectivityMonitor
from medcore.offline.local_store import LocalStore
from medcore.offline.sync_engine import SyncEngine


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================

@pytest.fixture
def sample_patient():
    return make_patient()


@pytest.fixture
def sample_appointment():
    return Appointment(
        id="A-001",
        patient_id="P-001",
        patient_name="Juan dela Cruz",
        doctor_name="Dr. Reyes",
        time="09:30",
        date="2026-10-19",
        type="Checkup",
        status="Pending",
    )


@pytest.fixture
def sample_medicine():
    return Medicine(id="M-001", name="Amlodipine 5mg", stock=12, expiry="2027-03-01",
                    price=8.5, is_generic=True)


@pytest.fixture
def sample_invoice():
    return Invoice(id="INV-001", patient="Juan dela Cruz", total=1000.0, discount=200.0,
                   philhealth=200.0, net=600.0, status="Paid", method="Cash",
                   date="2026-10-19")


@pytest.fixture
def sample_consultation():
    return Consultation(
        id="C-001",
        patient_id="P-001",
        patient_name="Juan dela Cruz",
        date="2026-10-19",
        subjective="Headache for two days",
        objective="BP 150/95",
        assessment="Uncontrolled hypertension",
        plan="Increase amlodipine; recheck in 2 weeks",
        transcript="Doctor: What brings you in today? ...",
    )


# =============================================================================
# COMPONENT FIXTURES
# =============================================================================

@pytest.fixture
def kv():
    return MemoryKeyValueStore()


@pytest.fixture
def remote():
    return FakeRemoteAPI()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def bus(kv, clock):
    return NotificationBus(kv, clock=clock)


@pytest.fixture
def store(kv):
    return LocalStore(kv)


@pytest.fixture
def monitor():
    return ConnectivityMonitor(initial_online=False)


@pytest.fixture
def engine(store, remote, monitor, bus):
    engine = SyncEngine(store.queue, remote, monitor, bus)
    engine.initialize()
    return engine


@pytest.fixture
def service(store, monitor, remote, bus, engine):
    return ClinicService(store, monitor, remote, bus, engine)


@pytest.fixture
def settings(tmp_path):
    return Settings(db_path=tmp_path / "medcore.db", monitor_connectivity=False)


# =============================================================================
# MOCK FIXTURES
# =============================================================================

@pytest.fixture
def mock_streamlit():
    """Mock Streamlit for testing"""
    mock_st = MagicMock()
    mock_st.session_state = {}
    mock_st.cache_data = lambda f: f
    mock_st.cache_resource = lambda f: f
    mock_st.columns.return_value = (MagicMock(), MagicMock())

    # Store original and replace
    original_st = sys.modules.get('streamlit')
    sys.modules['streamlit'] = mock_st
    sys.modules.pop('medcore.ui.status_panel', None)

    yield mock_st

    # Restore original
    sys.modules.pop('medcore.ui.status_panel', None)
    if original_st:
        sys.modules['streamlit'] = original_st
    else:
        sys.modules.pop('streamlit', None)
