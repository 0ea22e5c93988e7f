# =============================================================================
# medcore/offline/__init__.py
# Offline-First Sync Layer for MedCore
# =============================================================================
"""
Offline-First Sync Layer

The clinic dashboard works identically whether or not the backend is
reachable. Every mutation is visible locally at once; remote writes made
while offline are queued and replayed in order when the connection returns.

Architecture:
------------
┌────────────────────────────────────────────────────────────┐
│                      ClinicService                          │
│            (Single API - the UI calls this only)            │
└────────────────────────────────────────────────────────────┘
          │ optimistic            │ offline        │ online
          ▼                       ▼                ▼
   ┌──────────────┐      ┌──────────────┐   ┌──────────────┐
   │  LocalStore  │─owns─│ OfflineQueue │   │  RemoteAPI   │
   │ (collections)│      │  (durable)   │   │  (Supabase)  │
   └──────────────┘      └──────────────┘   └──────────────┘
                                ▲                  ▲
                                │  drain in order  │
                         ┌──────────────────────────────┐
                         │          SyncEngine          │
                         └──────────────────────────────┘
                                ▲ went_online
                         ┌──────────────────────────────┐
                         │     ConnectivityMonitor      │
                         └──────────────────────────────┘

All outcomes are reported through medcore.notifications.NotificationBus.

Usage:
------
from medcore.state.container import create_clinic_app

app = create_clinic_app()
app.service.add_patient(patient)
print(app.service.is_online)             # True/False
print(app.service.pending_sync_count)    # Number of queued operations
"""

from medcore.offline.connection_manager import (
    ConnectivityMonitor,
    ConnectionState,
    ConnectionStatus,
)

from medcore.offline.offline_queue import (
    OfflineQueue,
    OperationKind,
    QueuedOperation,
)

from medcore.offline.local_store import (
    EntityCollection,
    LocalStore,
)

from medcore.offline.sync_engine import (
    DrainResult,
    SyncEngine,
    SyncState,
    apply_operation,
)

from medcore.offline.clinic_service import ClinicService

__all__ = [
    # Connectivity
    "ConnectivityMonitor",
    "ConnectionState",
    "ConnectionStatus",
    # Queue
    "OfflineQueue",
    "OperationKind",
    "QueuedOperation",
    # Local state
    "EntityCollection",
    "LocalStore",
    # Sync Engine
    "DrainResult",
    "SyncEngine",
    "SyncState",
    "apply_operation",
    # Unified Service (Main API)
    "ClinicService",
]
