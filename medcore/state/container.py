# =============================================================================
# medcore/state/container.py
# Composition Root
# =============================================================================
"""
Builds every component once, from persisted snapshots, and wires them by
reference. The returned ClinicApp is the single state object handed to the
UI; there are no module-level singletons.

Usage:
    app = create_clinic_app()
    await app.start()          # connectivity probing, if enabled
    app.service.add_patient(patient)
    ...
    await app.stop()
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from medcore.ai.clinical_assistant import ClinicalAssistant
from medcore.config.settings import Settings, load_settings
from medcore.data.kv_store import KeyValueStore, SQLiteKeyValueStore
from medcore.data.supabase_client import RemoteAPI, SupabaseRemoteAPI
from medcore.logging import get_logger
from medcore.notifications.bus import NotificationBus, Severity
from medcore.offline.clinic_service import ClinicService
from medcore.offline.connection_manager import ConnectionState, ConnectivityMonitor
from medcore.offline.local_store import LocalStore
from medcore.offline.sync_engine import SyncEngine

logger = get_logger(__name__)


@dataclass
class ClinicApp:
    settings: Settings
    kv: KeyValueStore
    store: LocalStore
    notifier: NotificationBus
    monitor: ConnectivityMonitor
    remote: RemoteAPI
    engine: SyncEngine
    service: ClinicService
    assistant: ClinicalAssistant

    async def start(self) -> None:
        if self.settings.monitor_connectivity:
            self.monitor.start_monitoring()
        if self.monitor.is_online and self.store.queue:
            # Leftovers from a previous session
            self.engine.schedule_drain()

    async def stop(self) -> None:
        await self.monitor.stop_monitoring()
        await self.service.wait_for_pending()
        await self.engine.wait_idle()


def create_clinic_app(
    settings: Optional[Settings] = None,
    kv: Optional[KeyValueStore] = None,
    remote: Optional[RemoteAPI] = None,
    initial_online: bool = False,
    assistant: Optional[ClinicalAssistant] = None,
) -> ClinicApp:
    """
    Assemble the application state.

    Args:
        settings: Resolved settings (load_settings() if None)
        kv: Durable storage (SQLite at settings.db_path if None)
        remote: Remote API (Supabase from settings if None)
        initial_online: Connectivity at startup, before the first signal
        assistant: AI collaborator (OpenAI from settings if None)
    """
    settings = settings or load_settings()
    kv = kv or SQLiteKeyValueStore(settings.db_path)
    remote = remote or SupabaseRemoteAPI(settings.supabase_url, settings.supabase_key)

    notifier = NotificationBus(
        kv,
        ttl_seconds=settings.notification_ttl,
        history_limit=settings.history_limit,
    )
    store = LocalStore(kv)
    monitor = ConnectivityMonitor(initial_online=initial_online, supabase_url=settings.supabase_url)
    engine = SyncEngine(store.queue, remote, monitor, notifier)
    engine.initialize()
    service = ClinicService(store, monitor, remote, notifier, engine)

    def _announce(state: ConnectionState) -> None:
        if monitor.is_online:
            notifier.publish("Back online. Syncing pending changes.", Severity.INFO)
        else:
            notifier.publish("You are offline. Changes will sync when the connection returns.",
                             Severity.INFO)

    monitor.register_callback(_announce)

    assistant = assistant or ClinicalAssistant(
        api_key=settings.openai_api_key,
        model=settings.openai_model,
    )

    logger.info(
        f"MedCore ready: {len(store.patients)} patients, "
        f"{len(store.queue)} pending sync, online={monitor.is_online}"
    )
    return ClinicApp(
        settings=settings,
        kv=kv,
        store=store,
        notifier=notifier,
        monitor=monitor,
        remote=remote,
        engine=engine,
        service=service,
        assistant=assistant,
    )
