# =============================================================================
# medcore/offline/connection_manager.py
# Connectivity Detection and Edge Events
# =============================================================================
"""
ConnectivityMonitor - single authoritative Online/Offline state.

Features:
- Platform signal via set_online(bool); duplicate signals are collapsed
- Edge-triggered went_online / went_offline callbacks
- Optional socket probe (DNS hosts + Supabase host) run as an asyncio task
"""

from __future__ import annotations
import asyncio
import socket
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional
from urllib.parse import urlparse
import logging

logger = logging.getLogger(__name__)


class ConnectionStatus(Enum):
    """Connection status states."""
    ONLINE = "online"
    OFFLINE = "offline"


@dataclass
class ConnectionState:
    """Current connection state with metadata."""
    status: ConnectionStatus = ConnectionStatus.OFFLINE
    last_change: Optional[datetime] = None
    last_check: Optional[datetime] = None
    last_online: Optional[datetime] = None
    consecutive_failures: int = 0


ConnectionCallback = Callable[[ConnectionState], None]


class ConnectivityMonitor:
    """
    Tracks connectivity and raises transition events.

    Usage:
        monitor = ConnectivityMonitor(initial_online=False)
        monitor.on_went_online(lambda state: engine.schedule_drain())
        monitor.set_online(True)   # fires went_online once
        monitor.set_online(True)   # duplicate, ignored
    """

    # Configuration
    CHECK_INTERVAL_ONLINE = 30      # Seconds between checks when online
    CHECK_INTERVAL_OFFLINE = 10     # Seconds between checks when offline
    CONNECTION_TIMEOUT = 5          # Timeout for connection tests
    PROBE_HOSTS = [
        ("8.8.8.8", 53),            # Google DNS
        ("1.1.1.1", 53),            # Cloudflare DNS
        ("208.67.222.222", 53),     # OpenDNS
    ]

    def __init__(self, initial_online: bool = False, supabase_url: Optional[str] = None):
        self._state = ConnectionState(
            status=ConnectionStatus.ONLINE if initial_online else ConnectionStatus.OFFLINE
        )
        if initial_online:
            self._state.last_online = datetime.now()
        self.supabase_url = supabase_url or ""
        self._on_online: List[ConnectionCallback] = []
        self._on_offline: List[ConnectionCallback] = []
        self._callbacks: List[ConnectionCallback] = []
        self._monitor_task: Optional[asyncio.Task] = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def status(self) -> ConnectionStatus:
        return self._state.status

    @property
    def is_online(self) -> bool:
        return self._state.status == ConnectionStatus.ONLINE

    @property
    def is_offline(self) -> bool:
        return self._state.status == ConnectionStatus.OFFLINE

    # =========================================================================
    # SIGNAL
    # =========================================================================

    def set_online(self, online: bool) -> bool:
        """
        Feed the platform connectivity signal.

        Returns:
            True if the status changed (an edge event fired)
        """
        new_status = ConnectionStatus.ONLINE if online else ConnectionStatus.OFFLINE
        if new_status == self._state.status:
            return False

        old_status = self._state.status
        self._state.status = new_status
        self._state.last_change = datetime.now()
        if online:
            self._state.last_online = self._state.last_change

        logger.info(f"Connection status changed: {old_status.value} -> {new_status.value}")
        self._notify(self._on_online if online else self._on_offline)
        self._notify(self._callbacks)
        return True

    def force_offline(self) -> None:
        """Force offline mode (for testing or user preference)."""
        self.set_online(False)
        logger.info("Forced offline mode")

    # =========================================================================
    # CALLBACKS
    # =========================================================================

    def on_went_online(self, callback: ConnectionCallback) -> None:
        if callback not in self._on_online:
            self._on_online.append(callback)

    def on_went_offline(self, callback: ConnectionCallback) -> None:
        if callback not in self._on_offline:
            self._on_offline.append(callback)

    def register_callback(self, callback: ConnectionCallback) -> None:
        """Register a callback for any status change."""
        if callback not in self._callbacks:
            self._callbacks.append(callback)

    def unregister_callback(self, callback: ConnectionCallback) -> None:
        for registry in (self._callbacks, self._on_online, self._on_offline):
            if callback in registry:
                registry.remove(callback)

    def _notify(self, callbacks: List[ConnectionCallback]) -> None:
        for callback in list(callbacks):
            try:
                callback(self._state)
            except Exception as e:
                logger.error(f"Error in connection callback: {e}")

    # =========================================================================
    # ACTIVE PROBE
    # =========================================================================

    def check_connection(self) -> bool:
        """
        Probe the network and feed the result in as the signal.

        Blocking; run it off the event loop (see start_monitoring).

        Returns:
            True if online
        """
        online = self._check_internet() and self._check_supabase()
        self._state.last_check = datetime.now()
        if online:
            self._state.consecutive_failures = 0
        else:
            self._state.consecutive_failures += 1
        return online

    def _check_internet(self) -> bool:
        for host, port in self.PROBE_HOSTS:
            if self._can_connect(host, port):
                return True
        return False

    def _check_supabase(self) -> bool:
        if not self.supabase_url:
            # No Supabase configured - treat as available (local-only mode)
            return True

        parsed = urlparse(self.supabase_url)
        if not parsed.hostname:
            return False
        return self._can_connect(parsed.hostname, parsed.port or 443)

    def _can_connect(self, host: str, port: int) -> bool:
        try:
            with socket.create_connection((host, port), timeout=self.CONNECTION_TIMEOUT):
                return True
        except OSError:
            return False

    def start_monitoring(self) -> None:
        """Start periodic probing on the running event loop."""
        if self._monitor_task is not None and not self._monitor_task.done():
            return
        self._monitor_task = asyncio.get_running_loop().create_task(self._monitoring_loop())
        logger.debug("Connection monitoring started")

    async def stop_monitoring(self) -> None:
        if self._monitor_task is None:
            return
        self._monitor_task.cancel()
        try:
            await self._monitor_task
        except asyncio.CancelledError:
            pass
        self._monitor_task = None
        logger.debug("Connection monitoring stopped")

    async def _monitoring_loop(self) -> None:
        while True:
            try:
                online = await asyncio.to_thread(self.check_connection)
                self.set_online(online)
            except Exception as e:
                logger.error(f"Error in connection check: {e}")

            interval = (
                self.CHECK_INTERVAL_ONLINE
                if self.is_online
                else self.CHECK_INTERVAL_OFFLINE
            )
            await asyncio.sleep(interval)

    def get_status_display(self) -> dict:
        """Get status information for UI display."""
        return {
            "status": self._state.status.value,
            "is_online": self.is_online,
            "last_change": self._state.last_change.isoformat() if self._state.last_change else None,
            "last_check": self._state.last_check.isoformat() if self._state.last_check else None,
            "last_online": self._state.last_online.isoformat() if self._state.last_online else None,
            "failures": self._state.consecutive_failures,
        }
