# =============================================================================
# tests/unit/test_connection_manager.py
# Unit Tests for ConnectivityMonitor
# =============================================================================

from unittest.mock import MagicMock

from medcore.offline.connection_manager import ConnectionStatus, ConnectivityMonitor


class TestConnectivityTransitions:
    """Test edge-triggered state changes"""

    def test_starts_offline_by_default(self):
        monitor = ConnectivityMonitor()
        assert monitor.is_offline
        assert monitor.status == ConnectionStatus.OFFLINE

    def test_duplicate_signals_collapse(self):
        monitor = ConnectivityMonitor()
        went_online = MagicMock()
        monitor.on_went_online(went_online)

        assert monitor.set_online(True) is True
        assert monitor.set_online(True) is False
        assert monitor.set_online(True) is False
        went_online.assert_called_once()

    def test_each_offline_online_cycle_fires_once(self):
        monitor = ConnectivityMonitor()
        went_online = MagicMock()
        went_offline = MagicMock()
        monitor.on_went_online(went_online)
        monitor.on_went_offline(went_offline)

        for online in (True, False, False, True, True, False):
            monitor.set_online(online)

        assert went_online.call_count == 2
        assert went_offline.call_count == 2

    def test_generic_callback_sees_both_edges(self):
        monitor = ConnectivityMonitor(initial_online=True)
        seen = []
        monitor.register_callback(lambda state: seen.append(state.status))

        monitor.force_offline()
        monitor.set_online(True)

        assert seen == [ConnectionStatus.OFFLINE, ConnectionStatus.ONLINE]

    def test_failing_callback_does_not_block_others(self):
        monitor = ConnectivityMonitor()
        after = MagicMock()
        monitor.on_went_online(MagicMock(side_effect=RuntimeError("boom")))
        monitor.on_went_online(after)

        monitor.set_online(True)
        after.assert_called_once()

    def test_unregister_callback(self):
        monitor = ConnectivityMonitor()
        callback = MagicMock()
        monitor.on_went_online(callback)
        monitor.unregister_callback(callback)

        monitor.set_online(True)
        callback.assert_not_called()


class TestConnectivityProbe:
    """Test the active network probe"""

    def test_probe_failure_counts(self, monkeypatch):
        monitor = ConnectivityMonitor()
        monkeypatch.setattr(monitor, "_can_connect", lambda host, port: False)

        assert monitor.check_connection() is False
        assert monitor.check_connection() is False
        assert monitor.state.consecutive_failures == 2

    def test_probe_success_resets_failures(self, monkeypatch):
        monitor = ConnectivityMonitor(supabase_url="https://abc.supabase.co")
        monitor.state.consecutive_failures = 3
        monkeypatch.setattr(monitor, "_can_connect", lambda host, port: True)

        assert monitor.check_connection() is True
        assert monitor.state.consecutive_failures == 0

    def test_status_display(self):
        display = ConnectivityMonitor(initial_online=True).get_status_display()
        assert display["is_online"] is True
        assert display["status"] == ConnectionStatus.ONLINE.value
