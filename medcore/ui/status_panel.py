# =============================================================================
# medcore/ui/status_panel.py
# Sync Status & Notification Widgets
# =============================================================================
"""
Streamlit widgets that read the sync layer; they never mutate it except via
the NotificationBus mark-read / clear actions.
"""
from __future__ import annotations
import streamlit as st

from medcore.notifications.bus import NotificationBus, Severity
from medcore.state.container import ClinicApp

_SEVERITY_ICONS = {
    Severity.INFO: "ℹ️",
    Severity.SUCCESS: "✅",
    Severity.ERROR: "⚠️",
}


def render_connection_badge(app: ClinicApp) -> None:
    """Online/offline pill plus pending-sync count."""
    pending = app.service.pending_sync_count
    if app.monitor.is_online:
        label = "🟢 Online"
        if app.engine.is_syncing:
            label += " · syncing…"
    else:
        label = "🔴 Offline"

    st.sidebar.markdown(f"**{label}**")
    if pending:
        st.sidebar.caption(f"{pending} change(s) waiting to sync")


def render_live_notifications(bus: NotificationBus) -> None:
    """Show each live notification once as a toast."""
    shown = st.session_state.setdefault("_medcore_toasts_shown", set())
    for notification in bus.live:
        if notification.id in shown:
            continue
        st.toast(notification.message, icon=_SEVERITY_ICONS[notification.severity])
        shown.add(notification.id)


def render_notification_history(bus: NotificationBus) -> None:
    """Bell panel: history, newest first, with mark-read and clear."""
    unread = bus.unread_count
    title = f"🔔 Notifications ({unread} new)" if unread else "🔔 Notifications"

    with st.sidebar.expander(title, expanded=False):
        history = bus.history
        if not history:
            st.caption("No notifications yet.")
            return

        for notification in history:
            marker = "" if notification.read else "● "
            st.markdown(
                f"{marker}{_SEVERITY_ICONS[notification.severity]} {notification.message}  \n"
                f"<small>{notification.timestamp:%b %d, %H:%M}</small>",
                unsafe_allow_html=True,
            )

        col1, col2 = st.columns(2)
        if col1.button("Mark all read", key="medcore_mark_read"):
            bus.mark_all_read()
        if col2.button("Clear", key="medcore_clear_history"):
            bus.clear_history()
