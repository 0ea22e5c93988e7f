"""
MedCore dashboard entry point.

    streamlit run app.py

Streamlit reruns this script on every interaction without a persistent event
loop. Online mutations made here go through the queue and are drained on a
private loop at once; connectivity is re-probed on reruns, and coming back
online or pressing "Sync now" drains whatever is still queued.
"""
from __future__ import annotations
import asyncio

import streamlit as st

from medcore.errors import ErrorContext
from medcore.logging import setup_logging
from medcore.services.dashboard_service import DashboardService
from medcore.state.container import ClinicApp, create_clinic_app
from medcore.ui.status_panel import (
    render_connection_badge,
    render_live_notifications,
    render_notification_history,
)

st.set_page_config(page_title="MedCore Clinic", page_icon="🏥", layout="wide")

# Seconds a connectivity probe result is reused across reruns
CONNECTIVITY_PROBE_TTL = 15


@st.cache_resource
def get_clinic_app() -> ClinicApp:
    setup_logging()
    return create_clinic_app()


@st.cache_data(ttl=CONNECTIVITY_PROBE_TTL, show_spinner=False)
def probe_connectivity() -> bool:
    return get_clinic_app().monitor.check_connection()


app = get_clinic_app()

# Re-probed on reruns; an offline -> online change drains the queue here
app.monitor.set_online(probe_connectivity())

render_connection_badge(app)
render_notification_history(app.notifier)

if st.sidebar.button("Sync now", disabled=not app.monitor.is_online):
    with ErrorContext("Manual sync", notifier=app.notifier):
        asyncio.run(app.service.sync_now())

kpis = DashboardService(app.store).summary()
col1, col2, col3, col4 = st.columns(4)
col1.metric("Total Patients", kpis.total_patients)
col2.metric("Appointments Today", kpis.appointments_today)
col3.metric("Revenue (₱)", f"{kpis.total_revenue:,.2f}")
col4.metric("Low Stock", len(kpis.low_stock_items))

render_live_notifications(app.notifier)
