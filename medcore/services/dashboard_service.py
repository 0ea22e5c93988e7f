"""
Dashboard Service - Clinic KPIs computed from the LocalStore.

Works entirely on local state so the dashboard renders the same whether or
not the backend is reachable.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional
import logging

import pandas as pd

from medcore.offline.local_store import LocalStore

logger = logging.getLogger(__name__)

LOW_STOCK_THRESHOLD = 20


@dataclass
class ClinicKPIs:
    """Headline numbers for the dashboard."""
    total_patients: int = 0
    appointments_today: int = 0
    appointments_by_status: Dict[str, int] = field(default_factory=dict)
    low_stock_items: List[str] = field(default_factory=list)
    total_revenue: float = 0.0
    pending_sync: int = 0


class DashboardService:
    """
    Usage:
        kpis = DashboardService(app.store).summary()
        kpis.total_revenue
    """

    def __init__(self, store: LocalStore):
        self.store = store

    def summary(self, today: Optional[date] = None) -> ClinicKPIs:
        today_str = (today or date.today()).isoformat()
        kpis = ClinicKPIs(
            total_patients=len(self.store.patients),
            pending_sync=len(self.store.queue),
        )

        appointments = self.store.appointments.to_dataframe()
        if not appointments.empty:
            kpis.appointments_today = int((appointments["date"] == today_str).sum())
            kpis.appointments_by_status = {
                str(k): int(v) for k, v in appointments["status"].value_counts().items()
            }

        inventory = self.store.inventory.to_dataframe()
        if not inventory.empty:
            low = inventory[pd.to_numeric(inventory["stock"], errors="coerce") < LOW_STOCK_THRESHOLD]
            kpis.low_stock_items = low["name"].tolist()

        invoices = self.store.invoices.to_dataframe()
        if not invoices.empty:
            paid = invoices[invoices["status"] == "Paid"]
            kpis.total_revenue = float(pd.to_numeric(paid["net"], errors="coerce").fillna(0).sum())

        return kpis

    def patients_table(self) -> pd.DataFrame:
        """Patients with flattened address columns, sorted by name."""
        df = self.store.patients.to_dataframe()
        if df.empty:
            return df
        return df.sort_values("name").reset_index(drop=True)
