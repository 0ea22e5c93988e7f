# =============================================================================
# medcore/services/__init__.py
# Clinic Business Logic
# Pure calculations and read-only views over the LocalStore
# =============================================================================
"""
Service Layer for MedCore

Mutations go through ``medcore.offline.ClinicService``; the services here only
compute. They never touch the network, so they behave the same offline.

Usage Example:
-------------
    from medcore.services import DashboardService, build_invoice

    invoice = build_invoice("INV-1001", patient.name, 1000.0,
                            senior_or_pwd=patient.is_senior_citizen,
                            philhealth_deduction=200.0)
    app.service.add_invoice(invoice)

    kpis = DashboardService(app.store).summary()
    print(f"Revenue: {kpis.total_revenue:,.2f}")
"""

from .billing_service import (
    SC_PWD_DISCOUNT_RATE,
    InvoiceTotals,
    build_invoice,
    calculate_invoice,
)
from .dashboard_service import LOW_STOCK_THRESHOLD, ClinicKPIs, DashboardService

__all__ = [
    # Billing
    "SC_PWD_DISCOUNT_RATE",
    "InvoiceTotals",
    "calculate_invoice",
    "build_invoice",
    # Dashboard
    "LOW_STOCK_THRESHOLD",
    "ClinicKPIs",
    "DashboardService",
]
