# =============================================================================
# tests/unit/test_billing_service.py
# Unit Tests for Billing Calculations
# =============================================================================

from datetime import date

import pytest

from medcore.services.billing_service import build_invoice, calculate_invoice


class TestCalculateInvoice:
    """Test discount and PhilHealth arithmetic"""

    def test_senior_discount_and_philhealth(self):
        totals = calculate_invoice(1000.0, senior_or_pwd=True, philhealth_deduction=200.0)

        assert totals.discount == pytest.approx(200.0)
        assert totals.philhealth == pytest.approx(200.0)
        assert totals.net == pytest.approx(600.0)

    def test_no_discount(self):
        totals = calculate_invoice(750.0)
        assert totals.discount == 0
        assert totals.net == pytest.approx(750.0)

    def test_net_never_negative(self):
        totals = calculate_invoice(500.0, senior_or_pwd=True, philhealth_deduction=1000.0)
        assert totals.net == 0

    def test_negative_amount_rejected(self):
        with pytest.raises(ValueError):
            calculate_invoice(-1.0)
        with pytest.raises(ValueError):
            calculate_invoice(100.0, philhealth_deduction=-5.0)


class TestBuildInvoice:
    """Test invoice record construction"""

    def test_build_invoice(self):
        invoice = build_invoice("INV-9", "Juan dela Cruz", 1000.0, senior_or_pwd=True,
                                philhealth_deduction=200.0, issued_on=date(2026, 10, 19))

        assert invoice.id == "INV-9"
        assert invoice.net == pytest.approx(600.0)
        assert invoice.status == "Paid"
        assert invoice.method == "Cash"
        assert invoice.date == "2026-10-19"
