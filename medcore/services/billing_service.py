"""
Billing Service - PhilHealth and SC/PWD invoice arithmetic.

Pure functions; no state and no I/O.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional

from medcore.models.entities import Invoice

# Senior citizen / PWD discount under RA 9994 and RA 10754
SC_PWD_DISCOUNT_RATE = 0.20


@dataclass(frozen=True)
class InvoiceTotals:
    gross: float
    discount: float
    philhealth: float
    net: float


def calculate_invoice(
    gross: float,
    senior_or_pwd: bool = False,
    philhealth_deduction: float = 0.0,
) -> InvoiceTotals:
    """
    Compute the collectible amount.

    net = max(0, gross - discount - philhealth_deduction), where the discount
    is 20% of gross for senior citizens and PWDs.

    Example:
        >>> calculate_invoice(1000, senior_or_pwd=True, philhealth_deduction=200).net
        600.0
    """
    if gross < 0 or philhealth_deduction < 0:
        raise ValueError("Amounts must not be negative")

    discount = gross * SC_PWD_DISCOUNT_RATE if senior_or_pwd else 0.0
    net = max(0.0, gross - discount - philhealth_deduction)
    return InvoiceTotals(
        gross=float(gross),
        discount=float(discount),
        philhealth=float(philhealth_deduction),
        net=float(net),
    )


def build_invoice(
    invoice_id: str,
    patient: str,
    gross: float,
    senior_or_pwd: bool = False,
    philhealth_deduction: float = 0.0,
    method: str = "Cash",
    status: str = "Paid",
    issued_on: Optional[date] = None,
) -> Invoice:
    """Create an Invoice entity with computed totals."""
    totals = calculate_invoice(gross, senior_or_pwd, philhealth_deduction)
    return Invoice(
        id=invoice_id,
        patient=patient,
        total=totals.gross,
        discount=totals.discount,
        philhealth=totals.philhealth,
        net=totals.net,
        status=status,
        method=method,
        date=(issued_on or date.today()).isoformat(),
    )
