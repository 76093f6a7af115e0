"""
Line item and document total calculations shared by invoices and quotes.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

CENTS = Decimal("0.01")


@dataclass(frozen=True)
class DocumentTotals:
    subtotal: Decimal
    tax_amount: Decimal
    total_amount: Decimal


def to_money(value: Decimal | int | float | str) -> Decimal:
    """Round a value to cents, half up."""
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


def line_amount(quantity: Decimal, unit_price: Decimal) -> Decimal:
    """Amount for a single line: quantity x unit price."""
    return to_money(Decimal(quantity) * Decimal(unit_price))


def compute_totals(amounts: Iterable[Decimal], tax_rate: Decimal) -> DocumentTotals:
    """
    Compute subtotal, tax and total for a document.

    ``tax_rate`` is a percentage (8.25 means 8.25%).
    """
    subtotal = to_money(sum((Decimal(a) for a in amounts), Decimal("0")))
    tax_amount = to_money(subtotal * Decimal(tax_rate) / Decimal("100"))
    return DocumentTotals(
        subtotal=subtotal,
        tax_amount=tax_amount,
        total_amount=subtotal + tax_amount,
    )
