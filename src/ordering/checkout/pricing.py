"""Checkout pricing: tax breakdown and the online payment discount.

Prices on the storefront are tax-inclusive. The tax component is taken as a
fixed share of the inclusive cart total rather than added on top, and paying
online earns a fixed discount on that same total. Every amount is rounded to
two places on its own, so the breakdown always reconciles exactly:

    base + tax_component == final_total + discount
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

TAX_RATE = Decimal("0.18")
ONLINE_DISCOUNT_RATE = Decimal("0.05")

_CENT = Decimal("0.01")


class PaymentMethod(Enum):
    COD = "cod"
    ONLINE = "online"


@dataclass(frozen=True)
class PriceBreakdown:
    base: Decimal
    tax_component: Decimal
    discount: Decimal
    final_total: Decimal

    def as_dict(self) -> dict:
        return {
            "base": float(self.base),
            "tax_component": float(self.tax_component),
            "discount": float(self.discount),
            "final_total": float(self.final_total),
        }


def _round(amount: Decimal) -> Decimal:
    return amount.quantize(_CENT, rounding=ROUND_HALF_UP)


def cart_total(items: list[dict]) -> Decimal:
    """Sum of ``price * quantity`` over cart lines, rounded to two places."""
    return _round(sum((Decimal(str(item["price"])) * int(item["quantity"]) for item in items), Decimal("0")))


def price_cart(total, payment_method: PaymentMethod | str) -> PriceBreakdown:
    """Break a tax-inclusive cart total down for the chosen payment method."""
    method = PaymentMethod(payment_method)
    inclusive = _round(Decimal(str(total)))
    if inclusive < 0:
        raise ValueError("Cart total cannot be negative")

    tax_component = _round(inclusive * TAX_RATE)
    discount = _round(inclusive * ONLINE_DISCOUNT_RATE) if method is PaymentMethod.ONLINE else Decimal("0.00")
    return PriceBreakdown(
        base=_round(inclusive - tax_component),
        tax_component=tax_component,
        discount=discount,
        final_total=_round(inclusive - discount),
    )
