"""
Checkout arithmetic shared by the storefront cart and the order service.

Tax applies to the subtotal after the coupon discount; shipping is a flat
rate per method. All amounts are Decimal rounded to cents.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Sequence

from bazaar.config import OrderConfig
from bazaar.money import multiply, round_money, to_decimal


@dataclass
class CheckoutSummary:
    subtotal: Decimal
    discount: Decimal
    tax: Decimal
    shipping: Decimal
    total: Decimal

    def to_dict(self) -> dict:
        return {
            "subtotal": float(self.subtotal),
            "discount": float(self.discount),
            "tax": float(self.tax),
            "shipping": float(self.shipping),
            "total": float(self.total),
        }


def checkout_summary(subtotal: Any, shipping_method: str = "standard", coupon_discount: Any = 0) -> CheckoutSummary:
    """Order totals for a subtotal. Raises ValueError for an unknown shipping method."""
    if shipping_method not in OrderConfig.SHIPPING_COST:
        raise ValueError(f"Unknown shipping method: {shipping_method}")

    subtotal = round_money(subtotal)
    discount = min(round_money(coupon_discount), subtotal)
    taxable = subtotal - discount
    tax = round_money(multiply(taxable, OrderConfig.TAX_RATE))
    shipping = round_money(OrderConfig.SHIPPING_COST[shipping_method])
    return CheckoutSummary(
        subtotal=subtotal,
        discount=discount,
        tax=tax,
        shipping=shipping,
        total=round_money(taxable + tax + shipping),
    )


def split_summary(summary: CheckoutSummary, subtotals: Sequence[Any]) -> List[CheckoutSummary]:
    """
    Split one summary across several sub-orders in proportion to their
    subtotals.

    Each share is rounded to cents and the last share takes the remainder,
    so the parts always add up to the whole.
    """
    parts = [round_money(s) for s in subtotals]
    whole = sum(parts, Decimal("0"))
    if len(parts) <= 1:
        return [summary]
    if whole == 0:
        # nothing to apportion by; the first sub-order carries shipping
        free = [_zero(part) for part in parts[1:]]
        return [summary, *free]

    allocated: Dict[str, Decimal] = {"discount": Decimal("0"), "tax": Decimal("0"), "shipping": Decimal("0")}
    shares: List[CheckoutSummary] = []
    for index, part in enumerate(parts):
        last = index == len(parts) - 1
        amounts = {}
        for name in allocated:
            total_amount = getattr(summary, name)
            if last:
                amounts[name] = total_amount - allocated[name]
            else:
                amounts[name] = round_money(total_amount * part / whole)
                allocated[name] += amounts[name]
        shares.append(
            CheckoutSummary(
                subtotal=part,
                discount=amounts["discount"],
                tax=amounts["tax"],
                shipping=amounts["shipping"],
                total=round_money(part - amounts["discount"] + amounts["tax"] + amounts["shipping"]),
            )
        )
    return shares


def _zero(subtotal: Decimal) -> CheckoutSummary:
    zero = Decimal("0.00")
    return CheckoutSummary(subtotal=subtotal, discount=zero, tax=zero, shipping=zero, total=zero)
