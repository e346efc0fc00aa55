"""
Project: SharePlate Canteen Backend
Description:
Order billing. Computes subtotal, per-item service charge, GST, coupon
discount and the payable total for a cart. Everything here is pure and
never raises on bad cart data; malformed lines simply contribute nothing.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from money import as_amount, as_quantity, clamp_non_negative

SERVICE_CHARGE_PER_ITEM = 2
GST_RATE = 0.05


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"

    @classmethod
    def parse(cls, raw) -> "DiscountType":
        if isinstance(raw, cls):
            return raw
        name = str(raw or "").strip().lower()
        if name == "flat":
            return cls.FIXED
        return cls(name)


@dataclass(frozen=True)
class LineItem:
    price: float = 0.0
    qty: int = 0

    @classmethod
    def from_raw(cls, raw) -> "LineItem":
        """Build a line from a cart entry; unknown shapes become an empty line."""
        if isinstance(raw, LineItem):
            return raw
        if not isinstance(raw, Mapping):
            return cls()
        qty = raw.get("qty")
        if qty is None:
            qty = raw.get("quantity")
        return cls(price=as_amount(raw.get("price")), qty=as_quantity(qty))


@dataclass(frozen=True)
class DiscountRule:
    type: DiscountType
    value: float
    max_discount: Optional[float] = None


@dataclass(frozen=True)
class BillResult:
    subtotal: float = 0.0
    service_charge: float = 0.0
    gst: float = 0.0
    discount: float = 0.0
    total: float = 0.0

    def to_dict(self):
        return {
            "subtotal": self.subtotal,
            "serviceCharge": self.service_charge,
            "gst": self.gst,
            "discount": self.discount,
            "total": self.total,
        }


@dataclass(frozen=True)
class ResolvedDiscount:
    type: DiscountType
    value: float
    final_amount: float

    def to_dict(self):
        return {
            "discount": self.value,
            "finalAmount": self.final_amount,
            "discountType": self.type.value,
        }


def discount_amount(rule: DiscountRule, base: float) -> float:
    """Discount that ``rule`` grants against ``base``.

    Percentage rules take ``value`` percent of the base, fixed rules take
    ``value`` as is. A truthy ``max_discount`` caps the result.
    """
    value = as_amount(rule.value)
    if rule.type is DiscountType.PERCENTAGE:
        discount = base * value / 100
    else:
        discount = value
    if rule.max_discount:
        discount = min(discount, as_amount(rule.max_discount))
    return discount


def compute_bill(items, rule: Optional[DiscountRule] = None) -> BillResult:
    if not isinstance(items, (list, tuple)) or not items:
        return BillResult()

    lines = [LineItem.from_raw(it) for it in items]
    subtotal = sum(line.price * line.qty for line in lines)
    quantity = sum(line.qty for line in lines)
    service_charge = quantity * SERVICE_CHARGE_PER_ITEM
    gst = subtotal * GST_RATE

    discount = discount_amount(rule, subtotal) if rule is not None else 0.0
    total = clamp_non_negative(subtotal + service_charge + gst - discount)

    return BillResult(
        subtotal=subtotal,
        service_charge=service_charge,
        gst=gst,
        discount=discount,
        total=total,
    )


def project_discount(rule: DiscountRule, total_amount) -> ResolvedDiscount:
    """Apply ``rule`` to a plain amount, as the coupon check endpoint does."""
    amount = as_amount(total_amount)
    discount = discount_amount(rule, amount)
    return ResolvedDiscount(
        type=rule.type,
        value=discount,
        final_amount=clamp_non_negative(amount - discount),
    )
