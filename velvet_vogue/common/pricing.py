"""Order pricing: subtotal, shipping, tax and grand total.

Cart page, checkout and the admin order view all price through
``compute_summary`` so that the three can never drift apart.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Tuple

from .domain import LineItem
from .errors import InvalidInput
from .money import ZERO, format_money, quantize, to_money

DEFAULT_TAX_RATE = Decimal("0.20")
DEFAULT_FREE_SHIPPING_THRESHOLD = Decimal("50.00")


class ShippingMethod(str, Enum):
    STANDARD = "standard"
    EXPRESS = "express"
    FREE = "free"
    THRESHOLD_FREE = "threshold_free"

    @classmethod
    def parse(cls, value: Any) -> "ShippingMethod":
        if isinstance(value, cls):
            return value
        key = str(value or "").strip().lower().replace("-", "_")
        try:
            return cls(key)
        except ValueError as exc:
            raise InvalidInput(f"Unknown shipping method: {value}", field="shipping") from exc


DEFAULT_SHIPPING_FEES: Mapping[ShippingMethod, Decimal] = {
    ShippingMethod.STANDARD: Decimal("4.99"),
    ShippingMethod.EXPRESS: Decimal("9.99"),
}


@dataclass(frozen=True)
class PricingConfig:
    tax_rate: Decimal = DEFAULT_TAX_RATE
    free_shipping_threshold: Decimal = DEFAULT_FREE_SHIPPING_THRESHOLD
    shipping_fees: Mapping[ShippingMethod, Decimal] = field(
        default_factory=lambda: dict(DEFAULT_SHIPPING_FEES)
    )
    # methods whose fee is waived once the subtotal reaches the threshold
    waiver_methods: FrozenSet[ShippingMethod] = frozenset({ShippingMethod.STANDARD})

    def summarize(
        self,
        items: Iterable[LineItem],
        shipping_method: Any = ShippingMethod.STANDARD,
        *,
        require_items: bool = False,
    ) -> "PricingSummary":
        return compute_summary(
            items,
            shipping_method,
            self.tax_rate,
            self.free_shipping_threshold,
            shipping_fees=self.shipping_fees,
            waiver_methods=self.waiver_methods,
            require_items=require_items,
        )


@dataclass(frozen=True)
class PricingSummary:
    subtotal: Decimal
    shipping_cost: Decimal
    tax_amount: Decimal
    total: Decimal
    shipping_method: ShippingMethod = ShippingMethod.STANDARD

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subtotal": format_money(self.subtotal),
            "shipping_cost": format_money(self.shipping_cost),
            "tax_amount": format_money(self.tax_amount),
            "total": format_money(self.total),
            "shipping_method": self.shipping_method.value,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PricingSummary":
        return cls(
            subtotal=to_money(data.get("subtotal"), "subtotal"),
            shipping_cost=to_money(data.get("shipping_cost"), "shipping_cost"),
            tax_amount=to_money(data.get("tax_amount"), "tax_amount"),
            total=to_money(data.get("total"), "total"),
            shipping_method=ShippingMethod.parse(data.get("shipping_method", "standard")),
        )


def subtotal_of(items: Iterable[LineItem]) -> Decimal:
    return quantize(sum((item.line_total for item in items), ZERO))


def shipping_cost_for(
    method: ShippingMethod,
    subtotal: Decimal,
    free_shipping_threshold: Decimal,
    shipping_fees: Mapping[ShippingMethod, Decimal],
    waiver_methods: FrozenSet[ShippingMethod],
) -> Tuple[Decimal, ShippingMethod]:
    """Return ``(cost, applied_method)`` for the chosen method."""
    if method is ShippingMethod.FREE:
        return ZERO, method
    meets_threshold = subtotal >= free_shipping_threshold
    if method is ShippingMethod.THRESHOLD_FREE:
        if meets_threshold:
            return ZERO, method
        # below the threshold the order ships standard
        method = ShippingMethod.STANDARD
    elif meets_threshold and method in waiver_methods:
        return ZERO, ShippingMethod.THRESHOLD_FREE
    try:
        fee = shipping_fees[method]
    except KeyError as exc:
        raise InvalidInput(f"No fee configured for {method.value} shipping", field="shipping") from exc
    return to_money(fee, "shipping_fee"), method


def compute_summary(
    items: Iterable[LineItem],
    shipping_method: Any = ShippingMethod.STANDARD,
    tax_rate: Decimal = DEFAULT_TAX_RATE,
    free_shipping_threshold: Decimal = DEFAULT_FREE_SHIPPING_THRESHOLD,
    *,
    shipping_fees: Optional[Mapping[ShippingMethod, Decimal]] = None,
    waiver_methods: Optional[FrozenSet[ShippingMethod]] = None,
    require_items: bool = False,
) -> PricingSummary:
    """Price a sequence of line items.

    An empty sequence prices to all zeros unless ``require_items`` is set
    (checkout context), in which case ``InvalidInput`` is raised. The result
    depends only on the arguments, never on item order.
    """
    items = tuple(items)
    method = ShippingMethod.parse(shipping_method)
    if not items:
        if require_items:
            raise InvalidInput("Your cart is empty", field="items")
        return PricingSummary(ZERO, ZERO, ZERO, ZERO, method)

    rate = Decimal(str(tax_rate))
    if not rate.is_finite() or rate < 0:
        raise InvalidInput("tax_rate must be >= 0", field="tax_rate")
    threshold = to_money(free_shipping_threshold, "free_shipping_threshold")
    fees = DEFAULT_SHIPPING_FEES if shipping_fees is None else shipping_fees
    waivers = frozenset({ShippingMethod.STANDARD}) if waiver_methods is None else waiver_methods

    subtotal = subtotal_of(items)
    shipping, applied = shipping_cost_for(method, subtotal, threshold, fees, waivers)
    tax = quantize(subtotal * rate)
    return PricingSummary(
        subtotal=subtotal,
        shipping_cost=shipping,
        tax_amount=tax,
        total=subtotal + shipping + tax,
        shipping_method=applied,
    )
