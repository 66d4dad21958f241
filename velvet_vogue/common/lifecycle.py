"""Order records, the status state machine and dashboard aggregates."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Tuple

from .domain import Customer, LineItem
from .errors import InvalidTransition, ValidationError
from .money import ZERO, format_money
from .pricing import PricingSummary, ShippingMethod


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    @classmethod
    def parse(cls, value: Any) -> "OrderStatus":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value or "").strip().lower())
        except ValueError as exc:
            raise ValidationError(f"Unknown order status: {value}", field="status") from exc


# Checkout marks the order processing straight away (payment captured).
INITIAL_STATUS = OrderStatus.PROCESSING

# Order the admin "update status" button cycles through.
STATUS_CYCLE: Tuple[OrderStatus, ...] = (
    OrderStatus.PENDING,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
    OrderStatus.CANCELLED,
)

TRANSITIONS: Mapping[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


@dataclass(frozen=True)
class Order:
    """An order snapshot taken at checkout; only ``status`` ever changes."""

    id: str
    created_at: datetime
    status: OrderStatus
    items: Tuple[LineItem, ...]
    pricing: PricingSummary
    customer: Customer
    shipping_method: ShippingMethod
    payment_method: str
    notes: str = ""
    transaction_id: Optional[str] = None

    @property
    def total(self) -> Decimal:
        return self.pricing.total

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "created_at": self.created_at.isoformat(),
            "status": self.status.value,
            "items": [item.to_dict() for item in self.items],
            "pricing": self.pricing.to_dict(),
            "total": format_money(self.total),
            "customer": self.customer.to_dict(),
            "shipping_method": self.shipping_method.value,
            "payment_method": self.payment_method,
            "notes": self.notes,
            "transaction_id": self.transaction_id,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Order":
        created = data.get("created_at")
        if isinstance(created, str):
            created = datetime.fromisoformat(created)
        return cls(
            id=str(data["id"]),
            created_at=created or datetime.now(timezone.utc),
            status=OrderStatus.parse(data.get("status", INITIAL_STATUS.value)),
            items=tuple(LineItem.from_dict(i) for i in data.get("items") or ()),
            pricing=PricingSummary.from_dict(data.get("pricing") or {}),
            customer=Customer.from_dict(data.get("customer")),
            shipping_method=ShippingMethod.parse(data.get("shipping_method", "standard")),
            payment_method=str(data.get("payment_method") or ""),
            notes=str(data.get("notes") or ""),
            transaction_id=data.get("transaction_id"),
        )


def create_order(
    order_id: str,
    items: Iterable[LineItem],
    pricing: PricingSummary,
    customer: Customer,
    shipping_method: Any,
    payment_method: str,
    *,
    status: Optional[Any] = None,
    created_at: Optional[datetime] = None,
    notes: str = "",
    transaction_id: Optional[str] = None,
) -> Order:
    return Order(
        id=order_id,
        created_at=created_at or datetime.now(timezone.utc),
        status=INITIAL_STATUS if status is None else OrderStatus.parse(status),
        items=tuple(items),
        pricing=pricing,
        customer=customer,
        shipping_method=ShippingMethod.parse(shipping_method),
        payment_method=payment_method,
        notes=notes,
        transaction_id=transaction_id,
    )


def next_status(status: OrderStatus) -> OrderStatus:
    index = STATUS_CYCLE.index(status)
    return STATUS_CYCLE[(index + 1) % len(STATUS_CYCLE)]


def advance(order: Order) -> Order:
    """Move to the next status in ``STATUS_CYCLE``, wrapping after cancelled.

    Unvalidated: delivered advances to cancelled and cancelled to pending.
    Use ``set_status`` for checked transitions.
    """
    return replace(order, status=next_status(order.status))


def allowed_transitions(status: Any) -> FrozenSet[OrderStatus]:
    return TRANSITIONS[OrderStatus.parse(status)]


def is_terminal(status: Any) -> bool:
    return not allowed_transitions(status)


def set_status(order: Order, target: Any) -> Order:
    target_status = OrderStatus.parse(target)
    if target_status not in TRANSITIONS[order.status]:
        raise InvalidTransition(order.status.value, target_status.value)
    return replace(order, status=target_status)


@dataclass(frozen=True)
class OrderAggregate:
    total_orders: int = 0
    total_revenue: Decimal = ZERO
    count_by_status: Mapping[OrderStatus, int] = field(
        default_factory=lambda: {status: 0 for status in STATUS_CYCLE}
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_orders": self.total_orders,
            "total_revenue": format_money(self.total_revenue),
            "count_by_status": {s.value: n for s, n in self.count_by_status.items()},
        }


def aggregate(orders: Iterable[Order]) -> OrderAggregate:
    counts = {status: 0 for status in STATUS_CYCLE}
    total = 0
    revenue = ZERO
    for order in orders:
        total += 1
        revenue += order.pricing.total
        counts[order.status] += 1
    return OrderAggregate(total_orders=total, total_revenue=revenue, count_by_status=counts)
