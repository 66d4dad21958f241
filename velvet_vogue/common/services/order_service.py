import secrets
import time
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from .. import lifecycle
from ..domain import Customer, LineItem
from ..errors import OrderNotFound, ValidationError
from ..lifecycle import Order, OrderStatus
from ..money import ZERO, format_money
from ..pricing import PricingConfig, ShippingMethod
from ..repository import StoreRepository
from .logging import log_event
from .payment_service import SimulatedPaymentGateway

PAYMENT_METHODS = ("card", "paypal", "applepay", "googlepay")


def make_order_id(now_ms: Optional[int] = None) -> str:
    """``VV-`` followed by the millisecond clock minus its five leading digits."""
    stamp = str(now_ms if now_ms is not None else int(time.time() * 1000))
    return "VV-" + stamp[5:]


class OrderService:
    """Checkout and order administration over the injected repository."""

    def __init__(
        self,
        repository: StoreRepository,
        gateway: SimulatedPaymentGateway,
        pricing: Optional[PricingConfig] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._repository = repository
        self._gateway = gateway
        self._pricing = pricing or PricingConfig()
        self._clock = clock

    def checkout(
        self,
        *,
        cart_key: str,
        customer: Customer,
        shipping_method: Any = ShippingMethod.STANDARD,
        payment_method: str = "card",
        notes: str = "",
        items: Optional[Sequence[LineItem]] = None,
    ) -> Order:
        """Price the cart, charge the simulated gateway and record the order.

        ``items`` overrides the stored cart when the client posts its own
        basket. The stored cart is only cleared after the order is saved.
        """
        customer.validate()
        method = ShippingMethod.parse(shipping_method)
        if payment_method not in PAYMENT_METHODS:
            raise ValidationError(f"Unsupported payment method: {payment_method}", field="payment_method")
        basket = list(items) if items is not None else self._repository.load_cart(cart_key)
        pricing = self._pricing.summarize(basket, method, require_items=True)
        if method is ShippingMethod.FREE and pricing.subtotal < self._pricing.free_shipping_threshold:
            raise ValidationError(
                f"Free shipping needs a subtotal of at least {format_money(self._pricing.free_shipping_threshold)}",
                field="shipping",
            )

        receipt = self._gateway.charge(pricing.total, payment_method)

        orders = self._repository.load_orders()
        order = lifecycle.create_order(
            self._unique_id(o.id for o in orders),
            basket,
            pricing,
            customer,
            method,
            payment_method,
            created_at=self._clock(),
            notes=notes,
            transaction_id=receipt.transaction_id,
        )
        self._repository.save_orders([order] + orders)
        self._repository.save_cart(cart_key, [])
        log_event(
            "info",
            "order.created",
            order_id=order.id,
            items=len(order.items),
            total=order.total,
            shipping=order.pricing.shipping_method.value,
        )
        return order

    def list_orders(
        self,
        *,
        status: Optional[Any] = None,
        query: Optional[str] = None,
        on_date: Optional[date] = None,
    ) -> List[Order]:
        orders = self._repository.load_orders()
        if status:
            wanted = OrderStatus.parse(status)
            orders = [o for o in orders if o.status is wanted]
        if query:
            needle = query.strip().lower()
            orders = [o for o in orders if needle in _search_text(o)]
        if on_date:
            orders = [o for o in orders if o.created_at.date() == on_date]
        return orders

    def get_order(self, order_id: str) -> Order:
        order = self._repository.get_order(order_id)
        if order is None:
            raise OrderNotFound(order_id)
        return order

    def advance_order(self, order_id: str) -> Order:
        return self._transition(order_id, lifecycle.advance)

    def set_order_status(self, order_id: str, target: Any) -> Order:
        return self._transition(order_id, lambda order: lifecycle.set_status(order, target))

    def dashboard(self, product_count: int = 0, recent: int = 5) -> Dict:
        orders = self._repository.load_orders()
        stats = lifecycle.aggregate(orders)
        data = stats.to_dict()
        data.update(
            {
                "total_products": product_count,
                "pending_orders": stats.count_by_status[OrderStatus.PENDING],
                "total_customers": len({o.customer.email.lower() for o in orders}),
                "recent_orders": [o.to_dict() for o in orders[:recent]],
            }
        )
        return data

    def customers(self) -> List[Dict]:
        """Customers seen at checkout, with order count and amount spent."""
        by_email: Dict[str, Dict] = {}
        for order in self._repository.load_orders():
            key = order.customer.email.lower()
            entry = by_email.setdefault(
                key,
                {"customer": order.customer, "orders": 0, "total_spent": ZERO, "last_order": order.created_at},
            )
            entry["orders"] += 1
            entry["total_spent"] += order.total
            entry["last_order"] = max(entry["last_order"], order.created_at)
        return [
            {
                **entry["customer"].to_dict(),
                "orders": entry["orders"],
                "total_spent": format_money(entry["total_spent"]),
                "last_order": entry["last_order"].isoformat(),
            }
            for entry in by_email.values()
        ]

    def _transition(self, order_id: str, step: Callable[[Order], Order]) -> Order:
        orders = self._repository.load_orders()
        for index, order in enumerate(orders):
            if order.id == order_id:
                updated = step(order)
                orders[index] = updated
                self._repository.save_orders(orders)
                log_event(
                    "info",
                    "order.status_changed",
                    order_id=order_id,
                    previous=order.status.value,
                    status=updated.status.value,
                )
                return updated
        raise OrderNotFound(order_id)

    def _unique_id(self, existing: Iterable[str]) -> str:
        taken = set(existing)
        order_id = make_order_id()
        while order_id in taken:
            order_id = f"{make_order_id()}-{secrets.token_hex(2).upper()}"
        return order_id


def _search_text(order: Order) -> str:
    c = order.customer
    return " ".join((order.id, c.first_name, c.last_name, c.email)).lower()
