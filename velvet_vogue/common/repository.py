"""Storage interface the cart, checkout and admin services depend on."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Protocol, Sequence

from .domain import LineItem, Product
from .lifecycle import Order


class StoreRepository(Protocol):
    """Persistence for carts, orders and the product catalog.

    Saves always replace the full stored sequence; there are no partial
    updates. Implementations raise ``PersistenceError`` when the backing
    store cannot be read or written.
    """

    def load_cart(self, cart_key: str) -> List[LineItem]:
        """Return the line items stored for ``cart_key`` (empty if none)."""
        ...

    def save_cart(self, cart_key: str, items: Sequence[LineItem]) -> None:
        """Replace the stored items for ``cart_key``; an empty sequence clears it."""
        ...

    def load_orders(self) -> List[Order]:
        """Return all orders, newest first."""
        ...

    def save_orders(self, orders: Sequence[Order]) -> None:
        """Replace the stored order list with ``orders``."""
        ...

    def get_order(self, order_id: str) -> Optional[Order]:
        """Return the order with ``order_id``, or ``None``."""
        ...

    def load_products(self) -> List[Product]:
        """Return the current catalog."""
        ...


class InMemoryRepository:
    """Dictionary-backed repository for tests and embedding."""

    def __init__(self, products: Iterable[Product] = ()) -> None:
        self._carts: Dict[str, List[LineItem]] = {}
        self._orders: List[Order] = []
        self._products: List[Product] = list(products)

    def load_cart(self, cart_key: str) -> List[LineItem]:
        return list(self._carts.get(cart_key, ()))

    def save_cart(self, cart_key: str, items: Sequence[LineItem]) -> None:
        if items:
            self._carts[cart_key] = list(items)
        else:
            self._carts.pop(cart_key, None)

    def load_orders(self) -> List[Order]:
        return list(self._orders)

    def save_orders(self, orders: Sequence[Order]) -> None:
        self._orders = list(orders)

    def get_order(self, order_id: str) -> Optional[Order]:
        for order in self._orders:
            if order.id == order_id:
                return order
        return None

    def load_products(self) -> List[Product]:
        return list(self._products)
