"""Immutable shopping cart value.

Every operation returns a new ``Cart``; callers persist the full item
sequence afterwards through the repository.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Iterable, Iterator, Optional, Tuple

from .domain import MAX_QUANTITY, MIN_QUANTITY, LineItem, Product, clamp_quantity


@dataclass(frozen=True)
class Cart:
    items: Tuple[LineItem, ...] = ()

    @classmethod
    def of(cls, items: Iterable[LineItem]) -> "Cart":
        return cls(tuple(items))

    def __iter__(self) -> Iterator[LineItem]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    def find(self, product_id: str) -> Optional[LineItem]:
        for item in self.items:
            if item.product_id == product_id:
                return item
        return None

    def add_item(self, product: Product, quantity: Any = 1) -> "Cart":
        """Add a product, merging with an existing line for the same id."""
        qty = clamp_quantity(quantity)
        existing = self.find(product.id)
        if existing is None:
            return Cart(self.items + (product.to_line_item(qty),))
        merged = min(existing.quantity + qty, MAX_QUANTITY)
        return self._replace_line(product.id, replace(existing, quantity=merged))

    def update_quantity(self, product_id: str, delta: int) -> "Cart":
        """Shift a line's quantity by ``delta``; dropping below 1 removes it."""
        existing = self.find(product_id)
        if existing is None:
            return self
        new_quantity = existing.quantity + int(delta)
        if new_quantity < MIN_QUANTITY:
            return self.remove_item(product_id)
        return self._replace_line(
            product_id, replace(existing, quantity=min(new_quantity, MAX_QUANTITY))
        )

    def set_quantity(self, product_id: str, quantity: Any) -> "Cart":
        existing = self.find(product_id)
        if existing is None:
            return self
        return self._replace_line(product_id, replace(existing, quantity=clamp_quantity(quantity)))

    def remove_item(self, product_id: str) -> "Cart":
        return Cart(tuple(item for item in self.items if item.product_id != product_id))

    def clear(self) -> "Cart":
        return Cart()

    def _replace_line(self, product_id: str, line: LineItem) -> "Cart":
        return Cart(tuple(line if item.product_id == product_id else item for item in self.items))
