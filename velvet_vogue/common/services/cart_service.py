from typing import Any, Dict, Optional

from ..cart import Cart
from ..errors import ProductNotFound, ValidationError
from ..pricing import PricingConfig, PricingSummary, ShippingMethod
from ..repository import StoreRepository
from .logging import log_event


class CartService:
    """Cart operations for one browsing session, keyed by ``cart_key``.

    Each mutation loads the stored cart, derives a new ``Cart`` and saves the
    full item sequence back.
    """

    def __init__(self, repository: StoreRepository, catalog, pricing: Optional[PricingConfig] = None):
        self._repository = repository
        self._catalog = catalog
        self._pricing = pricing or PricingConfig()

    def get_cart(self, cart_key: str) -> Cart:
        return Cart.of(self._repository.load_cart(cart_key))

    def summary(self, cart_key: str, shipping_method: Any = ShippingMethod.STANDARD) -> PricingSummary:
        return self._pricing.summarize(self.get_cart(cart_key), shipping_method)

    def describe(self, cart_key: str, shipping_method: Any = ShippingMethod.STANDARD) -> Dict:
        cart = self.get_cart(cart_key)
        summary = self._pricing.summarize(cart, shipping_method)
        return {
            "items": [item.to_dict() for item in cart],
            "item_count": cart.item_count,
            "summary": summary.to_dict(),
        }

    def add_item(self, cart_key: str, product_id: str, quantity: Any = 1) -> Cart:
        if not product_id:
            raise ValidationError("product_id required", field="product_id")
        product = self._catalog.get_product(product_id)
        if product is None:
            raise ProductNotFound(product_id)
        if product.stock <= 0:
            raise ValidationError(f"{product.name} is out of stock", field="product_id")
        cart = self.get_cart(cart_key).add_item(product, quantity)
        return self._save(cart_key, cart, "add", product_id)

    def update_quantity(self, cart_key: str, product_id: str, delta: Any) -> Cart:
        try:
            step = int(delta)
        except (TypeError, ValueError) as exc:
            raise ValidationError("delta must be an integer", field="delta") from exc
        cart = self._require_line(cart_key, product_id).update_quantity(product_id, step)
        return self._save(cart_key, cart, "update", product_id)

    def set_quantity(self, cart_key: str, product_id: str, quantity: Any) -> Cart:
        cart = self._require_line(cart_key, product_id).set_quantity(product_id, quantity)
        return self._save(cart_key, cart, "set", product_id)

    def remove_item(self, cart_key: str, product_id: str) -> Cart:
        cart = self._require_line(cart_key, product_id).remove_item(product_id)
        return self._save(cart_key, cart, "remove", product_id)

    def clear(self, cart_key: str) -> Cart:
        return self._save(cart_key, Cart(), "clear", None)

    def _require_line(self, cart_key: str, product_id: str) -> Cart:
        cart = self.get_cart(cart_key)
        if cart.find(product_id) is None:
            raise ProductNotFound(product_id)
        return cart

    def _save(self, cart_key: str, cart: Cart, action: str, product_id: Optional[str]) -> Cart:
        self._repository.save_cart(cart_key, cart.items)
        log_event("info", "cart.updated", action=action, product_id=product_id, items=cart.item_count)
        return cart
