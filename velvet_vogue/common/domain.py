"""Catalog, cart and customer records exchanged between services and stores."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional, Tuple

from .errors import InvalidInput, ValidationError
from .money import format_money, to_money

MIN_QUANTITY = 1
MAX_QUANTITY = 10


def clamp_quantity(value: Any) -> int:
    """Coerce a requested quantity into ``[MIN_QUANTITY, MAX_QUANTITY]``.

    Non-numeric input falls back to the minimum, like the quantity box on
    the cart page.
    """
    try:
        qty = int(value)
    except (TypeError, ValueError):
        return MIN_QUANTITY
    return max(MIN_QUANTITY, min(MAX_QUANTITY, qty))


@dataclass(frozen=True)
class LineItem:
    """A product/quantity pairing inside a cart or an order snapshot."""

    product_id: str
    name: str
    unit_price: Decimal
    quantity: int
    image: str = ""

    def __post_init__(self) -> None:
        if not self.product_id:
            raise InvalidInput("product_id required", field="product_id")
        object.__setattr__(self, "unit_price", to_money(self.unit_price, "unit_price"))
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            raise InvalidInput("quantity must be an integer", field="quantity")
        if not MIN_QUANTITY <= self.quantity <= MAX_QUANTITY:
            raise InvalidInput(
                f"quantity must be between {MIN_QUANTITY} and {MAX_QUANTITY}",
                field="quantity",
            )

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "unit_price": format_money(self.unit_price),
            "quantity": self.quantity,
            "image": self.image,
            "line_total": format_money(self.line_total),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LineItem":
        """Build from stored or client JSON; accepts the storefront's ``id``/``price`` keys."""
        product_id = str(data.get("product_id") or data.get("id") or "").strip()
        price = data.get("unit_price", data.get("price"))
        return cls(
            product_id=product_id,
            name=str(data.get("name", "")),
            unit_price=to_money(price, "unit_price"),
            quantity=clamp_quantity(data.get("quantity", MIN_QUANTITY)),
            image=str(data.get("image") or ""),
        )


_CUSTOMER_FIELDS = (
    ("first_name", "firstName"),
    ("last_name", "lastName"),
    ("email", "email"),
    ("phone", "phone"),
    ("address", "address"),
    ("city", "city"),
    ("postcode", "postcode"),
    ("country", "country"),
)
_REQUIRED_CUSTOMER_FIELDS = ("first_name", "last_name", "email", "address", "city", "postcode", "country")


@dataclass(frozen=True)
class Customer:
    """Contact and delivery details captured on the checkout form."""

    first_name: str
    last_name: str
    email: str
    phone: str = ""
    address: str = ""
    city: str = ""
    postcode: str = ""
    country: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def validate(self) -> "Customer":
        for name in _REQUIRED_CUSTOMER_FIELDS:
            if not getattr(self, name).strip():
                raise ValidationError(f"{name} is required", field=name)
        local, _, domain = self.email.partition("@")
        if not local or "." not in domain:
            raise ValidationError("email is not valid", field="email")
        return self

    def to_dict(self) -> Dict[str, str]:
        return {name: getattr(self, name) for name, _ in _CUSTOMER_FIELDS}

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "Customer":
        data = data or {}
        if not isinstance(data, Mapping):
            raise ValidationError("customer must be an object", field="customer")
        values = {}
        for name, camel in _CUSTOMER_FIELDS:
            raw = data.get(name, data.get(camel, ""))
            values[name] = str(raw or "").strip()
        # postcodes are stored the way the checkout form formats them
        values["postcode"] = "".join(ch for ch in values["postcode"].upper() if ch.isalnum())
        return cls(**values)


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "count": self.count}


@dataclass(frozen=True)
class Product:
    """A catalog entry as stored in the products file."""

    id: str
    name: str
    price: Decimal
    category: Tuple[str, ...] = ()
    stock: int = 0
    description: str = ""
    sizes: Tuple[str, ...] = ()
    colors: Tuple[str, ...] = ()
    image: str = ""
    rating: float = 0.0
    featured: bool = False
    created_at: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.extra)
        data.update(
            {
                "id": self.id,
                "name": self.name,
                "price": format_money(self.price),
                "category": list(self.category),
                "stock": self.stock,
                "description": self.description,
                "sizes": list(self.sizes),
                "colors": list(self.colors),
                "image": self.image,
                "rating": self.rating,
                "featured": self.featured,
            }
        )
        if self.created_at:
            data["createdAt"] = self.created_at
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Product":
        known = {
            "id", "name", "price", "category", "stock", "description", "sizes",
            "colors", "image", "rating", "featured", "createdAt", "created_at",
        }
        category = data.get("category") or ()
        if isinstance(category, str):
            category = (category,)
        try:
            stock = int(data.get("stock") or 0)
            rating = float(data.get("rating") or 0)
        except (TypeError, ValueError) as exc:
            raise ValidationError("stock and rating must be numbers") from exc
        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name", "")).strip(),
            price=to_money(data.get("price"), "price"),
            category=tuple(str(c) for c in category),
            stock=max(stock, 0),
            description=str(data.get("description") or ""),
            sizes=_str_tuple(data.get("sizes")),
            colors=_str_tuple(data.get("colors")),
            image=str(data.get("image") or ""),
            rating=rating,
            featured=bool(data.get("featured", False)),
            created_at=data.get("createdAt") or data.get("created_at"),
            extra={k: v for k, v in data.items() if k not in known},
        )

    def to_line_item(self, quantity: int) -> LineItem:
        return LineItem(
            product_id=self.id,
            name=self.name,
            unit_price=self.price,
            quantity=quantity,
            image=self.image,
        )


def _str_tuple(value: Any) -> Tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, str):
        value = value.split(",")
    return tuple(s for s in (str(v).strip() for v in value) if s)
