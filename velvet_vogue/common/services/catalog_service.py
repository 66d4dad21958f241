from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..domain import Category, LineItem, Product, clamp_quantity
from ..errors import ProductNotFound, ValidationError
from ..money import to_money
from ..utils.pagination import normalize_paging
from .logging import log_event

SORT_OPTIONS = ("default", "price-low", "price-high", "name", "rating")
STOCK_STATUSES = ("in-stock", "low-stock", "out-of-stock")
LOW_STOCK_LIMIT = 10


def stock_status(stock: int) -> str:
    if stock <= 0:
        return "out-of-stock"
    if stock <= LOW_STOCK_LIMIT:
        return "low-stock"
    return "in-stock"


class CatalogService:
    """Catalog querying on top of the catalog repository.

    Responsibilities:
    - List/search products with category, price and stock filters, sorting and pagination
    - Get single product detail
    - Admin additions and removals
    """

    def __init__(self, repository):
        self._repository = repository

    def list_products(
        self,
        *,
        category: Optional[str] = None,
        query: Optional[str] = None,
        max_price: Optional[Any] = None,
        stock: Optional[str] = None,
        sort: str = "default",
        page: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> Dict:
        """Return dict: { products: [Product], categories: [Category], total, page, page_size }

        Without ``page`` every matching product is returned.
        """
        products = self._repository.load_products()
        if category:
            products = [p for p in products if category in p.category]
        if query:
            needle = query.strip().lower()
            products = [
                p for p in products
                if needle in p.name.lower() or needle in p.description.lower() or needle in p.id.lower()
            ]
        if max_price not in (None, ""):
            ceiling = to_money(max_price, "max_price")
            products = [p for p in products if p.price <= ceiling]
        if stock:
            if stock not in STOCK_STATUSES:
                raise ValidationError(f"Unknown stock status: {stock}", field="stock")
            products = [p for p in products if stock_status(p.stock) == stock]
        products = sort_products(products, sort)

        total = len(products)
        if page is None and page_size is None:
            p, ps = 1, total
        else:
            p, ps = normalize_paging(page or 1, page_size or 0)
            products = products[(p - 1) * ps: p * ps]
        return {
            "products": products,
            "categories": self.categories(),
            "total": total,
            "page": p,
            "page_size": ps,
        }

    def get_product(self, product_id: str) -> Product:
        product = self._repository.get_product(product_id)
        if product is None:
            raise ProductNotFound(product_id)
        return product

    def categories(self) -> List[Category]:
        """Stored categories with their product counts recomputed."""
        products = self._repository.load_products()
        counts: Dict[str, int] = {}
        for product in products:
            for category_id in product.category:
                counts[category_id] = counts.get(category_id, 0) + 1
        return [
            Category(id=c.id, name=c.name, count=counts.get(c.id, 0))
            for c in self._repository.load_categories()
        ]

    def add_product(self, fields: Mapping[str, Any]) -> Product:
        product = self._repository.add_product(fields)
        log_event("info", "catalog.product_added", product_id=product.id, name=product.name)
        return product

    def delete_product(self, product_id: str) -> None:
        if not self._repository.delete_product(product_id):
            raise ProductNotFound(product_id)
        log_event("info", "catalog.product_deleted", product_id=product_id)

    def price_items(self, requested: Iterable[Mapping[str, Any]]) -> List[LineItem]:
        """Turn client-posted basket lines into line items at catalog prices."""
        items: List[LineItem] = []
        for line in requested:
            if not isinstance(line, Mapping):
                raise ValidationError("items must be a list of objects", field="items")
            product_id = str(line.get("product_id") or line.get("id") or "").strip()
            product = self.get_product(product_id)
            items.append(product.to_line_item(clamp_quantity(line.get("quantity", 1))))
        return items


def sort_products(products: List[Product], sort: str) -> List[Product]:
    if sort not in SORT_OPTIONS:
        raise ValidationError(f"Unknown sort option: {sort}", field="sort")
    if sort == "price-low":
        return sorted(products, key=lambda p: p.price)
    if sort == "price-high":
        return sorted(products, key=lambda p: p.price, reverse=True)
    if sort == "name":
        return sorted(products, key=lambda p: p.name.lower())
    if sort == "rating":
        return sorted(products, key=lambda p: p.rating, reverse=True)
    # featured first, then by id
    return sorted(products, key=lambda p: (not p.featured, p.id))


def product_dto(product: Product) -> Dict:
    data = product.to_dict()
    data["stock_status"] = stock_status(product.stock)
    return data
