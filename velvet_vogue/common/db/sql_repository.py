from datetime import timezone
from typing import List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError

from ..domain import Customer, LineItem, Product
from ..errors import PersistenceError
from ..lifecycle import Order, OrderStatus
from ..models.cart_item import CartItem
from ..models.order import Order as OrderRow
from ..pricing import PricingSummary, ShippingMethod
from .session import SessionFactory


class SqlStoreRepository:
    """Carts and orders in SQL tables; products come from the catalog file.

    Each save runs in a single transaction, so a failed write leaves the
    previous cart or order list intact.
    """

    def __init__(self, session_factory: SessionFactory, catalog=None) -> None:
        self._session_factory = session_factory
        self._catalog = catalog

    def load_cart(self, cart_key: str) -> List[LineItem]:
        try:
            with self._session_factory() as session:
                rows = (
                    session.query(CartItem)
                    .filter(CartItem.cart_key == cart_key)
                    .order_by(CartItem.position)
                    .all()
                )
                return [
                    LineItem(
                        product_id=row.product_id,
                        name=row.name,
                        unit_price=row.unit_price,
                        quantity=row.quantity,
                        image=row.image or "",
                    )
                    for row in rows
                ]
        except SQLAlchemyError as exc:
            raise PersistenceError("load cart", str(exc)) from exc

    def save_cart(self, cart_key: str, items: Sequence[LineItem]) -> None:
        try:
            with self._session_factory() as session:
                session.query(CartItem).filter(CartItem.cart_key == cart_key).delete(
                    synchronize_session=False
                )
                for position, item in enumerate(items):
                    session.add(
                        CartItem(
                            cart_key=cart_key,
                            position=position,
                            product_id=item.product_id,
                            name=item.name,
                            image=item.image,
                            quantity=item.quantity,
                            unit_price=item.unit_price,
                        )
                    )
        except SQLAlchemyError as exc:
            raise PersistenceError("save cart", str(exc)) from exc

    def load_orders(self) -> List[Order]:
        try:
            with self._session_factory() as session:
                rows = session.query(OrderRow).order_by(OrderRow.created_at.desc()).all()
                return [_to_order(row) for row in rows]
        except SQLAlchemyError as exc:
            raise PersistenceError("load orders", str(exc)) from exc

    def save_orders(self, orders: Sequence[Order]) -> None:
        keep = {order.id for order in orders}
        try:
            with self._session_factory() as session:
                existing = {row.id: row for row in session.query(OrderRow).all()}
                for order_id, row in existing.items():
                    if order_id not in keep:
                        session.delete(row)
                for order in orders:
                    row = existing.get(order.id)
                    if row is None:
                        session.add(_to_row(order))
                    elif row.status != order.status.value:
                        # only the status of a stored order is mutable
                        row.status = order.status.value
        except SQLAlchemyError as exc:
            raise PersistenceError("save orders", str(exc)) from exc

    def load_products(self) -> List[Product]:
        if self._catalog is None:
            return []
        return self._catalog.load_products()

    def get_order(self, order_id: str) -> Optional[Order]:
        try:
            with self._session_factory() as session:
                row = session.query(OrderRow).filter(OrderRow.id == order_id).first()
                return _to_order(row) if row else None
        except SQLAlchemyError as exc:
            raise PersistenceError("load order", str(exc)) from exc


def _to_row(order: Order) -> OrderRow:
    return OrderRow(
        id=order.id,
        created_at=order.created_at,
        status=order.status.value,
        items=[item.to_dict() for item in order.items],
        customer=order.customer.to_dict(),
        subtotal=order.pricing.subtotal,
        shipping_cost=order.pricing.shipping_cost,
        tax=order.pricing.tax_amount,
        total=order.pricing.total,
        shipping_method=order.shipping_method.value,
        applied_shipping_method=order.pricing.shipping_method.value,
        payment_method=order.payment_method,
        notes=order.notes,
        external_payment_id=order.transaction_id,
    )


def _to_order(row: OrderRow) -> Order:
    created = row.created_at
    if created.tzinfo is None:
        # sqlite drops the offset; rows are always written in UTC
        created = created.replace(tzinfo=timezone.utc)
    pricing = PricingSummary(
        subtotal=row.subtotal,
        shipping_cost=row.shipping_cost,
        tax_amount=row.tax,
        total=row.total,
        shipping_method=ShippingMethod.parse(row.applied_shipping_method),
    )
    return Order(
        id=row.id,
        created_at=created,
        status=OrderStatus.parse(row.status),
        items=tuple(LineItem.from_dict(item) for item in row.items or ()),
        pricing=pricing,
        customer=Customer.from_dict(row.customer),
        shipping_method=ShippingMethod.parse(row.shipping_method),
        payment_method=row.payment_method,
        notes=row.notes or "",
        transaction_id=row.external_payment_id,
    )

