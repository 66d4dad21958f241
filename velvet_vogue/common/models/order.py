from sqlalchemy import Column, DateTime, JSON, Numeric, String, Text
from .base import Base


class Order(Base):
    __tablename__ = "order"

    id = Column(String(64), primary_key=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    status = Column(String(32), nullable=False, index=True)
    items = Column(JSON, nullable=False)
    customer = Column(JSON, nullable=False)
    subtotal = Column(Numeric(12, 2), nullable=False)
    shipping_cost = Column(Numeric(12, 2), nullable=False)
    tax = Column(Numeric(12, 2), nullable=False)
    total = Column(Numeric(12, 2), nullable=False)
    shipping_method = Column(String(32), nullable=False)
    applied_shipping_method = Column(String(32), nullable=False)
    payment_method = Column(String(32), nullable=False)
    notes = Column(Text, nullable=True)
    external_payment_id = Column(String(128), nullable=True)
