from sqlalchemy import Column, DateTime, Integer, Numeric, String, func
from .base import Base


class CartItem(Base):
    __tablename__ = "cart_item"

    id = Column(Integer, primary_key=True, autoincrement=True)
    cart_key = Column(String(128), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    product_id = Column(String(36), nullable=False)
    name = Column(String(255), nullable=False)
    image = Column(String(1024), nullable=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    added_at = Column(DateTime, nullable=False, server_default=func.now())
