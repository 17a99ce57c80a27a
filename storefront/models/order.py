# storefront/models/order.py

import enum

from sqlalchemy import (
    JSON, Boolean, CheckConstraint, Column, DateTime, Enum, ForeignKey, Integer, Numeric, String, func
)
from sqlalchemy.orm import relationship

from storefront.db.session import Base, generate_id, utcnow


class OrderStatus(str, enum.Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


class ShippingCarrier(str, enum.Enum):
    USPS = "USPS"
    UPS = "UPS"
    FEDEX = "FEDEX"
    DHL = "DHL"
    OTHER = "OTHER"


class Order(Base):
    __tablename__ = "orders"

    id = Column(String, primary_key=True, default=generate_id)
    user_id = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    is_guest = Column(Boolean, nullable=False, default=False, server_default='false')
    # Токен гостевого заказа; остается и после привязки к аккаунту
    guest_token = Column(String, unique=True, nullable=True, index=True)

    customer_email = Column(String, nullable=False, index=True)
    customer_name = Column(String, nullable=True)
    total = Column(Numeric(10, 2), nullable=False)
    status = Column(Enum(OrderStatus, name="order_status"), nullable=False, default=OrderStatus.PENDING)

    stripe_session_id = Column(String, unique=True, nullable=True)
    stripe_payment_intent = Column(String, unique=True, nullable=True)
    shipping_address = Column(JSON, nullable=True)

    tracking_number = Column(String, nullable=True)
    shipping_carrier = Column(Enum(ShippingCarrier, name="shipping_carrier"), nullable=True)
    shipped_at = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, server_default=func.now(), nullable=False)

    user = relationship("User", back_populates="orders")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("user_id IS NOT NULL OR guest_token IS NOT NULL", name="ck_order_has_owner"),
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(String, primary_key=True, default=generate_id)
    order_id = Column(String, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(String, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True)

    # Снимок товара на момент покупки: не меняется при редактировании товара
    name = Column(String, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    image_url = Column(String, nullable=True)

    order = relationship("Order", back_populates="items")
    product = relationship("Product", back_populates="order_items")
