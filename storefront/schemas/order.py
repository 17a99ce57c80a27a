# storefront/schemas/order.py
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from storefront.models.order import OrderStatus, ShippingCarrier
from storefront.schemas.user import UserBrief


# Схема для одной позиции в заказе
class OrderLineItem(BaseModel):
    id: str
    product_id: str
    name: str
    price: float
    quantity: int
    image_url: str | None = None

    class Config:
        from_attributes = True


class Order(BaseModel):
    id: str
    status: OrderStatus
    total: float
    customer_email: str
    customer_name: str | None = None
    shipping_address: Optional[dict[str, Any]] = None
    created_at: datetime
    updated_at: datetime
    is_guest: bool
    items: List[OrderLineItem]

    class Config:
        from_attributes = True


class AdminOrder(Order):
    user_id: str | None = None
    guest_token: str | None = None
    tracking_number: str | None = None
    shipping_carrier: ShippingCarrier | None = None
    shipped_at: datetime | None = None
    delivered_at: datetime | None = None
    stripe_session_id: str | None = None
    user: Optional[UserBrief] = None


class OrderStatusUpdate(BaseModel):
    status: str


# --- Отслеживание ---

class TrackingStep(BaseModel):
    key: str
    label: str
    description: str
    completed: bool
    current: bool


class Tracking(BaseModel):
    id: str
    status: OrderStatus
    tracking_number: str | None = None
    shipping_carrier: ShippingCarrier | None = None
    carrier_name: str
    tracking_url: str | None = None
    shipped_at: datetime | None = None
    delivered_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
    steps: List[TrackingStep]


class TrackingUpdate(BaseModel):
    tracking_number: str | None = Field(default=None, alias="trackingNumber")
    shipping_carrier: str | None = Field(default=None, alias="shippingCarrier")
    status: str | None = None

    class Config:
        populate_by_name = True


# --- Отгрузка и доставка ---

class Parcel(BaseModel):
    length: float
    width: float
    height: float
    weight: float
    mass_unit: str = "lb"
    distance_unit: str = "in"


class ShipRequest(BaseModel):
    preferred_carrier: str | None = Field(default=None, alias="preferredCarrier")
    parcel: Optional[Parcel] = None

    class Config:
        populate_by_name = True


class ManualShipRequest(BaseModel):
    tracking_number: str | None = Field(default=None, alias="trackingNumber")
    carrier: str | None = None
    send_email: bool = Field(default=True, alias="sendEmail")

    class Config:
        populate_by_name = True


class DeliverRequest(BaseModel):
    send_email: bool = Field(default=True, alias="sendEmail")

    class Config:
        populate_by_name = True


class ShipResult(BaseModel):
    success: bool = True
    tracking_number: str
    carrier: ShippingCarrier
    label_url: str | None = None
    tracking_url: str | None = None
    estimated_delivery: str | None = None
    rate: float | None = None


class LinkAccountResult(BaseModel):
    message: str
    linkedCount: int
