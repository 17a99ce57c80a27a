# storefront/services/tracking.py

from typing import List

from storefront.models.order import Order, OrderStatus, ShippingCarrier
from storefront.schemas.order import Tracking, TrackingStep

TRACKING_URL_TEMPLATES = {
    ShippingCarrier.USPS: "https://tools.usps.com/go/TrackConfirmAction?tLabels={number}",
    ShippingCarrier.UPS: "https://www.ups.com/track?tracknum={number}",
    ShippingCarrier.FEDEX: "https://www.fedex.com/fedextrack/?trknbr={number}",
    ShippingCarrier.DHL: "https://www.dhl.com/us-en/home/tracking/tracking-express.html?submit=1&tracking-id={number}",
}

CARRIER_NAMES = {
    ShippingCarrier.USPS: "USPS",
    ShippingCarrier.UPS: "UPS",
    ShippingCarrier.FEDEX: "FedEx",
    ShippingCarrier.DHL: "DHL",
}

STATUS_STEPS = [
    (OrderStatus.PENDING, "Order Placed", "Your order has been received"),
    (OrderStatus.PROCESSING, "Processing", "Your order is being prepared"),
    (OrderStatus.SHIPPED, "Shipped", "Your order is on its way"),
    (OrderStatus.DELIVERED, "Delivered", "Your order has been delivered"),
]


def tracking_url(carrier: ShippingCarrier | None, tracking_number: str | None) -> str | None:
    if not carrier or not tracking_number:
        return None
    template = TRACKING_URL_TEMPLATES.get(ShippingCarrier(carrier))
    if template is None:
        return None
    return template.format(number=tracking_number.strip())


def carrier_name(carrier: ShippingCarrier | None) -> str:
    if not carrier:
        return "Carrier"
    return CARRIER_NAMES.get(ShippingCarrier(carrier), "Carrier")


def status_steps(order_status: OrderStatus) -> List[TrackingStep]:
    """Шкала статусов заказа; у отмененного заказа ни один шаг не активен."""
    keys = [step[0] for step in STATUS_STEPS]
    current_index = keys.index(order_status) if order_status in keys else -1
    cancelled = order_status == OrderStatus.CANCELLED

    return [
        TrackingStep(
            key=key.value,
            label=label,
            description=description,
            completed=index <= current_index and not cancelled,
            current=index == current_index and not cancelled,
        )
        for index, (key, label, description) in enumerate(STATUS_STEPS)
    ]


def build_tracking(order: Order) -> Tracking:
    return Tracking(
        id=order.id,
        status=order.status,
        tracking_number=order.tracking_number,
        shipping_carrier=order.shipping_carrier,
        carrier_name=carrier_name(order.shipping_carrier),
        tracking_url=tracking_url(order.shipping_carrier, order.tracking_number),
        shipped_at=order.shipped_at,
        delivered_at=order.delivered_at,
        created_at=order.created_at,
        updated_at=order.updated_at,
        steps=status_steps(order.status),
    )
