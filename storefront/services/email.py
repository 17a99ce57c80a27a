# storefront/services/email.py
"""
Письма покупателям через Resend: подтверждение заказа, отправка, доставка.

Отправка никогда не роняет вызывающий код: ошибки логируются, функция
возвращает False.
"""

import html
import logging
from typing import List, Optional
from urllib.parse import quote

import resend
from pydantic import BaseModel

from storefront.core.config import settings
from storefront.models.order import Order

logger = logging.getLogger(__name__)


class EmailLineItem(BaseModel):
    name: str
    quantity: int
    price: float
    image_url: str | None = None


class EmailAddress(BaseModel):
    name: str | None = None
    line1: str | None = None
    line2: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None


class OrderEmailData(BaseModel):
    """Снимок заказа для писем: отправка идет в фоне, уже без сессии БД."""
    order_id: str
    customer_email: str
    customer_name: str | None = None
    items: List[EmailLineItem]
    total: float
    shipping_address: Optional[EmailAddress] = None

    @classmethod
    def from_order(cls, order: Order) -> "OrderEmailData":
        shipping = order.shipping_address or {}
        address = shipping.get("address") if isinstance(shipping, dict) else None
        return cls(
            order_id=order.id,
            customer_email=order.customer_email,
            customer_name=order.customer_name,
            items=[
                EmailLineItem(name=i.name, quantity=i.quantity, price=float(i.price), image_url=i.image_url)
                for i in order.items
            ],
            total=float(order.total),
            shipping_address=EmailAddress(name=shipping.get("name"), **address) if address else None,
        )


class ShippingEmailData(OrderEmailData):
    tracking_number: str
    carrier: str
    tracking_url: str | None = None
    estimated_delivery: str | None = None


def escape(value: str | None) -> str:
    if not value:
        return ""
    return html.escape(value, quote=True)


def sanitize_url(url: str | None) -> str:
    """Разрешены только http, https и mailto; все остальное превращается в '#'."""
    if not url:
        return "#"
    lowered = url.strip().lower()
    if lowered.startswith(("http://", "https://", "mailto:")):
        return url
    return "#"


def short_order_id(order_id: str) -> str:
    return order_id[-8:]


def _items_html(data: OrderEmailData) -> str:
    rows = []
    for item in data.items:
        image = (
            f'<img src="{escape(sanitize_url(item.image_url))}" alt="{escape(item.name)}" width="60" height="60" />'
            if item.image_url else ""
        )
        rows.append(
            "<tr>"
            f'<td style="padding: 16px; border-bottom: 1px solid #e5e5e5;">{image}'
            f'<p style="margin: 0; font-weight: 500;">{escape(item.name)}</p>'
            f'<p style="margin: 4px 0 0; color: #666;">Qty: {item.quantity}</p></td>'
            f'<td style="padding: 16px; border-bottom: 1px solid #e5e5e5; text-align: right;">'
            f"${item.price * item.quantity:.2f}</td>"
            "</tr>"
        )
    return "".join(rows)


def _address_html(address: EmailAddress | None) -> str:
    if not address:
        return ""
    lines = [
        escape(address.name) if address.name else None,
        escape(address.line1),
        escape(address.line2) if address.line2 else None,
        f"{escape(address.city)}, {escape(address.state)} {escape(address.postal_code)}",
        escape(address.country),
    ]
    body = "<br>".join(line for line in lines if line)
    return (
        '<div style="background: #f9f9f9; padding: 20px; margin-top: 24px;">'
        '<h3 style="margin: 0 0 12px; font-size: 14px; text-transform: uppercase;">Shipping Address</h3>'
        f'<p style="margin: 0; line-height: 1.6;">{body}</p></div>'
    )


def _layout(title: str, greeting: str, body: str) -> str:
    store = escape(settings.STORE_NAME)
    return (
        "<!DOCTYPE html><html><head><meta charset=\"utf-8\"></head>"
        '<body style="margin: 0; padding: 0; font-family: Arial, sans-serif; background-color: #f5f5f5;">'
        '<div style="max-width: 600px; margin: 0 auto; background: #ffffff; padding: 40px;">'
        f'<h1 style="margin: 0 0 8px; font-size: 24px;">{store}</h1>'
        f'<h2 style="margin: 0 0 24px; font-size: 20px;">{escape(title)}</h2>'
        f"<p>{greeting}</p>{body}"
        f'<p style="margin-top: 32px; color: #999; font-size: 12px;">&copy; {store}</p>'
        "</div></body></html>"
    )


def _greeting(name: str | None) -> str:
    return f"Hi {escape(name)}," if name else "Hi there,"


def _send(to: str, subject: str, html_body: str) -> bool:
    if not settings.RESEND_API_KEY:
        logger.warning(f"RESEND_API_KEY is not configured. Skipping email '{subject}' to {to}.")
        return False

    resend.api_key = settings.RESEND_API_KEY
    payload = {
        "from": f"{settings.STORE_NAME} <{settings.FROM_EMAIL}>",
        "to": [to],
        "subject": subject,
        "html": html_body,
    }
    try:
        response = resend.Emails.send(payload)
    except Exception:
        logger.error(f"Failed to send email '{subject}' to {to}", exc_info=True)
        return False

    logger.info(f"Email '{subject}' sent to {to} (id: {response.get('id') if isinstance(response, dict) else response})")
    return True


def send_order_confirmation_email(data: OrderEmailData) -> bool:
    order_url = (
        f"{settings.APP_URL}/orders/lookup?email={quote(data.customer_email, safe='')}"
        f"&orderId={quote(data.order_id, safe='')}"
    )
    body = (
        f"<p>Thank you for your order! We're getting it ready and will let you know when it ships.</p>"
        f"<p><strong>Order #{escape(short_order_id(data.order_id))}</strong></p>"
        f'<table style="width: 100%; border-collapse: collapse;">{_items_html(data)}</table>'
        f'<p style="text-align: right; font-size: 18px;"><strong>Total: ${data.total:.2f}</strong></p>'
        f"{_address_html(data.shipping_address)}"
        f'<p style="margin-top: 24px;"><a href="{escape(sanitize_url(order_url))}">View your order</a></p>'
    )
    return _send(
        data.customer_email,
        f"Order Confirmed - #{short_order_id(data.order_id)}",
        _layout("Order Confirmed", _greeting(data.customer_name), body),
    )


def send_shipping_notification_email(data: ShippingEmailData) -> bool:
    tracking_link = (
        f'<p><a href="{escape(sanitize_url(data.tracking_url))}">Track your package</a></p>'
        if data.tracking_url else ""
    )
    estimate = f"<p>Estimated delivery: {escape(data.estimated_delivery)}</p>" if data.estimated_delivery else ""
    body = (
        f"<p>Good news! Your order #{escape(short_order_id(data.order_id))} is on its way.</p>"
        f"<p>Carrier: <strong>{escape(data.carrier)}</strong><br>"
        f"Tracking number: <strong>{escape(data.tracking_number)}</strong></p>"
        f"{estimate}{tracking_link}"
        f'<table style="width: 100%; border-collapse: collapse;">{_items_html(data)}</table>'
    )
    return _send(
        data.customer_email,
        f"Your Order Has Shipped - #{short_order_id(data.order_id)}",
        _layout("Your Order Has Shipped", _greeting(data.customer_name), body),
    )


def send_delivery_confirmation_email(data: OrderEmailData) -> bool:
    body = (
        f"<p>Your order #{escape(short_order_id(data.order_id))} has been delivered. "
        f"We hope you love it!</p>"
        f'<table style="width: 100%; border-collapse: collapse;">{_items_html(data)}</table>'
        f'<p><a href="{escape(sanitize_url(settings.APP_URL))}">Shop again</a></p>'
    )
    return _send(
        data.customer_email,
        f"Your Order Has Been Delivered - #{short_order_id(data.order_id)}",
        _layout("Your Order Has Been Delivered", _greeting(data.customer_name), body),
    )
