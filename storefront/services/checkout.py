# storefront/services/checkout.py

import logging
import secrets
from decimal import Decimal
from typing import List, Tuple

import stripe
from fastapi import HTTPException, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from storefront.core import locales
from storefront.core.config import settings
from storefront.crud import cart as crud_cart
from storefront.crud import order as crud_order
from storefront.crud import product as crud_product
from storefront.crud import user as crud_user
from storefront.models.catalog import Product
from storefront.models.order import Order, OrderItem, OrderStatus
from storefront.schemas.checkout import CheckoutRequest, CheckoutResponse
from storefront.schemas.user import CurrentUser
from storefront.services import pricing
from storefront.utils import validation

logger = logging.getLogger(__name__)

DELIVERY_ESTIMATE = {
    "minimum": {"unit": "business_day", "value": 5},
    "maximum": {"unit": "business_day", "value": 7},
}


def _guest_lines(db: Session, body: CheckoutRequest) -> Tuple[str, str | None, List[Tuple[Product, int]]]:
    if not validation.validate_email(body.email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=locales.ERROR_GUEST_EMAIL_REQUIRED)

    try:
        name = validation.validate_guest_name(body.name)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    items = validation.validate_guest_cart_items(body.items)
    if not items:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=locales.ERROR_INVALID_CART_ITEMS)

    # Цены берем только из БД, клиенту не доверяем
    products = {p.id: p for p in crud_product.get_products_by_ids(db, [item["id"] for item in items])}
    lines = []
    for item in items:
        product = products.get(item["id"])
        if not product:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=locales.ERROR_CHECKOUT_PRODUCT_NOT_FOUND.format(product_id=item["id"]),
            )
        lines.append((product, item["quantity"]))
    return body.email.strip().lower(), name, lines


def _user_lines(db: Session, current_user: CurrentUser) -> Tuple[str, str | None, List[Tuple[Product, int]]]:
    user = crud_user.ensure_user(db, current_user)
    if not user.email:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=locales.ERROR_ACCOUNT_EMAIL_REQUIRED)

    cart_items = crud_cart.get_cart_items(db, current_user.id)
    return user.email, user.name, [(item.product, item.quantity) for item in cart_items]


def _shipping_option(total: Decimal) -> dict:
    cost = pricing.shipping_cost(total)
    return {
        "shipping_rate_data": {
            "type": "fixed_amount",
            "fixed_amount": {"amount": int(cost * 100), "currency": "usd"},
            "display_name": "Free Shipping" if cost == 0 else "Standard Shipping",
            "delivery_estimate": DELIVERY_ESTIMATE,
        }
    }


async def create_checkout_session(db: Session, current_user: CurrentUser | None, body: CheckoutRequest) -> CheckoutResponse:
    """
    Создает заказ в статусе PENDING и сессию Stripe Checkout для его оплаты.
    Гость передает корзину в теле запроса, авторизованный пользователь
    оплачивает свою корзину из БД.
    """
    is_guest = current_user is None
    if is_guest:
        customer_email, customer_name, lines = _guest_lines(db, body)
    else:
        customer_email, customer_name, lines = _user_lines(db, current_user)

    if not lines:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=locales.ERROR_CART_EMPTY)

    for product, quantity in lines:
        if product.stock < quantity:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=locales.ERROR_INSUFFICIENT_STOCK.format(name=product.name, stock=product.stock),
            )

    discount_map = pricing.category_discount_map(db)
    order_items = []
    line_items = []
    total = Decimal("0.00")
    for product, quantity in lines:
        unit_price, discount = pricing.price_product(product, discount_map)
        total += unit_price * quantity

        # Снимок позиции: цена уже со скидкой
        order_items.append(OrderItem(
            product_id=product.id,
            name=product.name,
            price=unit_price,
            quantity=quantity,
            image_url=product.image_url,
        ))

        product_data = {"name": f"{product.name} ({discount}% OFF)" if discount > 0 else product.name}
        if product.description:
            product_data["description"] = product.description
        if product.image_url:
            product_data["images"] = [product.image_url]
        line_items.append({
            "price_data": {
                "currency": "usd",
                "product_data": product_data,
                "unit_amount": int(unit_price * 100),
            },
            "quantity": quantity,
        })

    order = crud_order.create_order(
        db,
        Order(
            user_id=None if is_guest else current_user.id,
            is_guest=is_guest,
            guest_token=secrets.token_urlsafe(24) if is_guest else None,
            customer_email=customer_email,
            customer_name=customer_name,
            total=pricing.to_money(total),
            status=OrderStatus.PENDING,
        ),
        order_items,
    )
    logger.info(f"Order {order.id} created (guest={is_guest}, total={order.total})")

    stripe.api_key = settings.STRIPE_SECRET_KEY
    try:
        session = await run_in_threadpool(
            stripe.checkout.Session.create,
            payment_method_types=["card"],
            line_items=line_items,
            mode="payment",
            success_url=f"{settings.APP_URL}/order/success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{settings.APP_URL}/checkout",
            customer_email=customer_email,
            metadata={
                "orderId": order.id,
                "userId": "" if is_guest else current_user.id,
                "isGuest": "true" if is_guest else "false",
                "guestToken": order.guest_token or "",
            },
            billing_address_collection="required",
            shipping_address_collection={"allowed_countries": ["US"]},
            shipping_options=[_shipping_option(total)],
        )
    except stripe.StripeError:
        logger.error(f"Stripe checkout session creation failed for order {order.id}", exc_info=True)
        # Компенсация: неоплачиваемый заказ сразу отменяем
        crud_order.set_order_status(db, order, OrderStatus.CANCELLED)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=locales.ERROR_CHECKOUT_FAILED)

    crud_order.update_order(db, order, {"stripe_session_id": session.id})

    return CheckoutResponse(
        sessionId=session.id,
        url=session.url,
        guestToken=order.guest_token if is_guest else None,
    )
