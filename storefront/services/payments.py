# storefront/services/payments.py

import json
import logging

import stripe
from fastapi import BackgroundTasks, HTTPException, status
from redis.asyncio import Redis
from sqlalchemy.orm import Session

from storefront.core import locales
from storefront.core.config import settings
from storefront.crud import order as crud_order
from storefront.crud import user as crud_user
from storefront.models.order import Order, OrderStatus
from storefront.services import email as email_service

logger = logging.getLogger(__name__)

PROCESSED_EVENT_TTL = 60 * 60 * 24


def _processed_key(event_id: str) -> str:
    return f"webhook:processed:{event_id}"


def verify_event(payload: bytes, signature: str | None) -> dict:
    """Проверяет подпись Stripe и возвращает событие как словарь."""
    if not signature:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=locales.ERROR_NO_SIGNATURE)

    try:
        stripe.WebhookSignature.verify_header(
            payload.decode("utf-8"), signature, settings.STRIPE_WEBHOOK_SECRET
        )
    except stripe.SignatureVerificationError as e:
        logger.warning(f"Stripe webhook signature verification failed: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=locales.ERROR_INVALID_SIGNATURE)

    try:
        return json.loads(payload)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=locales.ERROR_INVALID_PAYLOAD)


def _order_from_session(db: Session, session_obj: dict) -> Order:
    order_id = (session_obj.get("metadata") or {}).get("orderId")
    if not order_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=locales.ERROR_MISSING_ORDER_ID)
    order = crud_order.get_order(db, order_id)
    if not order:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=locales.ERROR_ORDER_NOT_FOUND)
    return order


def _handle_checkout_completed(db: Session, session_obj: dict, background_tasks: BackgroundTasks):
    order = _order_from_session(db, session_obj)
    if order.status != OrderStatus.PENDING:
        logger.info(f"Order {order.id} already in status {order.status.value}, skipping fulfilment")
        return

    collected = session_obj.get("collected_information") or {}
    shipping_details = collected.get("shipping_details") or session_obj.get("shipping_details")

    data = {
        "status": OrderStatus.PROCESSING,
        "stripe_payment_intent": session_obj.get("payment_intent"),
        "shipping_address": shipping_details,
    }

    # Корзину из БД очищаем только у авторизованных покупателей
    clear_cart_for = order.user_id if not order.is_guest else None

    if order.is_guest:
        existing_user = crud_user.get_user_by_email(db, order.customer_email)
        if existing_user:
            data.update(user_id=existing_user.id, is_guest=False)
            logger.info(f"Guest order {order.id} linked to existing user {existing_user.id}")

    order = crud_order.fulfil_paid_order(db, order, data, clear_cart_for=clear_cart_for)
    logger.info(f"Order {order.id} paid and moved to PROCESSING")

    background_tasks.add_task(
        email_service.send_order_confirmation_email,
        email_service.OrderEmailData.from_order(order),
    )


def _handle_status_change(db: Session, session_obj: dict, new_status: OrderStatus):
    # Событие без известного заказа подтверждается без изменений
    order_id = (session_obj.get("metadata") or {}).get("orderId")
    if not order_id:
        logger.info(f"Session {session_obj.get('id')} has no orderId, status change to {new_status.value} skipped")
        return
    order = crud_order.get_order(db, order_id)
    if not order:
        logger.warning(f"Order {order_id} from session {session_obj.get('id')} not found, status change skipped")
        return
    crud_order.set_order_status(db, order, new_status)
    logger.info(f"Order {order.id} moved to {new_status.value}")


async def process_stripe_webhook(
    db: Session,
    redis: Redis | None,
    payload: bytes,
    signature: str | None,
    background_tasks: BackgroundTasks,
) -> dict:
    """
    Обрабатывает событие Stripe.
    Повторная доставка того же события распознается по ключу в Redis,
    ключ ставится только после успешной обработки.
    """
    event = verify_event(payload, signature)
    event_id = event.get("id")
    event_type = event.get("type")

    if redis and event_id and await redis.exists(_processed_key(event_id)):
        logger.info(f"Duplicate webhook event {event_id} ({event_type}) ignored")
        return {"received": True, "duplicate": True}

    session_obj = (event.get("data") or {}).get("object") or {}

    try:
        if event_type == "checkout.session.completed":
            _handle_checkout_completed(db, session_obj, background_tasks)
        elif event_type == "checkout.session.async_payment_succeeded":
            _handle_status_change(db, session_obj, OrderStatus.PROCESSING)
        elif event_type in ("checkout.session.async_payment_failed", "checkout.session.expired"):
            _handle_status_change(db, session_obj, OrderStatus.CANCELLED)
        else:
            logger.debug(f"Unhandled webhook event type: {event_type}")
    except HTTPException:
        raise
    except Exception:
        logger.error(f"Webhook handler failed for event {event_id} ({event_type})", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=locales.ERROR_WEBHOOK_FAILED)

    if redis and event_id:
        await redis.set(_processed_key(event_id), "1", ex=PROCESSED_EVENT_TTL)

    return {"received": True}
