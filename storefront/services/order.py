# storefront/services/order.py

import logging
from typing import List

from fastapi import BackgroundTasks, HTTPException, status
from sqlalchemy.orm import Session

from storefront.core import locales
from storefront.crud import order as crud_order
from storefront.crud import user as crud_user
from storefront.db.session import utcnow
from storefront.models.order import Order, OrderStatus, ShippingCarrier
from storefront.schemas import order as order_schemas
from storefront.schemas.user import CurrentUser
from storefront.services import email as email_service
from storefront.services import shipping as shipping_service
from storefront.services.tracking import build_tracking, tracking_url
from storefront.utils import validation

logger = logging.getLogger(__name__)


def _parse_status(value: str | None) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=locales.ERROR_INVALID_STATUS)


def _parse_carrier(value: str | None) -> ShippingCarrier:
    try:
        return ShippingCarrier(value)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=locales.ERROR_INVALID_CARRIER)


def get_order_or_404(db: Session, order_id: str) -> Order:
    order = crud_order.get_order(db, order_id)
    if not order:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=locales.ERROR_ORDER_NOT_FOUND)
    return order

# --- Заказы покупателя ---

def get_order_by_guest_token(db: Session, guest_token: str) -> order_schemas.Order:
    if not validation.is_valid_id(guest_token):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=locales.ERROR_INVALID_GUEST_TOKEN)
    order = crud_order.get_order_by_guest_token(db, guest_token)
    if not order:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=locales.ERROR_ORDER_NOT_FOUND)
    return order_schemas.Order.model_validate(order)


def get_guest_order(db: Session, email: str, order_id: str) -> order_schemas.Order:
    """Гостевой поиск заказа: нужен и email, и номер заказа."""
    if not validation.validate_email(email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=locales.ERROR_INVALID_EMAIL)
    if not validation.is_valid_id(order_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=locales.ERROR_INVALID_ORDER_ID)

    order = crud_order.get_order_by_email_and_id(db, email.strip(), order_id)
    if not order:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=locales.ERROR_GUEST_ORDER_NOT_FOUND)
    return order_schemas.Order.model_validate(order)


def get_user_orders(db: Session, current_user: CurrentUser) -> List[order_schemas.Order]:
    orders = crud_order.get_user_orders(db, current_user.id)
    return [order_schemas.Order.model_validate(o) for o in orders]


def get_tracking(
    db: Session,
    order_id: str,
    current_user: CurrentUser | None,
    email: str | None = None,
    guest_token: str | None = None,
) -> order_schemas.Tracking:
    """
    Отслеживание доступно владельцу заказа либо гостю,
    который передал email и токен своего заказа.
    """
    if current_user:
        order = crud_order.get_user_order(db, current_user.id, order_id)
    elif email and guest_token:
        order = crud_order.get_guest_order_for_tracking(db, order_id, email.strip(), guest_token)
    else:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=locales.ERROR_UNAUTHORIZED,
        )

    if not order:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=locales.ERROR_ORDER_NOT_FOUND)
    return build_tracking(order)


def link_guest_orders(db: Session, current_user: CurrentUser) -> order_schemas.LinkAccountResult:
    if not current_user.email:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=locales.ERROR_EMAIL_REQUIRED)

    # Заказы ссылаются на users.id, запись пользователя нужна до привязки
    crud_user.ensure_user(db, current_user)
    count = crud_order.link_guest_orders(db, current_user.email, current_user.id)
    logger.info(f"Linked {count} guest order(s) to user {current_user.id}")
    return order_schemas.LinkAccountResult(
        message=locales.SUCCESS_ORDERS_LINKED.format(count=count),
        linkedCount=count,
    )

# --- Отгрузка и доставка (админ) ---

def update_tracking(db: Session, order_id: str, data: order_schemas.TrackingUpdate) -> order_schemas.Tracking:
    order = get_order_or_404(db, order_id)
    changes = {}

    if data.tracking_number is not None:
        changes["tracking_number"] = data.tracking_number.strip() or None
    if data.shipping_carrier is not None:
        changes["shipping_carrier"] = _parse_carrier(data.shipping_carrier)

    if data.status is not None:
        new_status = _parse_status(data.status)
        changes["status"] = new_status
        if new_status == OrderStatus.SHIPPED:
            changes["shipped_at"] = utcnow()
        elif new_status == OrderStatus.DELIVERED:
            changes["delivered_at"] = utcnow()
    elif changes.get("tracking_number") and order.status == OrderStatus.PROCESSING:
        # Номер отслеживания для заказа в обработке означает отгрузку
        changes["status"] = OrderStatus.SHIPPED
        changes["shipped_at"] = utcnow()

    order = crud_order.update_order(db, order, changes)
    logger.info(f"Tracking for order {order.id} updated: {sorted(changes)}")
    return build_tracking(order)


async def ship_with_label(
    db: Session,
    order_id: str,
    data: order_schemas.ShipRequest,
    background_tasks: BackgroundTasks,
) -> order_schemas.ShipResult:
    """
    Покупает этикетку у Shippo и переводит заказ в SHIPPED.
    Если обновление заказа не удалось, купленная этикетка не возвращается.
    """
    order = get_order_or_404(db, order_id)
    if order.status != OrderStatus.PROCESSING:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=locales.ERROR_CANNOT_SHIP.format(status=order.status.value),
        )
    if order.tracking_number:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=locales.ERROR_ALREADY_HAS_TRACKING)

    to_address = shipping_service.address_from_order(order.shipping_address, order.customer_name, order.customer_email)
    if not to_address:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=locales.ERROR_NO_SHIPPING_ADDRESS)

    label = await shipping_service.create_shipping_label(
        to_address,
        parcel=data.parcel,
        preferred_carrier=data.preferred_carrier,
    )

    order = crud_order.update_order(db, order, {
        "status": OrderStatus.SHIPPED,
        "tracking_number": label.tracking_number,
        "shipping_carrier": label.carrier,
        "shipped_at": utcnow(),
    })
    logger.info(f"Order {order.id} shipped via {label.carrier.value}, tracking {label.tracking_number}")

    background_tasks.add_task(
        email_service.send_shipping_notification_email,
        email_service.ShippingEmailData(
            **email_service.OrderEmailData.from_order(order).model_dump(),
            tracking_number=label.tracking_number,
            carrier=label.carrier.value,
            tracking_url=label.tracking_url,
            estimated_delivery=label.estimated_delivery,
        ),
    )

    return order_schemas.ShipResult(**label.model_dump())


def ship_manual(
    db: Session,
    order_id: str,
    data: order_schemas.ManualShipRequest,
    background_tasks: BackgroundTasks,
) -> dict:
    tracking_number = (data.tracking_number or "").strip()
    if not tracking_number or not data.carrier:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=locales.ERROR_TRACKING_AND_CARRIER_REQUIRED)
    carrier = _parse_carrier(data.carrier)

    order = get_order_or_404(db, order_id)
    order = crud_order.update_order(db, order, {
        "status": OrderStatus.SHIPPED,
        "tracking_number": tracking_number,
        "shipping_carrier": carrier,
        "shipped_at": utcnow(),
    })
    url = tracking_url(carrier, tracking_number)
    logger.info(f"Order {order.id} marked as shipped manually ({carrier.value} {tracking_number})")

    if data.send_email:
        background_tasks.add_task(
            email_service.send_shipping_notification_email,
            email_service.ShippingEmailData(
                **email_service.OrderEmailData.from_order(order).model_dump(),
                tracking_number=tracking_number,
                carrier=carrier.value,
                tracking_url=url,
            ),
        )

    return {
        "success": True,
        "tracking_number": tracking_number,
        "carrier": carrier,
        "tracking_url": url,
    }


def mark_delivered(
    db: Session,
    order_id: str,
    data: order_schemas.DeliverRequest,
    background_tasks: BackgroundTasks,
) -> order_schemas.AdminOrder:
    order = get_order_or_404(db, order_id)
    if order.status != OrderStatus.SHIPPED:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=locales.ERROR_CANNOT_DELIVER.format(status=order.status.value),
        )

    order = crud_order.update_order(db, order, {
        "status": OrderStatus.DELIVERED,
        "delivered_at": utcnow(),
    })
    logger.info(f"Order {order.id} marked as delivered")

    if data.send_email:
        background_tasks.add_task(
            email_service.send_delivery_confirmation_email,
            email_service.OrderEmailData.from_order(order),
        )
    return order_schemas.AdminOrder.model_validate(order)

# --- Управление заказами (админ) ---

def get_all_orders(db: Session) -> List[order_schemas.AdminOrder]:
    return [order_schemas.AdminOrder.model_validate(o) for o in crud_order.get_all_orders(db)]


def get_admin_order(db: Session, order_id: str) -> order_schemas.AdminOrder:
    return order_schemas.AdminOrder.model_validate(get_order_or_404(db, order_id))


def update_order_status(db: Session, order_id: str, data: order_schemas.OrderStatusUpdate) -> order_schemas.AdminOrder:
    new_status = _parse_status(data.status)
    order = get_order_or_404(db, order_id)
    order = crud_order.set_order_status(db, order, new_status)
    logger.info(f"Admin changed status of order {order.id} to {new_status.value}")
    return order_schemas.AdminOrder.model_validate(order)
