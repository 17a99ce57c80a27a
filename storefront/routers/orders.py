# storefront/routers/orders.py

from typing import List, Optional, Union

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from storefront.core import locales
from storefront.core.limiter import RATE_LIMITS, enforce_limit, limiter
from storefront.dependencies import get_admin_user, get_current_user, get_db, get_optional_current_user
from storefront.schemas import order as order_schemas
from storefront.schemas.user import CurrentUser
from storefront.services import order as order_service

router = APIRouter()


@router.get("/orders", response_model=Union[order_schemas.Order, List[order_schemas.Order]])
def get_orders(
    request: Request,
    guest_token: str | None = Query(None, alias="guestToken"),
    email: str | None = Query(None),
    order_id: str | None = Query(None, alias="orderId"),
    current_user: Optional[CurrentUser] = Depends(get_optional_current_user),
    db: Session = Depends(get_db),
):
    """
    Три режима:
    - ?guestToken= : заказ гостя по токену;
    - ?email=&orderId= : гостевой поиск по email и номеру заказа;
    - без параметров : заказы текущего пользователя.
    """
    if guest_token is not None:
        enforce_limit(request, "guest_lookup")
        return order_service.get_order_by_guest_token(db, guest_token)

    if email is not None or order_id is not None:
        enforce_limit(request, "guest_lookup")
        return order_service.get_guest_order(db, email or "", order_id or "")

    if current_user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=locales.ERROR_UNAUTHORIZED,
            headers={"WWW-Authenticate": "Bearer"},
        )
    enforce_limit(request, "api")
    return order_service.get_user_orders(db, current_user)


@router.get("/orders/{order_id}/tracking", response_model=order_schemas.Tracking)
@limiter.limit(RATE_LIMITS["api"])
def get_order_tracking(
    request: Request,
    order_id: str,
    email: str | None = Query(None),
    guest_token: str | None = Query(None, alias="guestToken"),
    current_user: Optional[CurrentUser] = Depends(get_optional_current_user),
    db: Session = Depends(get_db),
):
    return order_service.get_tracking(db, order_id, current_user, email=email, guest_token=guest_token)


@router.post("/guest/link-account", response_model=order_schemas.LinkAccountResult)
@limiter.limit(RATE_LIMITS["auth"])
def link_guest_orders(
    request: Request,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Привязывает гостевые заказы с email пользователя к его аккаунту."""
    return order_service.link_guest_orders(db, current_user)


# --- Отгрузка и доставка (только для администраторов) ---

@router.patch(
    "/orders/{order_id}/tracking",
    response_model=order_schemas.Tracking,
    dependencies=[Depends(get_admin_user)],
)
@limiter.limit(RATE_LIMITS["admin"])
def update_order_tracking(
    request: Request,
    order_id: str,
    body: order_schemas.TrackingUpdate,
    db: Session = Depends(get_db),
):
    return order_service.update_tracking(db, order_id, body)


@router.post(
    "/orders/{order_id}/ship",
    response_model=order_schemas.ShipResult,
    dependencies=[Depends(get_admin_user)],
)
@limiter.limit(RATE_LIMITS["admin"])
async def ship_order(
    request: Request,
    order_id: str,
    background_tasks: BackgroundTasks,
    body: order_schemas.ShipRequest | None = None,
    db: Session = Depends(get_db),
):
    """Покупает этикетку через Shippo и отмечает заказ отправленным."""
    return await order_service.ship_with_label(db, order_id, body or order_schemas.ShipRequest(), background_tasks)


@router.patch("/orders/{order_id}/ship", dependencies=[Depends(get_admin_user)])
@limiter.limit(RATE_LIMITS["admin"])
def ship_order_manually(
    request: Request,
    order_id: str,
    body: order_schemas.ManualShipRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    """Ручной ввод номера отслеживания (этикетка куплена вне системы)."""
    return order_service.ship_manual(db, order_id, body, background_tasks)


@router.post(
    "/orders/{order_id}/deliver",
    response_model=order_schemas.AdminOrder,
    dependencies=[Depends(get_admin_user)],
)
@limiter.limit(RATE_LIMITS["admin"])
def mark_order_delivered(
    request: Request,
    order_id: str,
    background_tasks: BackgroundTasks,
    body: order_schemas.DeliverRequest | None = None,
    db: Session = Depends(get_db),
):
    return order_service.mark_delivered(db, order_id, body or order_schemas.DeliverRequest(), background_tasks)
