# storefront/routers/admin/orders.py

from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from storefront.core.limiter import RATE_LIMITS, limiter
from storefront.dependencies import get_db
from storefront.schemas import order as order_schemas
from storefront.services import order as order_service

router = APIRouter()


@router.get("", response_model=List[order_schemas.AdminOrder])
@limiter.limit(RATE_LIMITS["admin"])
def list_orders(request: Request, db: Session = Depends(get_db)):
    """[АДМИН] Все заказы, новые сверху, вместе с покупателем."""
    return order_service.get_all_orders(db)


@router.get("/{order_id}", response_model=order_schemas.AdminOrder)
@limiter.limit(RATE_LIMITS["admin"])
def get_order(request: Request, order_id: str, db: Session = Depends(get_db)):
    return order_service.get_admin_order(db, order_id)


@router.patch("/{order_id}", response_model=order_schemas.AdminOrder)
@limiter.limit(RATE_LIMITS["admin"])
def update_order_status(
    request: Request,
    order_id: str,
    body: order_schemas.OrderStatusUpdate,
    db: Session = Depends(get_db),
):
    """[АДМИН] Ручная смена статуса заказа."""
    return order_service.update_order_status(db, order_id, body)
