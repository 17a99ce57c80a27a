# storefront/routers/cart.py

import logging
from typing import Union

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from storefront.core.limiter import RATE_LIMITS, limiter
from storefront.crud import cart as crud_cart
from storefront.dependencies import get_current_user, get_db
from storefront.schemas.cart import (
    CartItemResponse, CartQuantityUpdate, CartResponse, CartSyncRequest, CartSyncResult, ProductRef, SuccessResponse
)
from storefront.schemas.user import CurrentUser
from storefront.services import cart as cart_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/cart", response_model=CartResponse)
@limiter.limit(RATE_LIMITS["cart"])
def get_cart(
    request: Request,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Содержимое корзины с актуальными ценами и итогами."""
    return cart_service.get_user_cart(db, current_user)


@router.post("/cart", response_model=CartItemResponse)
@limiter.limit(RATE_LIMITS["cart"])
def add_to_cart(
    request: Request,
    body: ProductRef,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Добавляет одну единицу товара в корзину."""
    return cart_service.add_to_cart(db, current_user, body.product_id)


@router.delete("/cart", response_model=SuccessResponse)
@limiter.limit(RATE_LIMITS["cart"])
def clear_cart(
    request: Request,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    crud_cart.clear_cart(db, current_user.id)
    logger.info(f"Cart cleared for user {current_user.id}")
    return SuccessResponse()


@router.post("/cart/sync", response_model=CartSyncResult)
@limiter.limit(RATE_LIMITS["cart"])
def sync_cart(
    request: Request,
    body: CartSyncRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Переносит гостевую корзину (из браузера) в корзину аккаунта после входа."""
    return cart_service.sync_guest_cart(db, current_user, body.items)


@router.patch("/cart/{product_id}", response_model=Union[CartItemResponse, SuccessResponse])
@limiter.limit(RATE_LIMITS["cart"])
def update_cart_item(
    request: Request,
    product_id: str,
    body: CartQuantityUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Устанавливает количество товара в корзине.
    Количество 0 удаляет позицию, в ответе тогда {"success": true}.
    """
    item = cart_service.update_cart_quantity(db, current_user, product_id, body.quantity)
    if item is None:
        return SuccessResponse()
    return item


@router.delete("/cart/{product_id}", response_model=SuccessResponse)
@limiter.limit(RATE_LIMITS["cart"])
def remove_cart_item(
    request: Request,
    product_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    crud_cart.remove_cart_item(db, current_user.id, product_id)
    return SuccessResponse()
