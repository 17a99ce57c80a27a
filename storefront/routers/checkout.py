# storefront/routers/checkout.py

from typing import Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from storefront.core.limiter import RATE_LIMITS, limiter
from storefront.dependencies import get_db, get_optional_current_user
from storefront.schemas.checkout import CheckoutRequest, CheckoutResponse
from storefront.schemas.user import CurrentUser
from storefront.services import checkout as checkout_service

router = APIRouter()


@router.post("/checkout", response_model=CheckoutResponse)
@limiter.limit(RATE_LIMITS["checkout"])
async def create_checkout(
    request: Request,
    body: Optional[CheckoutRequest] = None,
    current_user: Optional[CurrentUser] = Depends(get_optional_current_user),
    db: Session = Depends(get_db),
):
    """
    Создает заказ и сессию оплаты Stripe.
    Гость передает email и товары в теле, пользователь оплачивает корзину аккаунта.
    """
    return await checkout_service.create_checkout_session(db, current_user, body or CheckoutRequest())
