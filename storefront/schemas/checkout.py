# storefront/schemas/checkout.py
from typing import Any

from pydantic import BaseModel


class CheckoutRequest(BaseModel):
    # Поля гостевого заказа; для авторизованных пользователей тело игнорируется.
    # Типы проверяются вручную, чтобы вернуть сообщения в формате витрины.
    email: Any = None
    name: Any = None
    items: Any = None


class CheckoutResponse(BaseModel):
    sessionId: str
    url: str | None = None
    guestToken: str | None = None
