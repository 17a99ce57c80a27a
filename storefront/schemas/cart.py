# storefront/schemas/cart.py
from datetime import datetime
from typing import Any, List

from pydantic import BaseModel, Field

from .product import Product


class ProductRef(BaseModel):
    """Тело запроса с одним товаром: {"productId": "..."}."""
    product_id: str = Field(alias="productId")

    class Config:
        populate_by_name = True


class CartQuantityUpdate(BaseModel):
    # Тип проверяется в сервисе, чтобы вернуть понятное сообщение и maxQuantity
    quantity: Any


# Схема для одного элемента в ответе о содержимом корзины
class CartItemResponse(BaseModel):
    id: str  # ID товара
    name: str
    slug: str
    price: float  # Текущая цена с учетом скидки
    original_price: float
    discount_percent: int = 0
    quantity: int
    image_url: str | None = None
    stock: int


class CartResponse(BaseModel):
    items: List[CartItemResponse]

    subtotal: float
    shipping: float
    estimated_tax: float
    total: float


class CartSyncRequest(BaseModel):
    # Элементы проверяются по одному в сервисе, ошибки собираются в errors
    items: List[Any] = []


class CartSyncResult(BaseModel):
    success: bool
    synced: int
    skipped: int
    errors: List[str]


class SuccessResponse(BaseModel):
    success: bool = True


# --- Избранное ---

class FavoriteResponse(Product):
    added_at: datetime


class FavoriteStatus(BaseModel):
    isFavorited: bool


# --- Недавно просмотренные ---

class RecentlyViewedResponse(Product):
    viewed_at: datetime
