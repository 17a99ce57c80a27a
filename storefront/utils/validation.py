# storefront/utils/validation.py
"""
Валидация пользовательского ввода.

Все функции выбрасывают ValueError с сообщением, пригодным для показа клиенту;
роутеры превращают его в ответ 400.
"""

import math
import re
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, List, Optional

from bs4 import BeautifulSoup

ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
SLUG_NON_ALNUM = re.compile(r"[^a-z0-9]+")

MAX_QUANTITY_PER_ITEM = 1000
MAX_GUEST_CART_ITEMS = 100


def sanitize_text(text: str) -> str:
    """Удаляет любую HTML-разметку, оставляя только текст."""
    return BeautifulSoup(text, "html.parser").get_text()


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_quantity(quantity: Any, max_stock: int, max_per_item: int = MAX_QUANTITY_PER_ITEM) -> int:
    if isinstance(quantity, float) and quantity.is_integer():
        quantity = int(quantity)
    if not _is_int(quantity):
        raise ValueError("Quantity must be a whole number")
    if quantity < 0:
        raise ValueError("Quantity cannot be negative")
    # 0 означает удаление позиции
    if quantity == 0:
        return 0
    if quantity > max_per_item:
        raise ValueError(f"Quantity cannot exceed {max_per_item} per item")
    if quantity > max_stock:
        raise ValueError(f"Only {max_stock} available in stock")
    return quantity


def is_valid_id(value: Any) -> bool:
    return isinstance(value, str) and 0 < len(value) <= 100 and bool(ID_PATTERN.match(value))


def validate_id(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError("ID must be a string")
    if not is_valid_id(value):
        raise ValueError("Invalid ID format")
    return value


def validate_email(email: Any) -> bool:
    return isinstance(email, str) and 0 < len(email) <= 254 and bool(EMAIL_PATTERN.match(email))


def validate_price(price: Any) -> Decimal:
    try:
        num = float(price)
    except (TypeError, ValueError):
        raise ValueError("Price must be a valid number")
    if isinstance(price, bool) or math.isnan(num) or math.isinf(num):
        raise ValueError("Price must be a valid number")
    if num < 0:
        raise ValueError("Price cannot be negative")
    if num > 1_000_000:
        raise ValueError("Price cannot exceed $1,000,000")
    return Decimal(str(price)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def validate_stock(stock: Any) -> int:
    try:
        num = float(stock)
    except (TypeError, ValueError):
        raise ValueError("Stock must be a valid number")
    if isinstance(stock, bool) or math.isnan(num) or math.isinf(num):
        raise ValueError("Stock must be a valid number")
    if num < 0:
        raise ValueError("Stock cannot be negative")
    if num > 100_000:
        raise ValueError("Stock cannot exceed 100,000")
    return math.floor(num)


def validate_discount_percent(discount: Any) -> Optional[int]:
    if discount is None:
        return None
    if not _is_int(discount) or discount < 0 or discount > 100:
        raise ValueError("Discount must be a whole number between 0 and 100")
    return discount


def _validate_text(value: Any, field: str, max_length: int, min_length: int = 1) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{field} must be a string")
    trimmed = value.strip()
    if not trimmed:
        raise ValueError(f"{field} cannot be empty")
    if len(trimmed) < min_length:
        raise ValueError(f"{field} must be at least {min_length} characters")
    if len(trimmed) > max_length:
        raise ValueError(f"{field} cannot exceed {max_length} characters")
    return sanitize_text(trimmed)


def _validate_optional_text(value: Any, max_length: int) -> Optional[str]:
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValueError("Description must be a string")
    trimmed = value.strip()
    if len(trimmed) > max_length:
        raise ValueError(f"Description cannot exceed {max_length} characters")
    return sanitize_text(trimmed)


def validate_product_name(name: Any) -> str:
    return _validate_text(name, "Name", max_length=200)


def validate_description(description: Any) -> Optional[str]:
    return _validate_optional_text(description, max_length=5000)


def validate_category_name(name: Any) -> str:
    return _validate_text(name, "Category name", max_length=100, min_length=2)


def validate_category_description(description: Any) -> Optional[str]:
    return _validate_optional_text(description, max_length=1000)


def validate_guest_name(name: Any) -> Optional[str]:
    if name is None or name == "":
        return None
    if not isinstance(name, str):
        raise ValueError("Name must be a string")
    trimmed = name.strip()
    if len(trimmed) > 100:
        raise ValueError("Name cannot exceed 100 characters")
    return sanitize_text(trimmed) or None


def validate_guest_cart_items(items: Any) -> Optional[List[dict]]:
    """
    Проверяет корзину гостя. Возвращает нормализованный список
    [{"id": str, "quantity": int}] или None, если хоть один элемент невалиден.
    """
    if not isinstance(items, list) or not items or len(items) > MAX_GUEST_CART_ITEMS:
        return None

    validated = []
    for item in items:
        if not isinstance(item, dict):
            return None
        product_id = item.get("id")
        quantity = item.get("quantity")
        if not is_valid_id(product_id):
            return None
        if not _is_int(quantity) or quantity < 1 or quantity > MAX_QUANTITY_PER_ITEM:
            return None
        validated.append({"id": product_id, "quantity": quantity})
    return validated


def slugify(text: str) -> str:
    return SLUG_NON_ALNUM.sub("-", text.lower()).strip("-")
