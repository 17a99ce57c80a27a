# storefront/services/pricing.py
"""
Расчет цен со скидками.

Скидка товара (discount_percent) имеет приоритет над скидкой распродажи его
категории; из нескольких активных распродаж категории берется максимальная.
"""

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict

from sqlalchemy.orm import Session

from storefront.core.config import settings
from storefront.crud import sale as crud_sale
from storefront.db.session import utcnow
from storefront.models.catalog import Product

CENTS = Decimal("0.01")


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


def effective_discount(product_discount: int | None, category_discount: int | None) -> int:
    if product_discount and product_discount > 0:
        return product_discount
    if category_discount and category_discount > 0:
        return category_discount
    return 0


def sale_price(price, discount: int) -> Decimal:
    """Цена со скидкой; некорректная скидка (<=0 или >100) не применяется."""
    original = to_money(price)
    if discount <= 0 or discount > 100:
        return original
    return to_money(original * (Decimal(100) - Decimal(discount)) / Decimal(100))


def category_discount_map(db: Session, now: datetime | None = None) -> Dict[str, int]:
    return crud_sale.get_max_discount_by_category(db, now or utcnow())


def price_product(product: Product, discount_map: Dict[str, int]) -> tuple[Decimal, int]:
    """Возвращает (итоговая цена за единицу, примененная скидка в процентах)."""
    discount = effective_discount(product.discount_percent, discount_map.get(product.category_id))
    return sale_price(product.price, discount), discount


def shipping_cost(subtotal: Decimal) -> Decimal:
    """Бесплатная доставка от порога, иначе фиксированный тариф."""
    if subtotal >= settings.FREE_SHIPPING_THRESHOLD:
        return Decimal("0.00")
    return to_money(settings.FLAT_RATE_SHIPPING)


def estimated_tax(subtotal: Decimal) -> Decimal:
    return to_money(subtotal * settings.TAX_RATE)
