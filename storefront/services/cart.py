# storefront/services/cart.py

import logging
from decimal import Decimal
from typing import Any, Dict, List

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from storefront.core import locales
from storefront.crud import cart as crud_cart
from storefront.crud import product as crud_product
from storefront.crud import user as crud_user
from storefront.models.cart import CartItem
from storefront.schemas.cart import CartItemResponse, CartResponse, CartSyncResult
from storefront.schemas.user import CurrentUser
from storefront.services import pricing
from storefront.services.catalog import get_product_or_404
from storefront.utils.validation import is_valid_id, validate_quantity

logger = logging.getLogger(__name__)

MAX_SYNC_ITEMS = 50


def _to_item_response(item: CartItem, discount_map: Dict[str, int]) -> CartItemResponse:
    product = item.product
    price, discount = pricing.price_product(product, discount_map)
    return CartItemResponse(
        id=product.id,
        name=product.name,
        slug=product.slug,
        price=float(price),
        original_price=float(product.price),
        discount_percent=discount,
        quantity=item.quantity,
        image_url=product.image_url,
        stock=product.stock,
    )


def get_user_cart(db: Session, current_user: CurrentUser) -> CartResponse:
    """
    Собирает содержимое корзины с актуальными ценами (с учетом скидок)
    и итоговыми суммами: доставка по порогу и ориентировочный налог.
    """
    cart_items = crud_cart.get_cart_items(db, user_id=current_user.id)
    discount_map = pricing.category_discount_map(db)

    response_items = [_to_item_response(item, discount_map) for item in cart_items]
    subtotal = pricing.to_money(sum((Decimal(str(i.price)) * i.quantity for i in response_items), Decimal("0")))

    if response_items:
        shipping = pricing.shipping_cost(subtotal)
        tax = pricing.estimated_tax(subtotal)
    else:
        shipping = tax = Decimal("0.00")

    return CartResponse(
        items=response_items,
        subtotal=float(subtotal),
        shipping=float(shipping),
        estimated_tax=float(tax),
        total=float(subtotal + shipping + tax),
    )


def add_to_cart(db: Session, current_user: CurrentUser, product_id: str) -> CartItemResponse:
    """Добавляет одну единицу товара: инкремент существующей позиции или новая позиция."""
    product = get_product_or_404(db, product_id)
    crud_user.ensure_user(db, current_user)

    if product.stock <= 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=locales.ERROR_PRODUCT_OUT_OF_STOCK)

    item = crud_cart.get_cart_item(db, current_user.id, product.id)
    if item:
        if item.quantity + 1 > product.stock:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=locales.ERROR_STOCK_LIMIT_REACHED)
        item = crud_cart.increment_cart_item(db, item)
    else:
        item = crud_cart.create_cart_item(db, current_user.id, product.id, quantity=1)

    logger.info(f"User {current_user.id} cart: product {product.id} quantity now {item.quantity}")
    return _to_item_response(item, pricing.category_discount_map(db))


def update_cart_quantity(db: Session, current_user: CurrentUser, product_id: str, quantity) -> CartItemResponse | None:
    """
    Устанавливает количество. 0 удаляет позицию (успешно, даже если ее не было).
    Возвращает обновленную позицию или None при удалении.
    """
    product = get_product_or_404(db, product_id)

    try:
        quantity = validate_quantity(quantity, product.stock)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": str(e), "maxQuantity": product.stock},
        )

    if quantity == 0:
        crud_cart.remove_cart_item(db, current_user.id, product.id)
        return None

    item = crud_cart.get_cart_item(db, current_user.id, product.id)
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=locales.ERROR_ITEM_NOT_IN_CART)

    item = crud_cart.set_cart_item_quantity(db, item, quantity)
    return _to_item_response(item, pricing.category_discount_map(db))


def sync_guest_cart(db: Session, current_user: CurrentUser, items: List[Any]) -> CartSyncResult:
    """
    Переносит гостевую корзину в корзину аккаунта.
    Количества суммируются, но не больше остатка на складе;
    ошибки по отдельным позициям собираются, а не прерывают синхронизацию.
    """
    if not items:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=locales.ERROR_NO_ITEMS_TO_SYNC)
    if len(items) > MAX_SYNC_ITEMS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=locales.ERROR_TOO_MANY_ITEMS_TO_SYNC.format(limit=MAX_SYNC_ITEMS),
        )

    errors: List[str] = []
    valid: List[tuple[str, int]] = []
    for index, raw in enumerate(items):
        if not isinstance(raw, dict):
            errors.append(f"Item {index}: Invalid item")
            continue
        product_id = raw.get("id")
        if not is_valid_id(product_id):
            errors.append(f"Item {index}: Invalid product ID")
            continue
        quantity = raw.get("quantity")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1 or quantity > 1000:
            errors.append(f"Item {index}: Invalid quantity")
            continue
        valid.append((product_id, quantity))

    if not valid:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": locales.ERROR_NO_VALID_ITEMS_TO_SYNC, "errors": errors},
        )

    crud_user.ensure_user(db, current_user)
    products = {p.id: p for p in crud_product.get_products_by_ids(db, [pid for pid, _ in valid])}

    synced = 0
    skipped = 0
    try:
        for product_id, quantity in valid:
            product = products.get(product_id)
            if not product:
                errors.append(locales.SYNC_PRODUCT_NOT_FOUND.format(product_id=product_id))
                skipped += 1
                continue
            if product.stock <= 0:
                errors.append(locales.SYNC_PRODUCT_OUT_OF_STOCK.format(name=product.name))
                skipped += 1
                continue

            existing = crud_cart.get_cart_item(db, current_user.id, product_id)
            if existing:
                existing.quantity = min(existing.quantity + quantity, product.stock)
            else:
                db.add(CartItem(user_id=current_user.id, product_id=product_id, quantity=min(quantity, product.stock)))
            # flush, чтобы повторный id в том же запросе нашел уже добавленную позицию
            db.flush()
            synced += 1
        db.commit()
    except Exception:
        db.rollback()
        logger.error(f"Cart sync failed for user {current_user.id}", exc_info=True)
        raise

    logger.info(f"Cart sync for user {current_user.id}: synced={synced} skipped={skipped}")
    return CartSyncResult(success=True, synced=synced, skipped=skipped, errors=errors)
