# storefront/crud/cart.py
from datetime import datetime
from typing import List

from sqlalchemy.orm import Session, joinedload

from storefront.db.session import utcnow
from storefront.models.catalog import Product
from storefront.models.cart import CartItem, Favorite, RecentlyViewed

RECENTLY_VIEWED_LIMIT = 20

# --- CRUD для Корзины ---

def get_cart_items(db: Session, user_id: str) -> List[CartItem]:
    """Получает все товары в корзине пользователя вместе с данными товара."""
    return (
        db.query(CartItem)
        .options(joinedload(CartItem.product))
        .filter(CartItem.user_id == user_id)
        .order_by(CartItem.created_at.asc())
        .all()
    )


def get_cart_item(db: Session, user_id: str, product_id: str) -> CartItem | None:
    return db.query(CartItem).filter_by(user_id=user_id, product_id=product_id).first()


def create_cart_item(db: Session, user_id: str, product_id: str, quantity: int = 1) -> CartItem:
    item = CartItem(user_id=user_id, product_id=product_id, quantity=quantity)
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def increment_cart_item(db: Session, item: CartItem, by: int = 1) -> CartItem:
    # Атомарный инкремент на стороне БД
    item.quantity = CartItem.quantity + by
    db.commit()
    db.refresh(item)
    return item


def set_cart_item_quantity(db: Session, item: CartItem, quantity: int) -> CartItem:
    item.quantity = quantity
    db.commit()
    db.refresh(item)
    return item


def remove_cart_item(db: Session, user_id: str, product_id: str) -> bool:
    """Удаляет товар из корзины. Возвращает False, если его там не было."""
    deleted = db.query(CartItem).filter_by(user_id=user_id, product_id=product_id).delete()
    db.commit()
    return deleted > 0


def clear_cart(db: Session, user_id: str):
    """Полностью очищает корзину пользователя."""
    db.query(CartItem).filter_by(user_id=user_id).delete()
    db.commit()

# --- CRUD для Избранного ---

def get_favorites(db: Session, user_id: str) -> List[Favorite]:
    return (
        db.query(Favorite)
        .options(joinedload(Favorite.product).joinedload(Product.category))
        .filter(Favorite.user_id == user_id)
        .order_by(Favorite.created_at.desc())
        .all()
    )


def get_favorite(db: Session, user_id: str, product_id: str) -> Favorite | None:
    """Проверяет, находится ли конкретный товар в избранном у пользователя."""
    return db.query(Favorite).filter_by(user_id=user_id, product_id=product_id).first()


def add_favorite(db: Session, user_id: str, product_id: str) -> Favorite:
    item = Favorite(user_id=user_id, product_id=product_id)
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def remove_favorite(db: Session, user_id: str, product_id: str) -> bool:
    deleted = db.query(Favorite).filter_by(user_id=user_id, product_id=product_id).delete()
    db.commit()
    return deleted > 0

# --- CRUD для Недавно просмотренных ---

def get_recently_viewed(db: Session, user_id: str, limit: int = RECENTLY_VIEWED_LIMIT) -> List[RecentlyViewed]:
    return (
        db.query(RecentlyViewed)
        .options(joinedload(RecentlyViewed.product).joinedload(Product.category))
        .filter(RecentlyViewed.user_id == user_id)
        .order_by(RecentlyViewed.viewed_at.desc())
        .limit(limit)
        .all()
    )


def record_view(db: Session, user_id: str, product_id: str, viewed_at: datetime | None = None) -> RecentlyViewed:
    """
    Отмечает просмотр товара и оставляет только RECENTLY_VIEWED_LIMIT
    самых свежих записей пользователя.
    """
    viewed_at = viewed_at or utcnow()
    entry = db.query(RecentlyViewed).filter_by(user_id=user_id, product_id=product_id).first()
    if entry:
        entry.viewed_at = viewed_at
    else:
        entry = RecentlyViewed(user_id=user_id, product_id=product_id, viewed_at=viewed_at)
        db.add(entry)
    db.flush()

    keep_ids = [
        row[0] for row in
        db.query(RecentlyViewed.id)
        .filter(RecentlyViewed.user_id == user_id)
        .order_by(RecentlyViewed.viewed_at.desc())
        .limit(RECENTLY_VIEWED_LIMIT)
        .all()
    ]
    db.query(RecentlyViewed).filter(
        RecentlyViewed.user_id == user_id,
        RecentlyViewed.id.notin_(keep_ids),
    ).delete(synchronize_session=False)

    db.commit()
    db.refresh(entry)
    return entry
