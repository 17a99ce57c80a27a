# storefront/services/favorites.py
# Избранное и недавно просмотренные товары.

import logging
from typing import List

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from storefront.core import locales
from storefront.crud import cart as crud_cart
from storefront.crud import user as crud_user
from storefront.schemas.cart import FavoriteResponse, RecentlyViewedResponse
from storefront.schemas.user import CurrentUser
from storefront.services import pricing
from storefront.services.catalog import get_product_or_404, to_product_schema

logger = logging.getLogger(__name__)


def get_user_favorites(db: Session, current_user: CurrentUser) -> List[FavoriteResponse]:
    favorites = crud_cart.get_favorites(db, current_user.id)
    discount_map = pricing.category_discount_map(db)
    return [
        to_product_schema(fav.product, discount_map, schema=FavoriteResponse, added_at=fav.created_at)
        for fav in favorites
    ]


def add_favorite(db: Session, current_user: CurrentUser, product_id: str) -> FavoriteResponse:
    product = get_product_or_404(db, product_id)
    crud_user.ensure_user(db, current_user)

    if crud_cart.get_favorite(db, current_user.id, product.id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=locales.ERROR_ALREADY_IN_FAVORITES)

    favorite = crud_cart.add_favorite(db, current_user.id, product.id)
    logger.info(f"User {current_user.id} added product {product.id} to favorites")
    return to_product_schema(
        product, pricing.category_discount_map(db), schema=FavoriteResponse, added_at=favorite.created_at
    )


def remove_favorite(db: Session, current_user: CurrentUser, product_id: str) -> None:
    if not crud_cart.remove_favorite(db, current_user.id, product_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=locales.ERROR_FAVORITE_NOT_FOUND)


def is_favorited(db: Session, current_user: CurrentUser | None, product_id: str) -> bool:
    if current_user is None:
        return False
    return crud_cart.get_favorite(db, current_user.id, product_id) is not None

# --- Недавно просмотренные ---

def get_recently_viewed(db: Session, current_user: CurrentUser) -> List[RecentlyViewedResponse]:
    entries = crud_cart.get_recently_viewed(db, current_user.id)
    discount_map = pricing.category_discount_map(db)
    return [
        to_product_schema(entry.product, discount_map, schema=RecentlyViewedResponse, viewed_at=entry.viewed_at)
        for entry in entries
    ]


def record_view(db: Session, current_user: CurrentUser | None, product_id: str) -> None:
    """Для анонимных посетителей просмотр не записывается."""
    if current_user is None:
        return
    product = get_product_or_404(db, product_id)
    crud_user.ensure_user(db, current_user)
    crud_cart.record_view(db, current_user.id, product.id)
