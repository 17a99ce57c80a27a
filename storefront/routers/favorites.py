# storefront/routers/favorites.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from storefront.core.limiter import RATE_LIMITS, limiter
from storefront.dependencies import get_current_user, get_db, get_optional_current_user
from storefront.schemas.cart import (
    FavoriteResponse, FavoriteStatus, ProductRef, RecentlyViewedResponse, SuccessResponse
)
from storefront.schemas.user import CurrentUser
from storefront.services import favorites as favorites_service

router = APIRouter()


# --- Избранное ---

@router.get("/favorites", response_model=List[FavoriteResponse])
@limiter.limit(RATE_LIMITS["api"])
def get_favorites(
    request: Request,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return favorites_service.get_user_favorites(db, current_user)


@router.post("/favorites", response_model=FavoriteResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMITS["api"])
def add_favorite(
    request: Request,
    body: ProductRef,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return favorites_service.add_favorite(db, current_user, body.product_id)


@router.get("/favorites/{product_id}", response_model=FavoriteStatus)
@limiter.limit(RATE_LIMITS["api"])
def get_favorite_status(
    request: Request,
    product_id: str,
    current_user: Optional[CurrentUser] = Depends(get_optional_current_user),
    db: Session = Depends(get_db),
):
    """Статус товара в избранном; для анонимного посетителя всегда false."""
    return FavoriteStatus(isFavorited=favorites_service.is_favorited(db, current_user, product_id))


@router.delete("/favorites/{product_id}", response_model=SuccessResponse)
@limiter.limit(RATE_LIMITS["api"])
def remove_favorite(
    request: Request,
    product_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    favorites_service.remove_favorite(db, current_user, product_id)
    return SuccessResponse()


# --- Недавно просмотренные ---

@router.get("/recently-viewed", response_model=List[RecentlyViewedResponse])
@limiter.limit(RATE_LIMITS["api"])
def get_recently_viewed(
    request: Request,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return favorites_service.get_recently_viewed(db, current_user)


@router.post("/recently-viewed", response_model=SuccessResponse)
@limiter.limit(RATE_LIMITS["api"])
def record_view(
    request: Request,
    body: ProductRef,
    current_user: Optional[CurrentUser] = Depends(get_optional_current_user),
    db: Session = Depends(get_db),
):
    favorites_service.record_view(db, current_user, body.product_id)
    return SuccessResponse()
