# storefront/routers/categories.py

from typing import List

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from storefront.core.limiter import RATE_LIMITS, limiter
from storefront.dependencies import get_admin_user, get_db
from storefront.schemas import category as category_schemas
from storefront.schemas.cart import SuccessResponse
from storefront.services import category as category_service

router = APIRouter()


@router.get("/categories", response_model=List[category_schemas.Category])
@limiter.limit(RATE_LIMITS["api"])
def list_categories(request: Request, db: Session = Depends(get_db)):
    """Категории по алфавиту с количеством товаров."""
    return category_service.list_categories(db)


@router.get("/categories/{category_id}", response_model=category_schemas.Category)
@limiter.limit(RATE_LIMITS["api"])
def get_category(request: Request, category_id: str, db: Session = Depends(get_db)):
    category = category_service.get_category_or_404(db, category_id)
    return category_service.get_category(db, category)


@router.post(
    "/categories",
    response_model=category_schemas.Category,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(get_admin_user)],
)
@limiter.limit(RATE_LIMITS["admin"])
def create_category(request: Request, body: category_schemas.CategoryCreate, db: Session = Depends(get_db)):
    return category_service.create_category(db, body)


@router.patch(
    "/categories/{category_id}",
    response_model=category_schemas.Category,
    dependencies=[Depends(get_admin_user)],
)
@limiter.limit(RATE_LIMITS["admin"])
def update_category(
    request: Request,
    category_id: str,
    body: category_schemas.CategoryUpdate,
    db: Session = Depends(get_db),
):
    category = category_service.get_category_or_404(db, category_id)
    return category_service.update_category(db, category, body)


@router.delete("/categories/{category_id}", response_model=SuccessResponse, dependencies=[Depends(get_admin_user)])
@limiter.limit(RATE_LIMITS["admin"])
def delete_category(request: Request, category_id: str, db: Session = Depends(get_db)):
    category = category_service.get_category_or_404(db, category_id)
    category_service.delete_category(db, category)
    return SuccessResponse()
