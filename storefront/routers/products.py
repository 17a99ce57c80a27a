# storefront/routers/products.py

from typing import List

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from storefront.core.limiter import RATE_LIMITS, limiter
from storefront.crud import product as crud_product
from storefront.dependencies import get_admin_user, get_db
from storefront.schemas import product as product_schemas
from storefront.schemas.cart import SuccessResponse
from storefront.services import catalog as catalog_service

router = APIRouter()


# --- Публичный каталог ---

@router.get("/products", response_model=List[product_schemas.Product])
@limiter.limit(RATE_LIMITS["api"])
def list_products(
    request: Request,
    category: str | None = Query(None, description="Slug категории"),
    db: Session = Depends(get_db),
):
    """Товары каталога, новые сверху, с рассчитанной ценой распродажи."""
    return catalog_service.list_products(db, category_slug=category)


@router.get("/products/by-slug/{slug}", response_model=product_schemas.ProductDetail)
@limiter.limit(RATE_LIMITS["api"])
def get_product_by_slug(request: Request, slug: str, db: Session = Depends(get_db)):
    return catalog_service.get_product_by_slug(db, slug)


@router.get("/products/{product_id}", response_model=product_schemas.ProductDetail)
@limiter.limit(RATE_LIMITS["api"])
def get_product(request: Request, product_id: str, db: Session = Depends(get_db)):
    product = catalog_service.get_product_or_404(db, product_id)
    return catalog_service.get_product_detail(db, product)


@router.get("/products/{product_id}/images", response_model=List[product_schemas.ProductImage])
@limiter.limit(RATE_LIMITS["api"])
def get_product_images(request: Request, product_id: str, db: Session = Depends(get_db)):
    product = catalog_service.get_product_or_404(db, product_id)
    return crud_product.get_product_images(db, product.id)


# --- Управление каталогом (только для администраторов) ---

@router.post(
    "/products",
    response_model=product_schemas.ProductDetail,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(get_admin_user)],
)
@limiter.limit(RATE_LIMITS["admin"])
def create_product(request: Request, body: product_schemas.ProductCreate, db: Session = Depends(get_db)):
    product = catalog_service.create_product(db, body)
    return catalog_service.get_product_detail(db, product)


@router.patch(
    "/products/{product_id}",
    response_model=product_schemas.ProductDetail,
    dependencies=[Depends(get_admin_user)],
)
@limiter.limit(RATE_LIMITS["admin"])
def update_product(
    request: Request,
    product_id: str,
    body: product_schemas.ProductUpdate,
    db: Session = Depends(get_db),
):
    product = catalog_service.get_product_or_404(db, product_id)
    product = catalog_service.update_product(db, product, body)
    return catalog_service.get_product_detail(db, product)


@router.delete("/products/{product_id}", response_model=SuccessResponse, dependencies=[Depends(get_admin_user)])
@limiter.limit(RATE_LIMITS["admin"])
def delete_product(request: Request, product_id: str, db: Session = Depends(get_db)):
    """Удаление запрещено, если товар есть в заказах."""
    product = catalog_service.get_product_or_404(db, product_id)
    catalog_service.delete_product(db, product)
    return SuccessResponse()


@router.post(
    "/products/{product_id}/images",
    response_model=product_schemas.ProductImage,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(get_admin_user)],
)
@limiter.limit(RATE_LIMITS["admin"])
def add_product_image(
    request: Request,
    product_id: str,
    body: product_schemas.ProductImageCreate,
    db: Session = Depends(get_db),
):
    product = catalog_service.get_product_or_404(db, product_id)
    return catalog_service.add_image(db, product, body)


@router.put(
    "/products/{product_id}/images",
    response_model=List[product_schemas.ProductImage],
    dependencies=[Depends(get_admin_user)],
)
@limiter.limit(RATE_LIMITS["admin"])
def reorder_product_images(
    request: Request,
    product_id: str,
    body: product_schemas.ProductImageReorder,
    db: Session = Depends(get_db),
):
    product = catalog_service.get_product_or_404(db, product_id)
    return catalog_service.reorder_images(db, product, body.image_ids)


@router.delete(
    "/products/{product_id}/images",
    response_model=SuccessResponse,
    dependencies=[Depends(get_admin_user)],
)
@limiter.limit(RATE_LIMITS["admin"])
def delete_product_image(
    request: Request,
    product_id: str,
    image_id: str | None = Query(None, alias="imageId"),
    db: Session = Depends(get_db),
):
    product = catalog_service.get_product_or_404(db, product_id)
    catalog_service.delete_image(db, product, image_id)
    return SuccessResponse()
