# storefront/services/catalog.py

import logging
from typing import Dict, List

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.core import locales
from storefront.crud import category as crud_category
from storefront.crud import product as crud_product
from storefront.models.catalog import Product
from storefront.schemas import product as product_schemas
from storefront.services import pricing
from storefront.utils.validation import slugify

logger = logging.getLogger(__name__)


def to_product_schema(product: Product, discount_map: Dict[str, int], schema=product_schemas.Product, **extra):
    """Собирает ответ по товару с рассчитанной скидкой и ценой распродажи."""
    price, discount = pricing.price_product(product, discount_map)
    data = product_schemas.Product.model_validate(product).model_dump()
    if issubclass(schema, product_schemas.ProductDetail):
        data["images"] = [product_schemas.ProductImage.model_validate(image) for image in product.images]
    data.update(extra, effective_discount=discount, sale_price=float(price))
    return schema(**data)


def get_product_or_404(db: Session, product_id: str) -> Product:
    product = crud_product.get_product(db, product_id)
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=locales.ERROR_PRODUCT_NOT_FOUND)
    return product


def list_products(db: Session, category_slug: str | None = None) -> List[product_schemas.Product]:
    products = crud_product.get_products(db, category_slug=category_slug)
    discount_map = pricing.category_discount_map(db)
    return [to_product_schema(p, discount_map) for p in products]


def get_product_detail(db: Session, product: Product) -> product_schemas.ProductDetail:
    discount_map = pricing.category_discount_map(db)
    return to_product_schema(product, discount_map, schema=product_schemas.ProductDetail)


def get_product_by_slug(db: Session, slug: str) -> product_schemas.ProductDetail:
    product = crud_product.get_product_by_slug(db, slug)
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=locales.ERROR_PRODUCT_NOT_FOUND)
    return get_product_detail(db, product)


def _ensure_category(db: Session, category_id: str):
    if not crud_category.get_category(db, category_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=locales.ERROR_CATEGORY_NOT_FOUND)


def create_product(db: Session, data: product_schemas.ProductCreate) -> Product:
    slug = slugify(data.name)
    if not slug or crud_product.slug_taken(db, slug):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=locales.ERROR_PRODUCT_NAME_TAKEN)
    _ensure_category(db, data.category_id)

    try:
        product = crud_product.create_product(
            db,
            name=data.name,
            slug=slug,
            description=data.description,
            price=data.price,
            stock=data.stock,
            image_url=data.image_url,
            category_id=data.category_id,
            discount_percent=data.discount_percent,
        )
    except IntegrityError:
        # Гонка за уникальный slug
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=locales.ERROR_PRODUCT_NAME_TAKEN)

    logger.info(f"Product created: {product.id} ({product.slug})")
    return product


def update_product(db: Session, product: Product, data: product_schemas.ProductUpdate) -> Product:
    changes = data.model_dump(exclude_unset=True)

    if "name" in changes:
        slug = slugify(changes["name"])
        if not slug or crud_product.slug_taken(db, slug, exclude_id=product.id):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=locales.ERROR_PRODUCT_NAME_TAKEN)
        changes["slug"] = slug

    if "category_id" in changes:
        if changes["category_id"] is None:
            changes.pop("category_id")
        else:
            _ensure_category(db, changes["category_id"])

    product = crud_product.update_product(db, product, changes)
    logger.info(f"Product {product.id} updated: {sorted(changes)}")
    return product


def delete_product(db: Session, product: Product) -> None:
    """Товар, попавший в заказы, удалять нельзя: его позиции - история покупок."""
    order_count = crud_product.count_order_items(db, product.id)
    if order_count > 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=locales.ERROR_PRODUCT_HAS_ORDERS.format(count=order_count),
        )
    crud_product.delete_product(db, product)
    logger.info(f"Product {product.id} deleted")

# --- Изображения ---

def add_image(db: Session, product: Product, data: product_schemas.ProductImageCreate):
    image = crud_product.add_product_image(db, product.id, data.url, data.alt)
    logger.info(f"Image {image.id} added to product {product.id} at position {image.position}")
    return image


def reorder_images(db: Session, product: Product, image_ids: List[str]):
    images = crud_product.get_product_images(db, product.id)
    # Допускается часть изображений, но только этого товара
    if not set(image_ids) <= {image.id for image in images}:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=locales.ERROR_IMAGE_IDS_MISMATCH)
    crud_product.reorder_product_images(db, images, image_ids)
    return crud_product.get_product_images(db, product.id)


def delete_image(db: Session, product: Product, image_id: str | None) -> None:
    if not image_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=locales.ERROR_IMAGE_ID_REQUIRED)
    image = crud_product.get_product_image(db, product.id, image_id)
    if not image:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=locales.ERROR_IMAGE_NOT_FOUND)
    crud_product.delete_product_image(db, image)
