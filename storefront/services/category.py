# storefront/services/category.py

import logging
from typing import List

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from storefront.core import locales
from storefront.crud import category as crud_category
from storefront.models.catalog import Category
from storefront.schemas import category as category_schemas
from storefront.utils.validation import slugify

logger = logging.getLogger(__name__)


def _to_schema(category: Category, product_count: int) -> category_schemas.Category:
    result = category_schemas.Category.model_validate(category)
    result.product_count = product_count
    return result


def list_categories(db: Session) -> List[category_schemas.Category]:
    return [_to_schema(category, count) for category, count in crud_category.get_categories_with_counts(db)]


def get_category_or_404(db: Session, category_id: str) -> Category:
    category = crud_category.get_category(db, category_id)
    if not category:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=locales.ERROR_CATEGORY_NOT_FOUND)
    return category


def get_category(db: Session, category: Category) -> category_schemas.Category:
    return _to_schema(category, crud_category.count_products(db, category.id))


def _check_slug_free(db: Session, slug: str, exclude_id: str | None = None):
    existing = crud_category.get_category_by_slug(db, slug)
    if not slug or (existing and existing.id != exclude_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=locales.ERROR_CATEGORY_NAME_TAKEN)


def create_category(db: Session, data: category_schemas.CategoryCreate) -> category_schemas.Category:
    slug = slugify(data.name)
    _check_slug_free(db, slug)
    category = crud_category.create_category(db, name=data.name, slug=slug, description=data.description)
    logger.info(f"Category created: {category.id} ({category.slug})")
    return _to_schema(category, 0)


def update_category(db: Session, category: Category, data: category_schemas.CategoryUpdate) -> category_schemas.Category:
    changes = data.model_dump(exclude_unset=True)
    if "name" in changes:
        slug = slugify(changes["name"])
        _check_slug_free(db, slug, exclude_id=category.id)
        changes["slug"] = slug

    category = crud_category.update_category(db, category, changes)
    return get_category(db, category)


def delete_category(db: Session, category: Category) -> None:
    product_count = crud_category.count_products(db, category.id)
    if product_count > 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=locales.ERROR_CATEGORY_HAS_PRODUCTS.format(count=product_count),
        )
    crud_category.delete_category(db, category)
    logger.info(f"Category {category.id} deleted")
