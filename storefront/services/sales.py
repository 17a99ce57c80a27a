# storefront/services/sales.py

import logging
from datetime import datetime, timezone
from typing import List

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from storefront.core import locales
from storefront.crud import category as crud_category
from storefront.crud import sale as crud_sale
from storefront.db.session import utcnow
from storefront.models.sale import Sale
from storefront.schemas import sale as sale_schemas

logger = logging.getLogger(__name__)


def as_utc(value: datetime) -> datetime:
    # SQLite отдает даты без tzinfo; все даты в БД хранятся в UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _ensure_categories_exist(db: Session, category_ids: List[str]):
    existing = crud_category.get_existing_category_ids(db, category_ids)
    if len(existing) != len(set(category_ids)):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=locales.ERROR_SALE_CATEGORIES_MISSING)


def get_sale_or_404(db: Session, sale_id: str) -> Sale:
    sale = crud_sale.get_sale(db, sale_id)
    if not sale:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=locales.ERROR_SALE_NOT_FOUND)
    return sale


def list_sales(db: Session) -> List[Sale]:
    return crud_sale.get_sales(db)


def list_active_sales(db: Session) -> List[Sale]:
    return crud_sale.get_active_sales(db, utcnow())


def create_sale(db: Session, data: sale_schemas.SaleCreate) -> Sale:
    category_ids = list(dict.fromkeys(data.category_ids))
    _ensure_categories_exist(db, category_ids)

    start_date = as_utc(data.start_date) if data.start_date else utcnow()
    end_date = as_utc(data.end_date)
    if end_date <= start_date:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=locales.ERROR_SALE_DATES_ORDER)

    sale = crud_sale.create_sale(
        db,
        fields={
            "name": data.name,
            "tagline": data.tagline,
            "discount": data.discount,
            "start_date": start_date,
            "end_date": end_date,
            "is_active": data.is_active,
            "banner_url": data.banner_url,
        },
        category_ids=category_ids,
    )
    logger.info(f"Sale created: {sale.id} ({sale.discount}% on {len(category_ids)} categories)")
    return sale


def update_sale(db: Session, sale: Sale, data: sale_schemas.SaleUpdate) -> Sale:
    changes = data.model_dump(exclude_unset=True)
    category_ids = changes.pop("category_ids", None)

    if category_ids is not None:
        category_ids = list(dict.fromkeys(category_ids))
        _ensure_categories_exist(db, category_ids)

    for field in ("start_date", "end_date"):
        if changes.get(field) is not None:
            changes[field] = as_utc(changes[field])
        else:
            changes.pop(field, None)

    start_date = changes.get("start_date", as_utc(sale.start_date))
    end_date = changes.get("end_date", as_utc(sale.end_date))
    if end_date <= start_date:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=locales.ERROR_SALE_DATES_ORDER)

    # Обязательные поля не обнуляем, даже если клиент прислал null
    for field in ("name", "discount", "is_active"):
        if field in changes and changes[field] is None:
            changes.pop(field)

    sale = crud_sale.update_sale(db, sale, changes, category_ids)
    logger.info(f"Sale {sale.id} updated")
    return sale


def delete_sale(db: Session, sale: Sale) -> None:
    crud_sale.delete_sale(db, sale)
    logger.info(f"Sale {sale.id} deleted")
