# storefront/crud/sale.py
from datetime import datetime
from typing import List

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from storefront.models.sale import Sale, SaleCategory


def _with_categories(query):
    return query.options(joinedload(Sale.category_links).joinedload(SaleCategory.category))


def get_sale(db: Session, sale_id: str) -> Sale | None:
    return _with_categories(db.query(Sale)).filter(Sale.id == sale_id).first()


def get_sales(db: Session) -> List[Sale]:
    return _with_categories(db.query(Sale)).order_by(Sale.created_at.desc()).all()


def get_active_sales(db: Session, now: datetime) -> List[Sale]:
    """Активные распродажи: включены и now попадает в [start_date, end_date)."""
    return (
        _with_categories(db.query(Sale))
        .filter(Sale.is_active.is_(True), Sale.start_date <= now, Sale.end_date > now)
        .order_by(Sale.end_date.asc())
        .all()
    )


def get_max_discount_by_category(db: Session, now: datetime) -> dict[str, int]:
    """Максимальная скидка активных распродаж по каждой категории."""
    rows = (
        db.query(SaleCategory.category_id, func.max(Sale.discount))
        .join(Sale, Sale.id == SaleCategory.sale_id)
        .filter(Sale.is_active.is_(True), Sale.start_date <= now, Sale.end_date > now)
        .group_by(SaleCategory.category_id)
        .all()
    )
    return {category_id: discount for category_id, discount in rows}


def create_sale(db: Session, fields: dict, category_ids: List[str]) -> Sale:
    sale = Sale(**fields)
    sale.category_links = [SaleCategory(category_id=category_id) for category_id in category_ids]
    db.add(sale)
    db.commit()
    return get_sale(db, sale.id)


def update_sale(db: Session, sale: Sale, fields: dict, category_ids: List[str] | None = None) -> Sale:
    """Частичное обновление; если переданы category_ids, связи заменяются целиком."""
    try:
        for field, value in fields.items():
            setattr(sale, field, value)
        if category_ids is not None:
            sale.category_links.clear()
            db.flush()
            sale.category_links.extend(SaleCategory(category_id=category_id) for category_id in category_ids)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return get_sale(db, sale.id)


def delete_sale(db: Session, sale: Sale) -> None:
    db.delete(sale)
    db.commit()
