# storefront/crud/category.py
from typing import List, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from storefront.models.catalog import Category, Product


def get_category(db: Session, category_id: str) -> Category | None:
    return db.query(Category).filter(Category.id == category_id).first()


def get_category_by_slug(db: Session, slug: str) -> Category | None:
    return db.query(Category).filter(Category.slug == slug).first()


def count_products(db: Session, category_id: str) -> int:
    return db.query(Product).filter(Product.category_id == category_id).count()


def get_categories_with_counts(db: Session) -> List[Tuple[Category, int]]:
    """Все категории по алфавиту вместе с количеством товаров."""
    product_count = func.count(Product.id)
    return (
        db.query(Category, product_count)
        .outerjoin(Product, Product.category_id == Category.id)
        .group_by(Category.id)
        .order_by(Category.name.asc())
        .all()
    )


def get_existing_category_ids(db: Session, category_ids: List[str]) -> set[str]:
    rows = db.query(Category.id).filter(Category.id.in_(category_ids)).all()
    return {row[0] for row in rows}


def create_category(db: Session, name: str, slug: str, description: str | None) -> Category:
    category = Category(name=name, slug=slug, description=description)
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


def update_category(db: Session, category: Category, data: dict) -> Category:
    for field, value in data.items():
        setattr(category, field, value)
    db.commit()
    db.refresh(category)
    return category


def delete_category(db: Session, category: Category) -> None:
    db.delete(category)
    db.commit()
