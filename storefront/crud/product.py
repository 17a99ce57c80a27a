# storefront/crud/product.py
from typing import List

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from storefront.models.catalog import Category, Product, ProductImage
from storefront.models.cart import CartItem
from storefront.models.order import OrderItem

# --- Товары ---

def get_product(db: Session, product_id: str) -> Product | None:
    return db.query(Product).filter(Product.id == product_id).first()


def get_product_by_slug(db: Session, slug: str) -> Product | None:
    return db.query(Product).filter(Product.slug == slug).first()


def get_products_by_ids(db: Session, product_ids: List[str]) -> List[Product]:
    if not product_ids:
        return []
    return db.query(Product).filter(Product.id.in_(product_ids)).all()


def get_products(db: Session, category_slug: str | None = None) -> List[Product]:
    """Список товаров (новые первыми), опционально по slug категории."""
    query = db.query(Product).options(joinedload(Product.category))
    if category_slug:
        query = query.join(Category, Product.category_id == Category.id).filter(Category.slug == category_slug)
    return query.order_by(Product.created_at.desc()).all()


def slug_taken(db: Session, slug: str, exclude_id: str | None = None) -> bool:
    query = db.query(Product.id).filter(Product.slug == slug)
    if exclude_id:
        query = query.filter(Product.id != exclude_id)
    return query.first() is not None


def create_product(db: Session, **fields) -> Product:
    product = Product(**fields)
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


def update_product(db: Session, product: Product, data: dict) -> Product:
    for field, value in data.items():
        setattr(product, field, value)
    db.commit()
    db.refresh(product)
    return product


def count_order_items(db: Session, product_id: str) -> int:
    return db.query(func.count(OrderItem.id)).filter(OrderItem.product_id == product_id).scalar() or 0


def delete_product(db: Session, product: Product) -> None:
    """
    Удаляет товар вместе с позициями корзин в одной транзакции.
    Избранное, просмотры и изображения удаляются каскадом.
    """
    try:
        db.query(CartItem).filter(CartItem.product_id == product.id).delete(synchronize_session=False)
        db.expire(product, ["cart_items"])
        db.delete(product)
        db.commit()
    except Exception:
        db.rollback()
        raise

# --- Изображения товара ---

def get_product_images(db: Session, product_id: str) -> List[ProductImage]:
    return (
        db.query(ProductImage)
        .filter(ProductImage.product_id == product_id)
        .order_by(ProductImage.position.asc())
        .all()
    )


def get_product_image(db: Session, product_id: str, image_id: str) -> ProductImage | None:
    return db.query(ProductImage).filter_by(id=image_id, product_id=product_id).first()


def add_product_image(db: Session, product_id: str, url: str, alt: str | None) -> ProductImage:
    """Добавляет изображение в конец галереи (позиция = максимальная + 1)."""
    max_position = (
        db.query(func.max(ProductImage.position))
        .filter(ProductImage.product_id == product_id)
        .scalar()
    )
    position = 0 if max_position is None else max_position + 1

    image = ProductImage(product_id=product_id, url=url, alt=alt, position=position)
    db.add(image)
    db.commit()
    db.refresh(image)
    return image


def reorder_product_images(db: Session, images: List[ProductImage], ordered_ids: List[str]) -> None:
    positions = {image_id: index for index, image_id in enumerate(ordered_ids)}
    for image in images:
        if image.id in positions:
            image.position = positions[image.id]
    db.commit()


def delete_product_image(db: Session, image: ProductImage) -> None:
    db.delete(image)
    db.commit()
