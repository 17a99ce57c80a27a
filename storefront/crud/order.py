# storefront/crud/order.py
from typing import List

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from storefront.models.catalog import Product
from storefront.models.cart import CartItem
from storefront.models.order import Order, OrderItem, OrderStatus


def get_order(db: Session, order_id: str) -> Order | None:
    return (
        db.query(Order)
        .options(joinedload(Order.items))
        .filter(Order.id == order_id)
        .first()
    )


def get_order_by_guest_token(db: Session, guest_token: str) -> Order | None:
    return (
        db.query(Order)
        .options(joinedload(Order.items))
        .filter(Order.guest_token == guest_token)
        .first()
    )


def get_order_by_email_and_id(db: Session, email: str, order_id: str) -> Order | None:
    """Гостевой поиск: должны совпасть и ID заказа, и email."""
    return (
        db.query(Order)
        .options(joinedload(Order.items))
        .filter(Order.id == order_id, func.lower(Order.customer_email) == email.lower())
        .first()
    )


def get_user_order(db: Session, user_id: str, order_id: str) -> Order | None:
    return db.query(Order).filter(Order.id == order_id, Order.user_id == user_id).first()


def get_guest_order_for_tracking(db: Session, order_id: str, email: str, guest_token: str) -> Order | None:
    return (
        db.query(Order)
        .filter(
            Order.id == order_id,
            func.lower(Order.customer_email) == email.lower(),
            Order.guest_token == guest_token,
        )
        .first()
    )


def get_user_orders(db: Session, user_id: str) -> List[Order]:
    return (
        db.query(Order)
        .options(joinedload(Order.items))
        .filter(Order.user_id == user_id)
        .order_by(Order.created_at.desc())
        .all()
    )


def get_all_orders(db: Session) -> List[Order]:
    return (
        db.query(Order)
        .options(joinedload(Order.items), joinedload(Order.user))
        .order_by(Order.created_at.desc())
        .all()
    )


def create_order(db: Session, order: Order, items: List[OrderItem]) -> Order:
    order.items = items
    db.add(order)
    db.commit()
    db.refresh(order)
    return order


def update_order(db: Session, order: Order, data: dict) -> Order:
    for field, value in data.items():
        setattr(order, field, value)
    db.commit()
    db.refresh(order)
    return order


def fulfil_paid_order(db: Session, order: Order, data: dict, clear_cart_for: str | None = None) -> Order:
    """
    Переводит оплаченный заказ в обработку одной транзакцией:
    обновляет заказ, списывает остатки по каждой позиции и при необходимости
    очищает корзину покупателя.
    """
    try:
        for field, value in data.items():
            setattr(order, field, value)

        for item in order.items:
            db.query(Product).filter(Product.id == item.product_id).update(
                {Product.stock: Product.stock - item.quantity},
                synchronize_session=False,
            )

        if clear_cart_for:
            db.query(CartItem).filter(CartItem.user_id == clear_cart_for).delete(synchronize_session=False)

        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(order)
    return order


def link_guest_orders(db: Session, email: str, user_id: str) -> int:
    """Привязывает к пользователю гостевые заказы без владельца с тем же email."""
    linked = (
        db.query(Order)
        .filter(
            func.lower(Order.customer_email) == email.lower(),
            Order.is_guest.is_(True),
            Order.user_id.is_(None),
        )
        .update({Order.user_id: user_id, Order.is_guest: False}, synchronize_session=False)
    )
    db.commit()
    return linked


def set_order_status(db: Session, order: Order, status: OrderStatus) -> Order:
    return update_order(db, order, {"status": status})
