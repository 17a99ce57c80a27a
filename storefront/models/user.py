# storefront/models/user.py

from sqlalchemy import Column, String, DateTime, func
from sqlalchemy.orm import relationship

from storefront.db.session import Base, utcnow


class User(Base):
    __tablename__ = "users"

    # ID приходит из провайдера аутентификации (claim 'sub')
    id = Column(String, primary_key=True)
    email = Column(String, unique=True, index=True, nullable=True)
    name = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    cart_items = relationship("CartItem", back_populates="user", cascade="all, delete-orphan")
    favorites = relationship("Favorite", back_populates="user", cascade="all, delete-orphan")
    recently_viewed = relationship("RecentlyViewed", back_populates="user", cascade="all, delete-orphan")
    orders = relationship("Order", back_populates="user")
