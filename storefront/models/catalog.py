# storefront/models/catalog.py

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text, func
from sqlalchemy.orm import relationship

from storefront.db.session import Base, generate_id, utcnow


class Category(Base):
    __tablename__ = "categories"

    id = Column(String, primary_key=True, default=generate_id)
    name = Column(String, nullable=False)
    slug = Column(String, unique=True, index=True, nullable=False)
    description = Column(Text, nullable=True)

    products = relationship("Product", back_populates="category")
    sale_links = relationship("SaleCategory", back_populates="category", cascade="all, delete-orphan")


class Product(Base):
    __tablename__ = "products"

    id = Column(String, primary_key=True, default=generate_id)
    name = Column(String, nullable=False)
    slug = Column(String, unique=True, index=True, nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    stock = Column(Integer, nullable=False, default=0, server_default='0')
    image_url = Column(String, nullable=True)
    category_id = Column(String, ForeignKey("categories.id"), nullable=False, index=True)
    # Собственная скидка товара; имеет приоритет над скидкой распродажи категории
    discount_percent = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    category = relationship("Category", back_populates="products")
    images = relationship(
        "ProductImage",
        back_populates="product",
        order_by="ProductImage.position",
        cascade="all, delete-orphan",
    )
    cart_items = relationship("CartItem", back_populates="product", cascade="all, delete-orphan")
    favorites = relationship("Favorite", back_populates="product", cascade="all, delete-orphan")
    recently_viewed = relationship("RecentlyViewed", back_populates="product", cascade="all, delete-orphan")
    order_items = relationship("OrderItem", back_populates="product")


class ProductImage(Base):
    __tablename__ = "product_images"

    id = Column(String, primary_key=True, default=generate_id)
    product_id = Column(String, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    url = Column(String, nullable=False)
    alt = Column(String, nullable=True)
    position = Column(Integer, nullable=False, default=0, server_default='0')
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    product = relationship("Product", back_populates="images")
