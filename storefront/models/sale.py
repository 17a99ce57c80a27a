# storefront/models/sale.py

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship
from sqlalchemy.schema import UniqueConstraint

from storefront.db.session import Base, generate_id, utcnow


class Sale(Base):
    __tablename__ = "sales"

    id = Column(String, primary_key=True, default=generate_id)
    name = Column(String, nullable=False)
    tagline = Column(String, nullable=True)
    discount = Column(Integer, nullable=False)  # проценты, 1..100
    start_date = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    end_date = Column(DateTime(timezone=True), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True, server_default='true')
    banner_url = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, server_default=func.now(), nullable=False)

    category_links = relationship("SaleCategory", back_populates="sale", cascade="all, delete-orphan")

    @property
    def categories(self):
        return [link.category for link in self.category_links]


class SaleCategory(Base):
    __tablename__ = "sale_categories"

    id = Column(String, primary_key=True, default=generate_id)
    sale_id = Column(String, ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    category_id = Column(String, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False, index=True)

    sale = relationship("Sale", back_populates="category_links")
    category = relationship("Category", back_populates="sale_links")

    __table_args__ = (UniqueConstraint('sale_id', 'category_id', name='_sale_category_uc'),)
