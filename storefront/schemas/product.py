# storefront/schemas/product.py
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

from storefront.utils import validation


class CategoryBrief(BaseModel):
    id: str
    name: str
    slug: str

    class Config:
        from_attributes = True


class ProductImage(BaseModel):
    id: str
    url: str
    alt: str | None = None
    position: int

    class Config:
        from_attributes = True


class Product(BaseModel):
    id: str
    name: str
    slug: str
    description: str | None = None
    price: float
    stock: int
    image_url: str | None = None
    category_id: str
    discount_percent: int | None = None
    created_at: datetime
    category: Optional[CategoryBrief] = None

    # Рассчитываются сервисом каталога с учетом распродаж
    effective_discount: int = 0
    sale_price: float | None = None

    class Config:
        from_attributes = True


class ProductDetail(Product):
    images: List[ProductImage] = []


class ProductCreate(BaseModel):
    name: Any
    price: Any
    category_id: str = Field(alias="categoryId")
    description: Any = None
    stock: Any = 0
    image_url: str | None = Field(default=None, alias="imageUrl")
    discount_percent: Any = Field(default=None, alias="discountPercent")

    class Config:
        populate_by_name = True

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        return validation.validate_product_name(v)

    @field_validator("price")
    @classmethod
    def check_price(cls, v):
        return validation.validate_price(v)

    @field_validator("description")
    @classmethod
    def check_description(cls, v):
        return validation.validate_description(v)

    @field_validator("stock")
    @classmethod
    def check_stock(cls, v):
        return validation.validate_stock(v)

    @field_validator("discount_percent")
    @classmethod
    def check_discount(cls, v):
        return validation.validate_discount_percent(v)


class ProductUpdate(BaseModel):
    # Все поля опциональны: обновляются только переданные
    name: Any = None
    price: Any = None
    category_id: str | None = Field(default=None, alias="categoryId")
    description: Any = None
    stock: Any = None
    image_url: str | None = Field(default=None, alias="imageUrl")
    discount_percent: Any = Field(default=None, alias="discountPercent")

    class Config:
        populate_by_name = True

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        return validation.validate_product_name(v)

    @field_validator("price")
    @classmethod
    def check_price(cls, v):
        return validation.validate_price(v)

    @field_validator("description")
    @classmethod
    def check_description(cls, v):
        return validation.validate_description(v)

    @field_validator("stock")
    @classmethod
    def check_stock(cls, v):
        return validation.validate_stock(v)

    @field_validator("discount_percent")
    @classmethod
    def check_discount(cls, v):
        return validation.validate_discount_percent(v)


class ProductImageCreate(BaseModel):
    url: str
    alt: str | None = None

    @field_validator("url")
    @classmethod
    def check_url(cls, v: str):
        if not (v.startswith("/") or v.startswith("http")):
            raise ValueError("Invalid image URL")
        return v


class ProductImageReorder(BaseModel):
    image_ids: List[str] = Field(alias="imageIds")

    class Config:
        populate_by_name = True
