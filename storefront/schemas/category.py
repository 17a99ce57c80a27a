# storefront/schemas/category.py
from typing import Any

from pydantic import BaseModel, field_validator

from storefront.utils import validation


class Category(BaseModel):
    id: str
    name: str
    slug: str
    description: str | None = None
    product_count: int = 0

    class Config:
        from_attributes = True


class CategoryCreate(BaseModel):
    name: Any
    description: Any = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        return validation.validate_category_name(v)

    @field_validator("description")
    @classmethod
    def check_description(cls, v):
        return validation.validate_category_description(v)


class CategoryUpdate(BaseModel):
    name: Any = None
    description: Any = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        return validation.validate_category_name(v)

    @field_validator("description")
    @classmethod
    def check_description(cls, v):
        return validation.validate_category_description(v)
