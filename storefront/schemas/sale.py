# storefront/schemas/sale.py
from datetime import datetime
from typing import List

from pydantic import BaseModel, Field, field_validator

from storefront.schemas.product import CategoryBrief


class Sale(BaseModel):
    id: str
    name: str
    tagline: str | None = None
    discount: int
    start_date: datetime
    end_date: datetime
    is_active: bool
    banner_url: str | None = None
    created_at: datetime
    updated_at: datetime
    categories: List[CategoryBrief] = []

    class Config:
        from_attributes = True


def _check_discount(v):
    if v is None:
        return v
    if isinstance(v, bool) or not isinstance(v, int) or not 1 <= v <= 100:
        raise ValueError("Discount must be a whole number between 1 and 100")
    return v


class SaleCreate(BaseModel):
    name: str
    tagline: str | None = None
    discount: int = Field(strict=True)
    start_date: datetime | None = Field(default=None, alias="startDate")
    end_date: datetime = Field(alias="endDate")
    is_active: bool = Field(default=True, alias="isActive")
    banner_url: str | None = Field(default=None, alias="bannerUrl")
    category_ids: List[str] = Field(alias="categoryIds")

    class Config:
        populate_by_name = True

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str):
        if not v.strip():
            raise ValueError("Sale name is required")
        return v.strip()

    @field_validator("discount")
    @classmethod
    def check_discount(cls, v):
        return _check_discount(v)

    @field_validator("category_ids")
    @classmethod
    def check_categories(cls, v: List[str]):
        if not v:
            raise ValueError("At least one category is required")
        return v


class SaleUpdate(BaseModel):
    name: str | None = None
    tagline: str | None = None
    discount: int | None = Field(default=None, strict=True)
    start_date: datetime | None = Field(default=None, alias="startDate")
    end_date: datetime | None = Field(default=None, alias="endDate")
    is_active: bool | None = Field(default=None, alias="isActive")
    banner_url: str | None = Field(default=None, alias="bannerUrl")
    category_ids: List[str] | None = Field(default=None, alias="categoryIds")

    class Config:
        populate_by_name = True

    @field_validator("discount")
    @classmethod
    def check_discount(cls, v):
        return _check_discount(v)

    @field_validator("category_ids")
    @classmethod
    def check_categories(cls, v):
        if v is not None and not v:
            raise ValueError("At least one category is required")
        return v
