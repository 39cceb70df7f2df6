"""Pydantic schemas for products, categories, suppliers and blogs."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field, field_validator

from freshpick.schemas.common import Email, Phone, RequestModel


class Dimensions(RequestModel):
    length: float = Field(..., ge=0)
    width: float = Field(..., ge=0)
    height: float = Field(..., ge=0)


class BundleItem(RequestModel):
    product_id: str
    quantity: int = Field(1, ge=1)


class ProductBase(RequestModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    sku: str | None = Field(None, min_length=1, max_length=64)
    slug: str | None = Field(None, min_length=1, max_length=220)
    description: str | None = Field(None, max_length=2000)
    brand: str | None = Field(None, max_length=100)
    price: float | None = Field(None, ge=0)
    cost_price: float | None = Field(None, ge=0)
    category_id: str | None = None
    supplier_id: str | None = None
    stock_qty: int | None = Field(None, ge=0)
    min_stock_level: int | None = Field(None, ge=0)
    image: str | None = None
    images: list[str] | None = None
    tags: list[str] | None = None
    attributes: dict[str, Any] | None = None
    weight: float | None = Field(None, ge=0)
    dimensions: Dimensions | None = None
    is_sold_as_unit: bool | None = None
    base_measurement_quantity: float | None = Field(None, gt=0)
    measurement_unit: str | None = Field(None, max_length=20)
    discount_percentage: float | None = Field(None, ge=0, le=100)
    ingredients: str | None = None
    nutrition_facts: str | None = None
    is_bundle: bool | None = None
    bundle_items: list[BundleItem] | None = None
    archived: bool | None = None

    @field_validator("tags")
    @classmethod
    def _clean_tags(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        return [tag.strip().lower() for tag in value if tag.strip()]


class ProductCreate(ProductBase):
    name: str = Field(..., min_length=1, max_length=200)
    sku: str = Field(..., min_length=1, max_length=64)
    price: float = Field(..., ge=0)
    category_id: str
    stock_qty: int = Field(0, ge=0)


class ProductUpdate(ProductBase):
    """Partial update; only fields present in the body are changed."""


class CategoryBase(RequestModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    slug: str | None = Field(None, min_length=1, max_length=120)
    description: str | None = Field(None, max_length=500)
    parent_category_id: str | None = None
    image_url: str | None = None
    is_active: bool | None = None
    sort_order: int | None = None


class CategoryCreate(CategoryBase):
    name: str = Field(..., min_length=1, max_length=100)


class CategoryUpdate(CategoryBase):
    pass


class SupplierAddress(RequestModel):
    street: str | None = Field(None, max_length=200)
    city: str | None = Field(None, max_length=100)
    state: str | None = Field(None, max_length=100)
    zip_code: str | None = Field(None, max_length=20)
    country: str | None = Field(None, max_length=60)


class SupplierRegistration(RequestModel):
    """Public supplier sign-up form."""

    company_name: str = Field(..., min_length=1, max_length=200)
    contact_name: str = Field(..., min_length=1, max_length=100)
    phone: Phone
    email: Email | None = None
    address: SupplierAddress | None = None
    notes: str | None = Field(None, max_length=1000)


class SupplierBase(RequestModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    contact_name: str | None = Field(None, max_length=100)
    email: Email | None = None
    phone: str | None = Field(None, max_length=30)
    address: SupplierAddress | None = None
    payment_terms: str | None = Field(None, max_length=50)
    notes: str | None = Field(None, max_length=1000)
    status: Literal["active", "inactive"] | None = None


class SupplierCreate(SupplierBase):
    name: str = Field(..., min_length=1, max_length=200)


class SupplierUpdate(SupplierBase):
    pass


class BlogBase(RequestModel):
    title: str | None = Field(None, min_length=5, max_length=200)
    slug: str | None = Field(None, min_length=1, max_length=220)
    excerpt: str | None = Field(None, max_length=500)
    content: str | None = Field(None, min_length=1)
    featured_image: str | None = None
    category: str | None = Field(None, max_length=100)
    tags: list[str] | None = None
    published: bool | None = None
    meta_title: str | None = Field(None, max_length=200)
    meta_description: str | None = Field(None, max_length=300)


class BlogCreate(BlogBase):
    title: str = Field(..., min_length=5, max_length=200)
    content: str = Field(..., min_length=1)


class BlogUpdate(BlogBase):
    pass


class BrandBase(RequestModel):
    code: str | None = Field(None, pattern=r"^[A-Za-z0-9]{3}$")
    name: str | None = Field(None, min_length=3, max_length=100)
    description: str | None = Field(None, max_length=500)

    @field_validator("code")
    @classmethod
    def _upper_code(cls, value: str | None) -> str | None:
        return value.upper() if value else value


class BrandCreate(BrandBase):
    code: str = Field(..., pattern=r"^[A-Za-z0-9]{3}$")
    name: str = Field(..., min_length=3, max_length=100)


class BrandUpdate(BrandBase):
    pass


class ReviewCreate(RequestModel):
    """A product review; resubmitting for the same product replaces it."""

    product_id: str = Field(..., min_length=1)
    rating: int = Field(..., ge=1, le=5)
    title: str | None = Field(None, max_length=100)
    comment: str = Field(..., min_length=1, max_length=1000)
