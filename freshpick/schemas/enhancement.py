"""Pydantic schemas for product detail enhancement."""

from __future__ import annotations

from pydantic import BaseModel, Field

from freshpick.schemas.common import RequestModel


class ProductDetailsRequest(RequestModel):
    """What is known about a product before enhancement."""

    name: str = Field(..., min_length=1, max_length=200)
    brand: str | None = Field(None, max_length=100)
    category: str | None = Field(None, max_length=100)
    description: str | None = Field(None, max_length=2000)
    ingredients: str | None = Field(None, max_length=2000)
    nutrition_facts: str | None = Field(None, max_length=2000)


class EnhancedProductDetails(BaseModel):
    """Storefront-ready copy generated for a product."""

    enhanced_description: str = Field(
        ...,
        description="Customer-facing description (2-4 sentences).",
    )
    suggested_ingredients: str = Field(
        "",
        description="Ingredient list; empty when the product has none.",
    )
    nutrition_facts: str = Field(
        "",
        description="Nutrition facts per serving, one fact per line.",
    )
    search_content: str = Field(
        ...,
        description="Lower-case keyword text used by catalog search.",
    )
    tags: list[str] = Field(
        default_factory=list,
        description="Short lower-case tags (at most 10).",
        max_length=10,
    )
    cached: bool = Field(False, description="True when served from the cache.")
