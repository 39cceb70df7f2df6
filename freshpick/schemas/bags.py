"""Pydantic schemas for bags (saved carts)."""

from __future__ import annotations

from pydantic import Field

from freshpick.schemas.common import RequestModel


class BagItemInput(RequestModel):
    """A bag line; ``product`` may be a product id, SKU or slug."""

    product: str = Field(..., min_length=1)
    quantity: int = Field(1, ge=1, le=1000)


class BagCreate(RequestModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(None, max_length=500)
    items: list[BagItemInput] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)


class BagUpdate(RequestModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, max_length=500)
    tags: list[str] | None = None


class ReorderRequest(RequestModel):
    order_id: str
    name: str | None = Field(None, min_length=1, max_length=100)
