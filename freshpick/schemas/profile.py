"""Pydantic schemas for the customer profile: address book and wishlist."""

from __future__ import annotations

from typing import Literal

from pydantic import Field, field_validator

from freshpick.schemas.common import RequestModel

AddressType = Literal["Home", "Business", "School", "Other"]


class SavedAddressBase(RequestModel):
    recipient_name: str | None = Field(None, min_length=1, max_length=80)
    street_address: str | None = Field(None, min_length=1, max_length=100)
    street_address2: str | None = Field(None, max_length=100)
    town: str | None = Field(None, min_length=1, max_length=100)
    city: str | None = Field(None, min_length=1, max_length=100)
    state: str | None = Field(None, min_length=1, max_length=100)
    postal_code: str | None = Field(None, min_length=1, max_length=100)
    country_code: str | None = Field(None, pattern=r"^[A-Za-z]{2}$")
    phone_number: str | None = Field(None, min_length=1, max_length=30)
    type: AddressType | None = None

    @field_validator("country_code")
    @classmethod
    def _upper_country(cls, value: str | None) -> str | None:
        return value.upper() if value else value


class SavedAddressCreate(SavedAddressBase):
    recipient_name: str = Field(..., min_length=1, max_length=80)
    street_address: str = Field(..., min_length=1, max_length=100)
    town: str = Field(..., min_length=1, max_length=100)
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., min_length=1, max_length=100)
    postal_code: str = Field(..., min_length=1, max_length=100)
    country_code: str = Field("LK", pattern=r"^[A-Za-z]{2}$")
    phone_number: str = Field(..., min_length=1, max_length=30)
    type: AddressType = "Home"


class SavedAddressUpdate(SavedAddressBase):
    """Partial update; only fields present in the body are changed."""


class WishlistAdd(RequestModel):
    """``product`` may be a product id, SKU or slug."""

    product: str = Field(..., min_length=1)
