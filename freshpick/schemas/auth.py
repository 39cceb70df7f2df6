"""Pydantic schemas for signup and login."""

from __future__ import annotations

import re

from pydantic import Field, field_validator

from freshpick.schemas.common import Email, Phone, RequestModel


class RegistrationAddress(RequestModel):
    address_line1: str = Field(..., min_length=1, max_length=200)
    address_line2: str | None = Field(None, max_length=200)
    city: str = Field(..., min_length=1, max_length=100)
    province: str = Field(..., min_length=1, max_length=100)
    postal_code: str = Field(..., min_length=1, max_length=20)
    country: str = Field(..., min_length=2, max_length=60)


class SignupRequest(RequestModel):
    """Customer self-registration."""

    first_name: str = Field(..., min_length=1, max_length=30)
    last_name: str | None = Field(None, max_length=30)
    email: Email | None = None
    phone_number: Phone
    password: str = Field(..., min_length=8, max_length=128)
    registration_address: RegistrationAddress

    @field_validator("password")
    @classmethod
    def _password_strength(cls, value: str) -> str:
        if not (
            re.search(r"[a-z]", value)
            and re.search(r"[A-Z]", value)
            and re.search(r"\d", value)
        ):
            raise ValueError(
                "Password must contain at least one lowercase letter, one uppercase letter, and one number"
            )
        return value


class LoginRequest(RequestModel):
    """Login with either email or phone number as ``identifier``."""

    identifier: str = Field(..., min_length=1, max_length=254)
    password: str = Field(..., min_length=1, max_length=128)
