"""Shared schema building blocks."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")
PHONE_PATTERN = re.compile(r"^\+?[\d\s\-\(\)]+$")


def _ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _normalize_email(value: str) -> str:
    value = value.strip().lower()
    if not EMAIL_PATTERN.match(value):
        raise ValueError("Please enter a valid email address")
    return value


def _validate_phone(value: str) -> str:
    value = value.strip()
    if len(value) < 10 or not PHONE_PATTERN.match(value):
        raise ValueError("Please enter a valid phone number")
    return value


UtcDatetime = Annotated[datetime, AfterValidator(_ensure_utc)]
Email = Annotated[str, AfterValidator(_normalize_email)]
Phone = Annotated[str, AfterValidator(_validate_phone)]


class RequestModel(BaseModel):
    """Base for request bodies: unknown fields are rejected, strings trimmed."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class Address(RequestModel):
    """Shipping/billing address attached to orders and suppliers."""

    name: str | None = Field(None, max_length=100)
    street: str = Field(..., min_length=1, max_length=200)
    city: str = Field(..., min_length=1, max_length=100)
    state: str | None = Field(None, max_length=100)
    zip_code: str | None = Field(None, max_length=20)
    country: str = Field("LK", min_length=2, max_length=60)
    phone: str | None = Field(None, max_length=30)
