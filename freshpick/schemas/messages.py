"""Pydantic schemas for the contact form and customer messages."""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from freshpick.schemas.common import Email, RequestModel


class ContactRequest(RequestModel):
    name: str | None = Field(None, max_length=100)
    email: Email
    message: str = Field(..., min_length=1, max_length=5000)
    type: Literal["order", "product", "delivery", "account", "other"] = "other"
    subject: str | None = Field(None, max_length=200)
    priority: Literal["low", "normal", "high"] = "normal"
    order_id: str | None = Field(None, max_length=64)


class MessageCreate(RequestModel):
    recipient_id: str = Field(..., min_length=1)
    subject: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1, max_length=5000)
