"""Pydantic schema for newsletter subscription."""

from __future__ import annotations

from typing import Literal

from freshpick.schemas.common import Email, RequestModel


class SubscribeRequest(RequestModel):
    email: Email
    source: Literal["homepage", "checkout", "popup", "footer"] = "homepage"
