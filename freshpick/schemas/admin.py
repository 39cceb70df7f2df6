"""Pydantic schemas for customer, role and permission administration."""

from __future__ import annotations

from typing import Literal

from pydantic import Field, field_validator

from freshpick.schemas.common import RequestModel

UserRole = Literal[
    "customer",
    "supplier",
    "admin",
    "manager",
    "delivery_staff",
    "customer_support",
    "marketing_specialist",
    "order_processor",
    "inventory_manager",
]
Operation = Literal["create", "read", "update", "delete"]


class CustomerUpdate(RequestModel):
    first_name: str | None = Field(None, min_length=1, max_length=30)
    last_name: str | None = Field(None, max_length=30)
    role: UserRole | None = None
    secondary_roles: list[UserRole] | None = None
    is_banned: bool | None = None


class RoleCreate(RequestModel):
    name: str = Field(..., min_length=1, max_length=60)
    description: str | None = Field(None, max_length=300)
    permissions: list[str] = Field(default_factory=list)


class RoleUpdate(RequestModel):
    name: str | None = Field(None, min_length=1, max_length=60)
    description: str | None = Field(None, max_length=300)
    permissions: list[str] | None = None


class PermissionCreate(RequestModel):
    resource: str = Field(..., min_length=1, max_length=60)
    operation: Operation
    description: str | None = Field(None, max_length=300)

    @field_validator("resource")
    @classmethod
    def _lower(cls, value: str) -> str:
        return value.lower()


class PermissionUpdate(RequestModel):
    resource: str | None = Field(None, min_length=1, max_length=60)
    operation: Operation | None = None
    description: str | None = Field(None, max_length=300)

    @field_validator("resource")
    @classmethod
    def _lower(cls, value: str | None) -> str | None:
        return value.lower() if value else value
