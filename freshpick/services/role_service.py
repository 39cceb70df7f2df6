"""Roles and the permissions attached to them."""

from __future__ import annotations

import logging
from typing import Any

from freshpick.adapters.store.base import ASCENDING, AbstractDocumentStore, Document
from freshpick.core.errors import ConflictAppError, NotFoundAppError, ValidationAppError
from freshpick.core.security import utcnow
from freshpick.schemas.admin import PermissionCreate, PermissionUpdate, RoleCreate, RoleUpdate
from freshpick.services.category_service import require_valid_id
from freshpick.utils.documents import to_public

logger = logging.getLogger(__name__)

ROLES = "roles"
PERMISSIONS = "permissions"


class RoleService:
    def __init__(self, store: AbstractDocumentStore) -> None:
        self.store = store

    # Permissions

    def list_permissions(self, resource: str | None = None) -> list[dict[str, Any]]:
        filter = {"resource": resource.lower()} if resource else {}
        permissions = self.store.find(
            PERMISSIONS, filter, sort=[("resource", ASCENDING), ("operation", ASCENDING)]
        )
        return [to_public(p) for p in permissions]

    def get_permission(self, permission_id: str) -> Document:
        require_valid_id(permission_id, "permission")
        permission = self.store.find_one(PERMISSIONS, {"_id": permission_id})
        if not permission:
            raise NotFoundAppError(code="permission_not_found", message="Permission not found")
        return permission

    def _ensure_permission_free(self, resource: str, operation: str, exclude_id: str | None = None) -> None:
        filter: dict[str, Any] = {"resource": resource, "operation": operation}
        if exclude_id:
            filter["_id"] = {"$ne": exclude_id}
        if self.store.find_one(PERMISSIONS, filter):
            raise ConflictAppError(
                code="permission_exists",
                message=f"Permission {operation}:{resource} already exists",
            )

    def create_permission(self, data: PermissionCreate) -> Document:
        self._ensure_permission_free(data.resource, data.operation)
        now = utcnow()
        return self.store.insert_one(
            PERMISSIONS,
            {**data.model_dump(), "created_at": now, "updated_at": now},
        )

    def update_permission(self, permission_id: str, data: PermissionUpdate) -> tuple[Document, Document]:
        before = self.get_permission(permission_id)
        changes = data.model_dump(exclude_unset=True)
        resource = changes.get("resource") or before["resource"]
        operation = changes.get("operation") or before["operation"]
        if (resource, operation) != (before["resource"], before["operation"]):
            self._ensure_permission_free(resource, operation, exclude_id=permission_id)
        changes["updated_at"] = utcnow()
        after = self.store.find_one_and_update(PERMISSIONS, {"_id": permission_id}, {"$set": changes})
        return before, after or before

    def delete_permission(self, permission_id: str) -> Document:
        permission = self.get_permission(permission_id)
        self.store.delete_one(PERMISSIONS, {"_id": permission_id})
        # Detach from every role that referenced it
        self.store.update_many(
            ROLES,
            {"permissions": permission_id},
            {"$pull": {"permissions": permission_id}, "$set": {"updated_at": utcnow()}},
        )
        return permission

    # Roles

    def _check_permissions_exist(self, permission_ids: list[str]) -> list[str]:
        unique_ids = list(dict.fromkeys(permission_ids))
        for permission_id in unique_ids:
            require_valid_id(permission_id, "permission")
        found = self.store.count(PERMISSIONS, {"_id": {"$in": unique_ids}}) if unique_ids else 0
        if found != len(unique_ids):
            raise ValidationAppError(
                code="unknown_permission",
                message="One or more permissions do not exist",
            )
        return unique_ids

    def _with_permissions(self, role: Document) -> dict[str, Any]:
        view = to_public(role)
        ids = role.get("permissions", [])
        permissions = self.store.find(PERMISSIONS, {"_id": {"$in": ids}}) if ids else []
        view["permissions"] = [to_public(p) for p in permissions]
        return view

    def list_roles(self) -> list[dict[str, Any]]:
        return [self._with_permissions(r) for r in self.store.find(ROLES, {}, sort=[("name", ASCENDING)])]

    def get_role(self, role_id: str) -> Document:
        require_valid_id(role_id, "role")
        role = self.store.find_one(ROLES, {"_id": role_id})
        if not role:
            raise NotFoundAppError(code="role_not_found", message="Role not found")
        return role

    def get_role_view(self, role_id: str) -> dict[str, Any]:
        return self._with_permissions(self.get_role(role_id))

    def _ensure_name_free(self, name: str, exclude_id: str | None = None) -> None:
        filter: dict[str, Any] = {"name": name}
        if exclude_id:
            filter["_id"] = {"$ne": exclude_id}
        if self.store.find_one(ROLES, filter):
            raise ConflictAppError(code="role_exists", message="Role with this name already exists")

    def create_role(self, data: RoleCreate) -> Document:
        self._ensure_name_free(data.name)
        now = utcnow()
        role = self.store.insert_one(
            ROLES,
            {
                "name": data.name,
                "description": data.description,
                "permissions": self._check_permissions_exist(data.permissions),
                "created_at": now,
                "updated_at": now,
            },
        )
        logger.info("role.created", extra={"role_id": role["_id"], "role_name": data.name})
        return role

    def update_role(self, role_id: str, data: RoleUpdate) -> tuple[Document, Document]:
        before = self.get_role(role_id)
        changes = data.model_dump(exclude_unset=True)
        if changes.get("name") and changes["name"] != before["name"]:
            self._ensure_name_free(changes["name"], exclude_id=role_id)
        if changes.get("permissions") is not None:
            changes["permissions"] = self._check_permissions_exist(changes["permissions"])
        changes["updated_at"] = utcnow()
        after = self.store.find_one_and_update(ROLES, {"_id": role_id}, {"$set": changes})
        return before, after or before

    def delete_role(self, role_id: str) -> Document:
        role = self.get_role(role_id)
        self.store.delete_one(ROLES, {"_id": role_id})
        return role

    def add_permission(self, role_id: str, permission_id: str) -> Document:
        self.get_role(role_id)
        self.get_permission(permission_id)
        role = self.store.find_one_and_update(
            ROLES,
            {"_id": role_id},
            {"$addToSet": {"permissions": permission_id}, "$set": {"updated_at": utcnow()}},
        )
        return role

    def remove_permission(self, role_id: str, permission_id: str) -> Document:
        self.get_role(role_id)
        require_valid_id(permission_id, "permission")
        role = self.store.find_one_and_update(
            ROLES,
            {"_id": role_id},
            {"$pull": {"permissions": permission_id}, "$set": {"updated_at": utcnow()}},
        )
        return role
