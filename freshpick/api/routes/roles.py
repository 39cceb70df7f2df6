"""Role and permission management (admin only)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from freshpick.api.dependencies import Roles
from freshpick.api.responses import success
from freshpick.api.routes.admin import Audited
from freshpick.core.auth import require_admin
from freshpick.schemas.admin import PermissionCreate, PermissionUpdate, RoleCreate, RoleUpdate
from freshpick.utils.documents import to_public

router = APIRouter(tags=["Roles"], dependencies=[Depends(require_admin)])


@router.get("/permissions")
def list_permissions(roles: Roles, resource: str | None = None) -> dict:
    return success(roles.list_permissions(resource))


@router.post("/permissions", status_code=status.HTTP_201_CREATED)
def create_permission(payload: PermissionCreate, roles: Roles, audited: Audited) -> dict:
    permission = roles.create_permission(payload)
    audited("create", "permission", permission["_id"], after=permission)
    return success(to_public(permission), "Permission created successfully")


@router.get("/permissions/{permission_id}")
def get_permission(permission_id: str, roles: Roles) -> dict:
    return success(to_public(roles.get_permission(permission_id)))


@router.put("/permissions/{permission_id}")
def update_permission(
    permission_id: str,
    payload: PermissionUpdate,
    roles: Roles,
    audited: Audited,
) -> dict:
    before, after = roles.update_permission(permission_id, payload)
    audited("update", "permission", permission_id, before=before, after=after)
    return success(to_public(after), "Permission updated successfully")


@router.delete("/permissions/{permission_id}")
def delete_permission(permission_id: str, roles: Roles, audited: Audited) -> dict:
    permission = roles.delete_permission(permission_id)
    audited("delete", "permission", permission_id, before=permission)
    return success(None, "Permission deleted successfully")


@router.get("/roles")
def list_roles(roles: Roles) -> dict:
    return success(roles.list_roles())


@router.post("/roles", status_code=status.HTTP_201_CREATED)
def create_role(payload: RoleCreate, roles: Roles, audited: Audited) -> dict:
    role = roles.create_role(payload)
    audited("create", "role", role["_id"], after=role)
    return success(roles.get_role_view(role["_id"]), "Role created successfully")


@router.get("/roles/{role_id}")
def get_role(role_id: str, roles: Roles) -> dict:
    return success(roles.get_role_view(role_id))


@router.put("/roles/{role_id}")
def update_role(role_id: str, payload: RoleUpdate, roles: Roles, audited: Audited) -> dict:
    before, after = roles.update_role(role_id, payload)
    audited("update", "role", role_id, before=before, after=after)
    return success(roles.get_role_view(role_id), "Role updated successfully")


@router.delete("/roles/{role_id}")
def delete_role(role_id: str, roles: Roles, audited: Audited) -> dict:
    role = roles.delete_role(role_id)
    audited("delete", "role", role_id, before=role)
    return success(None, "Role deleted successfully")


@router.post("/roles/{role_id}/permissions/{permission_id}")
def add_permission(role_id: str, permission_id: str, roles: Roles, audited: Audited) -> dict:
    role = roles.add_permission(role_id, permission_id)
    audited("add_permission", "role", role_id, after=role)
    return success(roles.get_role_view(role_id), "Permission added to role")


@router.delete("/roles/{role_id}/permissions/{permission_id}")
def remove_permission(role_id: str, permission_id: str, roles: Roles, audited: Audited) -> dict:
    role = roles.remove_permission(role_id, permission_id)
    audited("remove_permission", "role", role_id, after=role)
    return success(roles.get_role_view(role_id), "Permission removed from role")
