"""Audit trail for admin mutations."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Literal

from freshpick.adapters.store.base import DESCENDING, AbstractDocumentStore
from freshpick.core.errors import AppError
from freshpick.core.security import utcnow
from freshpick.utils.documents import to_public
from freshpick.utils.pagination import Pagination, build_pagination, skip_for

logger = logging.getLogger(__name__)

COLLECTION = "audit_logs"

ResourceType = Literal[
    "user",
    "customer",
    "supplier",
    "category",
    "product",
    "order",
    "blog",
    "role",
    "permission",
    "auth",
    "brand",
    "message",
]


@dataclass(frozen=True)
class RequestMeta:
    """Client details captured with each audit entry."""

    ip: str | None = None
    user_agent: str | None = None


class AuditService:
    def __init__(self, store: AbstractDocumentStore) -> None:
        self.store = store

    def record(
        self,
        *,
        user_id: str,
        action: str,
        resource_type: ResourceType,
        resource_id: str | None,
        before: dict[str, Any] | None = None,
        after: dict[str, Any] | None = None,
        meta: RequestMeta | None = None,
    ) -> None:
        """Append an audit entry.

        A failure to write the entry is logged and does not propagate; the
        audited operation has already succeeded by the time this runs.
        """
        meta = meta or RequestMeta()
        entry = {
            "user_id": user_id,
            "action": action,
            "resource_type": resource_type,
            "resource_id": resource_id,
            "before": _strip_secrets(before),
            "after": _strip_secrets(after),
            "ip": meta.ip,
            "user_agent": meta.user_agent,
            "timestamp": utcnow(),
        }
        try:
            self.store.insert_one(COLLECTION, entry)
        except AppError as exc:
            logger.error(
                "audit.write_failed",
                extra={
                    "action": action,
                    "resource_type": resource_type,
                    "resource_id": resource_id,
                    "error_code": exc.code,
                },
            )

    def list_entries(
        self,
        *,
        page: int,
        limit: int,
        resource_type: str | None = None,
        user_id: str | None = None,
    ) -> tuple[list[dict[str, Any]], Pagination]:
        filter: dict[str, Any] = {}
        if resource_type:
            filter["resource_type"] = resource_type
        if user_id:
            filter["user_id"] = user_id
        total = self.store.count(COLLECTION, filter)
        entries = self.store.find(
            COLLECTION,
            filter,
            sort=[("timestamp", DESCENDING)],
            skip=skip_for(page, limit),
            limit=limit,
        )
        return [to_public(e) for e in entries], build_pagination(page, limit, total)


def _strip_secrets(snapshot: dict[str, Any] | None) -> dict[str, Any] | None:
    if snapshot is None:
        return None
    return {
        k: v
        for k, v in snapshot.items()
        if k not in ("password_hash", "refresh_tokens")
    }
