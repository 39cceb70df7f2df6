"""Process-wide resources exposed as FastAPI dependencies."""

from __future__ import annotations

from fastapi import Request

from freshpick.adapters.store.base import AbstractDocumentStore
from freshpick.adapters.store.factory import create_document_store
from freshpick.core.rate_limit import get_client_ip
from freshpick.services.audit_service import RequestMeta

_store: AbstractDocumentStore | None = None


def get_store() -> AbstractDocumentStore:
    """Return the shared document store, creating it on first use.

    Tests replace this dependency through ``app.dependency_overrides``.
    """

    global _store

    if _store is None:
        _store = create_document_store()
    return _store


def set_store(store: AbstractDocumentStore | None) -> None:
    global _store
    _store = store


def get_request_meta(request: Request) -> RequestMeta:
    return RequestMeta(
        ip=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
