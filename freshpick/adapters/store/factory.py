"""Factory for creating the configured document store."""

from __future__ import annotations

import logging

from freshpick.adapters.store.base import AbstractDocumentStore
from freshpick.adapters.store.in_memory import InMemoryDocumentStore
from freshpick.adapters.store.mongo import MongoDocumentStore
from freshpick.core.config import StoreSettings, settings
from freshpick.core.errors import ValidationAppError

logger = logging.getLogger(__name__)

# (collection, fields) pairs enforced as unique by every backend
UNIQUE_CONSTRAINTS: list[tuple[str, tuple[str, ...]]] = [
    ("users", ("user_id",)),
    ("users", ("email",)),
    ("users", ("phone_number",)),
    ("products", ("sku",)),
    ("products", ("slug",)),
    ("categories", ("slug",)),
    ("suppliers", ("email",)),
    ("roles", ("name",)),
    ("permissions", ("resource", "operation")),
    ("subscribers", ("email",)),
    ("blogs", ("slug",)),
    ("orders", ("order_number",)),
    ("brands", ("code",)),
    ("reviews", ("product_id", "user_id")),
    ("wishlists", ("user_id",)),
]


def apply_unique_constraints(store: AbstractDocumentStore) -> None:
    for collection, fields in UNIQUE_CONSTRAINTS:
        store.ensure_unique(collection, fields)


def create_document_store(store_settings: StoreSettings | None = None) -> AbstractDocumentStore:
    """Instantiate the document store selected by ``STORE_BACKEND``.

    Returns:
        AbstractDocumentStore: Store with unique constraints applied.

    Raises:
        ValidationAppError: If backend-specific requirements are not met.
    """
    cfg = store_settings or settings.store
    backend = cfg.backend.lower()

    if backend == "memory":
        store: AbstractDocumentStore = InMemoryDocumentStore()
    elif backend == "mongo":
        if not cfg.url:
            raise ValidationAppError(
                code="store_missing_url",
                message="The mongo store backend requires the STORE_URL environment variable",
            )
        store = MongoDocumentStore(cfg.url, cfg.database, timeout_ms=cfg.timeout_ms)
    else:
        raise ValidationAppError(
            code="store_unknown_backend",
            message=f"Unknown store backend: '{backend}'. Supported backends: memory, mongo",
        )

    apply_unique_constraints(store)
    logger.info("store.ready", extra={"backend": backend, "database": cfg.database})
    return store
