"""MongoDB document store adapter (pymongo)."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterable, Iterator

from pymongo import ASCENDING, MongoClient, ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from freshpick.adapters.store.base import (
    AbstractDocumentStore,
    Document,
    Filter,
    SortSpec,
    Update,
    new_id,
)
from freshpick.core.errors import ConflictAppError, StoreAppError

logger = logging.getLogger(__name__)


@contextmanager
def _translate_errors(collection: str) -> Iterator[None]:
    """Map driver errors to application errors."""
    try:
        yield
    except DuplicateKeyError as exc:
        fields = ",".join((exc.details or {}).get("keyValue", {}).keys())
        raise ConflictAppError(
            code="duplicate_key",
            message=f"A {collection} record with the same {fields or 'key'} already exists",
            details={"resource": collection, "field": fields},
        ) from exc
    except PyMongoError as exc:
        logger.error(
            "store.operation_failed",
            extra={"collection": collection, "error_type": type(exc).__name__},
        )
        raise StoreAppError(
            code="store_unavailable",
            message="The database is temporarily unavailable",
            details={"resource": collection},
        ) from exc


class MongoDocumentStore(AbstractDocumentStore):
    """Pass-through adapter over a pymongo database.

    Filters and updates are handed to MongoDB unchanged; ids are stored as
    ObjectId hex strings so both backends expose the same document shape.
    """

    def __init__(
        self,
        url: str,
        database: str,
        *,
        timeout_ms: int = 5000,
        client: MongoClient | None = None,
    ) -> None:
        self._client = client or MongoClient(
            url,
            tz_aware=True,
            serverSelectionTimeoutMS=timeout_ms,
        )
        self._db = self._client[database]

    def insert_one(self, collection: str, document: Document) -> Document:
        stored = dict(document)
        stored.setdefault("_id", new_id())
        with _translate_errors(collection):
            self._db[collection].insert_one(stored)
        return stored

    def find_one(
        self,
        collection: str,
        filter: Filter,
        *,
        sort: SortSpec | None = None,
    ) -> Document | None:
        with _translate_errors(collection):
            return self._db[collection].find_one(filter, sort=list(sort) if sort else None)

    def find(
        self,
        collection: str,
        filter: Filter | None = None,
        *,
        sort: SortSpec | None = None,
        skip: int = 0,
        limit: int = 0,
    ) -> list[Document]:
        with _translate_errors(collection):
            cursor = self._db[collection].find(filter or {})
            if sort:
                cursor = cursor.sort(list(sort))
            if skip:
                cursor = cursor.skip(skip)
            if limit:
                cursor = cursor.limit(limit)
            return list(cursor)

    def count(self, collection: str, filter: Filter | None = None) -> int:
        with _translate_errors(collection):
            return self._db[collection].count_documents(filter or {})

    def update_one(self, collection: str, filter: Filter, update: Update) -> bool:
        with _translate_errors(collection):
            return self._db[collection].update_one(filter, update).matched_count > 0

    def find_one_and_update(
        self,
        collection: str,
        filter: Filter,
        update: Update,
    ) -> Document | None:
        with _translate_errors(collection):
            return self._db[collection].find_one_and_update(
                filter,
                update,
                return_document=ReturnDocument.AFTER,
            )

    def update_many(self, collection: str, filter: Filter, update: Update) -> int:
        with _translate_errors(collection):
            return self._db[collection].update_many(filter, update).matched_count

    def delete_one(self, collection: str, filter: Filter) -> bool:
        with _translate_errors(collection):
            return self._db[collection].delete_one(filter).deleted_count > 0

    def ensure_unique(self, collection: str, fields: Iterable[str]) -> None:
        keys = [(field, ASCENDING) for field in fields]
        with _translate_errors(collection):
            self._db[collection].create_index(keys, unique=True, sparse=True)

    def ping(self) -> bool:
        try:
            self._client.admin.command("ping")
        except PyMongoError as exc:
            logger.warning("store.ping_failed", extra={"error_type": type(exc).__name__})
            return False
        return True

    def close(self) -> None:
        self._client.close()
