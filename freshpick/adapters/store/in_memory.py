"""In-process document store.

Used by the test-suite and for local development without MongoDB.

Notes:
- Per-process only; data is lost on restart.
- Thread-safe: uses a lock around shared state.
- Documents are deep-copied on the way in and out, so callers never share
  mutable state with the store.
"""

from __future__ import annotations

import copy
import threading
from typing import Any, Iterable

from freshpick.adapters.store import query
from freshpick.adapters.store.base import (
    AbstractDocumentStore,
    Document,
    Filter,
    SortSpec,
    Update,
    new_id,
)
from freshpick.core.errors import ConflictAppError


class InMemoryDocumentStore(AbstractDocumentStore):
    """Dict-backed implementation of ``AbstractDocumentStore``."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._collections: dict[str, dict[str, Document]] = {}
        self._unique: dict[str, list[tuple[str, ...]]] = {}

    def _collection(self, name: str) -> dict[str, Document]:
        return self._collections.setdefault(name, {})

    def _unique_key(self, document: Document, fields: tuple[str, ...]) -> tuple[Any, ...] | None:
        values = tuple(document.get(field) for field in fields)
        if all(value is None for value in values):
            return None
        return values

    def _check_unique_locked(self, collection: str, document: Document) -> None:
        for fields in self._unique.get(collection, []):
            key = self._unique_key(document, fields)
            if key is None:
                continue
            for other in self._collection(collection).values():
                if other["_id"] == document["_id"]:
                    continue
                if self._unique_key(other, fields) == key:
                    raise ConflictAppError(
                        code="duplicate_key",
                        message=f"A {collection} record with the same {', '.join(fields)} already exists",
                        details={"resource": collection, "field": ",".join(fields)},
                    )

    def _matching_locked(self, collection: str, filter: Filter | None) -> list[Document]:
        return [doc for doc in self._collection(collection).values() if query.matches(doc, filter)]

    def insert_one(self, collection: str, document: Document) -> Document:
        stored = copy.deepcopy(document)
        stored.setdefault("_id", new_id())
        with self._lock:
            if stored["_id"] in self._collection(collection):
                raise ConflictAppError(
                    code="duplicate_key",
                    message=f"A {collection} record with id {stored['_id']} already exists",
                    details={"resource": collection, "field": "_id"},
                )
            self._check_unique_locked(collection, stored)
            self._collection(collection)[stored["_id"]] = stored
        return copy.deepcopy(stored)

    def find_one(
        self,
        collection: str,
        filter: Filter,
        *,
        sort: SortSpec | None = None,
    ) -> Document | None:
        found = self.find(collection, filter, sort=sort, limit=1)
        return found[0] if found else None

    def find(
        self,
        collection: str,
        filter: Filter | None = None,
        *,
        sort: SortSpec | None = None,
        skip: int = 0,
        limit: int = 0,
    ) -> list[Document]:
        with self._lock:
            docs = query.sort_documents(self._matching_locked(collection, filter), sort)
            if skip:
                docs = docs[skip:]
            if limit:
                docs = docs[:limit]
            return copy.deepcopy(docs)

    def count(self, collection: str, filter: Filter | None = None) -> int:
        with self._lock:
            return len(self._matching_locked(collection, filter))

    def _update_locked(self, collection: str, target: Document, update: Update) -> Document:
        candidate = copy.deepcopy(target)
        query.apply_update(candidate, update)
        candidate["_id"] = target["_id"]
        self._check_unique_locked(collection, candidate)
        self._collection(collection)[candidate["_id"]] = candidate
        return candidate

    def update_one(self, collection: str, filter: Filter, update: Update) -> bool:
        return self.find_one_and_update(collection, filter, update) is not None

    def find_one_and_update(
        self,
        collection: str,
        filter: Filter,
        update: Update,
    ) -> Document | None:
        with self._lock:
            matched = self._matching_locked(collection, filter)
            if not matched:
                return None
            return copy.deepcopy(self._update_locked(collection, matched[0], update))

    def update_many(self, collection: str, filter: Filter, update: Update) -> int:
        with self._lock:
            matched = self._matching_locked(collection, filter)
            for doc in matched:
                self._update_locked(collection, doc, update)
            return len(matched)

    def delete_one(self, collection: str, filter: Filter) -> bool:
        with self._lock:
            matched = self._matching_locked(collection, filter)
            if not matched:
                return False
            del self._collection(collection)[matched[0]["_id"]]
            return True

    def ensure_unique(self, collection: str, fields: Iterable[str]) -> None:
        key = tuple(fields)
        with self._lock:
            constraints = self._unique.setdefault(collection, [])
            if key not in constraints:
                constraints.append(key)

    def ping(self) -> bool:
        return True

    def drop(self, collection: str | None = None) -> None:
        """Remove every document from one collection, or from all of them."""
        with self._lock:
            if collection is None:
                self._collections.clear()
            else:
                self._collections.pop(collection, None)
