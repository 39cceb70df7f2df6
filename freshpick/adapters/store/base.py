"""Document store interface.

Services talk to collections of plain dicts through this interface using
MongoDB query and update syntax. Document ids are ObjectId hex strings
assigned by the store on insert and kept under ``_id``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterable, Sequence

from bson import ObjectId

Document = dict[str, Any]
Filter = dict[str, Any]
Update = dict[str, Any]
SortSpec = Sequence[tuple[str, int]]

ASCENDING = 1
DESCENDING = -1


def new_id() -> str:
    """Return a fresh ObjectId hex string."""
    return str(ObjectId())


def is_valid_id(value: Any) -> bool:
    return isinstance(value, str) and ObjectId.is_valid(value)


class AbstractDocumentStore(ABC):
    """Interface for document stores (MongoDB or in-process)."""

    @abstractmethod
    def insert_one(self, collection: str, document: Document) -> Document:
        """Insert a copy of ``document``, assigning ``_id`` when absent.

        Returns:
            The stored document, including its ``_id``.

        Raises:
            ConflictAppError: If a unique constraint is violated.
        """
        raise NotImplementedError

    @abstractmethod
    def find_one(
        self,
        collection: str,
        filter: Filter,
        *,
        sort: SortSpec | None = None,
    ) -> Document | None:
        raise NotImplementedError

    @abstractmethod
    def find(
        self,
        collection: str,
        filter: Filter | None = None,
        *,
        sort: SortSpec | None = None,
        skip: int = 0,
        limit: int = 0,
    ) -> list[Document]:
        """Return matching documents; ``limit=0`` means no limit."""
        raise NotImplementedError

    @abstractmethod
    def count(self, collection: str, filter: Filter | None = None) -> int:
        raise NotImplementedError

    @abstractmethod
    def update_one(self, collection: str, filter: Filter, update: Update) -> bool:
        """Apply ``update`` to the first match.

        Returns:
            True when a document matched the filter.
        """
        raise NotImplementedError

    @abstractmethod
    def find_one_and_update(
        self,
        collection: str,
        filter: Filter,
        update: Update,
    ) -> Document | None:
        """Apply ``update`` to the first match and return it after the update."""
        raise NotImplementedError

    @abstractmethod
    def update_many(self, collection: str, filter: Filter, update: Update) -> int:
        raise NotImplementedError

    @abstractmethod
    def delete_one(self, collection: str, filter: Filter) -> bool:
        raise NotImplementedError

    @abstractmethod
    def ensure_unique(self, collection: str, fields: Iterable[str]) -> None:
        """Declare a (compound) unique constraint.

        Documents missing every field of the constraint are not indexed.
        """
        raise NotImplementedError

    @abstractmethod
    def ping(self) -> bool:
        """Return True when the backend answers."""
        raise NotImplementedError

    def close(self) -> None:
        """Release backend connections (nothing to do for in-process stores)."""
