"""Document store adapters (MongoDB and in-process)."""

from freshpick.adapters.store.base import AbstractDocumentStore, is_valid_id, new_id
from freshpick.adapters.store.factory import create_document_store
from freshpick.adapters.store.in_memory import InMemoryDocumentStore

__all__ = [
    "AbstractDocumentStore",
    "InMemoryDocumentStore",
    "create_document_store",
    "is_valid_id",
    "new_id",
]
