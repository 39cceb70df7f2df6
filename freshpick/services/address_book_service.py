"""Saved delivery addresses, embedded in the user document as ``addresses``."""

from __future__ import annotations

import logging
from typing import Any

from freshpick.adapters.store.base import AbstractDocumentStore, Document, new_id
from freshpick.core.errors import NotFoundAppError
from freshpick.core.security import utcnow
from freshpick.schemas.profile import SavedAddressCreate, SavedAddressUpdate
from freshpick.services.auth_service import USERS
from freshpick.services.category_service import require_valid_id
from freshpick.utils.documents import to_public

logger = logging.getLogger(__name__)


class AddressBookService:
    def __init__(self, store: AbstractDocumentStore) -> None:
        self.store = store

    def _stored(self, user: Document) -> list[dict[str, Any]]:
        fresh = self.store.find_one(USERS, {"_id": user["_id"]}) or user
        return list(fresh.get("addresses", []))

    def _save(self, user: Document, addresses: list[dict[str, Any]]) -> list[dict[str, Any]]:
        self.store.update_one(USERS, {"_id": user["_id"]}, {"$set": {"addresses": addresses, "updated_at": utcnow()}})
        return [to_public(a) for a in addresses]

    def _index_of(self, addresses: list[dict[str, Any]], address_id: str) -> int:
        require_valid_id(address_id, "address")
        for index, address in enumerate(addresses):
            if address["_id"] == address_id:
                return index
        raise NotFoundAppError(code="address_not_found", message="Address not found")

    def list_addresses(self, user: Document) -> list[dict[str, Any]]:
        return [to_public(a) for a in self._stored(user)]

    def add(self, user: Document, data: SavedAddressCreate) -> list[dict[str, Any]]:
        addresses = self._stored(user)
        addresses.append({"_id": new_id(), **data.model_dump()})
        logger.info("address.added", extra={"user_id": user["_id"], "address_count": len(addresses)})
        return self._save(user, addresses)

    def update(self, user: Document, address_id: str, data: SavedAddressUpdate) -> list[dict[str, Any]]:
        addresses = self._stored(user)
        index = self._index_of(addresses, address_id)
        addresses[index] = {**addresses[index], **data.model_dump(exclude_unset=True)}
        return self._save(user, addresses)

    def delete(self, user: Document, address_id: str) -> list[dict[str, Any]]:
        addresses = self._stored(user)
        del addresses[self._index_of(addresses, address_id)]
        logger.info("address.deleted", extra={"user_id": user["_id"], "address_id": address_id})
        return self._save(user, addresses)
