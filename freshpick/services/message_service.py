"""Contact-form submissions and admin-to-customer messages."""

from __future__ import annotations

import logging
from typing import Any

from freshpick.adapters.store.base import DESCENDING, AbstractDocumentStore, Document
from freshpick.core.errors import NotFoundAppError
from freshpick.core.security import utcnow
from freshpick.schemas.messages import ContactRequest, MessageCreate
from freshpick.services.auth_service import USERS
from freshpick.services.category_service import require_valid_id
from freshpick.utils.documents import to_public
from freshpick.utils.pagination import Pagination, build_pagination, skip_for

logger = logging.getLogger(__name__)

CONTACT_MESSAGES = "contact_messages"
MESSAGES = "messages"


def _person(user: Document | None) -> dict[str, Any] | None:
    if not user:
        return None
    return {
        "id": user["_id"],
        "first_name": user.get("first_name"),
        "last_name": user.get("last_name"),
        "email": user.get("email"),
    }


class MessageService:
    def __init__(self, store: AbstractDocumentStore) -> None:
        self.store = store

    def submit_contact(self, data: ContactRequest, user: Document | None = None) -> Document:
        """Store a contact-form message; signed-in senders are linked to their account."""
        now = utcnow()
        message = self.store.insert_one(
            CONTACT_MESSAGES,
            {
                **data.model_dump(),
                "user_id": user["_id"] if user else None,
                "status": "new",
                "created_at": now,
                "updated_at": now,
            },
        )
        logger.info(
            "contact.received",
            extra={"contact_id": message["_id"], "type": message["type"], "priority": message["priority"]},
        )
        return message

    def list_contact_messages(
        self, *, page: int, limit: int, status: str | None = None
    ) -> tuple[list[Document], Pagination]:
        filter: dict[str, Any] = {"status": status} if status else {}
        total = self.store.count(CONTACT_MESSAGES, filter)
        messages = self.store.find(
            CONTACT_MESSAGES,
            filter,
            sort=[("created_at", DESCENDING)],
            skip=skip_for(page, limit),
            limit=limit,
        )
        return messages, build_pagination(page, limit, total)

    def send(self, sender: Document, data: MessageCreate) -> Document:
        """Send a message from an admin to a customer.

        Raises:
            ValidationAppError: Malformed recipient id.
            NotFoundAppError: No such recipient.
        """
        require_valid_id(data.recipient_id, "recipient")
        if not self.store.find_one(USERS, {"_id": data.recipient_id}):
            raise NotFoundAppError(code="recipient_not_found", message="Recipient not found")
        message = self.store.insert_one(
            MESSAGES,
            {
                "sender_id": sender["_id"],
                "recipient_id": data.recipient_id,
                "subject": data.subject,
                "content": data.content,
                "is_read": False,
                "read_at": None,
                "created_at": utcnow(),
            },
        )
        logger.info("message.sent", extra={"message_id": message["_id"], "recipient_id": data.recipient_id})
        return message

    def inbox(self, user: Document) -> list[dict[str, Any]]:
        """The caller's messages, newest first, with the sender attached."""
        messages = self.store.find(MESSAGES, {"recipient_id": user["_id"]}, sort=[("created_at", DESCENDING)])
        sender_ids = list({m["sender_id"] for m in messages})
        senders = (
            {u["_id"]: u for u in self.store.find(USERS, {"_id": {"$in": sender_ids}})} if sender_ids else {}
        )
        views = []
        for message in messages:
            view = to_public(message)
            view["sender"] = _person(senders.get(message["sender_id"]))
            views.append(view)
        return views

    def mark_read(self, message_id: str, user: Document) -> Document:
        require_valid_id(message_id, "message")
        message = self.store.find_one_and_update(
            MESSAGES,
            {"_id": message_id, "recipient_id": user["_id"]},
            {"$set": {"is_read": True, "read_at": utcnow()}},
        )
        # Messages addressed to someone else are reported as missing
        if not message:
            raise NotFoundAppError(code="message_not_found", message="Message not found")
        return message
