"""Newsletter subscriptions."""

from __future__ import annotations

import logging

from freshpick.adapters.store.base import AbstractDocumentStore, Document
from freshpick.core.errors import ConflictAppError
from freshpick.core.security import utcnow
from freshpick.schemas.newsletter import SubscribeRequest

logger = logging.getLogger(__name__)

SUBSCRIBERS = "subscribers"


class NewsletterService:
    def __init__(self, store: AbstractDocumentStore) -> None:
        self.store = store

    def subscribe(self, data: SubscribeRequest) -> tuple[Document, bool]:
        """Subscribe an email address.

        Returns:
            ``(subscriber, reactivated)``.

        Raises:
            ConflictAppError: The address is already actively subscribed.
        """
        now = utcnow()
        existing = self.store.find_one(SUBSCRIBERS, {"email": data.email})
        if existing:
            if existing.get("is_active"):
                raise ConflictAppError(
                    code="already_subscribed",
                    message="This email is already subscribed to our newsletter",
                    details={"field": "email"},
                )
            reactivated = self.store.find_one_and_update(
                SUBSCRIBERS,
                {"_id": existing["_id"]},
                {
                    "$set": {"is_active": True, "source": data.source, "subscribed_at": now},
                    "$unset": {"unsubscribed_at": ""},
                },
            )
            logger.info("newsletter.reactivated", extra={"source": data.source})
            return reactivated or existing, True

        subscriber = self.store.insert_one(
            SUBSCRIBERS,
            {
                "email": data.email,
                "source": data.source,
                "is_active": True,
                "subscribed_at": now,
            },
        )
        logger.info("newsletter.subscribed", extra={"source": data.source})
        return subscriber, False

