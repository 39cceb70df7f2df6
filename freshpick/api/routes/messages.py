"""Messages sent to the signed-in customer by the Fresh Pick team."""

from __future__ import annotations

from fastapi import APIRouter

from freshpick.api.dependencies import Messages
from freshpick.api.responses import success
from freshpick.core.auth import CurrentUser
from freshpick.utils.documents import to_public

router = APIRouter(prefix="/messages", tags=["Messages"])


@router.get("")
def inbox(user: CurrentUser, messages: Messages) -> dict:
    items = messages.inbox(user)
    return success({"items": items, "unread": sum(1 for m in items if not m["is_read"])})


@router.put("/{message_id}/read")
def mark_read(message_id: str, user: CurrentUser, messages: Messages) -> dict:
    return success(to_public(messages.mark_read(message_id, user)), "Message marked as read")
