"""Conversion of stored documents to API representations."""

from __future__ import annotations

import re
from typing import Any, Iterable

from freshpick.adapters.store.base import Document


def to_public(document: Document | None, *, exclude: Iterable[str] = ()) -> dict[str, Any] | None:
    """Return a shallow copy with ``_id`` exposed as ``id`` and ``exclude`` dropped."""
    if document is None:
        return None
    hidden = set(exclude)
    public = {k: v for k, v in document.items() if k != "_id" and k not in hidden}
    public["id"] = document.get("_id")
    return public


def contains_pattern(text: str) -> dict[str, str]:
    """Case-insensitive substring filter, safe against regex metacharacters."""
    return {"$regex": re.escape(text.strip()), "$options": "i"}
