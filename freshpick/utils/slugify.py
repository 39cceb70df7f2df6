"""URL slug helpers."""

from __future__ import annotations

import re

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE = re.compile(r"\s+")
_DASHES = re.compile(r"-+")


def slugify(text: str) -> str:
    """Lower-case ``text`` and reduce it to ``[a-z0-9-]``.

    >>> slugify("  Fresh & Organic  Apples ")
    'fresh-organic-apples'
    """
    slug = _NON_SLUG_CHARS.sub("", text.lower().strip())
    slug = _WHITESPACE.sub("-", slug)
    return _DASHES.sub("-", slug).strip("-")
