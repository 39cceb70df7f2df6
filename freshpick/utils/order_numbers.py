"""Human-readable order numbers."""

from __future__ import annotations

import secrets
import string
import time

_ALPHABET = string.ascii_uppercase + string.digits


def generate_order_number(prefix: str = "ORD") -> str:
    """``<prefix>-<epoch ms>-<9 random upper-case alphanumerics>``."""
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(9))
    return f"{prefix}-{int(time.time() * 1000)}-{suffix}"
