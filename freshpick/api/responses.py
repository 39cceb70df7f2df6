"""Success envelope shared by every route.

Errors are rendered by ``core.exception_handlers``; routes only build the
success side: ``{"success": true, "message", "data", "metadata"}``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi.encoders import jsonable_encoder

from freshpick.utils.pagination import Pagination


def success(data: Any = None, message: str = "OK", **metadata: Any) -> dict[str, Any]:
    return jsonable_encoder(
        {
            "success": True,
            "message": message,
            "data": data,
            "metadata": {"timestamp": datetime.now(timezone.utc).isoformat(), **metadata},
        }
    )


def paginated(items: list[Any], pagination: Pagination, message: str = "OK") -> dict[str, Any]:
    return success({"items": items, "pagination": pagination.to_dict()}, message)
