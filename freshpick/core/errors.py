"""Application-level exception types.

Services and adapters raise these; the global handlers in
``freshpick.core.exception_handlers`` turn them into JSON error envelopes
with the HTTP status attached to each class.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    field: str
    fields: list[dict[str, Any]]
    hint: str
    resource: str
    resource_id: str
    product_id: str
    requested: int
    available: int
    errors: list[str]
    unavailable_items: list[dict[str, Any]]
    retry_after: int
    required_roles: list[str]
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    status_code: ClassVar[int] = 400

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input validation fails."""

    status_code = 400


class AuthenticationAppError(AppError):
    """Raised when the caller is not authenticated (missing/invalid/expired token)."""

    status_code = 401


class AuthorizationAppError(AppError):
    """Raised when an authenticated caller lacks the required role or ownership."""

    status_code = 403


class NotFoundAppError(AppError):
    """Raised when a requested resource does not exist."""

    status_code = 404


class ConflictAppError(AppError):
    """Raised on uniqueness violations (duplicate email, SKU, slug...)."""

    status_code = 409


class LLMAppError(AppError):
    """Raised when LLM provider/client operations fail."""

    status_code = 502


class StoreAppError(AppError):
    """Raised when the document store is unreachable or misconfigured."""

    status_code = 503
