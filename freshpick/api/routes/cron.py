"""Scheduler entry points, authenticated by a shared bearer secret."""

from __future__ import annotations

import hmac
import logging

from fastapi import APIRouter, Depends, Request

from freshpick.api.dependencies import RecurringOrders
from freshpick.api.responses import success
from freshpick.core.config import settings
from freshpick.core.errors import AuthenticationAppError

logger = logging.getLogger(__name__)


def verify_cron_secret(request: Request) -> None:
    """Require ``Authorization: Bearer <APP_CRON_SECRET>``.

    Raises:
        AuthenticationAppError: When no secret is configured or it does not match.
    """
    expected = settings.app.cron_secret
    scheme, _, provided = request.headers.get("authorization", "").partition(" ")
    if not expected or scheme.lower() != "bearer" or not hmac.compare_digest(provided.strip().encode(), expected.encode()):
        logger.warning("cron.unauthorized", extra={"secret_configured": bool(expected)})
        raise AuthenticationAppError(code="invalid_cron_secret", message="Unauthorized")


router = APIRouter(prefix="/cron", tags=["Cron"], dependencies=[Depends(verify_cron_secret)])


@router.get("/recurring-orders")
def run_recurring_orders(recurring: RecurringOrders) -> dict:
    report = recurring.process_recurring_orders()
    return success(report.to_dict(), f"Processed {report.processed} recurring order(s)")
