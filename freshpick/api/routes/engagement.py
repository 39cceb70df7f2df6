"""Anonymous-friendly write endpoints: newsletter, supplier sign-up and the contact form."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from freshpick.api.dependencies import Messages, Newsletter, Suppliers
from freshpick.api.responses import success
from freshpick.core.auth import OptionalUser
from freshpick.core.rate_limit import enforce_general_rate_limit
from freshpick.schemas.catalog import SupplierRegistration
from freshpick.schemas.messages import ContactRequest
from freshpick.schemas.newsletter import SubscribeRequest
from freshpick.utils.documents import to_public

router = APIRouter(tags=["Engagement"], dependencies=[Depends(enforce_general_rate_limit)])


@router.post("/newsletter")
def subscribe(payload: SubscribeRequest, newsletter: Newsletter) -> JSONResponse:
    subscriber, reactivated = newsletter.subscribe(payload)
    body = success(
        {"email": subscriber["email"], "source": subscriber["source"]},
        "Welcome back! Your subscription has been reactivated"
        if reactivated
        else "Successfully subscribed to newsletter",
    )
    return JSONResponse(body, status_code=status.HTTP_200_OK if reactivated else status.HTTP_201_CREATED)


@router.post("/suppliers/register", status_code=status.HTTP_201_CREATED)
def register_supplier(payload: SupplierRegistration, suppliers: Suppliers, user: OptionalUser) -> dict:
    supplier = suppliers.register(payload, user)
    return success(to_public(supplier), "Supplier registration received")


@router.post("/contact", status_code=status.HTTP_201_CREATED)
def contact(payload: ContactRequest, messages: Messages, user: OptionalUser) -> dict:
    message = messages.submit_contact(payload, user)
    return success({"id": message["_id"], "status": message["status"]}, "Message received. We'll get back to you soon")
