"""Contact form API routes."""

import logging
from typing import Annotated

from fastapi import APIRouter, Query, Request

from src.api.deps import AdminUser, ContactRateLimit, ContactServiceDep, client_ip
from src.schemas.contact import (
    ContactMessageListResponse,
    ContactMessageResponse,
    ContactStatusUpdate,
    ContactSubmit,
    ContactSubmitResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/contact", tags=["contact"])


@router.post(
    "",
    response_model=ContactSubmitResponse,
    response_model_exclude_none=True,
    summary="Submit contact form",
    responses={429: {"description": "Too many submissions from this client"}},
)
async def submit_contact(
    data: ContactSubmit,
    request: Request,
    service: ContactServiceDep,
    _rate_limit: ContactRateLimit,
) -> ContactSubmitResponse:
    """Store a contact message and notify the shop inbox.

    A filled-in honeypot gets the same success response but nothing is stored.
    """
    if data.website:
        logger.info("Contact honeypot triggered from %s", client_ip(request))
        return ContactSubmitResponse(ok=True)

    stored = await service.submit(
        name=data.name,
        email=str(data.email),
        message=data.message,
        ip=client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    return ContactSubmitResponse(ok=True, id=str(stored["id"]))


@router.get("", response_model=ContactMessageListResponse, summary="List contact messages")
async def list_contact_messages(
    service: ContactServiceDep,
    admin: AdminUser,
    status: Annotated[str | None, Query(description="Filter by status")] = None,
    page: Annotated[int, Query(description="1-based page number")] = 1,
    page_size: Annotated[int, Query(description="Results per page, max 100")] = 20,
) -> ContactMessageListResponse:
    """List contact messages, newest first. Admin only."""
    result = await service.list_messages(status=status, page=page, page_size=page_size)
    return ContactMessageListResponse(
        items=[ContactMessageResponse(**m) for m in result["items"]],
        total=result["total"],
        page=result["page"],
        page_size=result["page_size"],
        pages=result["pages"],
    )


@router.patch("/{message_id}/status", response_model=ContactMessageResponse, summary="Change message status")
async def update_contact_status(
    message_id: str,
    data: ContactStatusUpdate,
    service: ContactServiceDep,
    admin: AdminUser,
) -> ContactMessageResponse:
    """Mark a message new, read or resolved. Admin only."""
    message = await service.update_status(message_id, data.status)
    return ContactMessageResponse(**message)
