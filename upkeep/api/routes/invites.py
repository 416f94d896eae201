"""
api/routes/invites.py
---------------------
Tenant invite workflow endpoints.

POST /invites                       — send-invite (landlord)
POST /invites/{invite_id}/accept    — accept-invite (addressed tenant)
POST /invites/{invite_id}/reject    — reject-invite (addressed tenant)
GET  /invites/sent                  — invites the caller sent (paginated)
GET  /invites/received              — pending invites for the caller's email
GET  /invites/{invite_id}           — one invite (landlord or addressee)

Errors are WorkflowError subclasses rendered by the handler in main.py.
"""

from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from upkeep.db.session import get_db
from upkeep.dependencies import AuthenticatedCaller, get_current_caller
from upkeep.models.invite import InviteStatus
from upkeep.schemas.invite import (
    InviteActionResponse,
    InviteListResponse,
    InviteRead,
    SendInviteRequest,
)
from upkeep.services.invite_service import InviteService

router = APIRouter(prefix="/invites", tags=["Invites"])


@router.post(
    "",
    response_model=InviteActionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Invite a tenant to a property",
)
async def send_invite(
    body: SendInviteRequest,
    background_tasks: BackgroundTasks,
    db: Annotated[AsyncSession, Depends(get_db)],
    caller: Annotated[AuthenticatedCaller, Depends(get_current_caller)],
) -> InviteActionResponse:
    invite = await InviteService.send_invite(
        db,
        caller,
        property_id=body.property_id,
        tenant_email=body.tenant_email,
        unit_number=body.unit_number,
    )
    await db.commit()

    background_tasks.add_task(
        InviteService.record_sent_invite,
        invite.landlord_id,
        {
            "email": invite.tenant_email,
            "status": InviteStatus.pending.value,
            "propertyId": invite.property_id,
            "unit": invite.unit_number,
            "timestamp": invite.created_at.isoformat(),
        },
    )
    return InviteActionResponse(
        message="Invitation sent successfully.",
        invite_id=invite.id,
    )


@router.post(
    "/{invite_id}/accept",
    response_model=InviteActionResponse,
    response_model_exclude_none=True,
    summary="Accept a property invitation",
)
async def accept_invite(
    invite_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    caller: Annotated[AuthenticatedCaller, Depends(get_current_caller)],
) -> InviteActionResponse:
    await InviteService.accept_invite(db, caller, invite_id)
    return InviteActionResponse(message="Invitation accepted successfully.")


@router.post(
    "/{invite_id}/reject",
    response_model=InviteActionResponse,
    response_model_exclude_none=True,
    summary="Reject a property invitation",
)
async def reject_invite(
    invite_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    caller: Annotated[AuthenticatedCaller, Depends(get_current_caller)],
) -> InviteActionResponse:
    await InviteService.reject_invite(db, caller, invite_id)
    return InviteActionResponse(message="Invitation rejected.")


@router.get(
    "/sent",
    response_model=InviteListResponse,
    summary="List invites sent by the current landlord (paginated)",
)
async def list_sent_invites(
    db: Annotated[AsyncSession, Depends(get_db)],
    caller: Annotated[AuthenticatedCaller, Depends(get_current_caller)],
    skip: int = Query(default=0, ge=0, description="Pagination offset"),
    limit: int = Query(default=20, ge=1, le=100, description="Results per page"),
) -> InviteListResponse:
    total, invites = await InviteService.list_sent(db, caller, skip=skip, limit=limit)
    return InviteListResponse(
        total=total,
        items=[InviteRead.model_validate(i) for i in invites],
    )


@router.get(
    "/received",
    response_model=list[InviteRead],
    summary="List pending invites addressed to the current user",
)
async def list_received_invites(
    db: Annotated[AsyncSession, Depends(get_db)],
    caller: Annotated[AuthenticatedCaller, Depends(get_current_caller)],
) -> list[InviteRead]:
    invites = await InviteService.list_received(db, caller)
    return [InviteRead.model_validate(i) for i in invites]


@router.get(
    "/{invite_id}",
    response_model=InviteRead,
    summary="Get one invitation",
)
async def get_invite(
    invite_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    caller: Annotated[AuthenticatedCaller, Depends(get_current_caller)],
) -> InviteRead:
    invite = await InviteService.get_invite(db, caller, invite_id)
    return InviteRead.model_validate(invite)
