"""
Invitation router - API endpoints for sending and answering invitations.
"""

from datetime import timedelta
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from recruitment.core.dependencies import get_acting_user_id, get_db, get_organization_id
from recruitment.schemas.invitation import (
    InvitationCreate,
    InvitationRead,
    InvitationRespond,
    InvitationResponse,
)
from recruitment.schemas.selection_process import SelectionProcessRead
from recruitment.services.invitation_service import InvitationService

router = APIRouter(prefix="/invitations", tags=["invitations"])


@router.post("", response_model=InvitationRead, status_code=status.HTTP_201_CREATED)
async def send_invitation(
    payload: InvitationCreate,
    acting_user_id: UUID = Depends(get_acting_user_id),
    organization_id: Optional[UUID] = Depends(get_organization_id),
    db: AsyncSession = Depends(get_db),
):
    """Invite a candidate; the acting user is recorded as the sender."""
    ttl = timedelta(hours=payload.ttl_hours) if payload.ttl_hours else None
    invitation = await InvitationService(db).send(
        payload.job_posting_id,
        sender_id=acting_user_id,
        recipient_id=payload.recipient_id,
        message=payload.message,
        ttl=ttl,
        organization_id=organization_id,
    )
    await db.commit()
    return InvitationService.to_read(invitation)


@router.get("/{invitation_id}", response_model=InvitationRead)
async def get_invitation(
    invitation_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Get an invitation; PENDING past expiry is reported as EXPIRED."""
    return await InvitationService(db).read(invitation_id)


@router.post("/{invitation_id}/respond", response_model=InvitationResponse)
async def respond_invitation(
    invitation_id: UUID,
    payload: InvitationRespond,
    acting_user_id: UUID = Depends(get_acting_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Accept or decline; only the recipient may respond."""
    outcome = await InvitationService(db).respond(
        invitation_id,
        payload.accept,
        acting_user_id=acting_user_id,
    )
    await db.commit()
    process = outcome.selection_process
    return InvitationResponse(
        invitation=InvitationService.to_read(outcome.invitation),
        selection_process=SelectionProcessRead.model_validate(process) if process else None,
    )
