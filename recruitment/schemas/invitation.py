"""
Invitation Pydantic schemas.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from recruitment.schemas.base import RecordRead
from recruitment.schemas.selection_process import SelectionProcessRead


class InvitationCreate(BaseModel):
    """Request to invite a candidate into a job posting's selection process."""

    job_posting_id: UUID
    recipient_id: UUID
    message: Optional[str] = Field(default=None, max_length=5000)
    ttl_hours: Optional[int] = Field(default=None, ge=1)


class InvitationRespond(BaseModel):
    accept: bool


class InvitationRead(RecordRead):
    """
    Invitation as presented to callers.

    `status` is the effective status: a stored PENDING past its expiry is
    reported as EXPIRED.
    """

    job_posting_id: UUID
    sender_id: UUID
    recipient_id: UUID
    message: Optional[str] = None
    status: str
    sent_at: datetime
    expires_at: datetime
    responded_at: Optional[datetime] = None


class InvitationResponse(BaseModel):
    """Outcome of responding to an invitation."""

    invitation: InvitationRead
    selection_process: Optional[SelectionProcessRead] = None
