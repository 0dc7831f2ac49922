"""
SelectionProcess and ledger Pydantic schemas.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from recruitment.schemas.base import RecordRead


class TransitionRequest(BaseModel):
    """Request to move a process to a specific stage."""

    target_stage_id: UUID
    feedback: Optional[str] = Field(default=None, max_length=5000)


class AdvanceRequest(BaseModel):
    """Request to move a process to the next stage by ordinal."""

    feedback: Optional[str] = Field(default=None, max_length=5000)


class CloseRequest(BaseModel):
    """Request to finish a process in its accept or reject stage."""

    accepted: bool
    feedback: Optional[str] = Field(default=None, max_length=5000)


class SelectionProcessRead(RecordRead):
    """Schema for reading selection process data (API response)."""

    application_id: UUID
    job_posting_id: UUID
    current_stage_id: UUID
    started_at: datetime
    ended_at: Optional[datetime] = None
    last_transition_at: datetime
    version: int
    is_finalized: bool


class StageTransitionRead(BaseModel):
    """One immutable ledger entry."""

    id: UUID
    process_id: UUID
    sequence: int
    previous_stage_id: Optional[UUID] = None
    new_stage_id: UUID
    acting_user_id: UUID
    feedback: Optional[str] = None
    transitioned_at: datetime

    model_config = ConfigDict(from_attributes=True)
