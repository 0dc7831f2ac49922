"""
ProcessStage Pydantic schemas.
"""

from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from recruitment.models.process_stage import StageDisposition, StageKind
from recruitment.schemas.base import RecordRead


class StageCreate(BaseModel):
    """Schema for adding a stage to a job posting."""

    name: str = Field(min_length=1, max_length=100)
    kind: StageKind
    description: Optional[str] = None
    ordinal: Optional[int] = None


class StageReorder(BaseModel):
    """New order of a job posting's stages, first to last."""

    stage_ids: List[UUID]


class StageRead(RecordRead):
    """Schema for reading stage data (API response)."""

    job_posting_id: UUID
    name: str
    description: Optional[str] = None
    kind: StageKind
    ordinal: int
    is_active: bool
    disposition: StageDisposition
