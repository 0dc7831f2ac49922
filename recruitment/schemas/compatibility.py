"""
Compatibility cache Pydantic schemas.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from recruitment.schemas.base import RecordRead


class ScoreResult(BaseModel):
    """What an external scorer returns for one (candidate, job posting) pair."""

    score: Decimal = Field(ge=0, le=100)
    justification: Optional[str] = None


class CompatibilityRead(RecordRead):
    candidate_id: UUID
    job_posting_id: UUID
    score: Decimal
    justification: Optional[str] = None
    computed_at: datetime


class ScoringFailureRead(BaseModel):
    job_posting_id: UUID
    candidate_id: UUID
    reason: str


class RecalculationSummary(BaseModel):
    """Result of one recalculation batch; failures never abort the batch."""

    refreshed: List[CompatibilityRead] = Field(default_factory=list)
    failures: List[ScoringFailureRead] = Field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.refreshed) + len(self.failures)
