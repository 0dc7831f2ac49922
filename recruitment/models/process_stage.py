"""
ProcessStage model.

Represents one step in a job posting's hiring pipeline
(e.g. Screening, Technical Test, Offer).
"""

import enum
import uuid
from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from recruitment.models.base_model import TimestampedModel


class StageDisposition(str, enum.Enum):
    """What entering a stage means for the owning selection process."""

    OPEN = "OPEN"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"

    @property
    def is_terminal(self) -> bool:
        return self is not StageDisposition.OPEN


class StageKind(str, enum.Enum):
    SCREENING = "SCREENING"
    PHONE_INTERVIEW = "PHONE_INTERVIEW"
    TECHNICAL_TEST = "TECHNICAL_TEST"
    INTERVIEW = "INTERVIEW"
    GROUP_DYNAMIC = "GROUP_DYNAMIC"
    ASSESSMENT = "ASSESSMENT"
    CASE_STUDY = "CASE_STUDY"
    OFFER = "OFFER"
    OTHER = "OTHER"
    TERMINAL_ACCEPT = "TERMINAL_ACCEPT"
    TERMINAL_REJECT = "TERMINAL_REJECT"

    @property
    def disposition(self) -> StageDisposition:
        return _DISPOSITIONS.get(self, StageDisposition.OPEN)


_DISPOSITIONS = {
    StageKind.TERMINAL_ACCEPT: StageDisposition.ACCEPTED,
    StageKind.TERMINAL_REJECT: StageDisposition.REJECTED,
}


class ProcessStage(TimestampedModel):
    """
    ProcessStage table - one step of a job posting's stage sequence.

    The ordinal determines the order; it is unique within a job posting.
    """

    __tablename__ = "process_stage"

    job_posting_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("job_posting.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    kind: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
    )

    # Position in the pipeline (1, 2, 3, ...)
    ordinal: Mapped[int] = mapped_column(Integer, nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        UniqueConstraint("job_posting_id", "ordinal", name="uq_process_stage_ordinal"),
    )

    @property
    def stage_kind(self) -> StageKind:
        return StageKind(self.kind)

    @property
    def disposition(self) -> StageDisposition:
        return self.stage_kind.disposition

    @property
    def is_terminal(self) -> bool:
        return self.disposition.is_terminal
