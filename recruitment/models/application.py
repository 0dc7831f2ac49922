"""
Application and SavedJobPosting models.

An application is a candidate's submission against one job posting; once
under active evaluation it owns exactly one selection process. A saved job
posting is a candidate bookmark. Both only matter here as links between a
candidate and the job postings whose compatibility must be kept fresh.
"""

import uuid

from sqlalchemy import ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from recruitment.models.base_model import TimestampedModel


class ApplicationStatus:
    PENDING = "PENDING"
    IN_PROCESS = "IN_PROCESS"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


class Application(TimestampedModel):
    """Application table - candidate x job posting."""

    __tablename__ = "application"

    job_posting_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("job_posting.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    candidate_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        nullable=False,
        index=True,
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ApplicationStatus.PENDING,
    )

    __table_args__ = (
        UniqueConstraint("job_posting_id", "candidate_id", name="uq_application_candidate"),
    )


class SavedJobPosting(TimestampedModel):
    """SavedJobPosting table - a candidate's bookmark on a job posting."""

    __tablename__ = "saved_job_posting"

    job_posting_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("job_posting.id", ondelete="CASCADE"),
        nullable=False,
    )

    candidate_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        nullable=False,
        index=True,
    )

    __table_args__ = (
        UniqueConstraint("job_posting_id", "candidate_id", name="uq_saved_job_posting"),
    )
