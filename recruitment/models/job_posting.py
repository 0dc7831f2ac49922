"""
JobPosting model.

Only the slice of a vacancy the selection pipeline reads: the owning
organization and whether it is still open. The rest of the posting lives
with the job-posting CRUD collaborator.
"""

import uuid

from sqlalchemy import String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from recruitment.models.base_model import TimestampedModel


class JobPostingStatus:
    OPEN = "OPEN"
    CLOSED = "CLOSED"


class JobPosting(TimestampedModel):
    """JobPosting table - an organization's published vacancy."""

    __tablename__ = "job_posting"

    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        nullable=False,
        index=True,
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=JobPostingStatus.OPEN,
    )
