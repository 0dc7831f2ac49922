"""
Invitation model.

A recruiter's time-boxed invitation for a candidate to enter a job
posting's selection process directly.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from recruitment.models.base_model import TimestampedModel
from recruitment.utils.time import ensure_utc


class InvitationStatus:
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"
    EXPIRED = "EXPIRED"


class Invitation(TimestampedModel):
    """Invitation table - job posting x sender (recruiter) x recipient (candidate)."""

    __tablename__ = "invitation"

    job_posting_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("job_posting.id", ondelete="CASCADE"),
        nullable=False,
    )

    sender_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)

    recipient_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False, index=True)

    message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=InvitationStatus.PENDING,
    )

    sent_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    responded_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("ix_invitation_pair_status", "job_posting_id", "recipient_id", "status"),
    )

    def is_past_expiry(self, now: datetime) -> bool:
        return ensure_utc(self.expires_at) <= now

    def effective_status(self, now: datetime) -> str:
        """Stored status, except a PENDING invite past its expiry reads as EXPIRED."""
        if self.status == InvitationStatus.PENDING and self.is_past_expiry(now):
            return InvitationStatus.EXPIRED
        return self.status
