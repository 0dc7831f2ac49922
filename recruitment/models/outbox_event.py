"""
Outbox event model for after-commit background processing.

Producers insert a row inside their own transaction; the outbox worker only
sees it once that transaction commits. Rows carry their own retry and
locking state so several workers can drain the table safely.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, DateTime, Index, Integer, String, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from recruitment.models.base_model import TimestampedModel


class OutboxEventType:
    CANDIDATE_PROFILE_UPDATED = "candidate_profile_updated"
    JOB_POSTING_UPDATED = "job_posting_updated"


class OutboxStatus:
    PENDING = "pending"
    PROCESSING = "processing"
    PROCESSED = "processed"
    FAILED = "failed"


class OutboxEvent(TimestampedModel):
    """Durable queue entry for one domain event."""

    __tablename__ = "outbox_event"

    event_type: Mapped[str] = mapped_column(String(50), nullable=False)

    # Candidate id or job posting id, depending on event_type
    aggregate_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False, index=True)

    payload_json: Mapped[dict] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        default=dict,
    )

    status: Mapped[str] = mapped_column(String(20), nullable=False, default=OutboxStatus.PENDING)

    # Retry tracking
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    available_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # Worker locking
    locked_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    locked_by: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    processed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    last_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_outbox_event_status_available", "status", "available_at"),
        Index("ix_outbox_event_locked", "locked_at", "locked_by"),
    )
