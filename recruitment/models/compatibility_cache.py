"""
CompatibilityCache model.

Denormalized (candidate, job posting) -> score rows written only from the
external scorer's output. At most one row per pair.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Numeric, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from recruitment.models.base_model import TimestampedModel


class CompatibilityCacheEntry(TimestampedModel):
    """Per-pair cache of the scorer's percentage and justification."""

    __tablename__ = "compatibility_cache"

    candidate_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)

    job_posting_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("job_posting.id", ondelete="CASCADE"),
        nullable=False,
    )

    score: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)

    justification: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    computed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("candidate_id", "job_posting_id", name="uq_compatibility_cache_pair"),
        Index("ix_compatibility_cache_job_posting", "job_posting_id"),
    )
