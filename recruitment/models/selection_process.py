"""
SelectionProcess and StageTransition models.

A selection process tracks which stage an application currently occupies.
Every change of stage is recorded as an immutable StageTransition row (the
transition ledger). Relationships are kept as plain identifiers.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from recruitment.models.base_model import TimestampedModel


class SelectionProcess(TimestampedModel):
    """
    SelectionProcess table - one per application under active evaluation.

    `version` is the optimistic lock: a flush that finds a different
    version in the row raises StaleDataError instead of overwriting.
    """

    __tablename__ = "selection_process"

    application_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("application.id"),
        nullable=False,
        unique=True,
    )

    job_posting_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("job_posting.id"),
        nullable=False,
        index=True,
    )

    current_stage_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("process_stage.id"),
        nullable=False,
    )

    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # Null while the process is active
    ended_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    last_transition_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    @property
    def is_finalized(self) -> bool:
        return self.ended_at is not None


class StageTransition(TimestampedModel):
    """
    StageTransition table - append-only ledger of stage changes.

    `sequence` is the 1-based position of the entry within its process;
    the unique key rejects a second writer appending the same position.
    """

    __tablename__ = "stage_transition"

    process_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("selection_process.id"),
        nullable=False,
    )

    sequence: Mapped[int] = mapped_column(Integer, nullable=False)

    # Null only for an entry that seeds a process without a prior stage
    previous_stage_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("process_stage.id"),
        nullable=True,
    )

    new_stage_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("process_stage.id"),
        nullable=False,
    )

    acting_user_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)

    feedback: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    transitioned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("process_id", "sequence", name="uq_stage_transition_sequence"),
        Index("ix_stage_transition_process_time", "process_id", "transitioned_at"),
    )
