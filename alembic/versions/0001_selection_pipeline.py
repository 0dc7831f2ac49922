"""Selection pipeline: stages, processes, ledger, invitations, compatibility cache, outbox

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "job_posting",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("organization_id", sa.UUID(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_job_posting_organization_id", "job_posting", ["organization_id"], unique=False)

    op.create_table(
        "process_stage",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("job_posting_id", sa.UUID(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("kind", sa.String(length=30), nullable=False),
        sa.Column("ordinal", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["job_posting_id"], ["job_posting.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("job_posting_id", "ordinal", name="uq_process_stage_ordinal"),
    )
    op.create_index("ix_process_stage_job_posting_id", "process_stage", ["job_posting_id"], unique=False)

    op.create_table(
        "application",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("job_posting_id", sa.UUID(), nullable=False),
        sa.Column("candidate_id", sa.UUID(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["job_posting_id"], ["job_posting.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("job_posting_id", "candidate_id", name="uq_application_candidate"),
    )
    op.create_index("ix_application_job_posting_id", "application", ["job_posting_id"], unique=False)
    op.create_index("ix_application_candidate_id", "application", ["candidate_id"], unique=False)

    op.create_table(
        "saved_job_posting",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("job_posting_id", sa.UUID(), nullable=False),
        sa.Column("candidate_id", sa.UUID(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["job_posting_id"], ["job_posting.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("job_posting_id", "candidate_id", name="uq_saved_job_posting"),
    )
    op.create_index("ix_saved_job_posting_candidate_id", "saved_job_posting", ["candidate_id"], unique=False)

    op.create_table(
        "selection_process",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("application_id", sa.UUID(), nullable=False),
        sa.Column("job_posting_id", sa.UUID(), nullable=False),
        sa.Column("current_stage_id", sa.UUID(), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ended_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_transition_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["application_id"], ["application.id"]),
        sa.ForeignKeyConstraint(["job_posting_id"], ["job_posting.id"]),
        sa.ForeignKeyConstraint(["current_stage_id"], ["process_stage.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("application_id"),
    )
    op.create_index("ix_selection_process_job_posting_id", "selection_process", ["job_posting_id"], unique=False)

    op.create_table(
        "stage_transition",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("process_id", sa.UUID(), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.Column("previous_stage_id", sa.UUID(), nullable=True),
        sa.Column("new_stage_id", sa.UUID(), nullable=False),
        sa.Column("acting_user_id", sa.UUID(), nullable=False),
        sa.Column("feedback", sa.Text(), nullable=True),
        sa.Column("transitioned_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["process_id"], ["selection_process.id"]),
        sa.ForeignKeyConstraint(["previous_stage_id"], ["process_stage.id"]),
        sa.ForeignKeyConstraint(["new_stage_id"], ["process_stage.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("process_id", "sequence", name="uq_stage_transition_sequence"),
    )
    op.create_index(
        "ix_stage_transition_process_time",
        "stage_transition",
        ["process_id", "transitioned_at"],
        unique=False,
    )

    op.create_table(
        "invitation",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("job_posting_id", sa.UUID(), nullable=False),
        sa.Column("sender_id", sa.UUID(), nullable=False),
        sa.Column("recipient_id", sa.UUID(), nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["job_posting_id"], ["job_posting.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_invitation_recipient_id", "invitation", ["recipient_id"], unique=False)
    op.create_index(
        "ix_invitation_pair_status",
        "invitation",
        ["job_posting_id", "recipient_id", "status"],
        unique=False,
    )

    op.create_table(
        "compatibility_cache",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("candidate_id", sa.UUID(), nullable=False),
        sa.Column("job_posting_id", sa.UUID(), nullable=False),
        sa.Column("score", sa.Numeric(precision=5, scale=2), nullable=False),
        sa.Column("justification", sa.Text(), nullable=True),
        sa.Column("computed_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["job_posting_id"], ["job_posting.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("candidate_id", "job_posting_id", name="uq_compatibility_cache_pair"),
    )
    op.create_index("ix_compatibility_cache_job_posting", "compatibility_cache", ["job_posting_id"], unique=False)

    op.create_table(
        "outbox_event",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("event_type", sa.String(length=50), nullable=False),
        sa.Column("aggregate_id", sa.UUID(), nullable=False),
        sa.Column("payload_json", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("attempts", sa.Integer(), nullable=False),
        sa.Column("max_attempts", sa.Integer(), nullable=False),
        sa.Column("available_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("locked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("locked_by", sa.String(length=200), nullable=True),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_error", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_outbox_event_aggregate_id", "outbox_event", ["aggregate_id"], unique=False)
    op.create_index("ix_outbox_event_status_available", "outbox_event", ["status", "available_at"], unique=False)
    op.create_index("ix_outbox_event_locked", "outbox_event", ["locked_at", "locked_by"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_outbox_event_locked", table_name="outbox_event")
    op.drop_index("ix_outbox_event_status_available", table_name="outbox_event")
    op.drop_index("ix_outbox_event_aggregate_id", table_name="outbox_event")
    op.drop_table("outbox_event")
    op.drop_index("ix_compatibility_cache_job_posting", table_name="compatibility_cache")
    op.drop_table("compatibility_cache")
    op.drop_index("ix_invitation_pair_status", table_name="invitation")
    op.drop_index("ix_invitation_recipient_id", table_name="invitation")
    op.drop_table("invitation")
    op.drop_index("ix_stage_transition_process_time", table_name="stage_transition")
    op.drop_table("stage_transition")
    op.drop_index("ix_selection_process_job_posting_id", table_name="selection_process")
    op.drop_table("selection_process")
    op.drop_index("ix_saved_job_posting_candidate_id", table_name="saved_job_posting")
    op.drop_table("saved_job_posting")
    op.drop_index("ix_application_candidate_id", table_name="application")
    op.drop_index("ix_application_job_posting_id", table_name="application")
    op.drop_table("application")
    op.drop_index("ix_process_stage_job_posting_id", table_name="process_stage")
    op.drop_table("process_stage")
    op.drop_index("ix_job_posting_organization_id", table_name="job_posting")
    op.drop_table("job_posting")
