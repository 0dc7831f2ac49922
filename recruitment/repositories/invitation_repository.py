"""
Invitation repository - database operations for invitations.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from recruitment.models.invitation import Invitation, InvitationStatus


class InvitationRepository:
    """Repository for Invitation database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def add(self, invitation: Invitation) -> Invitation:
        self.db.add(invitation)
        await self.db.flush()
        return invitation

    async def get_by_id(self, invitation_id: UUID) -> Optional[Invitation]:
        result = await self.db.execute(
            select(Invitation).where(Invitation.id == invitation_id)
        )
        return result.scalar_one_or_none()

    async def find_pending(
        self,
        job_posting_id: UUID,
        candidate_id: UUID,
        now: datetime,
    ) -> Optional[Invitation]:
        """A PENDING, not yet expired invitation for the pair, if any."""
        result = await self.db.execute(
            select(Invitation)
            .where(
                Invitation.job_posting_id == job_posting_id,
                Invitation.recipient_id == candidate_id,
                Invitation.status == InvitationStatus.PENDING,
                Invitation.expires_at > now,
            )
            .order_by(Invitation.sent_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_for_candidate(self, candidate_id: UUID) -> List[Invitation]:
        result = await self.db.execute(
            select(Invitation)
            .where(Invitation.recipient_id == candidate_id)
            .order_by(Invitation.sent_at.desc())
        )
        return list(result.scalars().all())

    async def list_for_job_posting(self, job_posting_id: UUID) -> List[Invitation]:
        result = await self.db.execute(
            select(Invitation)
            .where(Invitation.job_posting_id == job_posting_id)
            .order_by(Invitation.sent_at.desc())
        )
        return list(result.scalars().all())

    async def list_job_posting_ids_for_candidate(self, candidate_id: UUID) -> List[UUID]:
        result = await self.db.execute(
            select(Invitation.job_posting_id).where(Invitation.recipient_id == candidate_id)
        )
        return list(result.scalars().all())

    async def list_recipient_ids_for_job_posting(self, job_posting_id: UUID) -> List[UUID]:
        result = await self.db.execute(
            select(Invitation.recipient_id).where(Invitation.job_posting_id == job_posting_id)
        )
        return list(result.scalars().all())

    async def expire_overdue(self, now: datetime) -> int:
        """Persist EXPIRED for PENDING rows past expiry; bumps version so racing responders lose."""
        stmt = (
            update(Invitation)
            .where(
                Invitation.status == InvitationStatus.PENDING,
                Invitation.expires_at <= now,
            )
            .values(
                status=InvitationStatus.EXPIRED,
                version=Invitation.version + 1,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return int(result.rowcount or 0)
