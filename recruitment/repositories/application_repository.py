"""
Application repository - applications and saved job postings.
"""

from typing import List, Optional
from uuid import UUID
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from recruitment.models.application import Application, ApplicationStatus, SavedJobPosting


class ApplicationRepository:
    """Repository for Application / SavedJobPosting database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, application_id: UUID) -> Optional[Application]:
        result = await self.db.execute(
            select(Application).where(Application.id == application_id)
        )
        return result.scalar_one_or_none()

    async def get_by_candidate_and_job_posting(
        self,
        candidate_id: UUID,
        job_posting_id: UUID,
    ) -> Optional[Application]:
        """Get the application for a candidate-posting pair if it exists."""
        result = await self.db.execute(
            select(Application).where(
                Application.candidate_id == candidate_id,
                Application.job_posting_id == job_posting_id,
            )
        )
        return result.scalar_one_or_none()

    async def create(
        self,
        job_posting_id: UUID,
        candidate_id: UUID,
        status: str = ApplicationStatus.PENDING,
    ) -> Application:
        application = Application(
            id=uuid.uuid4(),
            job_posting_id=job_posting_id,
            candidate_id=candidate_id,
            status=status,
        )
        self.db.add(application)
        await self.db.flush()
        return application

    async def list_job_posting_ids_for_candidate(self, candidate_id: UUID) -> List[UUID]:
        result = await self.db.execute(
            select(Application.job_posting_id).where(Application.candidate_id == candidate_id)
        )
        return list(result.scalars().all())

    async def list_candidate_ids_for_job_posting(self, job_posting_id: UUID) -> List[UUID]:
        result = await self.db.execute(
            select(Application.candidate_id).where(Application.job_posting_id == job_posting_id)
        )
        return list(result.scalars().all())

    async def list_saved_job_posting_ids(self, candidate_id: UUID) -> List[UUID]:
        result = await self.db.execute(
            select(SavedJobPosting.job_posting_id).where(SavedJobPosting.candidate_id == candidate_id)
        )
        return list(result.scalars().all())

    async def list_saving_candidate_ids(self, job_posting_id: UUID) -> List[UUID]:
        result = await self.db.execute(
            select(SavedJobPosting.candidate_id).where(SavedJobPosting.job_posting_id == job_posting_id)
        )
        return list(result.scalars().all())
