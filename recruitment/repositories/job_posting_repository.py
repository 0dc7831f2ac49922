"""
JobPosting repository - read access to the posting slice the pipeline needs.
"""

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from recruitment.models.job_posting import JobPosting


class JobPostingRepository:
    """Repository for JobPosting lookups."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, job_posting_id: UUID) -> Optional[JobPosting]:
        result = await self.db.execute(
            select(JobPosting).where(JobPosting.id == job_posting_id)
        )
        return result.scalar_one_or_none()
