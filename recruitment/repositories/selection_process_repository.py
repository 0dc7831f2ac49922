"""
SelectionProcess repository - persistence for the process aggregate.
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from recruitment.models.selection_process import SelectionProcess


class SelectionProcessRepository:
    """Repository for SelectionProcess database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def add(self, process: SelectionProcess) -> SelectionProcess:
        self.db.add(process)
        await self.db.flush()
        return process

    async def get_by_id(self, process_id: UUID) -> Optional[SelectionProcess]:
        result = await self.db.execute(
            select(SelectionProcess).where(SelectionProcess.id == process_id)
        )
        return result.scalar_one_or_none()

    async def get_by_application(self, application_id: UUID) -> Optional[SelectionProcess]:
        result = await self.db.execute(
            select(SelectionProcess).where(SelectionProcess.application_id == application_id)
        )
        return result.scalar_one_or_none()

    async def list_by_job_posting(self, job_posting_id: UUID) -> List[SelectionProcess]:
        result = await self.db.execute(
            select(SelectionProcess)
            .where(SelectionProcess.job_posting_id == job_posting_id)
            .order_by(SelectionProcess.started_at.asc())
        )
        return list(result.scalars().all())
