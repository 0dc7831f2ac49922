"""
ProcessStage repository - database operations for stage sequences.
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import exists, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from recruitment.models.process_stage import ProcessStage
from recruitment.models.selection_process import SelectionProcess, StageTransition


class StageRepository:
    """Repository for ProcessStage database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_for_job_posting(self, job_posting_id: UUID) -> List[ProcessStage]:
        """All stages of a job posting ordered by ordinal."""
        result = await self.db.execute(
            select(ProcessStage)
            .where(ProcessStage.job_posting_id == job_posting_id)
            .order_by(ProcessStage.ordinal.asc())
        )
        return list(result.scalars().all())

    async def get_by_id(self, stage_id: UUID) -> Optional[ProcessStage]:
        result = await self.db.execute(
            select(ProcessStage).where(ProcessStage.id == stage_id)
        )
        return result.scalar_one_or_none()

    async def max_ordinal(self, job_posting_id: UUID) -> int:
        result = await self.db.execute(
            select(func.max(ProcessStage.ordinal)).where(
                ProcessStage.job_posting_id == job_posting_id
            )
        )
        return int(result.scalar() or 0)

    async def add(self, stage: ProcessStage) -> ProcessStage:
        self.db.add(stage)
        await self.db.flush()
        return stage

    async def delete(self, stage: ProcessStage) -> None:
        await self.db.delete(stage)
        await self.db.flush()

    async def is_referenced(self, stage_id: UUID) -> bool:
        """True when a process sits on the stage or a ledger entry names it."""
        in_process = exists().where(SelectionProcess.current_stage_id == stage_id)
        in_ledger = exists().where(
            or_(
                StageTransition.previous_stage_id == stage_id,
                StageTransition.new_stage_id == stage_id,
            )
        )
        result = await self.db.execute(select(or_(in_process, in_ledger)))
        return bool(result.scalar())
