"""
StageTransition repository - append-only access to the transition ledger.

Entries are only ever inserted.
"""

from typing import List
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from recruitment.models.selection_process import StageTransition


class TransitionRepository:
    """Repository for StageTransition ledger entries."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def append(self, entry: StageTransition) -> StageTransition:
        """Stage a new ledger row; it is written with the owning process flush."""
        self.db.add(entry)
        return entry

    async def next_sequence(self, process_id: UUID) -> int:
        result = await self.db.execute(
            select(func.max(StageTransition.sequence)).where(
                StageTransition.process_id == process_id
            )
        )
        return int(result.scalar() or 0) + 1

    async def list_by_process_desc(self, process_id: UUID) -> List[StageTransition]:
        """Ledger entries for a process, newest first."""
        result = await self.db.execute(
            select(StageTransition)
            .where(StageTransition.process_id == process_id)
            .order_by(
                StageTransition.transitioned_at.desc(),
                StageTransition.sequence.desc(),
            )
        )
        return list(result.scalars().all())
