"""Repository for compatibility cache rows keyed by (candidate, job posting)."""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID
import uuid

from sqlalchemy import and_, delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from recruitment.models.compatibility_cache import CompatibilityCacheEntry


_UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class CompatibilityCacheRepository:
    """Upsert/lookup/delete helpers for CompatibilityCacheEntry."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _insert(self):
        dialect = self.db.get_bind().dialect.name
        try:
            return _UPSERT_INSERTS[dialect]
        except KeyError:
            raise NotImplementedError(f"compatibility cache upsert is not supported on {dialect}") from None

    async def get_by_key(self, candidate_id: UUID, job_posting_id: UUID) -> Optional[CompatibilityCacheEntry]:
        result = await self.db.execute(
            select(CompatibilityCacheEntry)
            .where(
                and_(
                    CompatibilityCacheEntry.candidate_id == candidate_id,
                    CompatibilityCacheEntry.job_posting_id == job_posting_id,
                )
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def upsert(
        self,
        *,
        candidate_id: UUID,
        job_posting_id: UUID,
        score: Decimal,
        justification: Optional[str],
        now: datetime,
    ) -> CompatibilityCacheEntry:
        """Insert the pair or replace its score; `computed_at` keeps the first computation time."""
        insert = self._insert()
        stmt = insert(CompatibilityCacheEntry).values(
            id=uuid.uuid4(),
            candidate_id=candidate_id,
            job_posting_id=job_posting_id,
            score=score,
            justification=justification,
            computed_at=now,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[CompatibilityCacheEntry.candidate_id, CompatibilityCacheEntry.job_posting_id],
            set_={
                "score": stmt.excluded.score,
                "justification": stmt.excluded.justification,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        await self.db.execute(stmt)
        await self.db.flush()
        row = await self.get_by_key(candidate_id, job_posting_id)
        return row

    async def delete_by_candidate(self, candidate_id: UUID) -> int:
        stmt = delete(CompatibilityCacheEntry).where(CompatibilityCacheEntry.candidate_id == candidate_id)
        result = await self.db.execute(stmt)
        return int(result.rowcount or 0)

    async def delete_by_job_posting(self, job_posting_id: UUID) -> int:
        stmt = delete(CompatibilityCacheEntry).where(CompatibilityCacheEntry.job_posting_id == job_posting_id)
        result = await self.db.execute(stmt)
        return int(result.rowcount or 0)
