"""Service helpers for the (candidate, job posting) compatibility cache."""

from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from recruitment.errors import NotFoundError
from recruitment.models.compatibility_cache import CompatibilityCacheEntry
from recruitment.repositories.compatibility_cache_repository import CompatibilityCacheRepository
from recruitment.schemas.compatibility import ScoreResult
from recruitment.services.scoring import CompatibilityScorer
from recruitment.utils.time import utc_now

logger = logging.getLogger(__name__)


class CompatibilityCacheService:
    """Cache lookup/store/invalidate helpers; scores only ever come from a scorer."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = CompatibilityCacheRepository(db)

    async def find(self, candidate_id: UUID, job_posting_id: UUID) -> Optional[CompatibilityCacheEntry]:
        return await self.repo.get_by_key(candidate_id, job_posting_id)

    async def lookup(self, candidate_id: UUID, job_posting_id: UUID) -> CompatibilityCacheEntry:
        entry = await self.repo.get_by_key(candidate_id, job_posting_id)
        if not entry:
            raise NotFoundError(
                "CompatibilityCache",
                message="no compatibility score cached for this candidate and job posting",
            )
        return entry

    async def store(
        self,
        candidate_id: UUID,
        job_posting_id: UUID,
        result: ScoreResult,
    ) -> CompatibilityCacheEntry:
        """Insert or replace the pair's row with a fresh scorer result."""
        return await self.repo.upsert(
            candidate_id=candidate_id,
            job_posting_id=job_posting_id,
            score=result.score,
            justification=result.justification,
            now=utc_now(),
        )

    async def get_or_compute(
        self,
        candidate_id: UUID,
        job_posting_id: UUID,
        scorer: CompatibilityScorer,
    ) -> CompatibilityCacheEntry:
        """
        Cached entry for the pair, scoring it synchronously on a miss.

        ScoringError from the scorer propagates; nothing is cached then.
        """
        entry = await self.repo.get_by_key(candidate_id, job_posting_id)
        if entry:
            return entry

        result = await scorer.score(candidate_id, job_posting_id)
        entry = await self.store(candidate_id, job_posting_id, result)
        logger.info(
            "Computed compatibility %s for candidate %s / job posting %s",
            entry.score,
            candidate_id,
            job_posting_id,
        )
        return entry

    async def invalidate_candidate(self, candidate_id: UUID) -> int:
        count = await self.repo.delete_by_candidate(candidate_id)
        logger.info("Invalidated %d compatibility rows for candidate %s", count, candidate_id)
        return count

    async def invalidate_job_posting(self, job_posting_id: UUID) -> int:
        count = await self.repo.delete_by_job_posting(job_posting_id)
        logger.info("Invalidated %d compatibility rows for job posting %s", count, job_posting_id)
        return count
