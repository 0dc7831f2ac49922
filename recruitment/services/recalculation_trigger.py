"""
Recalculation trigger.

Reacts to committed profile and job posting changes by re-scoring every
affected (candidate, job posting) pair. Runs only from the outbox worker,
never inside the request that produced the change.
"""

import asyncio
import logging
from typing import Iterable, List, Optional, Tuple, Union
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from recruitment.core.config import settings
from recruitment.errors import RecoverableScoringFailure, ScoringError
from recruitment.repositories.application_repository import ApplicationRepository
from recruitment.repositories.invitation_repository import InvitationRepository
from recruitment.schemas.compatibility import CompatibilityRead, RecalculationSummary, ScoreResult, ScoringFailureRead
from recruitment.services.compatibility_cache_service import CompatibilityCacheService
from recruitment.services.scoring import CompatibilityScorer

logger = logging.getLogger(__name__)

Pair = Tuple[UUID, UUID]


def _unique(ids: Iterable[UUID]) -> List[UUID]:
    seen = set()
    ordered = []
    for value in ids:
        if value not in seen:
            seen.add(value)
            ordered.append(value)
    return ordered


class RecalculationTrigger:
    """Re-scores affected pairs and upserts the compatibility cache."""

    def __init__(
        self,
        db: AsyncSession,
        scorer: CompatibilityScorer,
        max_concurrency: Optional[int] = None,
    ):
        self.db = db
        self.scorer = scorer
        self.max_concurrency = max(1, max_concurrency or settings.RECALC_MAX_CONCURRENCY)
        self.applications = ApplicationRepository(db)
        self.invitations = InvitationRepository(db)
        self.cache = CompatibilityCacheService(db)

    async def relevant_job_postings(self, candidate_id: UUID) -> List[UUID]:
        """Postings the candidate applied to, saved, or was invited to."""
        applied = await self.applications.list_job_posting_ids_for_candidate(candidate_id)
        saved = await self.applications.list_saved_job_posting_ids(candidate_id)
        invited = await self.invitations.list_job_posting_ids_for_candidate(candidate_id)
        return _unique([*applied, *saved, *invited])

    async def relevant_candidates(self, job_posting_id: UUID) -> List[UUID]:
        applied = await self.applications.list_candidate_ids_for_job_posting(job_posting_id)
        saved = await self.applications.list_saving_candidate_ids(job_posting_id)
        invited = await self.invitations.list_recipient_ids_for_job_posting(job_posting_id)
        return _unique([*applied, *saved, *invited])

    async def handle_profile_updated(self, candidate_id: UUID) -> RecalculationSummary:
        job_posting_ids = await self.relevant_job_postings(candidate_id)
        logger.info(
            "Recalculating compatibility for candidate %s across %d job postings",
            candidate_id,
            len(job_posting_ids),
        )
        return await self.recalculate([(candidate_id, job_posting_id) for job_posting_id in job_posting_ids])

    async def handle_job_posting_updated(self, job_posting_id: UUID) -> RecalculationSummary:
        """Drop the posting's cached scores, then re-score every related candidate."""
        await self.cache.invalidate_job_posting(job_posting_id)
        candidate_ids = await self.relevant_candidates(job_posting_id)
        logger.info(
            "Recalculating compatibility for job posting %s across %d candidates",
            job_posting_id,
            len(candidate_ids),
        )
        return await self.recalculate([(candidate_id, job_posting_id) for candidate_id in candidate_ids])

    async def recalculate(self, pairs: List[Pair]) -> RecalculationSummary:
        """
        Score pairs concurrently, then upsert each success in turn.

        A pair whose scoring fails is logged and reported in the summary;
        the remaining pairs are still written.
        """
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def _score(pair: Pair) -> Union[ScoreResult, RecoverableScoringFailure]:
            candidate_id, job_posting_id = pair
            async with semaphore:
                try:
                    return await self.scorer.score(candidate_id, job_posting_id)
                except ScoringError as exc:
                    return RecoverableScoringFailure(candidate_id, job_posting_id, str(exc))
                except Exception as exc:
                    logger.error(
                        "Unexpected scorer error for candidate %s / job posting %s",
                        candidate_id,
                        job_posting_id,
                        exc_info=True,
                    )
                    return RecoverableScoringFailure(candidate_id, job_posting_id, repr(exc))

        outcomes = await asyncio.gather(*(_score(pair) for pair in pairs))

        summary = RecalculationSummary()
        # The session is not safe for concurrent use; writes stay sequential
        for (candidate_id, job_posting_id), outcome in zip(pairs, outcomes):
            if isinstance(outcome, RecoverableScoringFailure):
                logger.warning("%s", outcome)
                summary.failures.append(
                    ScoringFailureRead(
                        candidate_id=candidate_id,
                        job_posting_id=job_posting_id,
                        reason=outcome.reason,
                    )
                )
                continue
            entry = await self.cache.store(candidate_id, job_posting_id, outcome)
            summary.refreshed.append(CompatibilityRead.model_validate(entry))

        logger.info(
            "Recalculation finished: %d refreshed, %d failed",
            len(summary.refreshed),
            len(summary.failures),
        )
        return summary
