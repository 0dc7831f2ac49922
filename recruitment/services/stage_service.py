"""
Stage sequence service.

StageSequence is the in-memory view of a job posting's ordered stages; the
selection process and invitation services resolve initial, next and
terminal stages through it. StageService maintains the stored sequence.
"""

import logging
import uuid
from typing import Iterable, List, Optional, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from recruitment.core.permissions import require_organization_owns
from recruitment.errors import BusinessRuleViolation, NotFoundError
from recruitment.models.job_posting import JobPosting
from recruitment.models.process_stage import ProcessStage, StageDisposition, StageKind
from recruitment.repositories.job_posting_repository import JobPostingRepository
from recruitment.repositories.stage_repository import StageRepository

logger = logging.getLogger(__name__)


def validate_ordinals(stages: Iterable[ProcessStage]) -> None:
    """Reject ordinals below 1 and ordinals shared by two stages."""
    seen = set()
    for stage in stages:
        if stage.ordinal is None or stage.ordinal < 1:
            raise BusinessRuleViolation(
                "INVALID_STAGE_ORDINAL",
                "stage ordinal must be a positive integer",
                {"stage": stage.name, "ordinal": stage.ordinal},
            )
        if stage.ordinal in seen:
            raise BusinessRuleViolation(
                "DUPLICATE_STAGE_ORDINAL",
                "duplicate stage ordinal",
                {"ordinal": stage.ordinal},
            )
        seen.add(stage.ordinal)


class StageSequence:
    """Stages of one job posting, ordered by ordinal."""

    def __init__(self, job_posting_id: UUID, stages: Sequence[ProcessStage]):
        self.job_posting_id = job_posting_id
        self.stages = sorted(stages, key=lambda s: s.ordinal)

    def __len__(self) -> int:
        return len(self.stages)

    def __iter__(self):
        return iter(self.stages)

    def is_empty(self) -> bool:
        return not self.stages

    def initial_stage(self) -> Optional[ProcessStage]:
        return self.stages[0] if self.stages else None

    def get(self, stage_id: UUID) -> Optional[ProcessStage]:
        for stage in self.stages:
            if stage.id == stage_id:
                return stage
        return None

    def next_after(self, stage_id: UUID) -> Optional[ProcessStage]:
        """Stage with the next higher ordinal, or None on the last stage."""
        current = self.get(stage_id)
        if current is None:
            return None
        for stage in self.stages:
            if stage.ordinal > current.ordinal:
                return stage
        return None

    def first_terminal(self, disposition: StageDisposition) -> Optional[ProcessStage]:
        for stage in self.stages:
            if stage.disposition is disposition:
                return stage
        return None

    def has_terminal_stage(self, disposition: Optional[StageDisposition] = None) -> bool:
        if disposition is None:
            return any(stage.is_terminal for stage in self.stages)
        return self.first_terminal(disposition) is not None


class StageService:
    """Service for reading and maintaining job posting stage sequences."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = StageRepository(db)
        self.job_postings = JobPostingRepository(db)

    async def _get_job_posting(self, job_posting_id: UUID) -> JobPosting:
        job_posting = await self.job_postings.get_by_id(job_posting_id)
        if not job_posting:
            raise NotFoundError("JobPosting", job_posting_id)
        return job_posting

    async def stages_for(self, job_posting_id: UUID) -> StageSequence:
        """Ordered stage sequence of a job posting; NotFound for unknown postings."""
        await self._get_job_posting(job_posting_id)
        stages = await self.repo.list_for_job_posting(job_posting_id)
        return StageSequence(job_posting_id, stages)

    async def add_stage(
        self,
        job_posting_id: UUID,
        name: str,
        kind: StageKind,
        ordinal: Optional[int] = None,
        description: Optional[str] = None,
        organization_id: Optional[UUID] = None,
    ) -> ProcessStage:
        """Add a stage; without an ordinal it goes after the current last stage."""
        job_posting = await self._get_job_posting(job_posting_id)
        require_organization_owns(job_posting, organization_id)

        existing = await self.repo.list_for_job_posting(job_posting_id)
        if ordinal is None:
            ordinal = max((s.ordinal for s in existing), default=0) + 1

        stage = ProcessStage(
            id=uuid.uuid4(),
            job_posting_id=job_posting_id,
            name=name,
            description=description,
            kind=StageKind(kind).value,
            ordinal=ordinal,
            is_active=True,
        )
        validate_ordinals([*existing, stage])

        await self.repo.add(stage)
        logger.info(
            "Added stage %s (%s, ordinal %s) to job posting %s",
            stage.id,
            stage.kind,
            stage.ordinal,
            job_posting_id,
        )
        return stage

    async def reorder_stages(
        self,
        job_posting_id: UUID,
        ordered_stage_ids: List[UUID],
        organization_id: Optional[UUID] = None,
    ) -> StageSequence:
        """
        Renumber a posting's stages 1..n in the given order.

        The id list must name every stage of the posting exactly once.
        Ordinals are moved through negative placeholders first so the unique
        (job_posting_id, ordinal) key holds after every row update.
        """
        job_posting = await self._get_job_posting(job_posting_id)
        require_organization_owns(job_posting, organization_id)

        stages = await self.repo.list_for_job_posting(job_posting_id)
        by_id = {stage.id: stage for stage in stages}
        if len(ordered_stage_ids) != len(set(ordered_stage_ids)) or set(ordered_stage_ids) != set(by_id):
            raise BusinessRuleViolation(
                "STAGE_NOT_IN_SEQUENCE",
                "stage order must list every stage of the job posting exactly once",
                {"job_posting_id": str(job_posting_id)},
            )

        for position, stage_id in enumerate(ordered_stage_ids, start=1):
            by_id[stage_id].ordinal = -position
        await self.db.flush()

        for position, stage_id in enumerate(ordered_stage_ids, start=1):
            by_id[stage_id].ordinal = position
        validate_ordinals(by_id.values())
        await self.db.flush()

        logger.info("Reordered %d stages of job posting %s", len(stages), job_posting_id)
        return StageSequence(job_posting_id, list(by_id.values()))

    async def remove_stage(
        self,
        stage_id: UUID,
        organization_id: Optional[UUID] = None,
    ) -> None:
        """Delete a stage nobody sits on and no ledger entry mentions."""
        stage = await self.repo.get_by_id(stage_id)
        if not stage:
            raise NotFoundError("ProcessStage", stage_id)
        job_posting = await self._get_job_posting(stage.job_posting_id)
        require_organization_owns(job_posting, organization_id)

        if await self.repo.is_referenced(stage_id):
            raise BusinessRuleViolation(
                "STAGE_IN_USE",
                "stage is referenced by a selection process",
                {"stage_id": str(stage_id)},
            )

        await self.repo.delete(stage)
        logger.info("Removed stage %s from job posting %s", stage_id, stage.job_posting_id)
