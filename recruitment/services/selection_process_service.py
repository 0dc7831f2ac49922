"""
Selection process service.

Owns the stage-transition protocol: every successful transition appends one
ledger entry and updates the process in the same flush, guarded by the
process's optimistic version column.
"""

import logging
import uuid
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from recruitment.core.permissions import require_organization_owns
from recruitment.errors import BusinessRuleViolation, ConcurrentModificationError, NotFoundError
from recruitment.models.application import Application, ApplicationStatus
from recruitment.models.process_stage import ProcessStage, StageDisposition
from recruitment.models.selection_process import SelectionProcess, StageTransition
from recruitment.repositories.application_repository import ApplicationRepository
from recruitment.repositories.job_posting_repository import JobPostingRepository
from recruitment.repositories.selection_process_repository import SelectionProcessRepository
from recruitment.repositories.stage_repository import StageRepository
from recruitment.repositories.transition_repository import TransitionRepository
from recruitment.services.stage_service import StageService
from recruitment.utils.time import ensure_utc, utc_now

logger = logging.getLogger(__name__)


_APPLICATION_STATUS_BY_DISPOSITION = {
    StageDisposition.ACCEPTED: ApplicationStatus.ACCEPTED,
    StageDisposition.REJECTED: ApplicationStatus.REJECTED,
}


class SelectionProcessService:
    """Service driving selection processes through their stage sequence."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = SelectionProcessRepository(db)
        self.ledger = TransitionRepository(db)
        self.stages = StageRepository(db)
        self.applications = ApplicationRepository(db)
        self.job_postings = JobPostingRepository(db)
        self.stage_service = StageService(db)

    async def get(self, process_id: UUID) -> SelectionProcess:
        process = await self.repo.get_by_id(process_id)
        if not process:
            raise NotFoundError("SelectionProcess", process_id)
        return process

    async def get_by_application(self, application_id: UUID) -> SelectionProcess:
        process = await self.repo.get_by_application(application_id)
        if not process:
            raise NotFoundError("SelectionProcess", application_id, "no selection process for this application")
        return process

    async def find_current_stage(self, process_id: UUID) -> ProcessStage:
        process = await self.get(process_id)
        stage = await self.stages.get_by_id(process.current_stage_id)
        if not stage:
            raise NotFoundError("ProcessStage", process.current_stage_id)
        return stage

    async def list_for_job_posting(self, job_posting_id: UUID) -> List[SelectionProcess]:
        if not await self.job_postings.get_by_id(job_posting_id):
            raise NotFoundError("JobPosting", job_posting_id)
        return await self.repo.list_by_job_posting(job_posting_id)

    async def history(self, process_id: UUID) -> List[StageTransition]:
        """Ledger entries of a process, newest first."""
        await self.get(process_id)
        return await self.ledger.list_by_process_desc(process_id)

    async def _check_ownership(self, job_posting_id: UUID, organization_id: Optional[UUID]) -> None:
        if organization_id is None:
            return
        job_posting = await self.job_postings.get_by_id(job_posting_id)
        if not job_posting:
            raise NotFoundError("JobPosting", job_posting_id)
        require_organization_owns(job_posting, organization_id)

    async def open_process(self, application: Application) -> SelectionProcess:
        """
        Create the process for an application at the posting's lowest-ordinal stage.

        Shared by the direct start path and accepted invitations; the
        caller's transaction decides whether it sticks.
        """
        if await self.repo.get_by_application(application.id):
            raise BusinessRuleViolation(
                "PROCESS_ALREADY_EXISTS",
                "application already has a selection process",
                {"application_id": str(application.id)},
            )

        sequence = await self.stage_service.stages_for(application.job_posting_id)
        initial = sequence.initial_stage()
        if initial is None:
            raise BusinessRuleViolation(
                "NO_STAGES_CONFIGURED",
                "job posting has no stages configured",
                {"job_posting_id": str(application.job_posting_id)},
            )

        now = utc_now()
        process = SelectionProcess(
            id=uuid.uuid4(),
            application_id=application.id,
            job_posting_id=application.job_posting_id,
            current_stage_id=initial.id,
            started_at=now,
            last_transition_at=now,
            ended_at=now if initial.is_terminal else None,
        )
        application.status = _APPLICATION_STATUS_BY_DISPOSITION.get(
            initial.disposition, ApplicationStatus.IN_PROCESS
        )

        try:
            await self.repo.add(process)
        except IntegrityError as exc:
            await self.db.rollback()
            raise ConcurrentModificationError("SelectionProcess", application.id) from exc

        logger.info(
            "Opened selection process %s for application %s at stage %s",
            process.id,
            application.id,
            initial.id,
        )
        return process

    async def start(
        self,
        application_id: UUID,
        acting_user_id: Optional[UUID] = None,
        organization_id: Optional[UUID] = None,
    ) -> SelectionProcess:
        """Direct-application path: open the process and mark the application IN_PROCESS."""
        application = await self.applications.get_by_id(application_id)
        if not application:
            raise NotFoundError("Application", application_id)
        await self._check_ownership(application.job_posting_id, organization_id)
        process = await self.open_process(application)
        logger.info("Application %s moved into selection by %s", application_id, acting_user_id)
        return process

    async def transition(
        self,
        process_id: UUID,
        target_stage_id: UUID,
        acting_user_id: UUID,
        feedback: Optional[str] = None,
        organization_id: Optional[UUID] = None,
    ) -> SelectionProcess:
        """
        Move a process to another stage of its job posting.

        Forward, backward and sideways moves are all allowed. Entering a
        terminal stage ends the process; an ended process accepts no more
        transitions.

        Raises:
            NotFoundError: unknown process or target stage
            OwnershipViolation: organization_id given and not the posting's owner
            BusinessRuleViolation: STAGE_NOT_IN_SEQUENCE, PROCESS_ALREADY_FINALIZED
                or NOOP_TRANSITION
            ConcurrentModificationError: another transition won the race
        """
        process = await self.get(process_id)
        await self._check_ownership(process.job_posting_id, organization_id)
        self._ensure_open(process)

        target = await self.stages.get_by_id(target_stage_id)
        if not target:
            raise NotFoundError("ProcessStage", target_stage_id)
        if target.job_posting_id != process.job_posting_id:
            raise BusinessRuleViolation(
                "STAGE_NOT_IN_SEQUENCE",
                "stage does not belong to this job posting",
                {"stage_id": str(target_stage_id), "job_posting_id": str(process.job_posting_id)},
            )
        return await self._apply_transition(process, target, acting_user_id, feedback)

    async def advance(
        self,
        process_id: UUID,
        acting_user_id: UUID,
        feedback: Optional[str] = None,
        organization_id: Optional[UUID] = None,
    ) -> SelectionProcess:
        """Transition to the stage with the next higher ordinal."""
        process = await self.get(process_id)
        await self._check_ownership(process.job_posting_id, organization_id)
        self._ensure_open(process)

        sequence = await self.stage_service.stages_for(process.job_posting_id)
        target = sequence.next_after(process.current_stage_id)
        if target is None:
            raise BusinessRuleViolation(
                "NO_NEXT_STAGE",
                "process is already at the last stage",
                {"process_id": str(process_id)},
            )
        return await self._apply_transition(process, target, acting_user_id, feedback)

    async def close(
        self,
        process_id: UUID,
        accepted: bool,
        acting_user_id: UUID,
        feedback: Optional[str] = None,
        organization_id: Optional[UUID] = None,
    ) -> SelectionProcess:
        """Transition to the first accept (or reject) stage of the sequence."""
        process = await self.get(process_id)
        await self._check_ownership(process.job_posting_id, organization_id)
        self._ensure_open(process)

        disposition = StageDisposition.ACCEPTED if accepted else StageDisposition.REJECTED
        sequence = await self.stage_service.stages_for(process.job_posting_id)
        target = sequence.first_terminal(disposition)
        if target is None:
            raise BusinessRuleViolation(
                "NO_TERMINAL_STAGE",
                f"job posting has no {disposition.value.lower()} stage",
                {"job_posting_id": str(process.job_posting_id), "disposition": disposition.value},
            )
        return await self._apply_transition(process, target, acting_user_id, feedback)

    def _ensure_open(self, process: SelectionProcess) -> None:
        if process.is_finalized:
            raise BusinessRuleViolation(
                "PROCESS_ALREADY_FINALIZED",
                "process already finalized",
                {"process_id": str(process.id)},
            )

    async def _apply_transition(
        self,
        process: SelectionProcess,
        target: ProcessStage,
        acting_user_id: UUID,
        feedback: Optional[str],
    ) -> SelectionProcess:
        self._ensure_open(process)
        if target.id == process.current_stage_id:
            raise BusinessRuleViolation(
                "NOOP_TRANSITION",
                "no-op transition",
                {"stage_id": str(target.id)},
            )

        previous_stage_id = process.current_stage_id
        # last_transition_at never moves backwards, even if the clock does
        now = max(utc_now(), ensure_utc(process.last_transition_at))

        sequence = await self.ledger.next_sequence(process.id)
        application = await self.applications.get_by_id(process.application_id)

        await self.ledger.append(
            StageTransition(
                id=uuid.uuid4(),
                process_id=process.id,
                sequence=sequence,
                previous_stage_id=previous_stage_id,
                new_stage_id=target.id,
                acting_user_id=acting_user_id,
                feedback=feedback,
                transitioned_at=now,
            )
        )

        process.current_stage_id = target.id
        process.last_transition_at = now
        if target.is_terminal:
            process.ended_at = now

        if application:
            self._sync_application_status(application, target)

        try:
            await self.db.flush()
        except (StaleDataError, IntegrityError) as exc:
            await self.db.rollback()
            logger.info("Transition of process %s lost a concurrent update", process.id)
            raise ConcurrentModificationError("SelectionProcess", process.id) from exc

        logger.info(
            "Process %s moved %s -> %s (%s) by %s",
            process.id,
            previous_stage_id,
            target.id,
            target.disposition.value,
            acting_user_id,
        )
        return process

    def _sync_application_status(self, application: Application, target: ProcessStage) -> None:
        status = _APPLICATION_STATUS_BY_DISPOSITION.get(target.disposition)
        if status:
            application.status = status
        elif application.status == ApplicationStatus.PENDING:
            application.status = ApplicationStatus.IN_PROCESS
