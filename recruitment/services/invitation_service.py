"""
Invitation service.

Invitations are time-boxed: a stored PENDING invitation past its expiry is
treated as EXPIRED on every read and cannot be answered, whether or not the
sweep has persisted the EXPIRED status yet.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import timedelta
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from recruitment.core.config import settings
from recruitment.core.permissions import require_organization_owns, require_recipient
from recruitment.errors import BusinessRuleViolation, ConcurrentModificationError, NotFoundError
from recruitment.models.application import ApplicationStatus
from recruitment.models.invitation import Invitation, InvitationStatus
from recruitment.models.selection_process import SelectionProcess
from recruitment.repositories.application_repository import ApplicationRepository
from recruitment.repositories.invitation_repository import InvitationRepository
from recruitment.repositories.job_posting_repository import JobPostingRepository
from recruitment.schemas.invitation import InvitationRead
from recruitment.services.selection_process_service import SelectionProcessService
from recruitment.utils.time import ensure_utc, utc_now

logger = logging.getLogger(__name__)


@dataclass
class InvitationOutcome:
    """Result of respond(): the answered invitation and, on accept, its new process."""

    invitation: Invitation
    selection_process: Optional[SelectionProcess] = None


class InvitationService:
    """Service for sending, answering and expiring invitations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = InvitationRepository(db)
        self.applications = ApplicationRepository(db)
        self.job_postings = JobPostingRepository(db)
        self.processes = SelectionProcessService(db)

    @staticmethod
    def to_read(invitation: Invitation) -> InvitationRead:
        """Read shape with the effective (expiry-aware) status."""
        read = InvitationRead.model_validate(invitation)
        return read.model_copy(update={"status": invitation.effective_status(utc_now())})

    async def send(
        self,
        job_posting_id: UUID,
        sender_id: UUID,
        recipient_id: UUID,
        message: Optional[str] = None,
        ttl: Optional[timedelta] = None,
        organization_id: Optional[UUID] = None,
    ) -> Invitation:
        """
        Invite a candidate into a job posting's selection process.

        Raises:
            NotFoundError: unknown job posting
            BusinessRuleViolation: DUPLICATE_PENDING_INVITE or ALREADY_APPLIED
        """
        job_posting = await self.job_postings.get_by_id(job_posting_id)
        if not job_posting:
            raise NotFoundError("JobPosting", job_posting_id)
        require_organization_owns(job_posting, organization_id)

        now = utc_now()
        if await self.repo.find_pending(job_posting_id, recipient_id, now):
            raise BusinessRuleViolation(
                "DUPLICATE_PENDING_INVITE",
                "duplicate pending invite",
                {"job_posting_id": str(job_posting_id), "recipient_id": str(recipient_id)},
            )
        if await self.applications.get_by_candidate_and_job_posting(recipient_id, job_posting_id):
            raise BusinessRuleViolation(
                "ALREADY_APPLIED",
                "candidate already applied to this job posting",
                {"job_posting_id": str(job_posting_id), "recipient_id": str(recipient_id)},
            )

        if ttl is None:
            ttl = timedelta(hours=settings.INVITATION_TTL_HOURS)

        invitation = Invitation(
            id=uuid.uuid4(),
            job_posting_id=job_posting_id,
            sender_id=sender_id,
            recipient_id=recipient_id,
            message=message,
            status=InvitationStatus.PENDING,
            sent_at=now,
            expires_at=now + ttl,
        )
        await self.repo.add(invitation)

        logger.info(
            "Invitation %s sent for job posting %s to candidate %s (expires %s)",
            invitation.id,
            job_posting_id,
            recipient_id,
            invitation.expires_at.isoformat(),
        )
        return invitation

    async def respond(
        self,
        invitation_id: UUID,
        accept: bool,
        acting_user_id: Optional[UUID] = None,
    ) -> InvitationOutcome:
        """
        Accept or decline a pending invitation.

        Accepting creates the application and its selection process at the
        posting's first stage in the same transaction; if either cannot be
        created, nothing is written.

        Raises:
            NotFoundError: unknown invitation
            OwnershipViolation: acting_user_id given and not the recipient
            BusinessRuleViolation: INVITE_NOT_PENDING, INVITE_EXPIRED,
                ALREADY_APPLIED or NO_STAGES_CONFIGURED
            ConcurrentModificationError: another response won the race
        """
        invitation = await self.get(invitation_id)
        require_recipient(invitation.recipient_id, acting_user_id)

        now = utc_now()
        if invitation.effective_status(now) == InvitationStatus.EXPIRED:
            raise BusinessRuleViolation(
                "INVITE_EXPIRED",
                "invite expired",
                {"invitation_id": str(invitation_id), "expires_at": ensure_utc(invitation.expires_at).isoformat()},
            )

        if invitation.status != InvitationStatus.PENDING:
            raise BusinessRuleViolation(
                "INVITE_NOT_PENDING",
                f"invitation is already {invitation.status.lower()}",
                {"invitation_id": str(invitation_id), "status": invitation.status},
            )

        process = None
        if accept:
            if await self.applications.get_by_candidate_and_job_posting(
                invitation.recipient_id, invitation.job_posting_id
            ):
                raise BusinessRuleViolation(
                    "ALREADY_APPLIED",
                    "candidate already applied to this job posting",
                    {"invitation_id": str(invitation_id)},
                )
            # Fail before writing anything when the posting has no stages
            sequence = await self.processes.stage_service.stages_for(invitation.job_posting_id)
            if sequence.is_empty():
                raise BusinessRuleViolation(
                    "NO_STAGES_CONFIGURED",
                    "job posting has no stages configured",
                    {"job_posting_id": str(invitation.job_posting_id)},
                )

        invitation.status = InvitationStatus.ACCEPTED if accept else InvitationStatus.DECLINED
        invitation.responded_at = now
        try:
            await self.db.flush()
        except (StaleDataError, IntegrityError) as exc:
            await self.db.rollback()
            raise ConcurrentModificationError("Invitation", invitation_id) from exc

        if accept:
            try:
                application = await self.applications.create(
                    invitation.job_posting_id,
                    invitation.recipient_id,
                    status=ApplicationStatus.IN_PROCESS,
                )
            except IntegrityError as exc:
                await self.db.rollback()
                raise ConcurrentModificationError("Invitation", invitation_id) from exc
            process = await self.processes.open_process(application)

        logger.info(
            "Invitation %s %s by candidate %s",
            invitation.id,
            invitation.status.lower(),
            invitation.recipient_id,
        )
        return InvitationOutcome(invitation=invitation, selection_process=process)

    async def get(self, invitation_id: UUID) -> Invitation:
        invitation = await self.repo.get_by_id(invitation_id)
        if not invitation:
            raise NotFoundError("Invitation", invitation_id)
        return invitation

    async def read(self, invitation_id: UUID) -> InvitationRead:
        return self.to_read(await self.get(invitation_id))

    async def list_for_candidate(self, candidate_id: UUID) -> List[InvitationRead]:
        invitations = await self.repo.list_for_candidate(candidate_id)
        return [self.to_read(invitation) for invitation in invitations]

    async def list_for_job_posting(self, job_posting_id: UUID) -> List[InvitationRead]:
        if not await self.job_postings.get_by_id(job_posting_id):
            raise NotFoundError("JobPosting", job_posting_id)
        invitations = await self.repo.list_for_job_posting(job_posting_id)
        return [self.to_read(invitation) for invitation in invitations]

    async def expire_overdue(self) -> int:
        """Persist EXPIRED on every PENDING invitation past its expiry."""
        count = await self.repo.expire_overdue(utc_now())
        if count:
            logger.info("Expired %d overdue invitations", count)
        return count
