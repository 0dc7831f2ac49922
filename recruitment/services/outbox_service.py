"""
Outbox service for after-commit domain events.

Events are written in the producer's own transaction, so the outbox worker
only ever sees changes that were durably committed.
"""

import logging
import uuid
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from recruitment.core.config import settings
from recruitment.models.outbox_event import OutboxEvent, OutboxEventType, OutboxStatus
from recruitment.repositories.outbox_repository import OutboxRepository
from recruitment.utils.time import utc_now

logger = logging.getLogger(__name__)


class OutboxService:
    """Service for enqueueing outbox events."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = OutboxRepository(db)

    async def publish(
        self,
        event_type: str,
        aggregate_id: UUID,
        payload: Optional[Dict[str, Any]] = None,
        max_attempts: Optional[int] = None,
    ) -> OutboxEvent:
        """
        Enqueue an event in the current transaction.

        Args:
            event_type: One of OutboxEventType
            aggregate_id: Candidate or job posting the event is about
            payload: Extra event data
            max_attempts: Delivery attempts before the event is parked as failed

        Returns:
            OutboxEvent: The pending event row (flushed, not committed)
        """
        event = OutboxEvent(
            id=uuid.uuid4(),
            event_type=event_type,
            aggregate_id=aggregate_id,
            payload_json=payload or {},
            status=OutboxStatus.PENDING,
            attempts=0,
            max_attempts=max_attempts or settings.OUTBOX_MAX_ATTEMPTS,
            available_at=utc_now(),
        )
        await self.repo.add(event)
        logger.info("Outbox event %s (%s) enqueued for %s", event.id, event_type, aggregate_id)
        return event

    async def publish_candidate_profile_updated(self, candidate_id: UUID) -> OutboxEvent:
        return await self.publish(
            OutboxEventType.CANDIDATE_PROFILE_UPDATED,
            candidate_id,
            {"candidate_id": str(candidate_id)},
        )

    async def publish_job_posting_updated(self, job_posting_id: UUID) -> OutboxEvent:
        return await self.publish(
            OutboxEventType.JOB_POSTING_UPDATED,
            job_posting_id,
            {"job_posting_id": str(job_posting_id)},
        )
