"""
Outbox repository - durable event queue operations.

Claims use SELECT ... FOR UPDATE SKIP LOCKED so concurrent workers never
pick up the same event.
"""

from datetime import datetime, timedelta
from typing import Dict, Optional
from uuid import UUID

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from recruitment.models.outbox_event import OutboxEvent, OutboxStatus


class OutboxRepository:
    """Repository for OutboxEvent rows."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def add(self, event: OutboxEvent) -> OutboxEvent:
        self.db.add(event)
        await self.db.flush()
        return event

    async def get_by_id(self, event_id: UUID) -> Optional[OutboxEvent]:
        result = await self.db.execute(
            select(OutboxEvent).where(OutboxEvent.id == event_id)
        )
        return result.scalar_one_or_none()

    async def count_by_status(self) -> Dict[str, int]:
        """Event counts keyed by status; statuses with no rows are omitted."""
        result = await self.db.execute(
            select(OutboxEvent.status, func.count(OutboxEvent.id)).group_by(OutboxEvent.status)
        )
        return {status: int(count) for status, count in result.all()}

    async def claim_next(
        self,
        worker_id: str,
        now: datetime,
        lock_timeout: timedelta,
    ) -> Optional[OutboxEvent]:
        """
        Claim the next available event.

        Available means either pending and due, or stuck in processing with a
        lock older than `lock_timeout` (a crashed worker).
        """
        cutoff = now - lock_timeout
        result = await self.db.execute(
            select(OutboxEvent)
            .where(
                or_(
                    and_(
                        OutboxEvent.status == OutboxStatus.PENDING,
                        OutboxEvent.available_at <= now,
                    ),
                    and_(
                        OutboxEvent.status == OutboxStatus.PROCESSING,
                        OutboxEvent.locked_at < cutoff,
                    ),
                )
            )
            .order_by(OutboxEvent.available_at.asc(), OutboxEvent.created_at.asc())
            .limit(1)
            .with_for_update(skip_locked=True)
        )
        event = result.scalar_one_or_none()
        if not event:
            return None

        event.status = OutboxStatus.PROCESSING
        event.locked_at = now
        event.locked_by = worker_id
        event.attempts += 1
        await self.db.flush()
        return event

    async def mark_processed(self, event: OutboxEvent, now: datetime) -> OutboxEvent:
        event.status = OutboxStatus.PROCESSED
        event.processed_at = now
        event.locked_at = None
        event.locked_by = None
        event.last_error = None
        await self.db.flush()
        return event

    async def mark_failed(
        self,
        event: OutboxEvent,
        error: str,
        now: datetime,
        backoff_seconds: int,
    ) -> OutboxEvent:
        """Requeue with backoff, or park as failed once attempts are exhausted."""
        event.last_error = error[:2000]
        event.locked_at = None
        event.locked_by = None
        if event.attempts >= event.max_attempts:
            event.status = OutboxStatus.FAILED
        else:
            event.status = OutboxStatus.PENDING
            event.available_at = now + timedelta(seconds=max(0, backoff_seconds))
        await self.db.flush()
        return event
