"""Outbox worker: drains committed domain events with safe locking.

Uses SELECT FOR UPDATE SKIP LOCKED via claim_next to ensure only one worker
claims an event at a time. The claim is committed on its own, so a worker
that dies mid-event leaves a stale lock that another worker reclaims after
OUTBOX_LOCK_TIMEOUT_MINUTES.

Run standalone:
    python -m recruitment.workers.outbox_worker [--once] [--worker-id ID] [--poll-interval S]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import signal
import socket
from datetime import timedelta
from typing import Awaitable, Callable, Dict, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from recruitment.core.config import settings
from recruitment.db.session import async_session_maker
from recruitment.models.outbox_event import OutboxEvent, OutboxEventType
from recruitment.repositories.outbox_repository import OutboxRepository
from recruitment.schemas.compatibility import RecalculationSummary
from recruitment.services.invitation_service import InvitationService
from recruitment.services.recalculation_trigger import RecalculationTrigger
from recruitment.services.scoring import CompatibilityScorer, get_default_scorer
from recruitment.utils.time import utc_now

logger = logging.getLogger(__name__)

Handler = Callable[[RecalculationTrigger, OutboxEvent], Awaitable[RecalculationSummary]]


async def _handle_profile_updated(trigger: RecalculationTrigger, event: OutboxEvent) -> RecalculationSummary:
    return await trigger.handle_profile_updated(event.aggregate_id)


async def _handle_job_posting_updated(trigger: RecalculationTrigger, event: OutboxEvent) -> RecalculationSummary:
    return await trigger.handle_job_posting_updated(event.aggregate_id)


HANDLERS: Dict[str, Handler] = {
    OutboxEventType.CANDIDATE_PROFILE_UPDATED: _handle_profile_updated,
    OutboxEventType.JOB_POSTING_UPDATED: _handle_job_posting_updated,
}


class OutboxWorker:
    """Poll and execute outbox events; sweeps overdue invitations between polls."""

    def __init__(
        self,
        scorer: Optional[CompatibilityScorer] = None,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
        worker_id: Optional[str] = None,
        poll_interval: Optional[float] = None,
        sweep_interval: Optional[float] = None,
    ) -> None:
        self.scorer = scorer or get_default_scorer()
        self.session_factory = session_factory or async_session_maker
        self.worker_id = worker_id or f"outbox-{socket.gethostname()}-{os.getpid()}"
        self.poll_interval = poll_interval if poll_interval is not None else settings.OUTBOX_POLL_INTERVAL_SECONDS
        self.sweep_interval = (
            sweep_interval if sweep_interval is not None else settings.INVITATION_SWEEP_INTERVAL_SECONDS
        )
        self.lock_timeout = timedelta(minutes=settings.OUTBOX_LOCK_TIMEOUT_MINUTES)
        self.backoff_seconds = settings.OUTBOX_RETRY_BACKOFF_SECONDS
        self._stop_event = asyncio.Event()

    def request_stop(self) -> None:
        self._stop_event.set()

    async def _claim(self) -> Optional[UUID]:
        async with self.session_factory() as session:
            event = await OutboxRepository(session).claim_next(self.worker_id, utc_now(), self.lock_timeout)
            await session.commit()
            return event.id if event else None

    async def _mark_failed(self, event_id: UUID, error: str) -> None:
        async with self.session_factory() as session:
            repo = OutboxRepository(session)
            event = await repo.get_by_id(event_id)
            if not event:
                return
            await repo.mark_failed(event, error, utc_now(), self.backoff_seconds)
            await session.commit()
            logger.warning(
                "Outbox event %s failed (attempt %d/%d, now %s): %s",
                event_id,
                event.attempts,
                event.max_attempts,
                event.status,
                error,
            )

    async def run_once(self) -> bool:
        """Claim and execute a single event if available."""
        event_id = await self._claim()
        if not event_id:
            return False

        try:
            async with self.session_factory() as session:
                repo = OutboxRepository(session)
                event = await repo.get_by_id(event_id)
                handler = HANDLERS.get(event.event_type)
                if handler is None:
                    raise ValueError(f"Unknown outbox event type: {event.event_type}")

                logger.info("Worker %s running event %s (%s)", self.worker_id, event.id, event.event_type)
                summary = await handler(RecalculationTrigger(session, self.scorer), event)
                await repo.mark_processed(event, utc_now())
                await session.commit()
                logger.info(
                    "Outbox event %s processed: %d refreshed, %d failed",
                    event_id,
                    len(summary.refreshed),
                    len(summary.failures),
                )
        except Exception as exc:
            logger.error("Outbox event %s raised", event_id, exc_info=True)
            await self._mark_failed(event_id, f"{type(exc).__name__}: {exc}")
        return True

    async def sweep_invitations(self) -> int:
        async with self.session_factory() as session:
            count = await InvitationService(session).expire_overdue()
            await session.commit()
            return count

    async def run_forever(self) -> None:
        """Poll until stopped, respecting poll_interval when idle."""
        loop = asyncio.get_running_loop()
        next_sweep = loop.time()
        logger.info("Outbox worker %s started", self.worker_id)
        while not self._stop_event.is_set():
            if loop.time() >= next_sweep:
                try:
                    await self.sweep_invitations()
                except Exception:
                    logger.error("Invitation sweep failed", exc_info=True)
                next_sweep = loop.time() + self.sweep_interval

            processed = await self.run_once()
            if processed:
                continue

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.poll_interval)
            except asyncio.TimeoutError:
                continue
        logger.info("Outbox worker %s stopped", self.worker_id)


def get_default_worker(worker_id: Optional[str] = None, poll_interval: Optional[float] = None) -> OutboxWorker:
    return OutboxWorker(worker_id=worker_id, poll_interval=poll_interval)


async def _run(args: argparse.Namespace) -> None:
    worker = get_default_worker(worker_id=args.worker_id, poll_interval=args.poll_interval)
    if args.once:
        processed = await worker.run_once()
        logger.info("Processed event: %s", processed)
        return

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, worker.request_stop)
        except NotImplementedError:
            # Windows event loops do not support signal handlers
            pass
    await worker.run_forever()


def main() -> None:
    parser = argparse.ArgumentParser(description="Drain the recruitment outbox")
    parser.add_argument("--once", action="store_true", help="Process at most one event and exit")
    parser.add_argument("--worker-id", default=None, help="Lock owner name (default: host-pid)")
    parser.add_argument("--poll-interval", type=float, default=None, help="Idle poll interval in seconds")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(_run(args))


if __name__ == "__main__":
    main()
