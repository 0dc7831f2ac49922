"""Compatibility cache recalculation and the outbox worker."""

import uuid
from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from recruitment.errors import NotFoundError
from recruitment.models.application import SavedJobPosting
from recruitment.models.compatibility_cache import CompatibilityCacheEntry
from recruitment.models.outbox_event import OutboxEvent, OutboxEventType, OutboxStatus
from recruitment.repositories.compatibility_cache_repository import CompatibilityCacheRepository
from recruitment.repositories.outbox_repository import OutboxRepository
from recruitment.schemas.compatibility import ScoreResult
from recruitment.services.compatibility_cache_service import CompatibilityCacheService
from recruitment.services.invitation_service import InvitationService
from recruitment.services.outbox_service import OutboxService
from recruitment.services.recalculation_trigger import RecalculationTrigger
from recruitment.utils.time import utc_now
from recruitment.workers.outbox_worker import OutboxWorker


@pytest.fixture
def candidate_with_two_applications(make_pipeline, make_application):
    async def _make():
        candidate = uuid.uuid4()
        j1 = await make_pipeline()
        j2 = await make_pipeline()
        await make_application(j1.id, candidate)
        await make_application(j2.id, candidate)
        return candidate, j1, j2

    return _make


@pytest.fixture
def count_upserts(monkeypatch):
    calls = []
    original = CompatibilityCacheRepository.upsert

    async def _counting(self, **kwargs):
        calls.append((kwargs["candidate_id"], kwargs["job_posting_id"]))
        return await original(self, **kwargs)

    monkeypatch.setattr(CompatibilityCacheRepository, "upsert", _counting)
    return calls


async def _cache_rows(db, candidate_id=None):
    stmt = select(func.count(CompatibilityCacheEntry.id))
    if candidate_id is not None:
        stmt = stmt.where(CompatibilityCacheEntry.candidate_id == candidate_id)
    result = await db.execute(stmt)
    return int(result.scalar() or 0)


async def test_scenario_e_one_upsert_per_relevant_job_posting(
    db, candidate_with_two_applications, scorer_factory, count_upserts
):
    candidate, j1, j2 = await candidate_with_two_applications()
    scorer = scorer_factory(scores={j1.id: Decimal("81.50"), j2.id: Decimal("40.00")})

    summary = await RecalculationTrigger(db, scorer).handle_profile_updated(candidate)
    await db.commit()

    assert sorted(count_upserts) == sorted([(candidate, j1.id), (candidate, j2.id)])
    assert summary.attempted == 2
    assert summary.failures == []
    cache = CompatibilityCacheService(db)
    assert (await cache.lookup(candidate, j1.id)).score == Decimal("81.50")
    assert (await cache.lookup(candidate, j2.id)).score == Decimal("40.00")


async def test_scenario_e_failing_pair_does_not_block_others(
    db, candidate_with_two_applications, scorer_factory
):
    candidate, j1, j2 = await candidate_with_two_applications()
    scorer = scorer_factory(failing=[j2.id])

    summary = await RecalculationTrigger(db, scorer).handle_profile_updated(candidate)
    await db.commit()

    assert len(scorer.calls) == 2
    assert [r.job_posting_id for r in summary.refreshed] == [j1.id]
    assert [(f.candidate_id, f.job_posting_id) for f in summary.failures] == [(candidate, j2.id)]
    cache = CompatibilityCacheService(db)
    assert (await cache.lookup(candidate, j1.id)).score == Decimal("50.00")
    with pytest.raises(NotFoundError):
        await cache.lookup(candidate, j2.id)


async def test_unexpected_scorer_error_does_not_abort_batch(
    db, candidate_with_two_applications, scorer_factory, monkeypatch
):
    candidate, j1, j2 = await candidate_with_two_applications()
    scorer = scorer_factory()
    score_one = scorer.score

    async def _score(candidate_id, job_posting_id):
        if job_posting_id == j2.id:
            raise RuntimeError("scorer blew up")
        return await score_one(candidate_id, job_posting_id)

    monkeypatch.setattr(scorer, "score", _score)

    summary = await RecalculationTrigger(db, scorer).handle_profile_updated(candidate)
    await db.commit()

    assert [r.job_posting_id for r in summary.refreshed] == [j1.id]
    assert [f.job_posting_id for f in summary.failures] == [j2.id]
    assert "scorer blew up" in summary.failures[0].reason
    cache = CompatibilityCacheService(db)
    assert (await cache.lookup(candidate, j1.id)).score == Decimal("50.00")
    assert await cache.find(candidate, j2.id) is None


async def test_relevant_job_postings_include_saved_and_invited(db, make_pipeline, make_application, scorer_factory):
    candidate = uuid.uuid4()
    applied = await make_pipeline()
    saved = await make_pipeline()
    invited = await make_pipeline()
    unrelated = await make_pipeline()
    await make_application(applied.id, candidate)
    db.add(SavedJobPosting(id=uuid.uuid4(), job_posting_id=saved.id, candidate_id=candidate))
    await InvitationService(db).send(invited.id, uuid.uuid4(), candidate)
    # Saved and applied to the same posting counts once
    db.add(SavedJobPosting(id=uuid.uuid4(), job_posting_id=applied.id, candidate_id=candidate))
    await db.commit()

    trigger = RecalculationTrigger(db, scorer_factory())
    relevant = await trigger.relevant_job_postings(candidate)

    assert sorted(relevant) == sorted([applied.id, saved.id, invited.id])
    assert unrelated.id not in relevant


async def test_redelivery_converges_to_one_row_per_pair(db, candidate_with_two_applications, scorer_factory):
    candidate, j1, j2 = await candidate_with_two_applications()
    scorer = scorer_factory()

    await RecalculationTrigger(db, scorer).handle_profile_updated(candidate)
    await db.commit()
    first = await CompatibilityCacheService(db).lookup(candidate, j1.id)
    first_score, first_computed_at = first.score, first.computed_at

    await RecalculationTrigger(db, scorer).handle_profile_updated(candidate)
    await db.commit()

    assert await _cache_rows(db, candidate) == 2
    again = await CompatibilityCacheService(db).lookup(candidate, j1.id)
    assert again.score == first_score
    assert again.computed_at == first_computed_at


async def test_latest_successful_score_wins(db, candidate_with_two_applications, scorer_factory):
    candidate, j1, _ = await candidate_with_two_applications()

    await RecalculationTrigger(db, scorer_factory(default=Decimal("20.00"))).handle_profile_updated(candidate)
    await db.commit()
    await RecalculationTrigger(db, scorer_factory(default=Decimal("75.25"))).handle_profile_updated(candidate)
    await db.commit()

    assert await _cache_rows(db, candidate) == 2
    assert (await CompatibilityCacheService(db).lookup(candidate, j1.id)).score == Decimal("75.25")


async def test_get_or_compute_scores_only_on_miss(db, make_pipeline, scorer_factory):
    pipeline = await make_pipeline()
    candidate = uuid.uuid4()
    scorer = scorer_factory()
    cache = CompatibilityCacheService(db)

    entry = await cache.get_or_compute(candidate, pipeline.id, scorer)
    again = await cache.get_or_compute(candidate, pipeline.id, scorer)

    assert again.id == entry.id
    assert len(scorer.calls) == 1


async def test_invalidation_by_candidate_and_job_posting(db, candidate_with_two_applications, scorer_factory):
    candidate, j1, j2 = await candidate_with_two_applications()
    await RecalculationTrigger(db, scorer_factory()).handle_profile_updated(candidate)
    await db.commit()
    cache = CompatibilityCacheService(db)

    assert await cache.invalidate_job_posting(j1.id) == 1
    assert await cache.invalidate_candidate(candidate) == 1
    await db.commit()
    assert await _cache_rows(db) == 0


async def test_job_posting_update_rescoring_related_candidates(db, make_pipeline, make_application, scorer_factory):
    pipeline = await make_pipeline()
    applicant = await make_application(pipeline.id)
    cache = CompatibilityCacheService(db)
    departed = uuid.uuid4()
    await cache.store(departed, pipeline.id, ScoreResult(score=Decimal("10.00"), justification="stale"))
    await db.commit()

    scorer = scorer_factory(default=Decimal("66.00"))
    summary = await RecalculationTrigger(db, scorer).handle_job_posting_updated(pipeline.id)
    await db.commit()

    assert scorer.calls == [(applicant.candidate_id, pipeline.id)]
    assert [r.candidate_id for r in summary.refreshed] == [applicant.candidate_id]
    assert (await cache.lookup(applicant.candidate_id, pipeline.id)).score == Decimal("66.00")
    assert await cache.find(departed, pipeline.id) is None


def _worker(session_factory, scorer):
    return OutboxWorker(
        scorer=scorer,
        session_factory=session_factory,
        worker_id="test-worker",
        poll_interval=0.01,
    )


async def test_worker_only_sees_committed_events(
    db, session_factory, candidate_with_two_applications, scorer_factory
):
    candidate, j1, j2 = await candidate_with_two_applications()
    scorer = scorer_factory()
    worker = _worker(session_factory, scorer)

    event = await OutboxService(db).publish_candidate_profile_updated(candidate)
    assert await worker.run_once() is False
    assert scorer.calls == []

    await db.commit()
    assert await worker.run_once() is True
    assert len(scorer.calls) == 2

    async with session_factory() as check:
        processed = await OutboxRepository(check).get_by_id(event.id)
        assert processed.status == OutboxStatus.PROCESSED
        assert processed.attempts == 1
        assert processed.locked_by is None
        assert await _cache_rows(check, candidate) == 2

    assert await worker.run_once() is False


async def test_worker_redelivery_is_idempotent(
    db, session_factory, candidate_with_two_applications, scorer_factory
):
    candidate, _, _ = await candidate_with_two_applications()
    outbox = OutboxService(db)
    await outbox.publish_candidate_profile_updated(candidate)
    await outbox.publish_candidate_profile_updated(candidate)
    await db.commit()

    worker = _worker(session_factory, scorer_factory())
    assert await worker.run_once() is True
    assert await worker.run_once() is True

    async with session_factory() as check:
        assert await _cache_rows(check, candidate) == 2


async def test_worker_scoring_failures_do_not_fail_event(
    db, session_factory, candidate_with_two_applications, scorer_factory
):
    candidate, _, j2 = await candidate_with_two_applications()
    event = await OutboxService(db).publish_candidate_profile_updated(candidate)
    await db.commit()

    await _worker(session_factory, scorer_factory(failing=[j2.id])).run_once()

    async with session_factory() as check:
        assert (await OutboxRepository(check).get_by_id(event.id)).status == OutboxStatus.PROCESSED
        assert await _cache_rows(check, candidate) == 1


async def test_worker_requeues_failed_event_with_backoff(db, session_factory, scorer_factory):
    event = await OutboxService(db).publish("unknown_event", uuid.uuid4())
    await db.commit()
    worker = _worker(session_factory, scorer_factory())

    assert await worker.run_once() is True
    # Backoff keeps it out of reach for now
    assert await worker.run_once() is False

    async with session_factory() as check:
        failed = await OutboxRepository(check).get_by_id(event.id)
        assert failed.status == OutboxStatus.PENDING
        assert failed.attempts == 1
        assert "Unknown outbox event type" in failed.last_error


async def test_worker_parks_event_after_max_attempts(db, session_factory, scorer_factory):
    event = await OutboxService(db).publish("unknown_event", uuid.uuid4(), max_attempts=1)
    await db.commit()

    await _worker(session_factory, scorer_factory()).run_once()

    async with session_factory() as check:
        assert (await OutboxRepository(check).get_by_id(event.id)).status == OutboxStatus.FAILED


async def test_worker_reclaims_stale_lock(db, session_factory, candidate_with_two_applications, scorer_factory):
    candidate, _, _ = await candidate_with_two_applications()
    now = utc_now()
    event = OutboxEvent(
        id=uuid.uuid4(),
        event_type=OutboxEventType.CANDIDATE_PROFILE_UPDATED,
        aggregate_id=candidate,
        payload_json={"candidate_id": str(candidate)},
        status=OutboxStatus.PROCESSING,
        attempts=1,
        max_attempts=5,
        available_at=now - timedelta(hours=2),
        locked_at=now - timedelta(hours=1),
        locked_by="crashed-worker",
    )
    db.add(event)
    await db.commit()

    assert await _worker(session_factory, scorer_factory()).run_once() is True

    async with session_factory() as check:
        reclaimed = await OutboxRepository(check).get_by_id(event.id)
        assert reclaimed.status == OutboxStatus.PROCESSED
        assert reclaimed.attempts == 2


async def test_worker_sweep_expires_overdue_invitations(db, session_factory, make_pipeline, scorer_factory):
    pipeline = await make_pipeline()
    invitation = await InvitationService(db).send(
        pipeline.id, uuid.uuid4(), uuid.uuid4(), ttl=timedelta(microseconds=1)
    )
    await db.commit()

    assert await _worker(session_factory, scorer_factory()).sweep_invitations() == 1

    async with session_factory() as check:
        assert (await InvitationService(check).get(invitation.id)).status == "EXPIRED"


async def test_worker_rescores_job_posting_update_from_outbox(
    db, session_factory, make_pipeline, make_application, scorer_factory
):
    pipeline = await make_pipeline()
    first = await make_application(pipeline.id)
    second = await make_application(pipeline.id)
    scorer = scorer_factory(default=Decimal("33.00"))

    event = await OutboxService(db).publish_job_posting_updated(pipeline.id)
    await db.commit()
    assert event.event_type == OutboxEventType.JOB_POSTING_UPDATED

    assert await _worker(session_factory, scorer).run_once() is True

    assert sorted(scorer.calls) == sorted([(first.candidate_id, pipeline.id), (second.candidate_id, pipeline.id)])
    async with session_factory() as check:
        assert (await OutboxRepository(check).get_by_id(event.id)).status == OutboxStatus.PROCESSED
        assert await _cache_rows(check) == 2
