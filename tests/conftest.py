"""
Pytest configuration and shared fixtures.

Every test gets its own SQLite database file (aiosqlite) with the full
schema created from the models.
"""

import os
import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

# Settings require DATABASE_URL at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./recruitment-test.db")

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from recruitment.db.base import Base
from recruitment.errors import ScoringError
from recruitment.models import Application, JobPosting, ProcessStage
from recruitment.models.application import ApplicationStatus
from recruitment.models.process_stage import StageKind
from recruitment.schemas.compatibility import ScoreResult


SCENARIO_A_STAGES = [
    ("Screening", StageKind.SCREENING),
    ("Interview", StageKind.INTERVIEW),
    ("Offer-Accept", StageKind.TERMINAL_ACCEPT),
]


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests, no database")
    config.addinivalue_line("markers", "api: exercises the FastAPI routers over ASGI")


@dataclass
class Pipeline:
    """A seeded job posting and its stages in ordinal order."""

    job_posting: JobPosting
    stages: List[ProcessStage]

    @property
    def id(self) -> uuid.UUID:
        return self.job_posting.id

    @property
    def organization_id(self) -> uuid.UUID:
        return self.job_posting.organization_id

    def stage(self, name: str) -> ProcessStage:
        for stage in self.stages:
            if stage.name == name:
                return stage
        raise KeyError(name)


@dataclass
class FakeScorer:
    """In-memory scorer; job postings in `failing` raise ScoringError."""

    scores: Dict[uuid.UUID, Decimal] = field(default_factory=dict)
    failing: Iterable[uuid.UUID] = ()
    default: Decimal = Decimal("50.00")
    calls: List[Tuple[uuid.UUID, uuid.UUID]] = field(default_factory=list)

    async def score(self, candidate_id: uuid.UUID, job_posting_id: uuid.UUID) -> ScoreResult:
        self.calls.append((candidate_id, job_posting_id))
        if job_posting_id in set(self.failing):
            raise ScoringError("scorer unavailable")
        return ScoreResult(
            score=self.scores.get(job_posting_id, self.default),
            justification=f"fit for {job_posting_id}",
        )


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'recruitment.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_pipeline(db):
    """Factory: job posting with the given (name, kind) stages at ordinals 1..n."""

    async def _make(stages=SCENARIO_A_STAGES, organization_id: Optional[uuid.UUID] = None) -> Pipeline:
        job_posting = JobPosting(
            id=uuid.uuid4(),
            organization_id=organization_id or uuid.uuid4(),
            title="Backend Engineer",
        )
        db.add(job_posting)
        rows = []
        for ordinal, (name, kind) in enumerate(stages, start=1):
            stage = ProcessStage(
                id=uuid.uuid4(),
                job_posting_id=job_posting.id,
                name=name,
                kind=kind.value,
                ordinal=ordinal,
                is_active=True,
            )
            db.add(stage)
            rows.append(stage)
        await db.commit()
        return Pipeline(job_posting=job_posting, stages=rows)

    return _make


@pytest.fixture
def make_application(db):
    """Factory: PENDING application of a candidate to a job posting."""

    async def _make(job_posting_id: uuid.UUID, candidate_id: Optional[uuid.UUID] = None) -> Application:
        application = Application(
            id=uuid.uuid4(),
            job_posting_id=job_posting_id,
            candidate_id=candidate_id or uuid.uuid4(),
            status=ApplicationStatus.PENDING,
        )
        db.add(application)
        await db.commit()
        return application

    return _make


@pytest.fixture
def scorer_factory():
    return FakeScorer
