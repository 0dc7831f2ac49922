"""
Health router - database reachability, migration state and outbox backlog.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from alembic.config import Config
from alembic.script import ScriptDirectory
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from recruitment.core.dependencies import get_db
from recruitment.models.outbox_event import OutboxStatus
from recruitment.repositories.outbox_repository import OutboxRepository

logger = logging.getLogger(__name__)

router = APIRouter()

PROJECT_ROOT = Path(__file__).resolve().parents[2]


def migration_head() -> Optional[str]:
    """Newest revision shipped with the code, None when alembic is not bundled."""
    cfg_path = PROJECT_ROOT / "alembic.ini"
    if not cfg_path.exists():
        return None
    config = Config(str(cfg_path))
    config.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    return ScriptDirectory.from_config(config).get_current_head()


async def applied_revision(db: AsyncSession) -> Optional[str]:
    try:
        result = await db.execute(text("SELECT version_num FROM alembic_version"))
    except SQLAlchemyError:
        # Schema created without alembic (e.g. metadata.create_all)
        await db.rollback()
        return None
    return result.scalar_one_or_none()


async def outbox_backlog(db: AsyncSession) -> Dict[str, int]:
    counts = await OutboxRepository(db).count_by_status()
    return {
        "pending": counts.get(OutboxStatus.PENDING, 0),
        "processing": counts.get(OutboxStatus.PROCESSING, 0),
        "failed": counts.get(OutboxStatus.FAILED, 0),
    }


@router.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)) -> Dict[str, Any]:
    """
    Report whether the API can serve the pipeline.

    `outbox` counts undelivered recalculation events; a growing `failed`
    count means events exhausted their retries.
    """
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Health check could not reach the database")
        return {"api_ok": True, "db_ok": False, "migrations": None, "outbox": None}

    head = migration_head()
    current = await applied_revision(db)
    return {
        "api_ok": True,
        "db_ok": True,
        "migrations": {
            "current": current,
            "head": head,
            "up_to_date": current is not None and current == head,
        },
        "outbox": await outbox_backlog(db),
    }
