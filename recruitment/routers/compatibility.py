"""
Compatibility router - read access to cached compatibility scores.
"""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from recruitment.core.dependencies import get_db
from recruitment.schemas.compatibility import CompatibilityRead
from recruitment.services.compatibility_cache_service import CompatibilityCacheService

router = APIRouter(prefix="/compatibility", tags=["compatibility"])


@router.get("/{candidate_id}/{job_posting_id}", response_model=CompatibilityRead)
async def get_compatibility(
    candidate_id: UUID,
    job_posting_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Cached score for the pair; 404 until the scorer has produced one."""
    return await CompatibilityCacheService(db).lookup(candidate_id, job_posting_id)
