"""
Stage router - API endpoints for a job posting's stage sequence.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from recruitment.core.dependencies import get_acting_user_id, get_db, get_organization_id
from recruitment.schemas.stage import StageCreate, StageRead, StageReorder
from recruitment.services.stage_service import StageService

router = APIRouter(prefix="/job-postings/{job_posting_id}/stages", tags=["stages"])


@router.get("", response_model=List[StageRead])
async def list_stages(
    job_posting_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """List a job posting's stages in pipeline order."""
    sequence = await StageService(db).stages_for(job_posting_id)
    return list(sequence)


@router.post(
    "",
    response_model=StageRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(get_acting_user_id)],
)
async def add_stage(
    job_posting_id: UUID,
    payload: StageCreate,
    organization_id: Optional[UUID] = Depends(get_organization_id),
    db: AsyncSession = Depends(get_db),
):
    """
    Add a stage to a job posting.

    Without an ordinal the stage is appended after the current last stage.
    """
    stage = await StageService(db).add_stage(
        job_posting_id,
        name=payload.name,
        kind=payload.kind,
        ordinal=payload.ordinal,
        description=payload.description,
        organization_id=organization_id,
    )
    await db.commit()
    return stage


@router.put("/order", response_model=List[StageRead], dependencies=[Depends(get_acting_user_id)])
async def reorder_stages(
    job_posting_id: UUID,
    payload: StageReorder,
    organization_id: Optional[UUID] = Depends(get_organization_id),
    db: AsyncSession = Depends(get_db),
):
    """Renumber the stages 1..n in the given order."""
    sequence = await StageService(db).reorder_stages(
        job_posting_id,
        payload.stage_ids,
        organization_id=organization_id,
    )
    await db.commit()
    return list(sequence)


@router.delete(
    "/{stage_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(get_acting_user_id)],
)
async def remove_stage(
    job_posting_id: UUID,
    stage_id: UUID,
    organization_id: Optional[UUID] = Depends(get_organization_id),
    db: AsyncSession = Depends(get_db),
):
    """Delete a stage no process has ever used."""
    await StageService(db).remove_stage(stage_id, organization_id=organization_id)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
