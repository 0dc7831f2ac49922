"""
SelectionProcess router - API endpoints for the stage-transition protocol.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from recruitment.core.dependencies import get_acting_user_id, get_db, get_organization_id
from recruitment.schemas.selection_process import (
    AdvanceRequest,
    CloseRequest,
    SelectionProcessRead,
    StageTransitionRead,
    TransitionRequest,
)
from recruitment.services.selection_process_service import SelectionProcessService

router = APIRouter(tags=["selection-processes"])


@router.post(
    "/applications/{application_id}/selection-process",
    response_model=SelectionProcessRead,
    status_code=status.HTTP_201_CREATED,
)
async def start_process(
    application_id: UUID,
    acting_user_id: UUID = Depends(get_acting_user_id),
    organization_id: Optional[UUID] = Depends(get_organization_id),
    db: AsyncSession = Depends(get_db),
):
    """Start the selection process of an application at its first stage."""
    process = await SelectionProcessService(db).start(
        application_id,
        acting_user_id=acting_user_id,
        organization_id=organization_id,
    )
    await db.commit()
    return process


@router.get("/selection-processes/{process_id}", response_model=SelectionProcessRead)
async def get_process(
    process_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    return await SelectionProcessService(db).get(process_id)


@router.get("/selection-processes/{process_id}/history", response_model=List[StageTransitionRead])
async def get_history(
    process_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Transition ledger of a process, newest first."""
    return await SelectionProcessService(db).history(process_id)


@router.post("/selection-processes/{process_id}/transitions", response_model=SelectionProcessRead)
async def transition_process(
    process_id: UUID,
    payload: TransitionRequest,
    acting_user_id: UUID = Depends(get_acting_user_id),
    organization_id: Optional[UUID] = Depends(get_organization_id),
    db: AsyncSession = Depends(get_db),
):
    """
    Move a process to any stage of its job posting.

    409 with PROCESS_ALREADY_FINALIZED, NOOP_TRANSITION, STAGE_NOT_IN_SEQUENCE
    or CONCURRENT_MODIFICATION (retry) when the move is rejected.
    """
    process = await SelectionProcessService(db).transition(
        process_id,
        payload.target_stage_id,
        acting_user_id,
        feedback=payload.feedback,
        organization_id=organization_id,
    )
    await db.commit()
    return process


@router.post("/selection-processes/{process_id}/advance", response_model=SelectionProcessRead)
async def advance_process(
    process_id: UUID,
    payload: AdvanceRequest,
    acting_user_id: UUID = Depends(get_acting_user_id),
    organization_id: Optional[UUID] = Depends(get_organization_id),
    db: AsyncSession = Depends(get_db),
):
    process = await SelectionProcessService(db).advance(
        process_id,
        acting_user_id,
        feedback=payload.feedback,
        organization_id=organization_id,
    )
    await db.commit()
    return process


@router.post("/selection-processes/{process_id}/close", response_model=SelectionProcessRead)
async def close_process(
    process_id: UUID,
    payload: CloseRequest,
    acting_user_id: UUID = Depends(get_acting_user_id),
    organization_id: Optional[UUID] = Depends(get_organization_id),
    db: AsyncSession = Depends(get_db),
):
    """Finish a process in its accept or reject stage."""
    process = await SelectionProcessService(db).close(
        process_id,
        payload.accepted,
        acting_user_id,
        feedback=payload.feedback,
        organization_id=organization_id,
    )
    await db.commit()
    return process
