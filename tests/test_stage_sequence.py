"""Stage sequence helpers and stage maintenance."""

import uuid

import pytest

from recruitment.errors import BusinessRuleViolation, NotFoundError, OwnershipViolation
from recruitment.models.process_stage import ProcessStage, StageDisposition, StageKind
from recruitment.services.selection_process_service import SelectionProcessService
from recruitment.services.stage_service import StageSequence, StageService, validate_ordinals


def _stage(name, kind, ordinal):
    return ProcessStage(id=uuid.uuid4(), name=name, kind=kind.value, ordinal=ordinal, is_active=True)


@pytest.mark.unit
def test_sequence_orders_by_ordinal_and_resolves_neighbours():
    offer = _stage("Offer", StageKind.TERMINAL_ACCEPT, 3)
    screening = _stage("Screening", StageKind.SCREENING, 1)
    interview = _stage("Interview", StageKind.INTERVIEW, 2)
    sequence = StageSequence(uuid.uuid4(), [offer, screening, interview])

    assert [s.name for s in sequence] == ["Screening", "Interview", "Offer"]
    assert sequence.initial_stage() is screening
    assert sequence.next_after(screening.id) is interview
    assert sequence.next_after(offer.id) is None
    assert sequence.get(interview.id) is interview
    assert sequence.get(uuid.uuid4()) is None


@pytest.mark.unit
def test_sequence_terminal_lookup_uses_disposition():
    sequence = StageSequence(
        uuid.uuid4(),
        [
            _stage("Screening", StageKind.SCREENING, 1),
            _stage("Hired", StageKind.TERMINAL_ACCEPT, 2),
        ],
    )

    assert sequence.first_terminal(StageDisposition.ACCEPTED).name == "Hired"
    assert sequence.first_terminal(StageDisposition.REJECTED) is None
    assert sequence.has_terminal_stage()
    assert not sequence.has_terminal_stage(StageDisposition.REJECTED)


@pytest.mark.unit
def test_empty_sequence_has_no_initial_stage():
    sequence = StageSequence(uuid.uuid4(), [])
    assert sequence.is_empty()
    assert sequence.initial_stage() is None


@pytest.mark.unit
def test_stage_kind_dispositions():
    assert StageKind.TERMINAL_ACCEPT.disposition is StageDisposition.ACCEPTED
    assert StageKind.TERMINAL_REJECT.disposition is StageDisposition.REJECTED
    assert StageKind.OFFER.disposition is StageDisposition.OPEN
    assert not StageDisposition.OPEN.is_terminal


@pytest.mark.unit
def test_validate_ordinals_rejects_duplicates_and_non_positive():
    with pytest.raises(BusinessRuleViolation) as exc:
        validate_ordinals([_stage("A", StageKind.SCREENING, 1), _stage("B", StageKind.INTERVIEW, 1)])
    assert exc.value.code == "DUPLICATE_STAGE_ORDINAL"

    with pytest.raises(BusinessRuleViolation) as exc:
        validate_ordinals([_stage("A", StageKind.SCREENING, 0)])
    assert exc.value.code == "INVALID_STAGE_ORDINAL"

    validate_ordinals([_stage("A", StageKind.SCREENING, 1), _stage("B", StageKind.INTERVIEW, 5)])


async def test_stages_for_unknown_job_posting_is_not_found(db):
    with pytest.raises(NotFoundError):
        await StageService(db).stages_for(uuid.uuid4())


async def test_add_stage_appends_after_last_ordinal(db, make_pipeline):
    pipeline = await make_pipeline()
    service = StageService(db)

    stage = await service.add_stage(pipeline.id, "Culture fit", StageKind.GROUP_DYNAMIC)
    await db.commit()

    assert stage.ordinal == 4
    sequence = await service.stages_for(pipeline.id)
    assert [s.name for s in sequence][-1] == "Culture fit"


async def test_add_stage_with_taken_ordinal_is_rejected(db, make_pipeline):
    pipeline = await make_pipeline()

    with pytest.raises(BusinessRuleViolation) as exc:
        await StageService(db).add_stage(pipeline.id, "Dup", StageKind.OTHER, ordinal=2)
    assert exc.value.code == "DUPLICATE_STAGE_ORDINAL"


async def test_add_stage_checks_organization(db, make_pipeline):
    pipeline = await make_pipeline()

    with pytest.raises(OwnershipViolation):
        await StageService(db).add_stage(
            pipeline.id, "Other", StageKind.OTHER, organization_id=uuid.uuid4()
        )


async def test_reorder_stages_renumbers_from_one(db, make_pipeline):
    pipeline = await make_pipeline()
    service = StageService(db)
    new_order = [s.id for s in reversed(pipeline.stages)]

    sequence = await service.reorder_stages(pipeline.id, new_order)
    await db.commit()

    assert [s.id for s in sequence] == new_order
    assert [s.ordinal for s in sequence] == [1, 2, 3]
    reloaded = await service.stages_for(pipeline.id)
    assert [s.name for s in reloaded] == ["Offer-Accept", "Interview", "Screening"]


async def test_reorder_requires_every_stage_exactly_once(db, make_pipeline):
    pipeline = await make_pipeline()

    with pytest.raises(BusinessRuleViolation) as exc:
        await StageService(db).reorder_stages(pipeline.id, [pipeline.stages[0].id])
    assert exc.value.code == "STAGE_NOT_IN_SEQUENCE"


async def test_remove_unused_stage(db, make_pipeline):
    pipeline = await make_pipeline()
    service = StageService(db)

    await service.remove_stage(pipeline.stage("Interview").id)
    await db.commit()

    sequence = await service.stages_for(pipeline.id)
    assert [s.name for s in sequence] == ["Screening", "Offer-Accept"]


async def test_remove_stage_in_use_is_rejected(db, make_pipeline, make_application):
    pipeline = await make_pipeline()
    application = await make_application(pipeline.id)
    await SelectionProcessService(db).start(application.id)
    await db.commit()

    with pytest.raises(BusinessRuleViolation) as exc:
        await StageService(db).remove_stage(pipeline.stage("Screening").id)
    assert exc.value.code == "STAGE_IN_USE"
