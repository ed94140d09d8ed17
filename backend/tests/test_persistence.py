import pytest

from slotforge.core.exceptions import PersistenceError, ResourceNotFoundError
from slotforge.schemas.academic import SubjectType
from slotforge.schemas.timetable import GenerateTimetableRequest, GenerationResult
from slotforge.services.identity import SequentialIdentitySource
from slotforge.services.persistence import (
    get_timetable,
    list_timetables,
    load_committed_entries,
    load_rotations,
    run_generation,
    save_generation,
)


def test_failed_results_cannot_be_saved(db_session):
    with pytest.raises(PersistenceError):
        save_generation(db_session, GenerationResult(success=False))


def test_save_replaces_the_batch_timetable(db_session, campus):
    campus.with_two_labs()
    campus.batch()

    first = campus.generate(identity=SequentialIdentitySource(prefix="one"))
    second = campus.generate(identity=SequentialIdentitySource(prefix="two"))
    save_generation(db_session, first)
    save_generation(db_session, second)

    stored = list_timetables(db_session)
    assert [timetable.id for timetable in stored] == [second.timetable.id]
    assert get_timetable(db_session, "batch-1").entries == second.timetable.entries


def test_get_timetable_raises_for_unknown_batch(db_session):
    with pytest.raises(ResourceNotFoundError):
        get_timetable(db_session, "batch-404")


def test_committed_entries_exclude_the_requested_batch(db_session, campus):
    campus.with_two_labs()
    campus.batch("batch-1")
    campus.batch("batch-2")
    save_generation(db_session, campus.generate("batch-1"))

    assert load_committed_entries(db_session, "batch-1") == []
    others = load_committed_entries(db_session, "batch-2")
    assert len(others) == 6
    assert {entry.batch_id for entry in others} == {"batch-1"}


def test_run_generation_feeds_stored_rotations_back(db_session, campus):
    campus.subject("lab-a", SubjectType.lab)
    campus.subject("lab-b", SubjectType.lab)
    campus.subject("lab-c", SubjectType.lab)
    for index, subject_id in enumerate(("lab-a", "lab-a", "lab-b", "lab-b", "lab-c", "lab-c"), start=1):
        campus.teacher(f"f-{index}", labs=[subject_id])
    campus.batch(students=60)
    payload = GenerateTimetableRequest.model_validate(campus.request_payload())

    first = run_generation(db_session, payload, default_lab_capacity=30, identity=SequentialIdentitySource())
    second = run_generation(db_session, payload, default_lab_capacity=30, identity=SequentialIdentitySource(prefix="r2"))

    assert first.success and second.success
    assert len(load_rotations(db_session, "batch-1")) == 12
    assert first.lab_rotations[0].lab_id == "lab-1"
    assert second.lab_rotations[0].lab_id == "lab-2"
