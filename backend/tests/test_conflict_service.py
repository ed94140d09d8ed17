from datetime import datetime, timezone

import pytest

from slotforge.schemas.academic import Subject, SubjectType
from slotforge.schemas.timetable import Timetable, TimetableEntry
from slotforge.services.conflict_service import ConflictService

CREATED = datetime(2024, 1, 1, tzinfo=timezone.utc)


def entry(entry_id, day, period, subject_id="th-1", faculty_id="f1", room_id="r1", batch_id="b1", **extra):
    return TimetableEntry(
        id=entry_id,
        slot_id=f"{day}-{period}",
        day=day,
        period=period,
        subject_id=subject_id,
        faculty_id=faculty_id,
        room_id=room_id,
        batch_id=batch_id,
        created_at=CREATED,
        **extra,
    )


def timetable(*entries):
    return Timetable(id="tt-1", batch_id="b1", entries=list(entries), generated_at=CREATED, is_valid=True)


@pytest.fixture
def subjects():
    def make(subject_id, subject_type):
        return Subject(
            id=subject_id,
            name=subject_id,
            type=subject_type,
            periods_per_week=3,
            department_id="d1",
            semester=1,
        )

    return [
        make("th-1", SubjectType.theory),
        make("th-2", SubjectType.theory),
        make("mand-1", SubjectType.mandatory),
        make("lab-1", SubjectType.lab),
        make("lib-1", SubjectType.library),
    ]


def lab_triple(prefix, day, slot, sub_batch_id, faculty_id, room_id, periods=None):
    periods = periods or ((2, 3, 4) if slot == "A" else (5, 6, 7))
    return [
        entry(
            f"{prefix}-{period}",
            day,
            period,
            subject_id="lab-1",
            faculty_id=faculty_id,
            room_id=room_id,
            is_lab_session=True,
            lab_slot=slot,
            sub_batch_id=sub_batch_id,
        )
        for period in periods
    ]


def test_detect_room_conflict(subjects):
    report = ConflictService(
        timetable(entry("s1", 0, 2, batch_id="b1"), entry("s2", 0, 2, faculty_id="f2", batch_id="b2")),
        subjects,
    ).detect_conflicts()

    assert [conflict.conflict_type for conflict in report.conflicts] == ["room_conflict"]
    conflict = report.conflicts[0]
    assert "Room r1 double-booked at Monday P2" in conflict.description
    assert set(conflict.affected_entries) == {"s1", "s2"}
    assert report.is_clean is False


def test_detect_faculty_conflict(subjects):
    report = ConflictService(
        timetable(entry("s1", 1, 4, batch_id="b1"), entry("s2", 1, 4, room_id="r2", batch_id="b2")),
        subjects,
    ).detect_conflicts()

    assert [conflict.conflict_type for conflict in report.conflicts] == ["faculty_conflict"]
    assert "Faculty f1 double-booked at Tuesday P4" in report.conflicts[0].description


def test_detect_batch_conflict(subjects):
    report = ConflictService(
        timetable(entry("s1", 2, 5), entry("s2", 2, 5, subject_id="th-2", faculty_id="f2", room_id="r2")),
        subjects,
    ).detect_conflicts()

    assert [conflict.conflict_type for conflict in report.conflicts] == ["batch_conflict"]


def test_parallel_sub_batch_labs_share_the_batch_slot(subjects):
    entries = lab_triple("a1", 0, "A", "b1-A1", "f1", "lab-x") + lab_triple("a2", 0, "A", "b1-A2", "f2", "lab-y")

    report = ConflictService(timetable(*entries), subjects).detect_conflicts()

    assert report.is_clean


def test_mandatory_outside_its_slot_breaks_placement_rule(subjects):
    report = ConflictService(timetable(entry("m1", 3, 3, subject_id="mand-1")), subjects).detect_conflicts()

    assert [conflict.conflict_type for conflict in report.conflicts] == ["placement_rule"]
    assert report.conflicts[0].affected_entries == ["m1"]


def test_special_period_is_never_a_valid_theory_slot(subjects):
    report = ConflictService(timetable(entry("t8", 0, 8)), subjects).detect_conflicts()

    assert [conflict.conflict_type for conflict in report.conflicts] == ["placement_rule"]


def test_lab_session_outside_a_window_is_flagged(subjects):
    entries = lab_triple("x", 0, "A", None, "f1", "lab-x", periods=(3, 4, 5))

    report = ConflictService(timetable(*entries), subjects).detect_conflicts()

    assert [conflict.conflict_type for conflict in report.conflicts] == ["lab_window"]
    assert len(report.conflicts[0].affected_entries) == 3


def test_lab_session_with_mixed_instructors_is_flagged(subjects):
    entries = lab_triple("x", 4, "B", None, "f1", "lab-x")
    entries[1].faculty_id = "f2"

    report = ConflictService(timetable(*entries), subjects).detect_conflicts()

    assert [conflict.conflict_type for conflict in report.conflicts] == ["lab_window"]


def test_second_library_period_is_a_soft_conflict(subjects):
    entries = [
        entry("l1", 0, 1, subject_id="lib-1", faculty_id="", room_id=""),
        entry("l2", 1, 1, subject_id="lib-1", faculty_id="", room_id=""),
    ]

    report = ConflictService(timetable(*entries), subjects).detect_conflicts()

    assert [(conflict.conflict_type, conflict.severity) for conflict in report.conflicts] == [
        ("library_limit", "soft")
    ]
