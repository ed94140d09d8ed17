from __future__ import annotations

from slotforge.schemas.academic import Faculty, FacultyDesignation, Subject
from slotforge.schemas.timetable import Explanation, ExplanationSource, TimetableEntry, error, info
from slotforge.schemas.workload import WorkloadLimits, WorkloadStats

WORKLOAD_STEP = 8

FACULTY_WORKLOAD_LIMITS: dict[FacultyDesignation, WorkloadLimits] = {
    FacultyDesignation.professor: WorkloadLimits(theory_periods=5, lab_sessions=1),
    FacultyDesignation.associate_professor: WorkloadLimits(theory_periods=5, lab_sessions=1.5),
    FacultyDesignation.assistant_professor: WorkloadLimits(theory_periods=10, lab_sessions=2),
}


def designation_limits(designation: FacultyDesignation | str) -> WorkloadLimits:
    return FACULTY_WORKLOAD_LIMITS[FacultyDesignation(designation)]


def calculate_workload(
    faculty: list[Faculty],
    subjects: list[Subject],
    entries: list[TimetableEntry],
) -> list[WorkloadStats]:
    theory_counts: dict[str, int] = {}
    lab_keys: dict[str, set[tuple[int, str | None]]] = {}
    for entry in entries:
        if not entry.faculty_id:
            continue
        if entry.is_lab_session:
            # A lab session spans three periods but counts once.
            lab_keys.setdefault(entry.faculty_id, set()).add((entry.day, entry.lab_slot))
        else:
            theory_counts[entry.faculty_id] = theory_counts.get(entry.faculty_id, 0) + 1

    stats: list[WorkloadStats] = []
    for member in sorted(faculty, key=lambda item: item.id):
        limits = designation_limits(member.designation)
        theory_periods = theory_counts.get(member.id, 0)
        lab_sessions = len(lab_keys.get(member.id, ()))
        stats.append(
            WorkloadStats(
                faculty_id=member.id,
                faculty_name=member.name,
                designation=member.designation,
                theory_periods=theory_periods,
                theory_limit=limits.theory_periods,
                lab_sessions=lab_sessions,
                lab_limit=limits.lab_sessions,
                is_overloaded=theory_periods > limits.theory_periods or lab_sessions > limits.lab_sessions,
            )
        )
    return stats


def validate_workload(
    faculty: list[Faculty],
    subjects: list[Subject],
    entries: list[TimetableEntry],
) -> list[Explanation]:
    explanations: list[Explanation] = []
    for stat in calculate_workload(faculty, subjects, entries):
        designation = stat.designation.value
        if stat.theory_periods > stat.theory_limit:
            explanations.append(
                error(
                    ExplanationSource.workload,
                    f"{stat.faculty_name} ({designation}) has {stat.theory_periods} theory periods, "
                    f"exceeds limit of {stat.theory_limit}.",
                    step=WORKLOAD_STEP,
                    related_entity_id=stat.faculty_id,
                )
            )
        if stat.lab_sessions > stat.lab_limit:
            explanations.append(
                error(
                    ExplanationSource.workload,
                    f"{stat.faculty_name} ({designation}) has {stat.lab_sessions} lab sessions, "
                    f"exceeds limit of {stat.lab_limit:g}.",
                    step=WORKLOAD_STEP,
                    related_entity_id=stat.faculty_id,
                )
            )
        if not stat.is_overloaded:
            explanations.append(
                info(
                    ExplanationSource.workload,
                    f"{stat.faculty_name}: {stat.theory_periods}/{stat.theory_limit} theory, "
                    f"{stat.lab_sessions}/{stat.lab_limit:g} labs.",
                    step=WORKLOAD_STEP,
                    related_entity_id=stat.faculty_id,
                )
            )
    return explanations


def has_workload_violation(
    faculty: list[Faculty],
    subjects: list[Subject],
    entries: list[TimetableEntry],
) -> bool:
    return any(stat.is_overloaded for stat in calculate_workload(faculty, subjects, entries))
