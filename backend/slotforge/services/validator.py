"""Pre-generation checks over the infrastructure and academic snapshots.

Every check returns explanations instead of raising, so a caller can show the
full list of configuration problems in one pass.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from slotforge.schemas.academic import AcademicSnapshot, Faculty, Subject, SubjectType
from slotforge.schemas.infrastructure import InfrastructureSnapshot
from slotforge.schemas.timetable import Explanation, ExplanationSource, error, has_errors, warning
from slotforge.services.workload import designation_limits

VALIDATION_STEP = 1
WORKLOAD_STEP = 8


@dataclass
class ValidationResult:
    is_valid: bool
    explanations: list[Explanation] = field(default_factory=list)


def _missing(label: str, noun: str) -> Explanation:
    return error(
        ExplanationSource.validator,
        f"No {label} defined. At least one {noun} is required.",
        step=VALIDATION_STEP,
    )


def validate_infrastructure(infrastructure: InfrastructureSnapshot) -> list[Explanation]:
    explanations: list[Explanation] = []

    if not infrastructure.blocks:
        explanations.append(_missing("blocks", "block"))
    if not infrastructure.departments:
        explanations.append(_missing("departments", "department"))

    if not infrastructure.classrooms:
        explanations.append(_missing("classrooms", "classroom"))
    for classroom in infrastructure.classrooms:
        if classroom.capacity <= 0:
            explanations.append(
                error(
                    ExplanationSource.validator,
                    f'Classroom "{classroom.name}" has invalid capacity ({classroom.capacity}). Capacity must be > 0.',
                    step=VALIDATION_STEP,
                    related_entity_id=classroom.id,
                )
            )

    if not infrastructure.labs:
        explanations.append(_missing("labs", "lab"))
    for lab in infrastructure.labs:
        if lab.capacity <= 0:
            explanations.append(
                error(
                    ExplanationSource.validator,
                    f'Lab "{lab.name}" has invalid capacity ({lab.capacity}). Capacity must be > 0.',
                    step=VALIDATION_STEP,
                    related_entity_id=lab.id,
                )
            )

    return explanations


def validate_academic(academic: AcademicSnapshot, infrastructure: InfrastructureSnapshot) -> list[Explanation]:
    explanations: list[Explanation] = []
    department_ids = {department.id for department in infrastructure.departments}

    if not academic.batches:
        explanations.append(_missing("batches", "batch"))

    for batch in academic.batches:
        if batch.total_students <= 0:
            explanations.append(
                error(
                    ExplanationSource.validator,
                    f'Batch "{batch.name}" has invalid student count ({batch.total_students}).',
                    step=VALIDATION_STEP,
                    related_entity_id=batch.id,
                )
            )
        if batch.department_id not in department_ids:
            explanations.append(
                error(
                    ExplanationSource.validator,
                    f'Batch "{batch.name}" references non-existent department.',
                    step=VALIDATION_STEP,
                    related_entity_id=batch.id,
                )
            )

    if not academic.subjects:
        explanations.append(_missing("subjects", "subject"))

    if not any(subject.type == SubjectType.lab for subject in academic.subjects):
        explanations.append(
            warning(
                ExplanationSource.validator,
                "No lab subjects defined. Students need at least 2 lab sessions per week.",
                step=VALIDATION_STEP,
            )
        )

    if not academic.faculty:
        explanations.append(_missing("faculty", "faculty member"))

    return explanations


def validate_subject_assignments(subjects: list[Subject], faculty: list[Faculty]) -> list[Explanation]:
    explanations: list[Explanation] = []
    theory_assigned = {subject_id for member in faculty for subject_id in member.assigned_theory_subjects}
    lab_assigned = {subject_id for member in faculty for subject_id in member.assigned_lab_subjects}

    for subject in subjects:
        assigned = lab_assigned if subject.type == SubjectType.lab else theory_assigned
        if subject.id not in assigned:
            explanations.append(
                error(
                    ExplanationSource.validator,
                    f'Subject "{subject.name}" ({subject.code}) has no faculty assigned.',
                    step=VALIDATION_STEP,
                    related_entity_id=subject.id,
                )
            )
    return explanations


def validate_faculty_workload(faculty: list[Faculty], subjects: list[Subject]) -> list[Explanation]:
    """Check assigned (not yet placed) load against the designation limits."""
    explanations: list[Explanation] = []
    subject_by_id = {subject.id: subject for subject in subjects}

    for member in faculty:
        limits = designation_limits(member.designation)
        designation = member.designation.value

        theory_periods = sum(
            subject_by_id[subject_id].periods_per_week
            for subject_id in member.assigned_theory_subjects
            if subject_id in subject_by_id
        )
        if theory_periods > limits.theory_periods:
            explanations.append(
                error(
                    ExplanationSource.workload,
                    f"{member.name} ({designation}) has {theory_periods} theory periods assigned, "
                    f"exceeds limit of {limits.theory_periods}.",
                    step=WORKLOAD_STEP,
                    related_entity_id=member.id,
                )
            )

        lab_sessions = len(member.assigned_lab_subjects)
        if lab_sessions > limits.lab_sessions:
            explanations.append(
                error(
                    ExplanationSource.workload,
                    f"{member.name} ({designation}) has {lab_sessions} lab sessions assigned, "
                    f"exceeds limit of {limits.lab_sessions:g}.",
                    step=WORKLOAD_STEP,
                    related_entity_id=member.id,
                )
            )

    return explanations


def validate_all(infrastructure: InfrastructureSnapshot, academic: AcademicSnapshot) -> ValidationResult:
    explanations: list[Explanation] = []
    explanations.extend(validate_infrastructure(infrastructure))
    explanations.extend(validate_academic(academic, infrastructure))

    if academic.subjects and academic.faculty:
        explanations.extend(validate_subject_assignments(academic.subjects, academic.faculty))
        explanations.extend(validate_faculty_workload(academic.faculty, academic.subjects))

    return ValidationResult(is_valid=not has_errors(explanations), explanations=explanations)
