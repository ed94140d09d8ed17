"""Ten-step weekly timetable generation for a single batch.

Steps run strictly in order:

1. validate inputs
2. lock the academic time structure (log marker)
3. allocate labs
4. place mandatory subjects (period 3, Monday/Tuesday)
5. distribute theory subjects round robin
6. place open electives (period 1, Monday-Wednesday)
7. auto-fill one library period
8. validate faculty workload
9. final validation (log marker)
10. publish the timetable

Only steps 1, 3 and 8 can fail a run. The placement phases 4-7 degrade to
warnings and leave the slot empty.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from slotforge.core.time_structure import (
    DEFAULT_LAB_CAPACITY,
    LIBRARY_PERIODS,
    MANDATORY_DAYS,
    MANDATORY_PERIOD,
    OPEN_ELECTIVE_DAYS,
    OPEN_ELECTIVE_PERIOD,
    THEORY_PERIODS,
    WORKING_DAYS,
    day_label,
)
from slotforge.schemas.academic import AcademicSnapshot, Batch, Faculty, Subject, SubjectType, split_sub_batches
from slotforge.schemas.infrastructure import Classroom, InfrastructureSnapshot
from slotforge.schemas.timetable import (
    Explanation,
    ExplanationSource,
    GenerationResult,
    LabRotation,
    Timetable,
    TimetableEntry,
    error,
    info,
    warning,
)
from slotforge.services.identity import IdentitySource, UuidIdentitySource
from slotforge.services.lab_allocator import LabAllocator
from slotforge.services.occupancy import OccupancyIndex
from slotforge.services.validator import validate_all
from slotforge.services.workload import has_workload_violation, validate_workload

logger = logging.getLogger(__name__)


def department_lab_capacity(infrastructure: InfrastructureSnapshot, department_id: str, default: int) -> int:
    capacities = [lab.capacity for lab in infrastructure.labs if lab.department_id == department_id and lab.capacity > 0]
    return max(capacities) if capacities else default


def ensure_sub_batches(batch: Batch, infrastructure: InfrastructureSnapshot, default_lab_capacity: int) -> Batch:
    if batch.sub_batches:
        return batch
    capacity = department_lab_capacity(infrastructure, batch.department_id, default_lab_capacity)
    return batch.model_copy(update={"sub_batches": split_sub_batches(batch.id, batch.total_students, capacity)})


def _first_theory_faculty(faculty: list[Faculty], subject_id: str) -> Faculty | None:
    assigned = sorted(
        (member for member in faculty if subject_id in member.assigned_theory_subjects),
        key=lambda member: member.id,
    )
    return assigned[0] if assigned else None


class TimetableScheduler:
    def __init__(
        self,
        infrastructure: InfrastructureSnapshot,
        academic: AcademicSnapshot,
        *,
        existing_rotations: Iterable[LabRotation] = (),
        committed_entries: Iterable[TimetableEntry] = (),
        identity: IdentitySource | None = None,
        default_lab_capacity: int = DEFAULT_LAB_CAPACITY,
    ) -> None:
        self.infrastructure = infrastructure
        self.academic = academic
        self.existing_rotations = list(existing_rotations)
        self.committed_entries = list(committed_entries)
        self.identity = identity or UuidIdentitySource()
        self.default_lab_capacity = default_lab_capacity
        self._reset()

    def _reset(self) -> None:
        # Each run starts from the committed entries only.
        self.explanations: list[Explanation] = []
        self.entries: list[TimetableEntry] = []
        self.occupancy = OccupancyIndex(self.committed_entries)

    def run(self, batch_id: str) -> GenerationResult:
        logger.info("Starting timetable generation for batch %s", batch_id)
        self._reset()

        # Step 1
        validation = validate_all(self.infrastructure, self.academic)
        self.explanations.extend(validation.explanations)
        if not validation.is_valid:
            return self._fail(batch_id, step=1)
        self.explanations.append(info(ExplanationSource.validator, "All inputs validated successfully.", step=1))

        batch = self.academic.find_batch(batch_id)
        if batch is None:
            self.explanations.append(
                error(ExplanationSource.scheduler, f'Batch with ID "{batch_id}" not found.', step=2)
            )
            return self._fail(batch_id, step=2)
        batch = ensure_sub_batches(batch, self.infrastructure, self.default_lab_capacity)

        # Step 2
        self.explanations.append(info(ExplanationSource.scheduler, "Academic time structure locked.", step=2))

        # Step 3
        lab_result = LabAllocator(self.identity).allocate(
            batch,
            [subject for subject in self.academic.subjects if subject.type == SubjectType.lab],
            self.infrastructure.department_labs(batch.department_id),
            self.academic.faculty,
            self.occupancy,
            self.existing_rotations,
        )
        self.explanations.extend(lab_result.explanations)
        if not lab_result.success:
            return self._fail(batch_id, step=3)
        self.entries.extend(lab_result.entries)

        # Steps 4-7
        self._place_mandatory_subjects(batch)
        self._distribute_theory_subjects(batch)
        self._place_open_electives(batch)
        self._auto_fill_library(batch)

        # Step 8
        workload_entries = self.committed_entries + self.entries
        self.explanations.extend(validate_workload(self.academic.faculty, self.academic.subjects, workload_entries))
        if has_workload_violation(self.academic.faculty, self.academic.subjects, workload_entries):
            self.explanations.append(
                error(ExplanationSource.workload, "Faculty workload limits exceeded. Generation failed.", step=8)
            )
            return self._fail(batch_id, step=8)

        # Step 9
        self.explanations.append(
            info(ExplanationSource.scheduler, "Final validation passed. No constraint violations.", step=9)
        )

        # Step 10
        timetable = Timetable(
            id=self.identity.next_id(),
            batch_id=batch.id,
            entries=sorted(self.entries, key=lambda entry: (entry.day, entry.period)),
            generated_at=self.identity.now(),
            is_valid=True,
        )
        self.explanations.append(
            info(
                ExplanationSource.scheduler,
                f'Timetable generated successfully for batch "{batch.name}" with {len(timetable.entries)} entries.',
                step=10,
            )
        )
        logger.info("Generated %d entries for batch %s", len(timetable.entries), batch.id)
        return GenerationResult(
            success=True,
            timetable=timetable,
            explanations=self.explanations,
            lab_rotations=lab_result.rotations,
        )

    def _fail(self, batch_id: str, *, step: int) -> GenerationResult:
        logger.warning("Timetable generation for batch %s aborted at step %d", batch_id, step)
        return GenerationResult(success=False, explanations=self.explanations)

    def _add_entry(self, batch: Batch, subject: Subject, faculty_id: str, room_id: str, day: int, period: int) -> None:
        entry = TimetableEntry(
            id=self.identity.next_id(),
            slot_id=f"{day}-{period}",
            day=day,
            period=period,
            subject_id=subject.id,
            faculty_id=faculty_id,
            room_id=room_id,
            batch_id=batch.id,
            is_lab_session=False,
            created_at=self.identity.now(),
        )
        self.occupancy.add(entry)
        self.entries.append(entry)

    def _free_classroom(self, batch: Batch, day: int, period: int, *, require_capacity: bool) -> Classroom | None:
        for classroom in self.infrastructure.department_classrooms(batch.department_id):
            if require_capacity and classroom.capacity < batch.total_students:
                continue
            if self.occupancy.room_free(classroom.id, day, period):
                return classroom
        return None

    def _place_mandatory_subjects(self, batch: Batch) -> None:
        step = 4
        period = MANDATORY_PERIOD
        source = ExplanationSource.scheduler

        for index, subject in enumerate(self.academic.scoped_subjects(batch, SubjectType.mandatory)):
            if index >= len(MANDATORY_DAYS):
                self.explanations.append(
                    warning(
                        source,
                        f'Cannot place mandatory subject "{subject.name}" - no available slots (Period 3, Mon/Tue).',
                        step=step,
                        related_entity_id=subject.id,
                    )
                )
                continue

            day = MANDATORY_DAYS[index]
            where = f"{day_label(day)}, Period {period}"
            if not self.occupancy.batch_free(batch.id, day, period):
                self.explanations.append(
                    warning(
                        source,
                        f'Slot for mandatory "{subject.name}" ({where}) is occupied.',
                        step=step,
                        related_entity_id=subject.id,
                    )
                )
                continue

            instructor = _first_theory_faculty(self.academic.faculty, subject.id)
            if instructor is None:
                self.explanations.append(
                    error(
                        source,
                        f'No faculty assigned to mandatory subject "{subject.name}".',
                        step=step,
                        related_entity_id=subject.id,
                    )
                )
                continue

            if not self.occupancy.faculty_free(instructor.id, day, period):
                self.explanations.append(
                    warning(
                        source,
                        f'Faculty "{instructor.name}" is unavailable for mandatory "{subject.name}" ({where}).',
                        step=step,
                        related_entity_id=subject.id,
                    )
                )
                continue

            classroom = self._free_classroom(batch, day, period, require_capacity=True)
            if classroom is None:
                self.explanations.append(
                    error(
                        source,
                        f'No available classroom with sufficient capacity for batch "{batch.name}" at {where}.',
                        step=step,
                        related_entity_id=batch.id,
                    )
                )
                continue

            self._add_entry(batch, subject, instructor.id, classroom.id, day, period)
            self.explanations.append(
                info(source, f'Placed mandatory "{subject.name}" on {where}.', step=step, related_entity_id=subject.id)
            )

    def _distribute_theory_subjects(self, batch: Batch) -> None:
        step = 5
        source = ExplanationSource.scheduler
        days = sorted(WORKING_DAYS)
        periods = THEORY_PERIODS
        max_attempts = len(days) * len(periods) * 2
        # Shared across subjects so consecutive subjects start on different days.
        day_cursor = 0

        for subject in self.academic.scoped_subjects(batch, SubjectType.theory):
            instructor = _first_theory_faculty(self.academic.faculty, subject.id)
            if instructor is None:
                self.explanations.append(
                    error(
                        source,
                        f'No faculty assigned to theory subject "{subject.name}".',
                        step=step,
                        related_entity_id=subject.id,
                    )
                )
                continue

            # Chosen once per subject; a transiently busy room is not swapped out.
            classroom = next(
                (
                    room
                    for room in self.infrastructure.department_classrooms(batch.department_id)
                    if room.capacity >= batch.total_students
                ),
                None,
            )
            if classroom is None:
                self.explanations.append(
                    warning(
                        source,
                        f'No classroom with sufficient capacity for theory "{subject.name}" in batch "{batch.name}".',
                        step=step,
                        related_entity_id=subject.id,
                    )
                )
                continue

            required = subject.periods_per_week
            placed = 0
            attempts = 0
            period_cursor = 0
            while placed < required and attempts < max_attempts:
                day = days[day_cursor % len(days)]
                period = periods[period_cursor % len(periods)]
                if (
                    self.occupancy.batch_free(batch.id, day, period)
                    and self.occupancy.faculty_free(instructor.id, day, period)
                    and self.occupancy.room_free(classroom.id, day, period)
                ):
                    self._add_entry(batch, subject, instructor.id, classroom.id, day, period)
                    placed += 1
                    day_cursor += 1

                period_cursor += 1
                if period_cursor % len(periods) == 0:
                    day_cursor += 1
                attempts += 1

            if placed < required:
                self.explanations.append(
                    warning(
                        source,
                        f'Could only place {placed}/{required} periods for "{subject.name}".',
                        step=step,
                        related_entity_id=subject.id,
                    )
                )
            else:
                self.explanations.append(
                    info(
                        source,
                        f'Placed {placed} periods for theory "{subject.name}".',
                        step=step,
                        related_entity_id=subject.id,
                    )
                )

    def _place_open_electives(self, batch: Batch) -> None:
        step = 6
        period = OPEN_ELECTIVE_PERIOD
        source = ExplanationSource.scheduler

        for index, subject in enumerate(self.academic.scoped_subjects(batch, SubjectType.open_elective)):
            if index >= len(OPEN_ELECTIVE_DAYS):
                self.explanations.append(
                    warning(
                        source,
                        f'Cannot place open elective "{subject.name}" - no available slots (Period 1, Mon-Wed).',
                        step=step,
                        related_entity_id=subject.id,
                    )
                )
                continue

            day = OPEN_ELECTIVE_DAYS[index]
            where = f"{day_label(day)}, Period {period}"
            if not self.occupancy.batch_free(batch.id, day, period):
                self.explanations.append(
                    warning(
                        source,
                        f'Slot for open elective "{subject.name}" ({where}) is occupied.',
                        step=step,
                        related_entity_id=subject.id,
                    )
                )
                continue

            instructor = _first_theory_faculty(self.academic.faculty, subject.id)
            if instructor is None:
                self.explanations.append(
                    warning(
                        source,
                        f'No faculty assigned to open elective "{subject.name}".',
                        step=step,
                        related_entity_id=subject.id,
                    )
                )
                continue

            if not self.occupancy.faculty_free(instructor.id, day, period):
                self.explanations.append(
                    warning(
                        source,
                        f'Faculty unavailable for open elective "{subject.name}" ({where}).',
                        step=step,
                        related_entity_id=subject.id,
                    )
                )
                continue

            classroom = self._free_classroom(batch, day, period, require_capacity=False)
            if classroom is None:
                self.explanations.append(
                    warning(
                        source,
                        f'No free classroom for open elective "{subject.name}" ({where}).',
                        step=step,
                        related_entity_id=subject.id,
                    )
                )
                continue

            self._add_entry(batch, subject, instructor.id, classroom.id, day, period)
            self.explanations.append(
                info(source, f'Placed open elective "{subject.name}" on {where}.', step=step, related_entity_id=subject.id)
            )

    def _auto_fill_library(self, batch: Batch) -> None:
        library_subjects = self.academic.scoped_subjects(batch, SubjectType.library)
        if not library_subjects:
            return
        subject = library_subjects[0]

        for day in sorted(WORKING_DAYS):
            for period in LIBRARY_PERIODS:
                if self.occupancy.batch_free(batch.id, day, period):
                    self._add_entry(batch, subject, "", "", day, period)
                    self.explanations.append(
                        info(
                            ExplanationSource.scheduler,
                            f"Auto-filled Library on {day_label(day)}, Period {period}.",
                            step=7,
                            related_entity_id=subject.id,
                        )
                    )
                    return


def generate_timetable(
    infrastructure: InfrastructureSnapshot,
    academic: AcademicSnapshot,
    batch_id: str,
    existing_rotations: Iterable[LabRotation] = (),
    committed_entries: Iterable[TimetableEntry] = (),
    identity: IdentitySource | None = None,
    default_lab_capacity: int = DEFAULT_LAB_CAPACITY,
) -> GenerationResult:
    """Generate one batch's weekly timetable.

    ``committed_entries`` are published entries of other batches; they block
    shared faculty and rooms but are not part of the returned timetable.
    Deterministic for a deterministic ``identity``.
    """
    scheduler = TimetableScheduler(
        infrastructure,
        academic,
        existing_rotations=existing_rotations,
        committed_entries=committed_entries,
        identity=identity,
        default_lab_capacity=default_lab_capacity,
    )
    return scheduler.run(batch_id)
