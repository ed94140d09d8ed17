from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from slotforge.core.time_structure import (
    LAB_SLOTS,
    MIN_LAB_SESSIONS_PER_WEEK,
    WORKING_DAYS,
    LabSlotName,
    day_label,
)
from slotforge.schemas.academic import Batch, Faculty, SubBatch, Subject, SubjectType
from slotforge.schemas.infrastructure import Lab
from slotforge.schemas.timetable import (
    Explanation,
    ExplanationSource,
    LabRotation,
    TimetableEntry,
    error,
    info,
    warning,
)
from slotforge.services.identity import IdentitySource, UuidIdentitySource
from slotforge.services.occupancy import OccupancyIndex

LAB_STEP = 3

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LabWindow:
    day: int
    slot: LabSlotName
    periods: tuple[int, ...]

    @property
    def key(self) -> tuple[int, str]:
        return (self.day, self.slot)

    def describe(self) -> str:
        return f"Slot {self.slot}, {day_label(self.day)}"


@dataclass
class LabAllocationResult:
    entries: list[TimetableEntry] = field(default_factory=list)
    rotations: list[LabRotation] = field(default_factory=list)
    explanations: list[Explanation] = field(default_factory=list)
    success: bool = False


def available_lab_windows(occupancy: OccupancyIndex, batch_id: str) -> list[LabWindow]:
    """Free lab windows for a batch, day ascending with Slot A before Slot B."""
    windows: list[LabWindow] = []
    for day in sorted(WORKING_DAYS):
        for slot, periods in LAB_SLOTS.items():
            if occupancy.batch_free_for(batch_id, day, periods):
                windows.append(LabWindow(day=day, slot=slot, periods=periods))
    return windows


def _latest_rotation(rotations: list[LabRotation], batch_id: str, sub_batch_id: str) -> LabRotation | None:
    for rotation in reversed(rotations):
        if rotation.batch_id == batch_id and rotation.sub_batch_id == sub_batch_id:
            return rotation
    return None


class LabAllocator:
    """Places the weekly lab sessions of one batch before anything else is scheduled.

    Every session occupies one full lab window (three consecutive periods).
    When the batch is split into sub-batches, each sub-batch gets its own lab
    and instructor for the session, and the lab choice rotates between
    sessions and between generation runs.
    """

    def __init__(self, identity: IdentitySource | None = None) -> None:
        self.identity = identity or UuidIdentitySource()

    def allocate(
        self,
        batch: Batch,
        lab_subjects: list[Subject],
        labs: list[Lab],
        faculty: list[Faculty],
        occupancy: OccupancyIndex | Iterable[TimetableEntry] = (),
        existing_rotations: list[LabRotation] | None = None,
    ) -> LabAllocationResult:
        if not isinstance(occupancy, OccupancyIndex):
            occupancy = OccupancyIndex(occupancy)
        result = LabAllocationResult()

        subjects = sorted(
            (
                subject
                for subject in lab_subjects
                if subject.type == SubjectType.lab
                and subject.department_id == batch.department_id
                and subject.semester == batch.semester
            ),
            key=lambda subject: subject.id,
        )
        if not subjects:
            return self._abort(result, batch, f'No lab subjects found for batch "{batch.name}".')

        department_labs = sorted(
            (lab for lab in labs if lab.department_id == batch.department_id),
            key=lambda lab: lab.id,
        )
        if not department_labs:
            return self._abort(result, batch, f'No labs available for batch "{batch.name}" in its department.')

        initial_windows = available_lab_windows(occupancy, batch.id)
        if len(initial_windows) < MIN_LAB_SESSIONS_PER_WEEK:
            return self._abort(
                result,
                batch,
                f'Not enough lab slots available for batch "{batch.name}". '
                f"Need {MIN_LAB_SESSIONS_PER_WEEK}, found {len(initial_windows)}.",
            )

        sub_batches = sorted(batch.sub_batches, key=lambda item: item.id)
        rotation_history = list(existing_rotations or [])
        target_sessions = max(len(subjects), MIN_LAB_SESSIONS_PER_WEEK)
        used_windows: set[tuple[int, str]] = set()
        unstaffed: set[str] = set()
        sessions = 0
        subject_cursor = 0

        while sessions < target_sessions:
            if len(unstaffed) == len(subjects):
                break

            subject = subjects[subject_cursor % len(subjects)]
            subject_cursor += 1
            lab_faculty = sorted(
                (member for member in faculty if subject.id in member.assigned_lab_subjects),
                key=lambda member: member.id,
            )
            if not lab_faculty:
                if subject.id not in unstaffed:
                    unstaffed.add(subject.id)
                    result.explanations.append(
                        error(
                            ExplanationSource.lab_allocator,
                            f'No faculty assigned to lab subject "{subject.name}".',
                            step=LAB_STEP,
                            related_entity_id=subject.id,
                        )
                    )
                continue

            # Availability is recomputed every round so sessions placed earlier in this call count.
            window = next(
                (
                    candidate
                    for candidate in available_lab_windows(occupancy, batch.id)
                    if candidate.key not in used_windows
                ),
                None,
            )
            if window is None:
                break
            used_windows.add(window.key)

            if len(sub_batches) > 1:
                placed = self._allocate_parallel(
                    result,
                    occupancy,
                    batch,
                    sub_batches,
                    subject,
                    department_labs,
                    lab_faculty,
                    window,
                    sessions,
                    rotation_history,
                )
            else:
                placed = self._allocate_whole_batch(
                    result,
                    occupancy,
                    batch,
                    subject,
                    department_labs[0],
                    lab_faculty[0],
                    window,
                )
            if placed:
                sessions += 1

        if len(sub_batches) > 1:
            covered = {rotation.sub_batch_id for rotation in result.rotations}
            for sub_batch in sub_batches:
                if sub_batch.id not in covered:
                    result.explanations.append(
                        warning(
                            ExplanationSource.lab_allocator,
                            f'Sub-batch {sub_batch.name} of batch "{batch.name}" has no lab session this week.',
                            step=LAB_STEP,
                            related_entity_id=sub_batch.id,
                        )
                    )

        if sessions < MIN_LAB_SESSIONS_PER_WEEK:
            result.explanations.append(
                error(
                    ExplanationSource.lab_allocator,
                    f'Could only allocate {sessions} lab sessions for batch "{batch.name}". '
                    f"Minimum required: {MIN_LAB_SESSIONS_PER_WEEK}.",
                    step=LAB_STEP,
                    related_entity_id=batch.id,
                )
            )
            logger.warning("Lab allocation for batch %s placed %d sessions", batch.id, sessions)
            result.success = False
            return result

        result.success = True
        return result

    def _allocate_parallel(
        self,
        result: LabAllocationResult,
        occupancy: OccupancyIndex,
        batch: Batch,
        sub_batches: list[SubBatch],
        subject: Subject,
        department_labs: list[Lab],
        lab_faculty: list[Faculty],
        window: LabWindow,
        session_number: int,
        rotation_history: list[LabRotation],
    ) -> bool:
        placed_any = False
        for ordinal, sub_batch in enumerate(sub_batches):
            lab = self._rotated_lab(batch, sub_batch, ordinal, department_labs, rotation_history)
            if not occupancy.room_free_for(lab.id, window.day, window.periods):
                lab = next(
                    (
                        candidate
                        for candidate in department_labs
                        if occupancy.room_free_for(candidate.id, window.day, window.periods)
                    ),
                    None,
                )
            if lab is None:
                result.explanations.append(
                    warning(
                        ExplanationSource.lab_allocator,
                        f"No free lab for {subject.name} sub-batch {sub_batch.name} at {window.describe()}.",
                        step=LAB_STEP,
                        related_entity_id=subject.id,
                    )
                )
                continue

            candidate = lab_faculty[ordinal % len(lab_faculty)]
            if occupancy.faculty_free_for(candidate.id, window.day, window.periods):
                instructor = candidate
            else:
                instructor = next(
                    (
                        member
                        for member in lab_faculty
                        if occupancy.faculty_free_for(member.id, window.day, window.periods)
                    ),
                    None,
                )
            if instructor is None:
                result.explanations.append(
                    warning(
                        ExplanationSource.lab_allocator,
                        f"No available faculty for {subject.name} sub-batch {sub_batch.name} at {window.describe()}.",
                        step=LAB_STEP,
                        related_entity_id=subject.id,
                    )
                )
                continue

            self._place(result, occupancy, batch, subject, instructor.id, lab.id, window, sub_batch.id)
            rotation = LabRotation(
                batch_id=batch.id,
                sub_batch_id=sub_batch.id,
                session_number=session_number,
                lab_id=lab.id,
            )
            result.rotations.append(rotation)
            rotation_history.append(rotation)
            result.explanations.append(
                info(
                    ExplanationSource.lab_allocator,
                    f"Allocated {subject.name} for {batch.name}-{sub_batch.name} in {lab.name} ({window.describe()}).",
                    step=LAB_STEP,
                    related_entity_id=batch.id,
                )
            )
            placed_any = True
        return placed_any

    def _allocate_whole_batch(
        self,
        result: LabAllocationResult,
        occupancy: OccupancyIndex,
        batch: Batch,
        subject: Subject,
        lab: Lab,
        instructor: Faculty,
        window: LabWindow,
    ) -> bool:
        # No alternates here; a busy lab or instructor skips the session.
        if not occupancy.room_free_for(lab.id, window.day, window.periods) or not occupancy.faculty_free_for(
            instructor.id, window.day, window.periods
        ):
            result.explanations.append(
                warning(
                    ExplanationSource.lab_allocator,
                    f"{lab.name} or {instructor.name} is already booked for {subject.name} at {window.describe()}.",
                    step=LAB_STEP,
                    related_entity_id=subject.id,
                )
            )
            return False

        self._place(result, occupancy, batch, subject, instructor.id, lab.id, window, None)
        result.explanations.append(
            info(
                ExplanationSource.lab_allocator,
                f"Allocated {subject.name} for {batch.name} in {lab.name} ({window.describe()}).",
                step=LAB_STEP,
                related_entity_id=batch.id,
            )
        )
        return True

    @staticmethod
    def _rotated_lab(
        batch: Batch,
        sub_batch: SubBatch,
        ordinal: int,
        department_labs: list[Lab],
        rotation_history: list[LabRotation],
    ) -> Lab:
        previous = _latest_rotation(rotation_history, batch.id, sub_batch.id)
        if previous is None:
            # Sub-batches start on different labs.
            return department_labs[ordinal % len(department_labs)]
        lab_ids = [lab.id for lab in department_labs]
        previous_index = lab_ids.index(previous.lab_id) if previous.lab_id in lab_ids else -1
        return department_labs[(previous_index + 1) % len(department_labs)]

    def _place(
        self,
        result: LabAllocationResult,
        occupancy: OccupancyIndex,
        batch: Batch,
        subject: Subject,
        faculty_id: str,
        room_id: str,
        window: LabWindow,
        sub_batch_id: str | None,
    ) -> None:
        for period in window.periods:
            entry = TimetableEntry(
                id=self.identity.next_id(),
                slot_id=f"{window.day}-{period}",
                day=window.day,
                period=period,
                subject_id=subject.id,
                faculty_id=faculty_id,
                room_id=room_id,
                batch_id=batch.id,
                sub_batch_id=sub_batch_id,
                is_lab_session=True,
                lab_slot=window.slot,
                created_at=self.identity.now(),
            )
            occupancy.add(entry)
            result.entries.append(entry)

    @staticmethod
    def _abort(result: LabAllocationResult, batch: Batch, message: str) -> LabAllocationResult:
        result.explanations.append(
            error(ExplanationSource.lab_allocator, message, step=LAB_STEP, related_entity_id=batch.id)
        )
        result.success = False
        logger.warning("Lab allocation aborted for batch %s: %s", batch.id, message)
        return result
