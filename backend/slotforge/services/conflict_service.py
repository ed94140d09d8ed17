from collections import defaultdict
from typing import Dict, List, Tuple

from slotforge.core.time_structure import day_label, lab_slot_for_periods
from slotforge.schemas.academic import Subject, SubjectType, is_valid_slot_for_subject
from slotforge.schemas.conflict import ConflictDetail, ConflictReport
from slotforge.schemas.timetable import Timetable, TimetableEntry


class ConflictService:
    def __init__(self, timetable: Timetable, subjects: List[Subject]):
        self.timetable = timetable
        self.entries: List[TimetableEntry] = timetable.entries
        self.subject_map: Dict[str, Subject] = {subject.id: subject for subject in subjects}

    def detect_conflicts(self) -> ConflictReport:
        conflicts: List[ConflictDetail] = []
        conflicts.extend(self._resource_conflicts())
        conflicts.extend(self._placement_conflicts())
        conflicts.extend(self._lab_window_conflicts())
        conflicts.extend(self._library_conflicts())
        return ConflictReport(batch_id=self.timetable.batch_id, conflicts=conflicts)

    def _resource_conflicts(self) -> List[ConflictDetail]:
        conflicts: List[ConflictDetail] = []

        # Bucket by (day, period) instead of comparing every pair in the week
        entries_by_slot: Dict[Tuple[int, int], List[TimetableEntry]] = defaultdict(list)
        for entry in self.entries:
            entries_by_slot[(entry.day, entry.period)].append(entry)

        for (day, period), slot_entries in sorted(entries_by_slot.items()):
            where = f"{day_label(day)} P{period}"
            n = len(slot_entries)
            for i in range(n):
                e1 = slot_entries[i]
                for j in range(i + 1, n):
                    e2 = slot_entries[j]
                    if e1.room_id and e1.room_id == e2.room_id:
                        conflicts.append(ConflictDetail(
                            id=f"room-{e1.id}-{e2.id}",
                            conflict_type="room_conflict",
                            description=f"Room {e1.room_id} double-booked at {where}",
                            severity="hard",
                            affected_entries=[e1.id, e2.id],
                        ))
                    if e1.faculty_id and e1.faculty_id == e2.faculty_id:
                        conflicts.append(ConflictDetail(
                            id=f"fac-{e1.id}-{e2.id}",
                            conflict_type="faculty_conflict",
                            description=f"Faculty {e1.faculty_id} double-booked at {where}",
                            severity="hard",
                            affected_entries=[e1.id, e2.id],
                        ))
                    if e1.batch_id == e2.batch_id:
                        # Parallel sub-batch lab groups share the batch slot
                        if (
                            e1.is_lab_session
                            and e2.is_lab_session
                            and e1.sub_batch_id
                            and e2.sub_batch_id
                            and e1.sub_batch_id != e2.sub_batch_id
                        ):
                            continue
                        conflicts.append(ConflictDetail(
                            id=f"batch-{e1.id}-{e2.id}",
                            conflict_type="batch_conflict",
                            description=f"Batch {e1.batch_id} has two classes at {where}",
                            severity="hard",
                            affected_entries=[e1.id, e2.id],
                        ))
        return conflicts

    def _placement_conflicts(self) -> List[ConflictDetail]:
        conflicts: List[ConflictDetail] = []
        for entry in self.entries:
            subject = self.subject_map.get(entry.subject_id)
            if subject is None or subject.type in (SubjectType.lab, SubjectType.library):
                continue
            if not is_valid_slot_for_subject(subject.type, entry.day, entry.period, subject.constraints):
                conflicts.append(ConflictDetail(
                    id=f"rule-{entry.id}",
                    conflict_type="placement_rule",
                    description=(
                        f"{subject.type.value} subject {subject.name} is not allowed at "
                        f"{day_label(entry.day)} P{entry.period}"
                    ),
                    severity="hard",
                    affected_entries=[entry.id],
                ))
        return conflicts

    def _lab_window_conflicts(self) -> List[ConflictDetail]:
        conflicts: List[ConflictDetail] = []
        sessions: Dict[Tuple, List[TimetableEntry]] = defaultdict(list)
        for entry in self.entries:
            if entry.is_lab_session:
                sessions[(entry.day, entry.lab_slot, entry.sub_batch_id)].append(entry)

        for (day, slot, sub_batch_id), group in sessions.items():
            window = lab_slot_for_periods([entry.period for entry in group])
            shared = {(entry.subject_id, entry.faculty_id, entry.room_id) for entry in group}
            if window != slot or len(shared) != 1:
                label = f"sub-batch {sub_batch_id}" if sub_batch_id else "whole batch"
                conflicts.append(ConflictDetail(
                    id=f"lab-{day}-{slot}-{sub_batch_id or 'all'}",
                    conflict_type="lab_window",
                    description=f"Lab session for {label} on {day_label(day)} does not fill Slot {slot} consistently",
                    severity="hard",
                    affected_entries=[entry.id for entry in group],
                ))
        return conflicts

    def _library_conflicts(self) -> List[ConflictDetail]:
        library_ids = {
            subject_id for subject_id, subject in self.subject_map.items()
            if subject.type == SubjectType.library
        }
        library_entries = [entry for entry in self.entries if entry.subject_id in library_ids]
        if len(library_entries) <= 1:
            return []
        return [ConflictDetail(
            id=f"library-{self.timetable.batch_id}",
            conflict_type="library_limit",
            description=f"{len(library_entries)} library periods scheduled; at most one is allowed",
            severity="soft",
            affected_entries=[entry.id for entry in library_entries],
        )]
