from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable

from slotforge.schemas.timetable import TimetableEntry

SlotKey = tuple[int, int]


class OccupancyIndex:
    """Tracks which batches, faculty and rooms are busy at each (day, period).

    Entries are indexed in placement order; lookups are constant time so the
    placement phases never rescan the growing entry list.
    """

    def __init__(self, entries: Iterable[TimetableEntry] = ()) -> None:
        self._batches: dict[SlotKey, set[str]] = defaultdict(set)
        self._faculty: dict[SlotKey, set[str]] = defaultdict(set)
        self._rooms: dict[SlotKey, set[str]] = defaultdict(set)
        self.add_all(entries)

    def add(self, entry: TimetableEntry) -> None:
        key = (entry.day, entry.period)
        self._batches[key].add(entry.batch_id)
        if entry.faculty_id:
            self._faculty[key].add(entry.faculty_id)
        if entry.room_id:
            self._rooms[key].add(entry.room_id)

    def add_all(self, entries: Iterable[TimetableEntry]) -> None:
        for entry in entries:
            self.add(entry)

    def batch_free(self, batch_id: str, day: int, period: int) -> bool:
        return batch_id not in self._batches.get((day, period), ())

    def faculty_free(self, faculty_id: str, day: int, period: int) -> bool:
        return faculty_id not in self._faculty.get((day, period), ())

    def room_free(self, room_id: str, day: int, period: int) -> bool:
        return room_id not in self._rooms.get((day, period), ())

    def batch_free_for(self, batch_id: str, day: int, periods: Iterable[int]) -> bool:
        return all(self.batch_free(batch_id, day, period) for period in periods)

    def faculty_free_for(self, faculty_id: str, day: int, periods: Iterable[int]) -> bool:
        return all(self.faculty_free(faculty_id, day, period) for period in periods)

    def room_free_for(self, room_id: str, day: int, periods: Iterable[int]) -> bool:
        return all(self.room_free(room_id, day, period) for period in periods)
