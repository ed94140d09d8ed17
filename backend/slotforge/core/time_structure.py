from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

LabSlotName = Literal["A", "B"]


@dataclass(frozen=True)
class PeriodInfo:
    period: int
    start_time: str
    end_time: str
    is_special: bool = False


# Locked weekly grid. Period 8 is reserved for honors/minors.
PERIOD_SCHEDULE: tuple[PeriodInfo, ...] = (
    PeriodInfo(1, "08:30", "09:20"),
    PeriodInfo(2, "09:20", "10:10"),
    PeriodInfo(3, "10:25", "11:15"),
    PeriodInfo(4, "11:15", "12:05"),
    PeriodInfo(5, "12:45", "13:35"),
    PeriodInfo(6, "13:35", "14:25"),
    PeriodInfo(7, "14:25", "15:15"),
    PeriodInfo(8, "15:15", "16:15", is_special=True),
)

BREAK_TIME = ("10:10", "10:25")
LUNCH_TIME = ("12:05", "12:45")

DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")
WORKING_DAYS: tuple[int, ...] = (0, 1, 2, 3, 4, 5)
SPECIAL_PERIOD = 8

LAB_SLOT_A: tuple[int, ...] = (2, 3, 4)
LAB_SLOT_B: tuple[int, ...] = (5, 6, 7)
LAB_SLOTS: dict[str, tuple[int, ...]] = {"A": LAB_SLOT_A, "B": LAB_SLOT_B}

MIN_LAB_SESSIONS_PER_WEEK = 2
DEFAULT_LAB_CAPACITY = 30

MANDATORY_PERIOD = 3
MANDATORY_DAYS: tuple[int, ...] = (0, 1)
OPEN_ELECTIVE_PERIOD = 1
OPEN_ELECTIVE_DAYS: tuple[int, ...] = (0, 1, 2)
# Period 1 is kept for electives, 3 for mandatory courses.
THEORY_PERIODS: tuple[int, ...] = (2, 4, 5, 6, 7)
LIBRARY_PERIODS: tuple[int, ...] = (1, 2, 4, 5, 6, 7)


def period_info(period: int) -> PeriodInfo | None:
    for info in PERIOD_SCHEDULE:
        if info.period == period:
            return info
    return None


def format_period_time(period: int) -> str:
    info = period_info(period)
    return f"{info.start_time} - {info.end_time}" if info else ""


def lab_slot_label(slot: LabSlotName) -> str:
    periods = LAB_SLOTS[slot]
    start = period_info(periods[0])
    end = period_info(periods[-1])
    return f"{start.start_time} - {end.end_time}" if start and end else ""


def lab_slot_for_periods(periods: list[int] | tuple[int, ...]) -> LabSlotName | None:
    ordered = tuple(sorted(periods))
    for name, window in LAB_SLOTS.items():
        if ordered == window:
            return name  # type: ignore[return-value]
    return None


def day_label(day: int) -> str:
    if 0 <= day < len(DAY_NAMES):
        return DAY_NAMES[day]
    return f"Day {day + 1}"
