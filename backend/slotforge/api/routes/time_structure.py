from fastapi import APIRouter

from slotforge.core.time_structure import (
    BREAK_TIME,
    DAY_NAMES,
    LAB_SLOTS,
    LUNCH_TIME,
    MIN_LAB_SESSIONS_PER_WEEK,
    PERIOD_SCHEDULE,
    format_period_time,
    lab_slot_label,
)
from slotforge.schemas.time_structure import BreakWindowOut, LabSlotOut, PeriodSlotOut, TimeStructureOut

router = APIRouter()


@router.get("/time-structure", response_model=TimeStructureOut)
def read_time_structure() -> TimeStructureOut:
    return TimeStructureOut(
        days=list(DAY_NAMES),
        periods=[
            PeriodSlotOut(
                period=info.period,
                start_time=info.start_time,
                end_time=info.end_time,
                label=format_period_time(info.period),
                is_special=info.is_special,
            )
            for info in PERIOD_SCHEDULE
        ],
        breaks=[
            BreakWindowOut(name="Break", start_time=BREAK_TIME[0], end_time=BREAK_TIME[1]),
            BreakWindowOut(name="Lunch", start_time=LUNCH_TIME[0], end_time=LUNCH_TIME[1]),
        ],
        lab_slots=[
            LabSlotOut(name=name, periods=list(periods), label=lab_slot_label(name))
            for name, periods in LAB_SLOTS.items()
        ],
        min_lab_sessions_per_week=MIN_LAB_SESSIONS_PER_WEEK,
    )
