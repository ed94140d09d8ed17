from pydantic import BaseModel, Field


class PeriodSlotOut(BaseModel):
    period: int
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")
    label: str
    is_special: bool = Field(default=False, alias="isSpecial")

    model_config = {"populate_by_name": True}


class BreakWindowOut(BaseModel):
    name: str
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")

    model_config = {"populate_by_name": True}


class LabSlotOut(BaseModel):
    name: str
    periods: list[int]
    label: str


class TimeStructureOut(BaseModel):
    days: list[str]
    periods: list[PeriodSlotOut]
    breaks: list[BreakWindowOut]
    lab_slots: list[LabSlotOut] = Field(alias="labSlots")
    min_lab_sessions_per_week: int = Field(alias="minLabSessionsPerWeek")

    model_config = {"populate_by_name": True}
