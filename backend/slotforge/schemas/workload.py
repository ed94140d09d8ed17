from __future__ import annotations

from pydantic import BaseModel, Field

from slotforge.schemas.academic import Faculty, FacultyDesignation, Subject
from slotforge.schemas.timetable import TimetableEntry


class WorkloadLimits(BaseModel):
    theory_periods: int = Field(alias="theoryPeriods", ge=0)
    # Fractional for associate professors; compared directly against whole session counts.
    lab_sessions: float = Field(alias="labSessions", ge=0)

    model_config = {
        "populate_by_name": True,
        "frozen": True,
    }


class WorkloadStats(BaseModel):
    faculty_id: str = Field(alias="facultyId")
    faculty_name: str = Field(alias="facultyName")
    designation: FacultyDesignation
    theory_periods: int = Field(alias="theoryPeriods", ge=0)
    theory_limit: int = Field(alias="theoryLimit", ge=0)
    lab_sessions: int = Field(alias="labSessions", ge=0)
    lab_limit: float = Field(alias="labLimit", ge=0)
    is_overloaded: bool = Field(alias="isOverloaded")

    model_config = {
        "populate_by_name": True,
        "from_attributes": True,
    }


class WorkloadRequest(BaseModel):
    faculty: list[Faculty] = Field(default_factory=list)
    subjects: list[Subject] = Field(default_factory=list)
    entries: list[TimetableEntry] = Field(default_factory=list)


class WorkloadReport(BaseModel):
    stats: list[WorkloadStats] = Field(default_factory=list)
    has_violation: bool = Field(alias="hasViolation")

    model_config = {
        "populate_by_name": True,
    }
