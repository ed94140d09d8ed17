from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from slotforge.schemas.academic import AcademicSnapshot
from slotforge.schemas.infrastructure import InfrastructureSnapshot


class ExplanationLevel(str, Enum):
    info = "INFO"
    warning = "WARNING"
    error = "ERROR"


class ExplanationSource(str, Enum):
    validator = "VALIDATOR"
    lab_allocator = "LAB_ALLOCATOR"
    scheduler = "SCHEDULER"
    workload = "WORKLOAD"


class Explanation(BaseModel):
    level: ExplanationLevel
    source: ExplanationSource
    message: str
    related_entity_id: str | None = Field(default=None, alias="relatedEntityId")
    step: int | None = Field(default=None, ge=1, le=10)

    model_config = {
        "populate_by_name": True,
        "from_attributes": True,
    }


def info(source: ExplanationSource, message: str, *, step: int, related_entity_id: str | None = None) -> Explanation:
    return Explanation(
        level=ExplanationLevel.info,
        source=source,
        message=message,
        related_entity_id=related_entity_id,
        step=step,
    )


def warning(source: ExplanationSource, message: str, *, step: int, related_entity_id: str | None = None) -> Explanation:
    return Explanation(
        level=ExplanationLevel.warning,
        source=source,
        message=message,
        related_entity_id=related_entity_id,
        step=step,
    )


def error(source: ExplanationSource, message: str, *, step: int, related_entity_id: str | None = None) -> Explanation:
    return Explanation(
        level=ExplanationLevel.error,
        source=source,
        message=message,
        related_entity_id=related_entity_id,
        step=step,
    )


def has_errors(explanations: list[Explanation]) -> bool:
    return any(item.level == ExplanationLevel.error for item in explanations)


class TimetableEntry(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    slot_id: str = Field(alias="slotId")
    day: int = Field(ge=0, le=5)
    period: int = Field(ge=1, le=8)
    subject_id: str = Field(alias="subjectId", min_length=1)
    # Empty for library slots, which need neither faculty nor room.
    faculty_id: str = Field(default="", alias="facultyId")
    room_id: str = Field(default="", alias="roomId")
    batch_id: str = Field(alias="batchId", min_length=1)
    sub_batch_id: str | None = Field(default=None, alias="subBatchId")
    is_lab_session: bool = Field(default=False, alias="isLabSession")
    lab_slot: Literal["A", "B"] | None = Field(default=None, alias="labSlot")
    created_at: datetime = Field(alias="createdAt")

    model_config = {
        "populate_by_name": True,
        "from_attributes": True,
    }

    @model_validator(mode="after")
    def validate_lab_fields(self) -> "TimetableEntry":
        if self.is_lab_session and self.lab_slot is None:
            raise ValueError("Lab session entries require labSlot")
        if not self.is_lab_session and self.lab_slot is not None:
            raise ValueError("labSlot is only valid for lab session entries")
        return self


class Timetable(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    batch_id: str = Field(alias="batchId", min_length=1)
    entries: list[TimetableEntry] = Field(default_factory=list)
    generated_at: datetime = Field(alias="generatedAt")
    is_valid: bool = Field(alias="isValid")

    model_config = {
        "populate_by_name": True,
        "from_attributes": True,
    }


class LabRotation(BaseModel):
    batch_id: str = Field(alias="batchId", min_length=1)
    sub_batch_id: str = Field(alias="subBatchId", min_length=1)
    session_number: int = Field(alias="sessionNumber", ge=0)
    lab_id: str = Field(alias="labId", min_length=1)

    model_config = {
        "populate_by_name": True,
        "from_attributes": True,
    }


class GenerationResult(BaseModel):
    success: bool
    timetable: Timetable | None = None
    explanations: list[Explanation] = Field(default_factory=list)
    lab_rotations: list[LabRotation] = Field(default_factory=list, alias="labRotations")

    model_config = {
        "populate_by_name": True,
        "from_attributes": True,
    }


class GenerateTimetableRequest(BaseModel):
    infrastructure: InfrastructureSnapshot
    academic: AcademicSnapshot
    batch_id: str = Field(alias="batchId", min_length=1, max_length=36)
    persist: bool = True

    model_config = {
        "populate_by_name": True,
    }
