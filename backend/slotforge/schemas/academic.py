from __future__ import annotations

import math
from enum import Enum

from pydantic import BaseModel, Field, model_validator

from slotforge.core.time_structure import (
    MANDATORY_DAYS,
    MANDATORY_PERIOD,
    OPEN_ELECTIVE_DAYS,
    OPEN_ELECTIVE_PERIOD,
    SPECIAL_PERIOD,
)


class SubjectType(str, Enum):
    theory = "THEORY"
    lab = "LAB"
    mandatory = "MANDATORY"
    open_elective = "OPEN_ELECTIVE"
    library = "LIBRARY"


class FacultyDesignation(str, Enum):
    professor = "PROFESSOR"
    associate_professor = "ASSOCIATE_PROFESSOR"
    assistant_professor = "ASSISTANT_PROFESSOR"


class SubjectConstraints(BaseModel):
    allowed_periods: list[int] | None = Field(default=None, alias="allowedPeriods")
    allowed_days: list[int] | None = Field(default=None, alias="allowedDays")
    max_per_week: int | None = Field(default=None, alias="maxPerWeek", ge=0)

    model_config = {
        "populate_by_name": True,
        "from_attributes": True,
    }


def default_constraints(subject_type: SubjectType) -> SubjectConstraints:
    if subject_type == SubjectType.mandatory:
        return SubjectConstraints(allowed_periods=[MANDATORY_PERIOD], allowed_days=list(MANDATORY_DAYS))
    if subject_type == SubjectType.open_elective:
        return SubjectConstraints(allowed_periods=[OPEN_ELECTIVE_PERIOD], allowed_days=list(OPEN_ELECTIVE_DAYS))
    if subject_type == SubjectType.library:
        return SubjectConstraints(max_per_week=1)
    return SubjectConstraints()


def is_valid_slot_for_subject(
    subject_type: SubjectType,
    day: int,
    period: int,
    constraints: SubjectConstraints | None = None,
) -> bool:
    constraints = constraints or default_constraints(subject_type)
    if constraints.allowed_periods is not None and period not in constraints.allowed_periods:
        return False
    if constraints.allowed_days is not None and day not in constraints.allowed_days:
        return False
    return period != SPECIAL_PERIOD


class Subject(BaseModel):
    id: str = Field(min_length=1, max_length=36)
    name: str = Field(min_length=1, max_length=200)
    code: str = Field(default="", max_length=50)
    type: SubjectType
    periods_per_week: int = Field(alias="periodsPerWeek", ge=0, le=48)
    department_id: str = Field(alias="departmentId", min_length=1, max_length=36)
    semester: int = Field(ge=1, le=20)
    constraints: SubjectConstraints | None = None

    model_config = {
        "populate_by_name": True,
        "from_attributes": True,
    }

    @model_validator(mode="after")
    def apply_default_constraints(self) -> "Subject":
        if self.constraints is None:
            self.constraints = default_constraints(self.type)
        return self


class SubBatch(BaseModel):
    id: str = Field(min_length=1, max_length=80)
    name: str = Field(min_length=1, max_length=20)
    student_count: int = Field(alias="studentCount", ge=0)

    model_config = {
        "populate_by_name": True,
        "from_attributes": True,
    }


class Batch(BaseModel):
    id: str = Field(min_length=1, max_length=36)
    name: str = Field(min_length=1, max_length=100)
    semester: int = Field(ge=1, le=20)
    section: str = Field(default="", max_length=20)
    department_id: str = Field(alias="departmentId", min_length=1, max_length=36)
    # Non-positive counts are reported by the validator.
    total_students: int = Field(alias="totalStudents")
    sub_batches: list[SubBatch] = Field(default_factory=list, alias="subBatches")

    model_config = {
        "populate_by_name": True,
        "from_attributes": True,
    }


class Faculty(BaseModel):
    id: str = Field(min_length=1, max_length=36)
    name: str = Field(min_length=1, max_length=200)
    employee_id: str = Field(default="", alias="employeeId", max_length=50)
    designation: FacultyDesignation
    department_id: str = Field(default="", alias="departmentId", max_length=36)
    assigned_theory_subjects: list[str] = Field(default_factory=list, alias="assignedTheorySubjects")
    assigned_lab_subjects: list[str] = Field(default_factory=list, alias="assignedLabSubjects")

    model_config = {
        "populate_by_name": True,
        "from_attributes": True,
    }


class AcademicSnapshot(BaseModel):
    batches: list[Batch] = Field(default_factory=list)
    subjects: list[Subject] = Field(default_factory=list)
    faculty: list[Faculty] = Field(default_factory=list)

    def find_batch(self, batch_id: str) -> Batch | None:
        for batch in self.batches:
            if batch.id == batch_id:
                return batch
        return None

    def scoped_subjects(self, batch: Batch, subject_type: SubjectType) -> list[Subject]:
        """Subjects of one type taught to the batch's department and semester, sorted by id."""
        return sorted(
            (
                subject
                for subject in self.subjects
                if subject.type == subject_type
                and subject.department_id == batch.department_id
                and subject.semester == batch.semester
            ),
            key=lambda subject: subject.id,
        )


def split_sub_batches(batch_id: str, total_students: int, lab_capacity: int) -> list[SubBatch]:
    if lab_capacity < 1:
        raise ValueError("lab_capacity must be at least 1")
    if lab_capacity >= total_students:
        return [SubBatch(id=f"{batch_id}-A", name="A", student_count=total_students)]

    count = math.ceil(total_students / lab_capacity)
    remaining = total_students
    sub_batches: list[SubBatch] = []
    for index in range(count):
        size = min(lab_capacity, remaining)
        name = f"A{index + 1}"
        sub_batches.append(SubBatch(id=f"{batch_id}-{name}", name=name, student_count=size))
        remaining -= size
    return sub_batches
