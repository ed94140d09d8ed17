from __future__ import annotations

from pydantic import BaseModel, Field


class Block(BaseModel):
    id: str = Field(min_length=1, max_length=36)
    name: str = Field(min_length=1, max_length=200)


class Department(BaseModel):
    id: str = Field(min_length=1, max_length=36)
    name: str = Field(min_length=1, max_length=200)
    block_id: str = Field(alias="blockId", min_length=1, max_length=36)

    model_config = {
        "populate_by_name": True,
        "from_attributes": True,
    }


class Classroom(BaseModel):
    id: str = Field(min_length=1, max_length=36)
    name: str = Field(min_length=1, max_length=100)
    # Non-positive capacities are reported by the validator, not rejected here.
    capacity: int
    department_id: str = Field(alias="departmentId", min_length=1, max_length=36)

    model_config = {
        "populate_by_name": True,
        "from_attributes": True,
    }


class Lab(BaseModel):
    id: str = Field(min_length=1, max_length=36)
    name: str = Field(min_length=1, max_length=100)
    capacity: int
    department_id: str = Field(alias="departmentId", min_length=1, max_length=36)

    model_config = {
        "populate_by_name": True,
        "from_attributes": True,
    }


class InfrastructureSnapshot(BaseModel):
    blocks: list[Block] = Field(default_factory=list)
    departments: list[Department] = Field(default_factory=list)
    classrooms: list[Classroom] = Field(default_factory=list)
    labs: list[Lab] = Field(default_factory=list)

    def department_classrooms(self, department_id: str) -> list[Classroom]:
        return sorted(
            (room for room in self.classrooms if room.department_id == department_id),
            key=lambda room: room.id,
        )

    def department_labs(self, department_id: str) -> list[Lab]:
        return sorted(
            (lab for lab in self.labs if lab.department_id == department_id),
            key=lambda lab: lab.id,
        )
