from pydantic import BaseModel
from typing import Literal, List

class ConflictDetail(BaseModel):
    id: str
    conflict_type: Literal[
        "batch_conflict",
        "faculty_conflict",
        "room_conflict",
        "placement_rule",
        "lab_window",
        "library_limit",
    ]
    description: str
    severity: Literal["hard", "soft"]
    affected_entries: List[str]  # Timetable entry IDs involved

class ConflictReport(BaseModel):
    batch_id: str
    conflicts: List[ConflictDetail]

    @property
    def is_clean(self) -> bool:
        return not self.conflicts
