from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from slotforge.api.deps import get_db
from slotforge.schemas.academic import Subject
from slotforge.schemas.conflict import ConflictReport
from slotforge.schemas.timetable import LabRotation, Timetable
from slotforge.services.conflict_service import ConflictService
from slotforge.services.persistence import delete_timetable, get_timetable, list_timetables, load_rotations

router = APIRouter()


class ConflictCheckRequest(BaseModel):
    subjects: list[Subject] = Field(default_factory=list)


@router.get("", response_model=list[Timetable])
def read_timetables(db: Session = Depends(get_db)) -> list[Timetable]:
    return list_timetables(db)


@router.get("/rotations/{batch_id}", response_model=list[LabRotation])
def read_lab_rotations(batch_id: str, db: Session = Depends(get_db)) -> list[LabRotation]:
    return load_rotations(db, batch_id)


@router.get("/{batch_id}", response_model=Timetable)
def read_timetable(batch_id: str, db: Session = Depends(get_db)) -> Timetable:
    return get_timetable(db, batch_id)


@router.delete("/{batch_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_timetable(batch_id: str, db: Session = Depends(get_db)) -> Response:
    delete_timetable(db, batch_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{batch_id}/conflicts", response_model=ConflictReport)
def check_conflicts(
    batch_id: str,
    payload: ConflictCheckRequest,
    db: Session = Depends(get_db),
) -> ConflictReport:
    timetable = get_timetable(db, batch_id)
    return ConflictService(timetable, payload.subjects).detect_conflicts()
