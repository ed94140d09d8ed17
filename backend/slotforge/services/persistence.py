from __future__ import annotations

import logging
import threading

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from slotforge.core.exceptions import PersistenceError, ResourceNotFoundError
from slotforge.models.lab_rotation import LabRotationRecord
from slotforge.models.timetable import StoredTimetable
from slotforge.schemas.timetable import (
    GenerateTimetableRequest,
    GenerationResult,
    LabRotation,
    Timetable,
    TimetableEntry,
)
from slotforge.services.identity import IdentitySource
from slotforge.services.scheduler import generate_timetable

logger = logging.getLogger(__name__)

# Runs share the faculty and room pool, so generate-and-store is single writer.
_generation_lock = threading.Lock()


def load_rotations(db: Session, batch_id: str) -> list[LabRotation]:
    records = db.execute(
        select(LabRotationRecord)
        .where(LabRotationRecord.batch_id == batch_id)
        .order_by(LabRotationRecord.id)
    ).scalars().all()
    return [
        LabRotation(
            batch_id=record.batch_id,
            sub_batch_id=record.sub_batch_id,
            session_number=record.session_number,
            lab_id=record.lab_id,
        )
        for record in records
    ]


def _to_timetable(record: StoredTimetable) -> Timetable:
    return Timetable.model_validate(record.payload)


def list_timetables(db: Session) -> list[Timetable]:
    records = db.execute(select(StoredTimetable).order_by(StoredTimetable.batch_id)).scalars().all()
    return [_to_timetable(record) for record in records]


def get_timetable(db: Session, batch_id: str) -> Timetable:
    record = db.execute(select(StoredTimetable).where(StoredTimetable.batch_id == batch_id)).scalar_one_or_none()
    if record is None:
        raise ResourceNotFoundError("Timetable", batch_id)
    return _to_timetable(record)


def delete_timetable(db: Session, batch_id: str) -> None:
    result = db.execute(delete(StoredTimetable).where(StoredTimetable.batch_id == batch_id))
    if result.rowcount == 0:
        db.rollback()
        raise ResourceNotFoundError("Timetable", batch_id)
    db.commit()
    logger.info("Deleted stored timetable for batch %s", batch_id)


def load_committed_entries(db: Session, exclude_batch_id: str) -> list[TimetableEntry]:
    """Entries of every other batch's stored timetable."""
    entries: list[TimetableEntry] = []
    for timetable in list_timetables(db):
        if timetable.batch_id != exclude_batch_id:
            entries.extend(timetable.entries)
    return entries


def save_generation(db: Session, result: GenerationResult) -> None:
    if not result.success or result.timetable is None:
        raise PersistenceError("Only successful generation results can be stored")

    timetable = result.timetable
    # A batch keeps one published timetable; regeneration replaces it.
    db.execute(delete(StoredTimetable).where(StoredTimetable.batch_id == timetable.batch_id))
    db.add(
        StoredTimetable(
            id=timetable.id,
            batch_id=timetable.batch_id,
            payload=timetable.model_dump(mode="json", by_alias=True),
            is_valid=timetable.is_valid,
            generated_at=timetable.generated_at,
        )
    )

    for rotation in result.lab_rotations:
        db.add(
            LabRotationRecord(
                batch_id=rotation.batch_id,
                sub_batch_id=rotation.sub_batch_id,
                session_number=rotation.session_number,
                lab_id=rotation.lab_id,
            )
        )
    db.commit()
    logger.info(
        "Stored timetable %s for batch %s (%d entries, %d rotations)",
        timetable.id,
        timetable.batch_id,
        len(timetable.entries),
        len(result.lab_rotations),
    )


def run_generation(
    db: Session,
    payload: GenerateTimetableRequest,
    *,
    default_lab_capacity: int,
    identity: IdentitySource | None = None,
) -> GenerationResult:
    with _generation_lock:
        result = generate_timetable(
            payload.infrastructure,
            payload.academic,
            payload.batch_id,
            existing_rotations=load_rotations(db, payload.batch_id),
            committed_entries=load_committed_entries(db, payload.batch_id),
            identity=identity,
            default_lab_capacity=default_lab_capacity,
        )
        if result.success and payload.persist:
            save_generation(db, result)
    return result
