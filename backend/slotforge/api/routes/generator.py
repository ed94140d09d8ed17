import logging
from time import perf_counter

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from slotforge.api.deps import get_app_settings, get_db
from slotforge.core.config import Settings
from slotforge.schemas.timetable import GenerateTimetableRequest, GenerationResult
from slotforge.services.persistence import run_generation

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/generate", response_model=GenerationResult)
def generate(
    payload: GenerateTimetableRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> GenerationResult:
    started = perf_counter()
    result = run_generation(db, payload, default_lab_capacity=settings.default_lab_capacity)
    logger.info(
        "Generation for batch %s finished success=%s explanations=%d in %.1f ms",
        payload.batch_id,
        result.success,
        len(result.explanations),
        (perf_counter() - started) * 1000,
    )
    return result
