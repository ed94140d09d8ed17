from fastapi import APIRouter

from slotforge.schemas.workload import WorkloadReport, WorkloadRequest
from slotforge.services.workload import calculate_workload

router = APIRouter()


@router.post("/workload", response_model=WorkloadReport)
def workload_report(payload: WorkloadRequest) -> WorkloadReport:
    stats = calculate_workload(payload.faculty, payload.subjects, payload.entries)
    return WorkloadReport(stats=stats, has_violation=any(stat.is_overloaded for stat in stats))
