"""Automation API - Scheduler status, manual runs and the run ledger"""
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends, Query
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel

from ..deps import get_run_log_repo_dep, get_scheduler_dep
from ...domain.models import AutomationRunLog, CycleSummary
from ...domain.errors import AutomationError
from ...repositories.run_log_repo import RunLogRepository
from ...scheduler.automation_scheduler import AutomationScheduler
from ...utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


# =============================================================================
# Response Models
# =============================================================================

class RunLogListResponse(BaseModel):
    """Run ledger entries, newest first"""
    items: List[AutomationRunLog]
    count: int


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/status")
async def get_status(
    scheduler: AutomationScheduler = Depends(get_scheduler_dep)
) -> Dict[str, Any]:
    """Scheduler state, period and the last cycle summary"""
    return scheduler.status()


@router.post("/run", response_model=CycleSummary)
async def run_now(
    dry_run: bool = Query(False, description="Evaluate triggers without dispatching"),
    scheduler: AutomationScheduler = Depends(get_scheduler_dep)
):
    """
    Run one automation cycle now.

    - Returns 409 when a cycle is already in flight
    - dry_run counts matches without performing any action
    """
    summary = await run_in_threadpool(scheduler.run_cycle, dry_run, True)
    if summary is None:
        raise AutomationError(
            "Automation cycle failed",
            details={"error": scheduler.last_error}
        )
    logger.info(
        f"Manual automation run: {summary.performed} performed",
        extra={"cycle_id": summary.cycle_id}
    )
    return summary


@router.get("/run-logs", response_model=RunLogListResponse)
async def list_run_logs(
    rule_id: Optional[str] = Query(None),
    lead_id: Optional[str] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
    repo: RunLogRepository = Depends(get_run_log_repo_dep)
):
    """Read the automation run ledger"""
    items = repo.list_run_logs(rule_id=rule_id, lead_id=lead_id, skip=skip, limit=limit)
    return RunLogListResponse(items=items, count=len(items))
