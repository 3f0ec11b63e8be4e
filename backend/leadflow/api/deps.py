"""API Dependencies - Common dependencies for routes"""
from ..repositories.run_log_repo import RunLogRepository
from ..scheduler.automation_scheduler import AutomationScheduler, get_scheduler


def get_scheduler_dep() -> AutomationScheduler:
    """The process-wide automation scheduler"""
    return get_scheduler()


def get_run_log_repo_dep() -> RunLogRepository:
    """Run ledger repository"""
    return RunLogRepository()
