"""API module - Routes and dependencies"""
from .deps import get_scheduler_dep, get_run_log_repo_dep

__all__ = ["get_scheduler_dep", "get_run_log_repo_dep"]
