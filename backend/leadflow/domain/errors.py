"""Domain Errors - Centralized Exception Hierarchy"""
from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base domain error - all errors extend this"""

    error_code: str = "DOMAIN_ERROR"
    http_status: int = 400

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if error_code:
            self.error_code = error_code

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to API response dict"""
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details
            }
        }


# Conflict Errors
class ConflictError(DomainError):
    """Resource conflict (e.g., concurrent modification)"""
    error_code = "CONFLICT"
    http_status = 409


class AlreadyExistsError(ConflictError):
    """Resource already exists"""
    error_code = "ALREADY_EXISTS"


class CycleInProgressError(ConflictError):
    """An automation cycle is already running"""
    error_code = "CYCLE_IN_PROGRESS"


# Automation Errors
class AutomationError(DomainError):
    """Automation engine error"""
    error_code = "AUTOMATION_ERROR"
    http_status = 500


class ConfigurationError(AutomationError):
    """Rule references an unknown trigger or action kind"""
    error_code = "CONFIGURATION_ERROR"
    http_status = 400


class MissingDependencyError(AutomationError):
    """A collaborator the action needs (e.g. target user) is missing"""
    error_code = "MISSING_DEPENDENCY"
    http_status = 422


# External Service Errors
class StoreError(DomainError):
    """Entity store read or write failed"""
    error_code = "STORE_ERROR"
    http_status = 502
