"""ID Generation Utilities"""
import uuid
from datetime import datetime, timezone
from typing import Optional


def generate_id(prefix: Optional[str] = None) -> str:
    """
    Generate a unique ID with optional prefix

    Args:
        prefix: Optional prefix for the ID (e.g., 'ARL', 'NTF', 'FUP')

    Returns:
        Unique ID string

    Examples:
        >>> generate_id('ARL')
        'ARL-a1b2c3d4e5f6'
        >>> generate_id()
        'a1b2c3d4e5f6'
    """
    unique_part = uuid.uuid4().hex[:12]

    if prefix:
        return f"{prefix}-{unique_part}"
    return unique_part


def generate_rule_id() -> str:
    """Generate automation rule ID"""
    return generate_id("RULE")


def generate_lead_id() -> str:
    """Generate lead ID"""
    return generate_id("LEAD")


def generate_user_id() -> str:
    """Generate user ID"""
    return generate_id("USR")


def generate_run_log_id() -> str:
    """Generate automation run log ID"""
    return generate_id("ARL")


def generate_notification_id() -> str:
    """Generate notification ID"""
    return generate_id("NTF")


def generate_follow_up_id() -> str:
    """Generate follow-up ID"""
    return generate_id("FUP")


def generate_correlation_id() -> str:
    """
    Generate a correlation ID for request and cycle tracing

    Returns:
        Correlation ID string with timestamp prefix
    """
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
    unique_part = uuid.uuid4().hex[:8]
    return f"COR-{timestamp}-{unique_part}"
