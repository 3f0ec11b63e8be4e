"""Domain Enumerations - All status and type definitions"""
from enum import Enum


class TriggerKind(str, Enum):
    """Condition class that decides which leads qualify for a rule"""
    NEW_LEAD = "new_lead"          # Lead created within the last N minutes
    NO_ACTIVITY = "no_activity"    # No activity for N days
    STATUS_CHANGE = "status_change"  # Status or pipeline stage equals a value


class ActionKind(str, Enum):
    """Side effect performed once per qualifying (rule, lead) pair"""
    SEND_WHATSAPP = "send_whatsapp"
    CREATE_NOTIFICATION = "create_notification"
    CREATE_FOLLOWUP = "create_followup"


class RunLogActionType(str, Enum):
    """Action type recorded on the run ledger"""
    WHATSAPP = "whatsapp"
    NOTIFICATION = "notification"
    FOLLOWUP = "followup"


class RunLogResult(str, Enum):
    """Outcome recorded on the run ledger"""
    SUCCESS = "success"
    FAILURE = "failure"


class DispatchOutcome(str, Enum):
    """Result classification of a single dispatch"""
    PERFORMED = "performed"
    ALREADY_EXECUTED = "already_executed"  # Ledger already holds the pair
    SKIPPED = "skipped"  # Recoverable no-op (no target user, unknown action)
    FAILED = "failed"  # Unexpected error caught at the dispatch boundary


class LeadStatus(str, Enum):
    """Lead status vocabulary"""
    NEW = "new"
    INTERESTED = "interested"
    FOLLOW_UP = "follow_up"
    CONVERTED = "converted"
    NOT_INTERESTED = "not_interested"


class NotificationType(str, Enum):
    """In-app notification type tag"""
    INFO = "info"
    AUTOMATION = "automation"
    REMINDER = "reminder"


class SchedulerState(str, Enum):
    """Automation scheduler state"""
    IDLE = "idle"
    RUNNING = "running"
