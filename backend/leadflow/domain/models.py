"""Domain Models - Pydantic schemas for all entities"""
from datetime import datetime
from typing import Dict, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import (
    ActionKind, DispatchOutcome, LeadStatus, NotificationType,
    RunLogActionType, RunLogResult, TriggerKind
)
from ..utils.time import ensure_utc


# ============================================================================
# Users & Leads
# ============================================================================

class User(BaseModel):
    """CRM user who can own leads and receive notifications"""
    model_config = ConfigDict(extra="ignore")

    user_id: str = Field(..., description="Unique user ID")
    name: str = Field(..., description="Display name")
    email: Optional[str] = Field(None, description="Login email")
    role: str = Field(default="sales", description="CRM role")
    is_active: bool = Field(default=True)


class Lead(BaseModel):
    """
    Business record scanned by the automation engine.
    Owned and mutated by CRM flows; the engine only reads it.
    """
    model_config = ConfigDict(extra="ignore")

    lead_id: str = Field(..., description="Unique lead ID")
    name: str = Field(..., description="Display name")
    mobile: str = Field(default="", description="Contact number as entered")
    email: Optional[str] = None
    status: str = Field(default=LeadStatus.NEW.value, description="Current lead status")
    pipeline_stage: str = Field(default="new_lead", description="Current pipeline stage")
    owner_id: Optional[str] = Field(None, description="Owning user ID")
    created_at: datetime
    last_activity_at: Optional[datetime] = Field(None, description="Falls back to created_at when absent")

    @field_validator("created_at", "last_activity_at")
    @classmethod
    def _as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value) if value is not None else None

    @property
    def effective_last_activity(self) -> datetime:
        """Last activity timestamp, defaulting to creation time"""
        return self.last_activity_at or self.created_at


# ============================================================================
# Automation Rule
# ============================================================================

class AutomationRule(BaseModel):
    """
    Declarative trigger + action configuration.

    trigger and action are kept as raw strings so rows with kinds this engine
    does not know still load; the engine resolves them into typed variants.
    """
    model_config = ConfigDict(extra="ignore")

    rule_id: str = Field(..., description="Unique rule ID")
    name: str = Field(..., description="Human label")
    trigger: str = Field(..., description="Trigger kind, see TriggerKind")
    trigger_value: Optional[str] = Field(None, description="Trigger parameter, meaning depends on kind")
    action: str = Field(..., description="Action kind, see ActionKind")
    action_value: Optional[str] = Field(None, description="Action parameter, e.g. day offset")
    is_active: bool = Field(default=True)
    created_by_id: Optional[str] = Field(None, description="User who created the rule")
    created_at: Optional[datetime] = None


# ============================================================================
# Trigger & Action Variants
# ============================================================================

class NewLeadTrigger(BaseModel):
    """Lead created within the last delay_minutes"""
    model_config = ConfigDict(frozen=True)

    kind: TriggerKind = TriggerKind.NEW_LEAD
    delay_minutes: int = 5


class NoActivityTrigger(BaseModel):
    """Lead without activity for more than days"""
    model_config = ConfigDict(frozen=True)

    kind: TriggerKind = TriggerKind.NO_ACTIVITY
    days: int = 1


class StatusChangeTrigger(BaseModel):
    """Lead whose status or pipeline stage equals target"""
    model_config = ConfigDict(frozen=True)

    kind: TriggerKind = TriggerKind.STATUS_CHANGE
    target: Optional[str] = None


class UnknownTrigger(BaseModel):
    """Trigger kind this engine does not recognise, matches nothing"""
    model_config = ConfigDict(frozen=True)

    kind: str


Trigger = Union[NewLeadTrigger, NoActivityTrigger, StatusChangeTrigger, UnknownTrigger]


class SendWhatsAppAction(BaseModel):
    """Generate a wa.me link for the lead and notify the owner"""
    model_config = ConfigDict(frozen=True)

    kind: ActionKind = ActionKind.SEND_WHATSAPP


class CreateNotificationAction(BaseModel):
    """Raise a reminder notification for the lead owner"""
    model_config = ConfigDict(frozen=True)

    kind: ActionKind = ActionKind.CREATE_NOTIFICATION


class CreateFollowUpAction(BaseModel):
    """Schedule a follow-up offset_days from now"""
    model_config = ConfigDict(frozen=True)

    kind: ActionKind = ActionKind.CREATE_FOLLOWUP
    offset_days: int = 2


class UnknownAction(BaseModel):
    """Action kind this engine does not recognise"""
    model_config = ConfigDict(frozen=True)

    kind: str


Action = Union[SendWhatsAppAction, CreateNotificationAction, CreateFollowUpAction, UnknownAction]


# ============================================================================
# Run Ledger
# ============================================================================

class AutomationRunLog(BaseModel):
    """
    Permanent record that an action was attempted for a (rule, lead) pair.
    At most one entry exists per pair; entries are never updated or deleted.
    """
    model_config = ConfigDict(extra="ignore")

    run_log_id: str = Field(..., description="Unique run log ID")
    rule_id: str
    lead_id: str
    action_type: RunLogActionType
    action_result: RunLogResult = Field(default=RunLogResult.SUCCESS)
    details: str = Field(default="", description="Free-text detail, e.g. the generated link")
    created_at: datetime


# ============================================================================
# Side Effects
# ============================================================================

class Notification(BaseModel):
    """In-app notification raised for a CRM user"""
    model_config = ConfigDict(extra="ignore")

    notification_id: str = Field(..., description="Unique notification ID")
    user_id: str = Field(..., description="Target user")
    type: NotificationType = Field(default=NotificationType.INFO)
    title: str = Field(..., description="Short notification title")
    message: str = Field(..., description="Notification message body")
    link: Optional[str] = Field(None, description="URL path to navigate to on click")
    is_read: bool = Field(default=False, description="Whether notification has been read")
    created_at: datetime


class FollowUp(BaseModel):
    """Scheduled follow-up on a lead"""
    model_config = ConfigDict(extra="ignore")

    follow_up_id: str = Field(..., description="Unique follow-up ID")
    lead_id: str
    user_id: Optional[str] = Field(None, description="Assigned user")
    scheduled_at: datetime
    notes: Optional[str] = None
    is_completed: bool = Field(default=False)
    completed_at: Optional[datetime] = None
    created_at: datetime


# ============================================================================
# Engine Results
# ============================================================================

class DispatchResult(BaseModel):
    """Result of dispatching one action for one (rule, lead) pair"""
    rule_id: str
    lead_id: str
    performed: bool
    detail: str
    outcome: DispatchOutcome


class RuleCycleStats(BaseModel):
    """Per-rule counters for one cycle"""
    rule_id: str
    rule_name: str
    trigger: str
    action: str
    matches: int = 0
    performed: int = 0
    already_executed: int = 0
    skipped: int = 0
    failed: int = 0
    error: Optional[str] = None


class CycleSummary(BaseModel):
    """Summary of one automation cycle"""
    cycle_id: str
    started_at: datetime
    finished_at: Optional[datetime] = None
    dry_run: bool = False
    rules_evaluated: int = 0
    leads_scanned: int = 0
    matches: int = 0
    performed: int = 0
    already_executed: int = 0
    skipped: int = 0
    failed: int = 0
    per_rule: Dict[str, RuleCycleStats] = Field(default_factory=dict)

    def record(self, stats: RuleCycleStats, result: DispatchResult) -> None:
        """Count a dispatch result against the rule and the cycle"""
        counter = {
            DispatchOutcome.PERFORMED: "performed",
            DispatchOutcome.ALREADY_EXECUTED: "already_executed",
            DispatchOutcome.SKIPPED: "skipped",
            DispatchOutcome.FAILED: "failed",
        }[result.outcome]
        setattr(stats, counter, getattr(stats, counter) + 1)
        setattr(self, counter, getattr(self, counter) + 1)
