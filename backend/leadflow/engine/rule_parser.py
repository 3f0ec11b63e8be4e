"""Rule Parser - Resolve stored trigger/action strings into typed variants"""
import re
from typing import Optional

from ..domain.models import (
    Action, AutomationRule, CreateFollowUpAction, CreateNotificationAction,
    NewLeadTrigger, NoActivityTrigger, SendWhatsAppAction, StatusChangeTrigger,
    Trigger, UnknownAction, UnknownTrigger
)
from ..domain.enums import ActionKind, TriggerKind
from ..domain.errors import ConfigurationError

DEFAULT_NEW_LEAD_DELAY_MINUTES = 5
DEFAULT_NO_ACTIVITY_DAYS = 1
DEFAULT_FOLLOWUP_OFFSET_DAYS = 2

# Largest window or offset a rule may configure, in days
MAX_PARAMETER_DAYS = 36500

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_int(value: Optional[str], default: int) -> int:
    """
    Parse a leading integer, falling back to default

    Examples:
        >>> parse_int("15", 5)
        15
        >>> parse_int("10min", 5)
        10
        >>> parse_int("soon", 5)
        5
        >>> parse_int(None, 5)
        5
    """
    if value is None:
        return default
    match = _LEADING_INT.match(str(value))
    if not match:
        return default
    return int(match.group(1))


def parse_trigger(kind: str, value: Optional[str]) -> Trigger:
    """Resolve a trigger kind and its raw parameter"""
    try:
        trigger_kind = TriggerKind(kind)
    except ValueError:
        return UnknownTrigger(kind=str(kind))

    if trigger_kind == TriggerKind.NEW_LEAD:
        return NewLeadTrigger(delay_minutes=parse_int(value, DEFAULT_NEW_LEAD_DELAY_MINUTES))
    if trigger_kind == TriggerKind.NO_ACTIVITY:
        return NoActivityTrigger(days=parse_int(value, DEFAULT_NO_ACTIVITY_DAYS))
    return StatusChangeTrigger(target=value)


def parse_action(kind: str, value: Optional[str]) -> Action:
    """Resolve an action kind and its raw parameter"""
    try:
        action_kind = ActionKind(kind)
    except ValueError:
        return UnknownAction(kind=str(kind))

    if action_kind == ActionKind.SEND_WHATSAPP:
        return SendWhatsAppAction()
    if action_kind == ActionKind.CREATE_NOTIFICATION:
        return CreateNotificationAction()
    return CreateFollowUpAction(offset_days=parse_int(value, DEFAULT_FOLLOWUP_OFFSET_DAYS))


def rule_trigger(rule: AutomationRule) -> Trigger:
    return parse_trigger(rule.trigger, rule.trigger_value)


def rule_action(rule: AutomationRule) -> Action:
    return parse_action(rule.action, rule.action_value)


def trigger_in_range(trigger: Trigger) -> bool:
    """Whether the trigger window fits in MAX_PARAMETER_DAYS"""
    if isinstance(trigger, NewLeadTrigger):
        return abs(trigger.delay_minutes) <= MAX_PARAMETER_DAYS * 24 * 60
    if isinstance(trigger, NoActivityTrigger):
        return abs(trigger.days) <= MAX_PARAMETER_DAYS
    return True


def action_in_range(action: Action) -> bool:
    """Whether the follow-up offset fits in MAX_PARAMETER_DAYS"""
    if isinstance(action, CreateFollowUpAction):
        return abs(action.offset_days) <= MAX_PARAMETER_DAYS
    return True


def validate_rule(rule: AutomationRule) -> None:
    """
    Check that a rule only references known kinds with usable parameters

    Raises:
        ConfigurationError: unknown trigger or action kind, or a trigger_value
            / action_value outside MAX_PARAMETER_DAYS. details names each
            offending field.
    """
    problems = {}
    trigger = rule_trigger(rule)
    action = rule_action(rule)

    if isinstance(trigger, UnknownTrigger):
        problems["trigger"] = rule.trigger
    elif not trigger_in_range(trigger):
        problems["trigger_value"] = rule.trigger_value

    if isinstance(action, UnknownAction):
        problems["action"] = rule.action
    elif not action_in_range(action):
        problems["action_value"] = rule.action_value

    if problems:
        raise ConfigurationError(
            f"Rule {rule.name} is misconfigured: {problems}",
            details={"rule_id": rule.rule_id, **problems}
        )
