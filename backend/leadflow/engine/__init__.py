"""Automation Engine - Trigger evaluation, idempotent dispatch, cycle orchestration"""
from .trigger_evaluator import TriggerEvaluator
from .action_dispatcher import ActionDispatcher
from .cycle import AutomationCycle
from .rule_parser import parse_trigger, parse_action, validate_rule

__all__ = [
    "TriggerEvaluator",
    "ActionDispatcher",
    "AutomationCycle",
    "parse_trigger",
    "parse_action",
    "validate_rule",
]
