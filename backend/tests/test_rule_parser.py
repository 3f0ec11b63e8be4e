"""Tests for resolving stored rule strings into typed triggers and actions"""
import pytest

from leadflow.domain.errors import ConfigurationError
from leadflow.domain.models import (
    CreateFollowUpAction, CreateNotificationAction, NewLeadTrigger, NoActivityTrigger,
    SendWhatsAppAction, StatusChangeTrigger, UnknownAction, UnknownTrigger
)
from leadflow.engine.rule_parser import parse_action, parse_int, parse_trigger, validate_rule

from .conftest import make_rule


@pytest.mark.parametrize("value,expected", [
    ("15", 15),
    ("  7", 7),
    ("10min", 10),
    ("-2", -2),
    ("soon", 5),
    ("", 5),
    (None, 5),
])
def test_parse_int(value, expected):
    assert parse_int(value, 5) == expected


def test_parse_trigger_defaults():
    assert parse_trigger("new_lead", None) == NewLeadTrigger(delay_minutes=5)
    assert parse_trigger("no_activity", "abc") == NoActivityTrigger(days=1)


def test_parse_trigger_values():
    assert parse_trigger("new_lead", "30") == NewLeadTrigger(delay_minutes=30)
    assert parse_trigger("no_activity", "3") == NoActivityTrigger(days=3)
    assert parse_trigger("status_change", "interested") == StatusChangeTrigger(target="interested")


def test_parse_unknown_kinds():
    assert parse_trigger("birthday", "1") == UnknownTrigger(kind="birthday")
    assert parse_action("send_email", None) == UnknownAction(kind="send_email")


def test_parse_action():
    assert parse_action("send_whatsapp", None) == SendWhatsAppAction()
    assert parse_action("create_notification", "ignored") == CreateNotificationAction()
    assert parse_action("create_followup", None) == CreateFollowUpAction(offset_days=2)
    assert parse_action("create_followup", "3") == CreateFollowUpAction(offset_days=3)


def test_validate_rule_accepts_known_kinds():
    validate_rule(make_rule("no_activity", "create_notification"))


def test_validate_rule_rejects_unknown_kinds():
    rule = make_rule("birthday", "send_email")
    with pytest.raises(ConfigurationError) as exc_info:
        validate_rule(rule)
    assert exc_info.value.details["trigger"] == "birthday"
    assert exc_info.value.details["action"] == "send_email"


def test_validate_rule_rejects_out_of_range_offset():
    rule = make_rule("status_change", "create_followup", trigger_value="interested", action_value="999999999")
    with pytest.raises(ConfigurationError) as exc_info:
        validate_rule(rule)
    assert exc_info.value.details["action_value"] == "999999999"
    assert "trigger_value" not in exc_info.value.details


def test_validate_rule_rejects_out_of_range_window():
    rule = make_rule("new_lead", "send_whatsapp", trigger_value="999999999999")
    with pytest.raises(ConfigurationError) as exc_info:
        validate_rule(rule)
    assert exc_info.value.details["trigger_value"] == "999999999999"


def test_validate_rule_accepts_largest_offset():
    validate_rule(make_rule("status_change", "create_followup", action_value="36500"))
