"""Tests for at-most-once action dispatch"""
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest

from leadflow.domain.enums import DispatchOutcome, NotificationType, RunLogActionType, RunLogResult
from leadflow.domain.errors import StoreError
from leadflow.engine.action_dispatcher import ALREADY_EXECUTED, NO_ASSIGNED_USER, ActionDispatcher

from .conftest import NOW, make_lead, make_rule


@pytest.fixture
def dispatcher(store, clock) -> ActionDispatcher:
    return ActionDispatcher(store, clock=clock, message_template="Hi {name}!")


class TestSendWhatsApp:
    def test_generates_link_logs_and_notifies_owner(self, dispatcher, store, owner):
        rule = make_rule("new_lead", "send_whatsapp")
        lead = make_lead(name="Asha", owner_id=owner.user_id)

        result = dispatcher.execute(rule, lead)

        link = "https://wa.me/919876543210?text=Hi%20Asha!"
        assert result.performed is True
        assert result.outcome == DispatchOutcome.PERFORMED
        assert result.detail == f"WhatsApp link generated for Asha: {link}"

        entry = store.run_logs[(rule.rule_id, lead.lead_id)]
        assert entry.action_type == RunLogActionType.WHATSAPP
        assert entry.details == f"WhatsApp link generated: {link}"
        assert entry.created_at == NOW

        assert len(store.notifications) == 1
        notification = store.notifications[0]
        assert notification.user_id == owner.user_id
        assert notification.type == NotificationType.AUTOMATION
        assert notification.title == "Auto WhatsApp Ready"
        assert link in notification.message
        assert notification.link == f"/leads/{lead.lead_id}"

    def test_without_user_still_performs(self, dispatcher, store):
        rule = make_rule("new_lead", "send_whatsapp")
        lead = make_lead(name="Asha")

        result = dispatcher.execute(rule, lead)

        assert result.performed is True
        assert (rule.rule_id, lead.lead_id) in store.run_logs
        assert store.notifications == []

    def test_name_with_braces_is_substituted_literally(self, store, clock):
        dispatcher = ActionDispatcher(store, clock=clock, message_template="Hello {name}, {name}")
        result = dispatcher.execute(make_rule("new_lead", "send_whatsapp"), make_lead(name="{x}", mobile="1"))
        assert result.detail.endswith("?text=Hello%20%7Bx%7D%2C%20%7Bname%7D")


class TestCreateNotification:
    def test_notifies_owner(self, dispatcher, store, owner):
        rule = make_rule("no_activity", "create_notification")
        lead = make_lead(name="Asha", owner_id=owner.user_id)

        result = dispatcher.execute(rule, lead)

        assert result.performed is True
        assert result.detail == "Notification sent to Priya"
        assert store.run_logs[(rule.rule_id, lead.lead_id)].action_type == RunLogActionType.NOTIFICATION
        notification = store.notifications[0]
        assert notification.type == NotificationType.REMINDER
        assert notification.title == "Lead Reminder"
        assert notification.message == 'No activity on lead "Asha" - follow up required'

    def test_falls_back_to_rule_creator(self, dispatcher, store, owner):
        rule = make_rule("no_activity", "create_notification", created_by_id=owner.user_id)
        result = dispatcher.execute(rule, make_lead())
        assert result.performed is True
        assert store.notifications[0].user_id == owner.user_id

    def test_no_user_skips_without_ledger_entry(self, dispatcher, store):
        rule = make_rule("no_activity", "create_notification")
        lead = make_lead(owner_id="USR-missing")

        result = dispatcher.execute(rule, lead)

        assert result.performed is False
        assert result.outcome == DispatchOutcome.SKIPPED
        assert result.detail == NO_ASSIGNED_USER
        assert store.run_logs == {}
        assert store.notifications == []


class TestCreateFollowUp:
    def test_schedules_follow_up_offset_days_out(self, dispatcher, store, owner):
        rule = make_rule("status_change", "create_followup", action_value="3", trigger_value="interested")
        lead = make_lead(name="Asha", owner_id=owner.user_id)

        result = dispatcher.execute(rule, lead)

        assert result.performed is True
        assert result.detail == "Follow-up created for Asha on 2026-01-08"
        follow_up = store.follow_ups[0]
        assert follow_up.scheduled_at == NOW + timedelta(days=3)
        assert follow_up.user_id == owner.user_id
        assert follow_up.notes == f"Auto-created follow-up: {rule.name}"
        assert store.run_logs[(rule.rule_id, lead.lead_id)].details == "Follow-up task created for 2026-01-08"

    def test_default_offset_is_two_days(self, dispatcher, store, owner):
        rule = make_rule("status_change", "create_followup", action_value="later")
        dispatcher.execute(rule, make_lead(owner_id=owner.user_id))
        assert store.follow_ups[0].scheduled_at == NOW + timedelta(days=2)

    def test_no_user_id_skips(self, dispatcher, store):
        result = dispatcher.execute(make_rule("status_change", "create_followup"), make_lead())
        assert result.outcome == DispatchOutcome.SKIPPED
        assert store.follow_ups == []
        assert store.run_logs == {}


def test_second_dispatch_is_already_executed(dispatcher, store, owner):
    rule = make_rule("no_activity", "create_notification")
    lead = make_lead(owner_id=owner.user_id)

    first = dispatcher.execute(rule, lead)
    second = dispatcher.execute(rule, lead)

    assert first.performed is True
    assert second.performed is False
    assert second.outcome == DispatchOutcome.ALREADY_EXECUTED
    assert second.detail == ALREADY_EXECUTED
    assert len(store.notifications) == 1


def test_unknown_action_is_skipped_without_side_effects(dispatcher, store, owner):
    result = dispatcher.execute(make_rule("new_lead", "send_email"), make_lead(owner_id=owner.user_id))
    assert result.outcome == DispatchOutcome.SKIPPED
    assert result.detail == "unknown action: send_email"
    assert store.run_logs == {}


def test_store_failure_becomes_failed_result(dispatcher, store, owner, monkeypatch):
    def broken(*args, **kwargs):
        raise StoreError("find_run_log failed: timeout")

    monkeypatch.setattr(store, "find_run_log", broken)
    result = dispatcher.execute(make_rule("new_lead", "send_whatsapp"), make_lead())

    assert result.performed is False
    assert result.outcome == DispatchOutcome.FAILED
    assert "timeout" in result.detail


def test_failed_notification_is_recorded_as_failure(dispatcher, store, owner, monkeypatch):
    def broken(notification):
        raise StoreError("create_notification failed: timeout")

    monkeypatch.setattr(store, "create_notification", broken)
    rule = make_rule("no_activity", "create_notification")
    lead = make_lead(owner_id=owner.user_id)

    first = dispatcher.execute(rule, lead)
    second = dispatcher.execute(rule, lead)

    assert first.outcome == DispatchOutcome.FAILED
    entry = store.run_logs[(rule.rule_id, lead.lead_id)]
    assert entry.action_type == RunLogActionType.NOTIFICATION
    assert entry.action_result == RunLogResult.FAILURE
    assert entry.details == "create_notification failed: timeout"
    assert second.outcome == DispatchOutcome.ALREADY_EXECUTED
    assert store.notifications == []


def test_failed_follow_up_is_recorded_as_failure(dispatcher, store, owner, monkeypatch):
    def broken(follow_up):
        raise StoreError("create_follow_up failed: timeout")

    monkeypatch.setattr(store, "create_follow_up", broken)
    rule = make_rule("status_change", "create_followup", action_value="3")
    lead = make_lead(owner_id=owner.user_id)

    result = dispatcher.execute(rule, lead)

    assert result.outcome == DispatchOutcome.FAILED
    assert "timeout" in result.detail
    entry = store.run_logs[(rule.rule_id, lead.lead_id)]
    assert entry.action_type == RunLogActionType.FOLLOWUP
    assert entry.action_result == RunLogResult.FAILURE
    assert entry.details == "create_follow_up failed: timeout"
    assert "2026-01-08" not in entry.details
    assert store.follow_ups == []


def test_successful_actions_record_success(dispatcher, store, owner):
    notify = make_rule("no_activity", "create_notification")
    follow = make_rule("status_change", "create_followup")
    lead = make_lead(owner_id=owner.user_id)

    dispatcher.execute(notify, lead)
    dispatcher.execute(follow, lead)

    assert store.run_logs[(notify.rule_id, lead.lead_id)].action_result == RunLogResult.SUCCESS
    assert store.run_logs[(follow.rule_id, lead.lead_id)].action_result == RunLogResult.SUCCESS


def test_side_effect_error_survives_ledger_failure(dispatcher, store, owner, monkeypatch):
    def broken_notify(notification):
        raise StoreError("create_notification failed")

    def broken_ledger(entry):
        raise StoreError("create_run_log failed")

    monkeypatch.setattr(store, "create_notification", broken_notify)
    monkeypatch.setattr(store, "create_run_log", broken_ledger)

    result = dispatcher.execute(make_rule("no_activity", "create_notification"), make_lead(owner_id=owner.user_id))

    assert result.outcome == DispatchOutcome.FAILED
    assert result.detail == "create_notification failed"


def test_out_of_range_follow_up_offset_is_skipped(dispatcher, store, owner):
    rule = make_rule("status_change", "create_followup", action_value="999999999")

    result = dispatcher.execute(rule, make_lead(owner_id=owner.user_id))

    assert result.outcome == DispatchOutcome.SKIPPED
    assert "out of range" in result.detail
    assert store.run_logs == {}
    assert store.follow_ups == []


def test_concurrent_dispatch_performs_once(store, clock, owner):
    rule = make_rule("no_activity", "create_notification")
    lead = make_lead(owner_id=owner.user_id)
    dispatchers = [ActionDispatcher(store, clock=clock) for _ in range(2)]
    barrier = threading.Barrier(8)

    def run(i):
        barrier.wait()
        return dispatchers[i % 2].execute(rule, lead)

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(run, range(8)))

    assert sum(result.performed for result in results) == 1
    assert all(
        result.outcome == DispatchOutcome.ALREADY_EXECUTED
        for result in results if not result.performed
    )
    assert len(store.notifications) == 1
    assert len(store.run_logs) == 1
