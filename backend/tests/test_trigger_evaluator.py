"""Tests for trigger evaluation against a lead snapshot"""
from datetime import timedelta

import pytest

from leadflow.domain.models import (
    NewLeadTrigger, NoActivityTrigger, StatusChangeTrigger, UnknownTrigger
)
from leadflow.engine.trigger_evaluator import TriggerEvaluator

from .conftest import NOW, make_lead


@pytest.fixture
def evaluator() -> TriggerEvaluator:
    return TriggerEvaluator()


class TestNewLead:
    def test_matches_lead_created_inside_window(self, evaluator):
        lead = make_lead(created_at=NOW - timedelta(minutes=3))
        assert evaluator.matches(NewLeadTrigger(delay_minutes=5), [lead], NOW) == [lead]

    def test_window_bounds_are_inclusive(self, evaluator):
        at_cutoff = make_lead(created_at=NOW - timedelta(minutes=5))
        at_now = make_lead(created_at=NOW)
        matched = evaluator.matches(NewLeadTrigger(delay_minutes=5), [at_cutoff, at_now], NOW)
        assert matched == [at_cutoff, at_now]

    def test_ignores_older_and_future_leads(self, evaluator):
        old = make_lead(created_at=NOW - timedelta(minutes=5, seconds=1))
        future = make_lead(created_at=NOW + timedelta(seconds=1))
        assert evaluator.matches(NewLeadTrigger(delay_minutes=5), [old, future], NOW) == []

    def test_naive_timestamps_are_treated_as_utc(self, evaluator):
        lead = make_lead(created_at=(NOW - timedelta(minutes=1)).replace(tzinfo=None))
        assert evaluator.matches(NewLeadTrigger(), [lead], NOW) == [lead]


class TestNoActivity:
    def test_matches_stale_lead(self, evaluator):
        lead = make_lead(last_activity_at=NOW - timedelta(days=4))
        assert evaluator.matches(NoActivityTrigger(days=3), [lead], NOW) == [lead]

    def test_exact_cutoff_does_not_match(self, evaluator):
        lead = make_lead(last_activity_at=NOW - timedelta(days=3))
        assert evaluator.matches(NoActivityTrigger(days=3), [lead], NOW) == []

    def test_falls_back_to_created_at(self, evaluator):
        lead = make_lead(created_at=NOW - timedelta(days=2), last_activity_at=None)
        assert evaluator.matches(NoActivityTrigger(days=1), [lead], NOW) == [lead]

    @pytest.mark.parametrize("status", ["converted", "not_interested"])
    def test_closed_leads_are_excluded(self, evaluator, status):
        lead = make_lead(status=status, last_activity_at=NOW - timedelta(days=30))
        assert evaluator.matches(NoActivityTrigger(days=1), [lead], NOW) == []


class TestStatusChange:
    def test_matches_pipeline_stage_or_status(self, evaluator):
        by_stage = make_lead(pipeline_stage="interested")
        by_status = make_lead(status="interested")
        other = make_lead(status="new", pipeline_stage="new_lead")
        matched = evaluator.matches(StatusChangeTrigger(target="interested"), [by_stage, by_status, other], NOW)
        assert matched == [by_stage, by_status]

    def test_missing_target_matches_nothing(self, evaluator):
        lead = make_lead()
        assert evaluator.matches(StatusChangeTrigger(target=None), [lead], NOW) == []


def test_unknown_trigger_matches_nothing(evaluator):
    assert evaluator.matches(UnknownTrigger(kind="birthday"), [make_lead()], NOW) == []


def test_duplicate_leads_are_returned_once(evaluator):
    lead = make_lead(status="interested")
    assert evaluator.matches(StatusChangeTrigger(target="interested"), [lead, lead], NOW) == [lead]
