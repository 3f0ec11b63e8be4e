"""Trigger Evaluator - Decide which leads currently satisfy a rule's trigger"""
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List, Type

from ..domain.models import (
    Lead, NewLeadTrigger, NoActivityTrigger, StatusChangeTrigger, Trigger, UnknownTrigger
)
from ..domain.enums import LeadStatus
from ..utils.time import ensure_utc

# Leads in these statuses never match no_activity, however stale they are
NO_ACTIVITY_EXCLUDED_STATUSES = frozenset({
    LeadStatus.CONVERTED.value,
    LeadStatus.NOT_INTERESTED.value,
})


class TriggerEvaluator:
    """
    Evaluate a trigger against a lead population at a point in time

    Triggers are windowed checks evaluated on every poll, so:
    - new_lead matches leads created in [now - delay, now]; a poll period
      coarser than the delay can miss leads
    - no_activity matches leads whose last activity is older than N days
    - status_change is level-sensitive and re-matches every cycle; the run
      ledger is what prevents repeated actions
    - unknown kinds match nothing
    """

    def __init__(self):
        self._handlers: Dict[Type, Callable[[Trigger, Lead, datetime], bool]] = {
            NewLeadTrigger: self._match_new_lead,
            NoActivityTrigger: self._match_no_activity,
            StatusChangeTrigger: self._match_status_change,
            UnknownTrigger: self._match_nothing,
        }

    def matches(self, trigger: Trigger, leads: Iterable[Lead], now: datetime) -> List[Lead]:
        """
        Get the leads that satisfy the trigger right now

        Args:
            trigger: Typed trigger variant
            leads: Lead population snapshot
            now: Evaluation instant

        Returns:
            Matching leads in input order, each lead at most once
        """
        handler = self._handlers[type(trigger)]
        now = ensure_utc(now)

        matched: List[Lead] = []
        seen = set()
        for lead in leads:
            if lead.lead_id in seen:
                continue
            if handler(trigger, lead, now):
                seen.add(lead.lead_id)
                matched.append(lead)
        return matched

    @staticmethod
    def _match_new_lead(trigger: NewLeadTrigger, lead: Lead, now: datetime) -> bool:
        cutoff = now - timedelta(minutes=trigger.delay_minutes)
        return cutoff <= lead.created_at <= now

    @staticmethod
    def _match_no_activity(trigger: NoActivityTrigger, lead: Lead, now: datetime) -> bool:
        if lead.status in NO_ACTIVITY_EXCLUDED_STATUSES:
            return False
        cutoff = now - timedelta(days=trigger.days)
        return lead.effective_last_activity < cutoff

    @staticmethod
    def _match_status_change(trigger: StatusChangeTrigger, lead: Lead, now: datetime) -> bool:
        if trigger.target is None:
            return False
        return lead.pipeline_stage == trigger.target or lead.status == trigger.target

    @staticmethod
    def _match_nothing(trigger: UnknownTrigger, lead: Lead, now: datetime) -> bool:
        return False
