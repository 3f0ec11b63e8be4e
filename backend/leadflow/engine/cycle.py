"""Automation Cycle - One pass of all active rules over all leads"""
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import List, Optional, Tuple

from ..domain.models import (
    AutomationRule, CycleSummary, DispatchResult, Lead, RuleCycleStats, UnknownTrigger
)
from ..domain.enums import DispatchOutcome
from ..domain.errors import ConfigurationError
from ..repositories.store import AutomationStore
from ..utils.idgen import generate_correlation_id
from ..utils.logger import get_logger, set_correlation_id, get_correlation_id
from ..utils.time import Clock, utc_now
from .action_dispatcher import ActionDispatcher
from .rule_parser import rule_trigger, validate_rule
from .trigger_evaluator import TriggerEvaluator

logger = get_logger(__name__)


class AutomationCycle:
    """
    Run one automation pass

    1. Read active rules and all leads once; the pass works on that snapshot
    2. For each rule, evaluate its trigger against the snapshot
    3. Dispatch each matched (rule, lead) pair

    A rule whose evaluation fails is skipped, a pair whose dispatch fails is
    counted as failed; neither stops the rest of the pass. Reading the
    snapshot is the only step whose failure ends the pass early.
    """

    def __init__(
        self,
        store: AutomationStore,
        dispatcher: Optional[ActionDispatcher] = None,
        evaluator: Optional[TriggerEvaluator] = None,
        clock: Clock = utc_now,
        max_workers: int = 1
    ):
        self.store = store
        self.clock = clock
        self.dispatcher = dispatcher or ActionDispatcher(store, clock=clock)
        self.evaluator = evaluator or TriggerEvaluator()
        self.max_workers = max(1, max_workers)

    def run(self, dry_run: bool = False) -> CycleSummary:
        """
        Run one pass

        Args:
            dry_run: Evaluate triggers and count matches without dispatching

        Returns:
            CycleSummary with per-rule counters
        """
        previous_correlation_id = get_correlation_id()
        cycle_id = generate_correlation_id()
        set_correlation_id(cycle_id)

        try:
            now = self.clock()
            summary = CycleSummary(cycle_id=cycle_id, started_at=now, dry_run=dry_run)

            rules = self.store.list_active_rules()
            leads = self.store.list_all_leads()
            summary.leads_scanned = len(leads)

            logger.debug(
                f"Automation cycle started: {len(rules)} active rules, {len(leads)} leads",
                extra={"cycle_id": cycle_id}
            )

            pairs: List[Tuple[AutomationRule, Lead, RuleCycleStats]] = []
            for rule in rules:
                stats = RuleCycleStats(
                    rule_id=rule.rule_id,
                    rule_name=rule.name,
                    trigger=rule.trigger,
                    action=rule.action
                )
                summary.per_rule[rule.rule_id] = stats
                summary.rules_evaluated += 1

                for lead in self._evaluate_rule(rule, leads, now, stats):
                    pairs.append((rule, lead, stats))

            summary.matches = len(pairs)

            if not dry_run:
                for (rule, lead, stats), result in zip(pairs, self._dispatch_all(pairs, now)):
                    summary.record(stats, result)

            summary.finished_at = self.clock()
            self._log_summary(summary)
            return summary

        finally:
            set_correlation_id(previous_correlation_id)

    def _evaluate_rule(
        self,
        rule: AutomationRule,
        leads: List[Lead],
        now: datetime,
        stats: RuleCycleStats
    ) -> List[Lead]:
        """Matched leads for one rule; evaluation errors are contained to the rule"""
        try:
            validate_rule(rule)
        except ConfigurationError as e:
            logger.warning(
                f"Automation rule misconfigured: {e.message}",
                extra={"rule_id": rule.rule_id, "trigger": rule.trigger, "action": rule.action}
            )
            if "trigger_value" in e.details:
                stats.error = e.message
                return []

        try:
            trigger = rule_trigger(rule)
            if isinstance(trigger, UnknownTrigger):
                return []
            matched = self.evaluator.matches(trigger, leads, now)
        except Exception as e:
            stats.error = str(e)
            logger.error(
                f"Error evaluating rule {rule.name}: {e}",
                exc_info=True,
                extra={"rule_id": rule.rule_id, "trigger": rule.trigger}
            )
            return []

        stats.matches = len(matched)
        return matched

    def _dispatch_all(
        self,
        pairs: List[Tuple[AutomationRule, Lead, RuleCycleStats]],
        now: datetime
    ) -> List[DispatchResult]:
        """Dispatch every pair, in order, on the pool when configured"""
        if self.max_workers == 1 or len(pairs) <= 1:
            return [self._dispatch(rule, lead, now) for rule, lead, _ in pairs]

        correlation_id = get_correlation_id()

        def _task(pair):
            set_correlation_id(correlation_id)
            rule, lead, _ = pair
            return self._dispatch(rule, lead, now)

        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="automation") as pool:
            return list(pool.map(_task, pairs))

    def _dispatch(self, rule: AutomationRule, lead: Lead, now: datetime) -> DispatchResult:
        try:
            result = self.dispatcher.execute(rule, lead, now=now)
        except Exception as e:
            # Dispatchers should not raise; contain any that do to this pair
            logger.error(
                f"Dispatcher raised for rule {rule.name}: {e}",
                exc_info=True,
                extra={"rule_id": rule.rule_id, "lead_id": lead.lead_id}
            )
            result = DispatchResult(
                rule_id=rule.rule_id,
                lead_id=lead.lead_id,
                performed=False,
                detail=str(e),
                outcome=DispatchOutcome.FAILED
            )

        if result.outcome != DispatchOutcome.ALREADY_EXECUTED:
            logger.info(
                f"[{rule.name}] {lead.name}: {result.detail}",
                extra={
                    "rule_id": rule.rule_id,
                    "lead_id": lead.lead_id,
                    "action": rule.action,
                    "outcome": result.outcome.value
                }
            )
        return result

    @staticmethod
    def _log_summary(summary: CycleSummary) -> None:
        duration_ms = (summary.finished_at - summary.started_at).total_seconds() * 1000
        message = (
            f"Automation cycle complete: {summary.matches} matches, "
            f"{summary.performed} performed, {summary.already_executed} already executed, "
            f"{summary.skipped} skipped, {summary.failed} failed"
        )
        extra = {"cycle_id": summary.cycle_id, "duration_ms": round(duration_ms, 2)}
        if summary.performed or summary.failed or summary.skipped:
            logger.info(message, extra=extra)
        else:
            logger.debug(message, extra=extra)
