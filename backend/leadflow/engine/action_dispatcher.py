"""Action Dispatcher - Perform a rule's action for one lead, at most once"""
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Dict, Iterator, List, Optional, Tuple, Type

from ..domain.models import (
    Action, AutomationRule, AutomationRunLog, CreateFollowUpAction,
    CreateNotificationAction, DispatchResult, FollowUp, Lead, Notification,
    SendWhatsAppAction, UnknownAction, User
)
from ..domain.enums import DispatchOutcome, NotificationType, RunLogActionType, RunLogResult
from ..domain.errors import AlreadyExistsError, ConfigurationError, MissingDependencyError
from ..repositories.store import AutomationStore
from ..templates.message_templates import (
    NotificationTemplateKey, build_whatsapp_link, get_notification_template,
    lead_link, render_whatsapp_message
)
from ..utils.idgen import generate_follow_up_id, generate_notification_id, generate_run_log_id
from ..utils.logger import get_logger
from ..utils.time import Clock, add_days, utc_now
from .rule_parser import action_in_range, rule_action

logger = get_logger(__name__)

ALREADY_EXECUTED = "already executed"
NO_ASSIGNED_USER = "no assigned user found"

PairKey = Tuple[str, str]


class ActionDispatcher:
    """
    Execute the action of a rule for a matched lead.

    The run ledger is the idempotency gate: a pair that already has a ledger
    entry is never acted on again. The check, the side effect and the ledger
    write for one pair run under a per-pair lock held across all dispatchers
    in the process, and the ledger itself rejects a second entry for a pair.

    Notifications and follow-ups run their side effect first and then write
    the ledger entry with the outcome: success, or failure with the error
    text. WhatsApp claims its entry first since the link is built without
    I/O; a failed owner notification after that claim is logged only.
    Either way the pair is closed once its entry exists.

    execute() never raises; failures become DispatchResult(performed=False).
    """

    # Shared by every dispatcher in the process
    _pair_locks: Dict[PairKey, List] = {}
    _pair_locks_guard = threading.Lock()

    def __init__(
        self,
        store: AutomationStore,
        clock: Clock = utc_now,
        message_template: str = ""
    ):
        self.store = store
        self.clock = clock
        self.message_template = message_template
        self._handlers: Dict[Type, Callable[[Action, AutomationRule, Lead, datetime], DispatchResult]] = {
            SendWhatsAppAction: self._send_whatsapp,
            CreateNotificationAction: self._create_notification,
            CreateFollowUpAction: self._create_follow_up,
            UnknownAction: self._unknown_action,
        }

    def execute(
        self,
        rule: AutomationRule,
        lead: Lead,
        now: Optional[datetime] = None
    ) -> DispatchResult:
        """
        Dispatch the rule's action for a lead

        Args:
            rule: Rule whose trigger matched
            lead: Matched lead
            now: Evaluation instant, defaults to the dispatcher clock

        Returns:
            DispatchResult with performed flag and detail text
        """
        now = now or self.clock()

        with self._pair_lock((rule.rule_id, lead.lead_id)):
            try:
                if self.store.find_run_log(rule.rule_id, lead.lead_id) is not None:
                    return self._result(rule, lead, DispatchOutcome.ALREADY_EXECUTED, ALREADY_EXECUTED)

                action = rule_action(rule)
                return self._handlers[type(action)](action, rule, lead, now)

            except AlreadyExistsError:
                # Another dispatcher claimed the pair between our check and write
                return self._result(rule, lead, DispatchOutcome.ALREADY_EXECUTED, ALREADY_EXECUTED)

            except MissingDependencyError as e:
                logger.info(
                    f"Automation skipped: {e.message}",
                    extra={"rule_id": rule.rule_id, "lead_id": lead.lead_id, "action": rule.action}
                )
                return self._result(rule, lead, DispatchOutcome.SKIPPED, e.message)

            except ConfigurationError as e:
                logger.warning(
                    f"Automation skipped, rule misconfigured: {e.message}",
                    extra={"rule_id": rule.rule_id, "lead_id": lead.lead_id, "action": rule.action}
                )
                return self._result(rule, lead, DispatchOutcome.SKIPPED, e.message)

            except Exception as e:
                logger.error(
                    f"Automation execution error: {e}",
                    exc_info=True,
                    extra={
                        "rule_id": rule.rule_id,
                        "lead_id": lead.lead_id,
                        "action": rule.action,
                        "error_type": type(e).__name__
                    }
                )
                return self._result(rule, lead, DispatchOutcome.FAILED, str(e))

    # =========================================================================
    # Actions
    # =========================================================================

    def _send_whatsapp(
        self, action: SendWhatsAppAction, rule: AutomationRule, lead: Lead, now: datetime
    ) -> DispatchResult:
        message = render_whatsapp_message(lead.name, self.message_template)
        link = build_whatsapp_link(lead.mobile, message)

        self._claim(rule, lead, RunLogActionType.WHATSAPP, f"WhatsApp link generated: {link}", now)

        user = self._resolve_target_user(rule, lead)
        if user:
            self._notify(
                user,
                NotificationType.AUTOMATION,
                NotificationTemplateKey.WHATSAPP_READY,
                {"lead_name": lead.name, "link": link},
                lead,
                now
            )

        return self._result(
            rule, lead, DispatchOutcome.PERFORMED,
            f"WhatsApp link generated for {lead.name}: {link}"
        )

    def _create_notification(
        self, action: CreateNotificationAction, rule: AutomationRule, lead: Lead, now: datetime
    ) -> DispatchResult:
        user = self._resolve_target_user(rule, lead)
        if user is None:
            # No ledger entry, so a later cycle retries once a user is assigned
            raise MissingDependencyError(
                NO_ASSIGNED_USER,
                details={"rule_id": rule.rule_id, "lead_id": lead.lead_id}
            )

        self._record_attempt(
            rule, lead, RunLogActionType.NOTIFICATION,
            f"Reminder notification sent to {user.name}", now,
            lambda: self._notify(
                user,
                NotificationType.REMINDER,
                NotificationTemplateKey.LEAD_REMINDER,
                {"lead_name": lead.name},
                lead,
                now
            )
        )

        return self._result(rule, lead, DispatchOutcome.PERFORMED, f"Notification sent to {user.name}")

    def _create_follow_up(
        self, action: CreateFollowUpAction, rule: AutomationRule, lead: Lead, now: datetime
    ) -> DispatchResult:
        user_id = lead.owner_id or rule.created_by_id
        if not user_id:
            raise MissingDependencyError(
                NO_ASSIGNED_USER,
                details={"rule_id": rule.rule_id, "lead_id": lead.lead_id}
            )

        if not action_in_range(action):
            raise ConfigurationError(
                f"follow-up offset out of range: {action.offset_days} days",
                details={"rule_id": rule.rule_id, "action_value": rule.action_value}
            )

        scheduled_at = add_days(now, action.offset_days)
        due_date = scheduled_at.date().isoformat()

        self._record_attempt(
            rule, lead, RunLogActionType.FOLLOWUP,
            f"Follow-up task created for {due_date}", now,
            lambda: self.store.create_follow_up(FollowUp(
                follow_up_id=generate_follow_up_id(),
                lead_id=lead.lead_id,
                user_id=user_id,
                scheduled_at=scheduled_at,
                notes=f"Auto-created follow-up: {rule.name}",
                created_at=now
            ))
        )

        return self._result(rule, lead, DispatchOutcome.PERFORMED, f"Follow-up created for {lead.name} on {due_date}")

    def _unknown_action(
        self, action: UnknownAction, rule: AutomationRule, lead: Lead, now: datetime
    ) -> DispatchResult:
        logger.warning(
            f"Unknown action type: {action.kind}",
            extra={"rule_id": rule.rule_id, "action": action.kind}
        )
        return self._result(rule, lead, DispatchOutcome.SKIPPED, f"unknown action: {action.kind}")

    # =========================================================================
    # Helpers
    # =========================================================================

    def _resolve_target_user(self, rule: AutomationRule, lead: Lead) -> Optional[User]:
        """Lead owner, falling back to the rule's creator"""
        user_id = lead.owner_id or rule.created_by_id
        if not user_id:
            return None
        return self.store.get_user(user_id)

    def _claim(
        self,
        rule: AutomationRule,
        lead: Lead,
        action_type: RunLogActionType,
        details: str,
        now: datetime,
        result: RunLogResult = RunLogResult.SUCCESS
    ) -> AutomationRunLog:
        """Write the pair's ledger entry; raises AlreadyExistsError if taken"""
        return self.store.create_run_log(AutomationRunLog(
            run_log_id=generate_run_log_id(),
            rule_id=rule.rule_id,
            lead_id=lead.lead_id,
            action_type=action_type,
            action_result=result,
            details=details,
            created_at=now
        ))

    def _record_attempt(
        self,
        rule: AutomationRule,
        lead: Lead,
        action_type: RunLogActionType,
        success_details: str,
        now: datetime,
        side_effect: Callable[[], object]
    ) -> AutomationRunLog:
        """
        Run the side effect, then write the pair's ledger entry with its outcome.

        A side effect that raises is recorded as a failure carrying the error
        text, and the original error is re-raised to the dispatch boundary.
        """
        try:
            side_effect()
        except Exception as e:
            try:
                self._claim(rule, lead, action_type, str(e), now, result=RunLogResult.FAILURE)
            except Exception as ledger_error:
                logger.error(
                    f"Could not record failed attempt: {ledger_error}",
                    extra={
                        "rule_id": rule.rule_id,
                        "lead_id": lead.lead_id,
                        "error_type": type(ledger_error).__name__
                    }
                )
            raise

        return self._claim(rule, lead, action_type, success_details, now)

    def _notify(
        self,
        user: User,
        notification_type: NotificationType,
        template_key: NotificationTemplateKey,
        payload: dict,
        lead: Lead,
        now: datetime
    ) -> Notification:
        content = get_notification_template(template_key, payload)
        return self.store.create_notification(Notification(
            notification_id=generate_notification_id(),
            user_id=user.user_id,
            type=notification_type,
            title=content["title"],
            message=content["message"],
            link=lead_link(lead.lead_id),
            created_at=now
        ))

    @staticmethod
    def _result(
        rule: AutomationRule, lead: Lead, outcome: DispatchOutcome, detail: str
    ) -> DispatchResult:
        return DispatchResult(
            rule_id=rule.rule_id,
            lead_id=lead.lead_id,
            performed=outcome == DispatchOutcome.PERFORMED,
            detail=detail,
            outcome=outcome
        )

    @contextmanager
    def _pair_lock(self, key: PairKey) -> Iterator[None]:
        """Serialize dispatches of the same (rule, lead) pair"""
        with self._pair_locks_guard:
            entry = self._pair_locks.get(key)
            if entry is None:
                entry = self._pair_locks[key] = [threading.Lock(), 0]
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._pair_locks_guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._pair_locks[key]
