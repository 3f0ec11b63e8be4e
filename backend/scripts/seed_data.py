"""
Seed Data Script - Creates sample users, leads and automation rules for testing
Run: python -m scripts.seed_data
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from leadflow.repositories.mongo_client import get_collection, create_indexes, RULES_COLLECTION
from leadflow.repositories.rule_repo import RuleRepository
from leadflow.repositories.lead_repo import LeadRepository
from leadflow.repositories.user_repo import UserRepository
from leadflow.domain.models import AutomationRule, Lead, User
from leadflow.domain.enums import ActionKind, LeadStatus, TriggerKind
from leadflow.utils.idgen import generate_lead_id, generate_rule_id, generate_user_id
from leadflow.utils.time import add_days, add_minutes, utc_now


def create_sample_data():
    """Create a sales user, a handful of leads and one rule per trigger kind"""

    # Check if already seeded
    if get_collection(RULES_COLLECTION).count_documents({}) > 0:
        print("Database already has data. Skipping seed.")
        return

    now = utc_now()
    users = UserRepository()
    leads = LeadRepository()
    rules = RuleRepository()

    owner = users.create_user(User(
        user_id=generate_user_id(),
        name="Priya Sharma",
        email="priya@example.com",
        role="sales"
    ))
    admin = users.create_user(User(
        user_id=generate_user_id(),
        name="Admin",
        email="admin@example.com",
        role="admin"
    ))

    sample_leads = [
        Lead(
            lead_id=generate_lead_id(),
            name="Rahul Verma",
            mobile="+91 98765-43210",
            owner_id=owner.user_id,
            created_at=add_minutes(now, -2)
        ),
        Lead(
            lead_id=generate_lead_id(),
            name="Anita Desai",
            mobile="+91 91234 56789",
            status=LeadStatus.INTERESTED.value,
            pipeline_stage="interested",
            owner_id=owner.user_id,
            created_at=add_days(now, -10),
            last_activity_at=add_days(now, -4)
        ),
        Lead(
            lead_id=generate_lead_id(),
            name="Vikram Rao",
            mobile="9988776655",
            status=LeadStatus.CONVERTED.value,
            pipeline_stage="won",
            owner_id=owner.user_id,
            created_at=add_days(now, -30),
            last_activity_at=add_days(now, -20)
        ),
        Lead(
            lead_id=generate_lead_id(),
            name="Meera Iyer",
            mobile="9876501234",
            created_at=add_days(now, -6)
        ),
    ]
    for lead in sample_leads:
        leads.create_lead(lead)

    sample_rules = [
        AutomationRule(
            rule_id=generate_rule_id(),
            name="Welcome new leads on WhatsApp",
            trigger=TriggerKind.NEW_LEAD.value,
            trigger_value="5",
            action=ActionKind.SEND_WHATSAPP.value,
            created_by_id=admin.user_id,
            created_at=now
        ),
        AutomationRule(
            rule_id=generate_rule_id(),
            name="Remind owner about stale leads",
            trigger=TriggerKind.NO_ACTIVITY.value,
            trigger_value="3",
            action=ActionKind.CREATE_NOTIFICATION.value,
            created_by_id=admin.user_id,
            created_at=add_minutes(now, 1)
        ),
        AutomationRule(
            rule_id=generate_rule_id(),
            name="Follow up interested leads",
            trigger=TriggerKind.STATUS_CHANGE.value,
            trigger_value="interested",
            action=ActionKind.CREATE_FOLLOWUP.value,
            action_value="2",
            created_by_id=admin.user_id,
            created_at=add_minutes(now, 2)
        ),
    ]
    for rule in sample_rules:
        rules.create_rule(rule)

    print(f"Created {len(sample_leads)} leads and {len(sample_rules)} automation rules")
    for rule in sample_rules:
        print(f"  {rule.rule_id}: {rule.name} ({rule.trigger} -> {rule.action})")


if __name__ == "__main__":
    print("Creating indexes...")
    create_indexes()
    print("Seeding sample data...")
    create_sample_data()
    print("Done!")
