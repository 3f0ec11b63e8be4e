"""MongoDB Client - Connection and Collection Management"""
from typing import Any, Dict, Optional
from pymongo import MongoClient as PyMongoClient
from pymongo.database import Database
from pymongo.collection import Collection
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import ConnectionFailure

from ..config.settings import settings
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Collection names
RULES_COLLECTION = "automation_rules"
LEADS_COLLECTION = "leads"
USERS_COLLECTION = "users"
RUN_LOGS_COLLECTION = "automation_run_logs"
NOTIFICATIONS_COLLECTION = "notifications"
FOLLOW_UPS_COLLECTION = "follow_ups"

# Global client instance
_client: Optional[PyMongoClient] = None
_database: Optional[Database] = None


def get_client() -> PyMongoClient:
    """Get or create MongoDB client"""
    global _client
    if _client is None:
        logger.info(f"Connecting to MongoDB: {settings.mongo_uri}")
        _client = PyMongoClient(
            settings.mongo_uri,
            serverSelectionTimeoutMS=settings.mongo_timeout_ms,
            connectTimeoutMS=settings.mongo_timeout_ms,
            socketTimeoutMS=30000,
        )
        # Test connection
        try:
            _client.admin.command("ping")
            logger.info("MongoDB connection successful")
        except ConnectionFailure as e:
            logger.error(f"MongoDB connection failed: {e}")
            _client = None
            raise
    return _client


def get_database() -> Database:
    """Get the application database"""
    global _database
    if _database is None:
        client = get_client()
        _database = client[settings.mongo_db]
        logger.info(f"Using database: {settings.mongo_db}")
    return _database


def get_collection(name: str) -> Collection:
    """Get a collection from the database"""
    db = get_database()
    return db[name]


def close_connection() -> None:
    """Close MongoDB connection"""
    global _client, _database
    if _client is not None:
        _client.close()
        _client = None
        _database = None
        logger.info("MongoDB connection closed")


def create_indexes() -> None:
    """Create all required indexes"""
    db = get_database()
    logger.info("Creating MongoDB indexes...")

    # Automation rules collection
    rules = db[RULES_COLLECTION]
    rules.create_index("rule_id", unique=True)
    rules.create_index("is_active")

    # Leads collection
    leads = db[LEADS_COLLECTION]
    leads.create_index("lead_id", unique=True)
    leads.create_index("owner_id")
    leads.create_index([("status", ASCENDING), ("pipeline_stage", ASCENDING)])
    leads.create_index("created_at", background=True)

    # Users collection
    users = db[USERS_COLLECTION]
    users.create_index("user_id", unique=True)

    # Run ledger - the unique pair index is the exactly-once guarantee
    run_logs = db[RUN_LOGS_COLLECTION]
    run_logs.create_index("run_log_id", unique=True)
    run_logs.create_index(
        [("rule_id", ASCENDING), ("lead_id", ASCENDING)],
        unique=True,
        name="rule_lead_unique"
    )
    run_logs.create_index("created_at", background=True)

    # Notifications collection
    notifications = db[NOTIFICATIONS_COLLECTION]
    notifications.create_index("notification_id", unique=True)
    notifications.create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])

    # Follow-ups collection
    follow_ups = db[FOLLOW_UPS_COLLECTION]
    follow_ups.create_index("follow_up_id", unique=True)
    follow_ups.create_index("lead_id")
    follow_ups.create_index([("user_id", ASCENDING), ("scheduled_at", ASCENDING)])

    logger.info("MongoDB indexes created successfully")


def health_check() -> Dict[str, Any]:
    """Check MongoDB health"""
    try:
        client = get_client()
        client.admin.command("ping")
        return {
            "status": "healthy",
            "database": settings.mongo_db,
            "connection": "ok"
        }
    except Exception as e:
        logger.error(f"MongoDB health check failed: {e}")
        return {
            "status": "unhealthy",
            "database": settings.mongo_db,
            "error": str(e)
        }
