"""User Repository - Lookup of CRM users"""
from typing import Optional
from pymongo.collection import Collection

from .mongo_client import get_collection, USERS_COLLECTION
from ..domain.models import User


class UserRepository:
    """Repository for CRM users"""

    def __init__(self, collection: Optional[Collection] = None):
        self._users: Collection = collection if collection is not None else get_collection(USERS_COLLECTION)

    def get_user(self, user_id: str) -> Optional[User]:
        """Get user by ID"""
        doc = self._users.find_one({"user_id": user_id})
        if doc:
            doc.pop("_id", None)
            return User.model_validate(doc)
        return None

    def create_user(self, user: User) -> User:
        """Insert a user (used by seeding)"""
        doc = user.model_dump(mode="json")
        doc["_id"] = user.user_id
        self._users.insert_one(doc)
        return user
