"""Lead Repository - Read access to the lead population"""
from typing import List, Optional
from pymongo.collection import Collection

from .mongo_client import get_collection, LEADS_COLLECTION
from ..domain.models import Lead


class LeadRepository:
    """Repository for leads. The automation engine never mutates leads."""

    def __init__(self, collection: Optional[Collection] = None):
        self._leads: Collection = collection if collection is not None else get_collection(LEADS_COLLECTION)

    def list_all_leads(self) -> List[Lead]:
        """Get the full lead population"""
        leads = []
        for doc in self._leads.find({}):
            doc.pop("_id", None)
            leads.append(Lead.model_validate(doc))
        return leads

    def create_lead(self, lead: Lead) -> Lead:
        """Insert a lead (used by seeding)"""
        doc = lead.model_dump(mode="json")
        doc["_id"] = lead.lead_id
        self._leads.insert_one(doc)
        return lead
