"""
In-memory data store

Owns the four collections for the lifetime of the process and is the single
source of truth during a run. Every mutation is followed by save(), which
rewrites the whole snapshot through the persistence gateway.
"""
import logging
from typing import Dict, List

from assessment_server.core.persistence import (
    ASSESSMENTS, GROUP_EMAILS, GROUPS, TEAMS, PersistenceGateway,
)
from assessment_server.models import Assessment, Team


logger = logging.getLogger(__name__)


class DataStore:
    def __init__(self, gateway: PersistenceGateway):
        self.gateway = gateway
        self.teams: List[Team] = []
        self.assessments: List[Assessment] = []
        self.groups: List[str] = ["default"]
        self.group_emails: Dict[str, str] = {}

    @classmethod
    def open(cls, gateway: PersistenceGateway) -> "DataStore":
        """Create a store and populate it from the gateway"""
        store = cls(gateway)
        store.load()
        return store

    def load(self) -> None:
        self.teams = [Team.model_validate(raw) for raw in self.gateway.load(TEAMS)]
        self.assessments = [Assessment.model_validate(raw) for raw in self.gateway.load(ASSESSMENTS)]
        self.groups = list(self.gateway.load(GROUPS))
        self.group_emails = dict(self.gateway.load(GROUP_EMAILS))
        logger.info(
            f"Loaded {len(self.teams)} teams, {len(self.assessments)} assessments, "
            f"{len(self.groups)} groups"
        )

    def snapshot(self) -> Dict:
        return {
            ASSESSMENTS: [a.to_json() for a in self.assessments],
            TEAMS: [t.to_json() for t in self.teams],
            GROUPS: list(self.groups),
            GROUP_EMAILS: dict(self.group_emails),
        }

    def save(self) -> None:
        self.gateway.save_all(self.snapshot())
