"""
Persistence gateways: whole-collection snapshots, no partial updates

Four named collections are persisted: teams, assessments, groups and
group-emails. A gateway loads each one at startup and rewrites all of them
on every save.
"""
import copy
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

from assessment_server.errors import InternalError


logger = logging.getLogger(__name__)

TEAMS = "teams"
ASSESSMENTS = "assessments"
GROUPS = "groups"
GROUP_EMAILS = "group-emails"

COLLECTIONS = (TEAMS, ASSESSMENTS, GROUPS, GROUP_EMAILS)


def empty_collection(name: str) -> Any:
    """Initial value for a collection that has never been saved"""
    if name == GROUPS:
        return ["default"]
    if name == GROUP_EMAILS:
        return {}
    return []


class PersistenceGateway(ABC):
    """Load/save contract shared by all backends"""

    @abstractmethod
    def load(self, collection: str) -> Any:
        """Return the stored collection, or its empty value if absent"""

    @abstractmethod
    def save_all(self, collections: Dict[str, Any]) -> None:
        """Overwrite every collection with the given snapshot"""


class InMemoryGateway(PersistenceGateway):
    """Keeps snapshots in a dict; used by tests and `storage: memory`"""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self.snapshots: Dict[str, Any] = copy.deepcopy(initial or {})
        self.save_count = 0

    def load(self, collection: str) -> Any:
        if collection not in self.snapshots:
            return empty_collection(collection)
        return copy.deepcopy(self.snapshots[collection])

    def save_all(self, collections: Dict[str, Any]) -> None:
        self.snapshots = copy.deepcopy(collections)
        self.save_count += 1


class JsonFileGateway(PersistenceGateway):
    """One pretty-printed JSON file per collection under data_dir"""

    def __init__(self, data_dir: str):
        self.data_dir = Path(data_dir)

    def path_for(self, collection: str) -> Path:
        return self.data_dir / f"{collection}.json"

    def load(self, collection: str) -> Any:
        path = self.path_for(collection)
        if not path.exists():
            logger.info(f"No existing {collection} data found, starting fresh")
            return empty_collection(collection)

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read {path}: {e}; starting with empty {collection}")
            return empty_collection(collection)

        expected = type(empty_collection(collection))
        if not isinstance(data, expected):
            logger.warning(
                f"{path} holds {type(data).__name__}, expected {expected.__name__}; "
                f"starting with empty {collection}"
            )
            return empty_collection(collection)
        return data

    def save_all(self, collections: Dict[str, Any]) -> None:
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            for name, records in collections.items():
                with open(self.path_for(name), 'w', encoding='utf-8') as f:
                    json.dump(records, f, indent=2, ensure_ascii=False)
        except OSError as e:
            logger.error(f"❌ Error saving data to {self.data_dir}: {e}")
            raise InternalError("Failed to save data") from e
