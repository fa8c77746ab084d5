"""Team catalog: single-team registration and CSV bulk import"""
import logging
import random
from typing import Dict, List, Optional

from assessment_server.core.csv_import import EXPECTED_FORMAT, parse_csv, validate_team_rows
from assessment_server.core.groups import normalize_group
from assessment_server.core.pins import generate_unique_pin
from assessment_server.core.store import DataStore
from assessment_server.errors import ValidationError
from assessment_server.models import Team
from assessment_server.services.notifications import TEAM_PIN_ISSUED, NotificationDispatcher
from assessment_server.utils import clean_str, new_id, utc_now_iso


logger = logging.getLogger(__name__)


class TeamCatalog:
    def __init__(self, store: DataStore,
                 notifier: Optional[NotificationDispatcher] = None,
                 rng: Optional[random.Random] = None):
        self.store = store
        self.notifier = notifier
        self.rng = rng

    def _new_pin(self, group: str) -> str:
        return generate_unique_pin(self.store.teams, group, rng=self.rng)

    def add_team(self, name, group=None) -> Team:
        """
        Register one team in a group with a fresh PIN

        Unlike CSV import, no name-uniqueness check is made here.
        """
        clean_name = clean_str(name)
        if not clean_name:
            raise ValidationError("Team name is required")

        group = normalize_group(group)
        team = Team(
            id=new_id(),
            name=clean_name,
            group=group,
            pin=self._new_pin(group),
            members=[],
            created_at=utc_now_iso(),
        )
        self.store.teams.append(team)
        self.store.save()
        logger.info(f"Added team {clean_name} to group {group}")
        return team

    def list_teams(self, group: Optional[str] = None) -> List[Team]:
        if group is None:
            return list(self.store.teams)
        target = normalize_group(group)
        return [t for t in self.store.teams if normalize_group(t.group) == target]

    def team_names(self, group: str) -> List[str]:
        return [t.name for t in self.list_teams(group)]

    def import_from_csv(self, data: bytes, group=None) -> Dict:
        """
        Import teams from an uploaded CSV into one group

        The whole batch is rejected if any row fails validation. Rows whose
        name already exists in the group (ignoring case) are skipped and
        reported as duplicates; existing teams are never modified.

        Returns:
            Import summary (imported, duplicatesSkipped, newTeams, ...)
        """
        group = normalize_group(group)
        rows = parse_csv(data)
        if not rows:
            raise ValidationError("CSV file is empty or invalid", expectedFormat=EXPECTED_FORMAT)

        validation = validate_team_rows(rows)
        if validation.errors:
            raise ValidationError(
                "Validation errors found",
                details=validation.errors,
                validTeams=len(validation.valid_teams),
                totalRows=len(rows),
            )

        existing = {t.name.lower() for t in self.list_teams(group)}
        duplicates: List[str] = []
        new_teams: List[Team] = []

        for draft in validation.valid_teams:
            key = draft.name.lower()
            if key in existing:
                duplicates.append(draft.name)
                continue
            team = Team(
                id=new_id(),
                name=draft.name,
                group=group,
                pin=self._new_pin(group),
                members=draft.members,
                created_at=utc_now_iso(),
                source="csv_upload",
            )
            # Visible to _new_pin for the rest of this batch
            self.store.teams.append(team)
            new_teams.append(team)
            existing.add(key)

        self.store.save()

        if self.notifier is not None:
            for team in new_teams:
                if team.members:
                    self.notifier.dispatch(TEAM_PIN_ISSUED, {"team": team, "group": group})

        result = {
            "success": True,
            "message": f"Successfully imported {len(new_teams)} teams",
            "imported": len(new_teams),
            "duplicatesSkipped": len(duplicates),
            "totalProcessed": len(validation.valid_teams),
            "newTeams": [{"name": t.name, "id": t.id} for t in new_teams],
        }
        if duplicates:
            result["duplicates"] = duplicates
            result["message"] += f" ({len(duplicates)} duplicates skipped)"

        logger.info(
            f"CSV Import [group={group}]: {len(new_teams)} teams added, "
            f"{len(duplicates)} duplicates skipped"
        )
        return result
