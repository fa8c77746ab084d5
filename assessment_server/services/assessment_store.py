"""
Assessment store: one record per (judge, team), upserted on resubmission
"""
import logging
from typing import Any, Dict, List, Optional

from assessment_server.core.groups import DEFAULT_GROUP, normalize_group
from assessment_server.core.scoring import filter_by_group
from assessment_server.core.store import DataStore
from assessment_server.errors import IncompleteError, ValidationError
from assessment_server.models import (
    MAX_RATING, MIN_RATING, RATING_DIMENSIONS, Assessment, Comments, Ratings,
)
from assessment_server.services.notifications import (
    ASSESSMENT_SUBMITTED, JUDGE_COMPLETE, NotificationDispatcher,
)
from assessment_server.utils import clean_str, new_id, parse_leading_int, utc_now_iso


logger = logging.getLogger(__name__)

# Request payloads use camelCase keys
WIRE_KEYS = {"complexity": "complexity", "storytelling": "storytelling",
             "action_plan": "actionPlan", "overall": "overall"}


def parse_ratings(raw: Any, strict: bool = True) -> Ratings:
    """
    Build Ratings from a request payload

    Strict mode requires each rating to be an integer 1-5. Lenient mode
    keeps the legacy behavior: leading-integer parse, and a missing,
    unparsable or zero value is recorded as 1.

    Raises:
        ValidationError: In strict mode, for a missing or out-of-range rating
    """
    if not isinstance(raw, dict):
        raise ValidationError("Ratings must be an object")

    values = {}
    for dim in RATING_DIMENSIONS:
        key = WIRE_KEYS[dim]
        value = raw.get(key, raw.get(dim))

        if strict:
            parsed = _strict_rating(value)
            if parsed is None:
                raise ValidationError(
                    f"Rating '{key}' must be a whole number between {MIN_RATING} and {MAX_RATING}"
                )
        else:
            parsed = parse_leading_int(value) or MIN_RATING
        values[dim] = parsed

    return Ratings(**values)


def _strict_rating(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        if not value.is_integer():
            return None
        value = int(value)
    if isinstance(value, str):
        text = value.strip()
        if not text.lstrip("+-").isdecimal():
            return None
        value = int(text)
    if not isinstance(value, int):
        return None
    if MIN_RATING <= value <= MAX_RATING:
        return value
    return None


def parse_comments(raw: Any) -> Comments:
    raw = raw if isinstance(raw, dict) else {}
    values = {}
    for dim in RATING_DIMENSIONS:
        value = raw.get(WIRE_KEYS[dim], raw.get(dim))
        values[dim] = "" if value is None else str(value)
    return Comments(**values)


class AssessmentStore:
    def __init__(self, store: DataStore,
                 notifier: Optional[NotificationDispatcher] = None,
                 strict_ratings: bool = True,
                 notify_on_submit: bool = True):
        self.store = store
        self.notifier = notifier
        self.strict_ratings = strict_ratings
        self.notify_on_submit = notify_on_submit

    def resolve_group(self, team_name: str, requested_group=None) -> str:
        """
        Group an assessment belongs to

        The team's own group wins over the submitted one. When several teams
        share the name, a non-default group is preferred.
        """
        matches = [t for t in self.store.teams if t.name == team_name]
        team = next((t for t in matches if normalize_group(t.group) != DEFAULT_GROUP), None)
        if team is None and matches:
            team = matches[0]
        if team is not None:
            return normalize_group(team.group)
        return normalize_group(requested_group)

    def find(self, judge_name: str, team_name: str) -> Optional[int]:
        judge_key = judge_name.strip().lower()
        team_key = team_name.strip()
        for index, a in enumerate(self.store.assessments):
            if a.judge_name.lower() == judge_key and a.team_name == team_key:
                return index
        return None

    def upsert(self, judge_name, team_name, ratings, comments=None, group=None) -> Assessment:
        """
        Insert or update the assessment for (judge, team)

        Judge names match case-insensitively, team names exactly. An update
        replaces ratings, comments, group and timestamp but keeps the id.

        Returns:
            The stored Assessment
        """
        judge = clean_str(judge_name)
        team = clean_str(team_name)
        if not judge or not team or not ratings:
            raise ValidationError("Missing required fields")

        update = {
            "judge_name": judge,
            "team_name": team,
            "group": self.resolve_group(team, group),
            "ratings": parse_ratings(ratings, strict=self.strict_ratings),
            "comments": parse_comments(comments),
            "submitted_at": utc_now_iso(),
        }

        index = self.find(judge, team)
        if index is not None:
            assessment = self.store.assessments[index].model_copy(update=update)
            self.store.assessments[index] = assessment
            logger.info(f"Updated existing assessment for {judge} - {team}")
        else:
            assessment = Assessment(id=new_id(), **update)
            self.store.assessments.append(assessment)
            logger.info(f"Created new assessment for {judge} - {team} (group={update['group']})")

        self.store.save()

        if self.notifier is not None and self.notify_on_submit:
            self.notifier.dispatch(ASSESSMENT_SUBMITTED, {"assessment": assessment})

        return assessment

    def list_by_group(self, group: Optional[str] = None) -> List[Assessment]:
        return filter_by_group(self.store.assessments, group)

    def list_by_team(self, team_name: str, group: Optional[str] = None) -> List[Assessment]:
        name = (team_name or "").lower()
        return [a for a in self.list_by_group(group) if a.team_name.lower() == name]

    def list_for_roster(self, group) -> List[Assessment]:
        """Assessments whose team name is on the group's team roster"""
        target = normalize_group(group)
        roster = {t.name for t in self.store.teams if normalize_group(t.group) == target}
        return [a for a in self.store.assessments if a.team_name in roster]

    def mark_complete(self, judge_name, group_name) -> Dict:
        """
        Confirm a judge has assessed every team in a group

        Completion is derived from the stored assessments each time; nothing
        is written. On success a completion notification is dispatched.

        Raises:
            ValidationError: Missing judge or group name
            IncompleteError: Some teams in the group are not yet assessed
        """
        judge = clean_str(judge_name)
        if not judge or not clean_str(group_name):
            raise ValidationError("Missing judgeName or groupName")

        group = normalize_group(group_name)
        group_teams = [t for t in self.store.teams if normalize_group(t.group) == group]
        roster = {t.name for t in group_teams}

        judge_assessments = [
            a for a in self.store.assessments
            if a.judge_name.lower() == judge.lower() and a.team_name in roster
        ]
        assessed = {a.team_name for a in judge_assessments}

        if len(assessed) != len(group_teams):
            raise IncompleteError(
                f"Judge has only assessed {len(assessed)} of {len(group_teams)} teams",
                assessed=len(assessed),
                total=len(group_teams),
            )

        logger.info(f"Judge {judge} has assessed all {len(assessed)} teams in {group}")

        completed_at = utc_now_iso()
        if self.notifier is not None:
            self.notifier.dispatch(JUDGE_COMPLETE, {
                "judgeName": judge,
                "groupName": group,
                "assessments": judge_assessments,
                "teams": group_teams,
                "completedAt": completed_at,
            })

        return {
            "success": True,
            "message": "Assessments marked complete and admin notified",
            "judgeName": judge,
            "groupName": group,
            "assessmentsCount": len(judge_assessments),
            "completedAt": completed_at,
        }
