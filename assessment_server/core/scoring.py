"""
Scoring engine for judge assessments

Formula (per team, n = number of judges):
  average[d] = sum(rating[d]) / n                  (2 decimals, ties round up)
  totalScore = sum over d of sum(rating[d]) / (n × 20) × 100   (1 decimal, ties round up)

Rules:
  - Four dimensions rated 1-5, so one assessment tops out at 20 points
  - Teams are ranked by totalScore, highest first (numeric comparison)
  - Teams without assessments are left out of the ranking but are listed
    as not yet assessed in the roster view
"""
from collections import OrderedDict
from typing import Dict, Iterable, List, Optional

from assessment_server.core.groups import normalize_group
from assessment_server.errors import NotFoundError, NotYetAssessedError, ValidationError
from assessment_server.models import MAX_TOTAL_RATING, RATING_DIMENSIONS, Assessment, Team, TeamStats
from assessment_server.utils import round_half_up


PIN_LENGTH = 6

# Ratings attribute -> key used in averages payloads
AVERAGE_KEYS = OrderedDict(
    (dim, "actionPlan" if dim == "action_plan" else dim) for dim in RATING_DIMENSIONS
)

NOT_YET_ASSESSED = "not_yet_assessed"
ASSESSED = "assessed"


def filter_by_group(assessments: Iterable[Assessment], group: Optional[str]) -> List[Assessment]:
    """All assessments when group is None, else those in the normalized group"""
    if group is None:
        return list(assessments)
    target = normalize_group(group)
    return [a for a in assessments if normalize_group(a.group) == target]


def calculate_averages(assessments: List[Assessment]) -> Dict[str, float]:
    """
    Per-dimension mean rating

    Args:
        assessments: Assessments for a single team (non-empty)

    Returns:
        {"complexity": 3.0, "storytelling": ..., "actionPlan": ..., "overall": ...}
    """
    count = len(assessments) or 1
    averages = {}
    for dim, key in AVERAGE_KEYS.items():
        total = sum(getattr(a.ratings, dim) for a in assessments)
        averages[key] = round_half_up(total, count, 2)
    return averages


def calculate_total_score(assessments: List[Assessment]) -> float:
    """
    Aggregate percentage across all judges and dimensions

    Example:
        Two judges rating (4,4,4,4) and (2,2,2,2):
        (16 + 8) / (2 × 20) × 100 = 60.0
    """
    count = len(assessments) or 1
    grand_total = sum(a.ratings.total() for a in assessments)
    return round_half_up(grand_total * 100, count * MAX_TOTAL_RATING, 1)


def group_by_team(assessments: Iterable[Assessment]) -> Dict[str, List[Assessment]]:
    """Group by exact team name, keeping first-seen order"""
    grouped: Dict[str, List[Assessment]] = OrderedDict()
    for a in assessments:
        grouped.setdefault(a.team_name, []).append(a)
    return grouped


def build_team_stats(team_name: str, assessments: List[Assessment]) -> TeamStats:
    return TeamStats(
        team_name=team_name,
        judge_count=len(assessments),
        averages=calculate_averages(assessments),
        total_score=calculate_total_score(assessments),
        assessments=assessments,
    )


def rank_teams(assessments: Iterable[Assessment]) -> List[TeamStats]:
    """Team stats sorted by totalScore (desc); ties keep first-seen order"""
    stats = [build_team_stats(name, items) for name, items in group_by_team(assessments).items()]
    stats.sort(key=lambda s: -s.total_score)
    return stats


def get_analytics(assessments: Iterable[Assessment], group: Optional[str] = None) -> Dict:
    """
    Analytics summary, optionally scoped to one group

    Returns:
        {"totalAssessments", "totalTeams", "teamStats", "judgeList"}
    """
    source = filter_by_group(assessments, group)
    team_stats = rank_teams(source)

    judges: List[str] = []
    for a in source:
        if a.judge_name not in judges:
            judges.append(a.judge_name)

    return {
        "totalAssessments": len(source),
        "totalTeams": len(team_stats),
        "teamStats": [s.to_json() for s in team_stats],
        "judgeList": judges,
    }


def roster_summary(teams: Iterable[Team], assessments: Iterable[Assessment],
                   group: Optional[str] = None) -> List[Dict]:
    """
    Every team on the roster with its scores or a not-yet-assessed status

    Assessments are matched to teams by group and case-insensitive name.
    """
    roster = list(teams)
    if group is not None:
        target = normalize_group(group)
        roster = [t for t in roster if normalize_group(t.group) == target]

    all_assessments = list(assessments)
    summary = []
    for team in roster:
        team_group = normalize_group(team.group)
        matched = [
            a for a in all_assessments
            if normalize_group(a.group) == team_group and a.team_name.lower() == team.name.lower()
        ]
        entry = {"teamName": team.name, "group": team_group}
        if matched:
            entry.update({
                "status": ASSESSED,
                "judgeCount": len(matched),
                "averages": calculate_averages(matched),
                "totalScore": calculate_total_score(matched),
            })
        else:
            entry.update({"status": NOT_YET_ASSESSED, "judgeCount": 0})
        summary.append(entry)

    summary.sort(key=lambda e: (e["status"] != ASSESSED, -e.get("totalScore", 0.0), e["teamName"].lower()))
    return summary


def resolve_pin(teams: Iterable[Team], group: Optional[str], pin: Optional[str]) -> Team:
    """
    Find the team holding a PIN within one group

    Raises:
        ValidationError: PIN is not 6 characters
        NotFoundError: No team in that group holds the PIN
    """
    pin = (pin or "").strip()
    if len(pin) != PIN_LENGTH:
        raise ValidationError("Please provide a valid 6-digit PIN")

    target = normalize_group(group)
    for team in teams:
        if normalize_group(team.group) == target and team.pin == pin:
            return team

    raise NotFoundError("Invalid PIN or no team found")


def get_team_results(teams: Iterable[Team], assessments: Iterable[Assessment],
                     group: Optional[str], pin: Optional[str]) -> Dict:
    """
    Aggregated results for the team a PIN resolves to

    Raises:
        NotYetAssessedError: The team exists but has no assessments
    """
    team = resolve_pin(teams, group, pin)
    target = normalize_group(group)

    team_assessments = [
        a for a in assessments
        if normalize_group(a.group) == target and a.team_name.lower() == team.name.lower()
    ]
    if not team_assessments:
        raise NotYetAssessedError("No assessments found for this team yet. Please check back later.")

    return {
        "teamName": team.name,
        "judgeCount": len(team_assessments),
        "averages": calculate_averages(team_assessments),
        "totalScore": calculate_total_score(team_assessments),
        "assessments": [
            {
                "ratings": a.ratings.to_json(),
                "comments": a.comments.to_json(),
                "submittedAt": a.submitted_at,
            }
            for a in team_assessments
        ],
        "members": [m.to_json() for m in team.members],
    }
