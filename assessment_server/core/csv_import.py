"""
Team CSV import pipeline

Parses an uploaded CSV (header row required) and validates each row into a
TeamDraft. Several header spellings are accepted for the team name and the
member columns.

CSV format:
    team_name,member1_name,member1_email,member2_name,member2_email
    Team Alpha,John Smith,john@example.com,Sarah Johnson,sarah@example.com
    Team Beta,Alex Wilson,,,
"""
import csv
import io
from typing import Dict, List, Optional

from assessment_server.errors import InternalError
from assessment_server.models import ImportValidation, Member, TeamDraft


# Checked in order; the first non-blank value wins
TEAM_NAME_COLUMNS = ("team_name", "teamName", "Team Name", "name", "Name", "team", "Team")

MAX_MEMBERS = 6

MEMBER_NAME_COLUMNS = ("member{i}_name", "Member{i} Name", "member_{i}_name")
MEMBER_EMAIL_COLUMNS = ("member{i}_email", "Member{i} Email", "member_{i}_email")

EXPECTED_FORMAT = "CSV should have columns: team_name, teamName, Team Name, name, or Name"


def parse_csv(data: bytes) -> List[Dict[str, str]]:
    """
    Parse raw CSV bytes into row mappings keyed by header name

    Args:
        data: Uploaded file content (UTF-8, optional BOM)

    Returns:
        List of rows; header names are stripped of surrounding whitespace

    Raises:
        InternalError: If the bytes are not decodable CSV
    """
    try:
        text = data.decode("utf-8-sig")
        reader = csv.DictReader(io.StringIO(text))
        if reader.fieldnames is None:
            return []
        reader.fieldnames = [(name or "").strip() for name in reader.fieldnames]
        return [dict(row) for row in reader]
    except (UnicodeDecodeError, csv.Error) as e:
        raise InternalError("Failed to process CSV file", details=[str(e)]) from e


def _first_value(row: Dict[str, str], columns) -> Optional[str]:
    for column in columns:
        value = row.get(column)
        if isinstance(value, str) and value.strip():
            return value
    return None


def extract_team_name(row: Dict[str, str]) -> Optional[str]:
    value = _first_value(row, TEAM_NAME_COLUMNS)
    return value.strip() if value else None


def extract_members(row: Dict[str, str]) -> List[Member]:
    """Members 1..6; a member needs a name, the email is optional"""
    members = []
    for i in range(1, MAX_MEMBERS + 1):
        name = _first_value(row, [c.format(i=i) for c in MEMBER_NAME_COLUMNS])
        if not name:
            continue
        email = _first_value(row, [c.format(i=i) for c in MEMBER_EMAIL_COLUMNS])
        members.append(Member(name=name.strip(), email=email.strip() if email else ""))
    return members


def validate_team_rows(rows: List[Dict[str, str]]) -> ImportValidation:
    """
    Validate parsed rows into team drafts

    A row is rejected when its team name is missing or repeats (ignoring
    case) a name accepted earlier in the same upload. Duplicates against
    teams already stored are not checked here.

    Returns:
        ImportValidation with per-row error messages and accepted drafts
    """
    result = ImportValidation()
    seen = set()

    for index, row in enumerate(rows):
        row_num = index + 1

        team_name = extract_team_name(row)
        if not team_name:
            result.errors.append(f"Row {row_num}: Missing team name")
            continue

        key = team_name.lower()
        if key in seen:
            result.errors.append(f'Row {row_num}: Duplicate team name "{team_name}"')
            continue
        seen.add(key)

        result.valid_teams.append(TeamDraft(name=team_name, members=extract_members(row)))

    return result
