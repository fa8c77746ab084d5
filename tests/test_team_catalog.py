"""
Tests for team registration and CSV import
"""
import pytest

from assessment_server.errors import InternalError, ValidationError
from assessment_server.services.notifications import TEAM_PIN_ISSUED


def test_add_team(services, gateway):
    """Single add trims the name, normalizes the group and assigns a PIN"""
    team = services.teams.add_team("  Rockets ", "  ")
    assert team.name == "Rockets"
    assert team.group == "default"
    assert len(team.pin) == 6 and team.pin.isdigit()
    assert team.members == []
    assert gateway.snapshots["teams"][0]["name"] == "Rockets"
    assert "createdAt" in gateway.snapshots["teams"][0]


def test_add_team_allows_same_name(services):
    """Single-add path does not check name uniqueness"""
    services.teams.add_team("Rockets", "g")
    services.teams.add_team("rockets", "g")
    assert len(services.teams.list_teams("g")) == 2


def test_add_team_requires_name(services):
    with pytest.raises(ValidationError):
        services.teams.add_team("   ", "g")


def test_list_teams_filter(services):
    services.teams.add_team("A", "g1")
    services.teams.add_team("B", "g2")
    services.teams.add_team("C", None)
    assert [t.name for t in services.teams.list_teams("g1")] == ["A"]
    assert [t.name for t in services.teams.list_teams("")] == ["C"]
    assert len(services.teams.list_teams()) == 3


def test_import_from_csv(services, sample_csv):
    """Valid rows become teams in the target group with unique PINs"""
    result = services.teams.import_from_csv(sample_csv, "cohort")
    assert result["success"] is True
    assert result["imported"] == 3
    assert result["duplicatesSkipped"] == 0
    assert result["totalProcessed"] == 3
    assert "duplicates" not in result

    teams = services.teams.list_teams("cohort")
    assert [t.name for t in teams] == ["Team Alpha", "Team Beta", "Team Gamma"]
    assert len({t.pin for t in teams}) == 3
    assert all(t.source == "csv_upload" for t in teams)
    assert [m.name for m in teams[0].members] == ["John Smith", "Sarah Johnson"]


def test_import_skips_existing_names(services, sample_csv):
    """Names already in the group (any case) are skipped, not merged"""
    existing = services.teams.add_team("TEAM ALPHA", "cohort")
    result = services.teams.import_from_csv(sample_csv, "cohort")

    assert result["imported"] == 2
    assert result["duplicatesSkipped"] == 1
    assert result["duplicates"] == ["Team Alpha"]
    assert "(1 duplicates skipped)" in result["message"]

    names = [t.name.lower() for t in services.teams.list_teams("cohort")]
    assert names.count("team alpha") == 1
    assert services.teams.list_teams("cohort")[0].members == existing.members


def test_reimport_never_duplicates(services, sample_csv):
    """Importing twice keeps one team per case-insensitive name"""
    services.teams.import_from_csv(sample_csv, "cohort")
    before = len(services.store.teams)
    result = services.teams.import_from_csv(sample_csv, "cohort")
    assert result["imported"] == 0
    assert len(services.store.teams) == before


def test_import_other_group_not_duplicate(services, sample_csv):
    """Duplicate check is scoped to the target group"""
    services.teams.import_from_csv(sample_csv, "g1")
    result = services.teams.import_from_csv(sample_csv, "g2")
    assert result["imported"] == 3


def test_import_rejects_whole_batch(services):
    """Any row error rejects the upload without applying anything"""
    data = b"team_name\nAlpha\n\nalpha\n,\n"
    with pytest.raises(ValidationError) as exc_info:
        services.teams.import_from_csv(data, "g")

    body = exc_info.value.to_dict()
    assert body["error"] == "Validation errors found"
    assert body["details"] == ['Row 2: Duplicate team name "alpha"', "Row 3: Missing team name"]
    assert body["validTeams"] == 1
    assert body["totalRows"] == 3
    assert services.store.teams == []


def test_import_empty_csv(services):
    with pytest.raises(ValidationError) as exc_info:
        services.teams.import_from_csv(b"team_name\n", "g")
    assert "expectedFormat" in exc_info.value.to_dict()


def test_import_undecodable(services):
    with pytest.raises(InternalError):
        services.teams.import_from_csv(b"\xff\xfe\x00", "g")


def test_import_sends_pin_emails(services, sample_csv, transport):
    """PIN emails go to teams that have member emails"""
    services.teams.import_from_csv(sample_csv, "cohort")
    subjects = [m["Subject"] for m in transport.messages]
    assert subjects == ["Your Team Assessment PIN - Team Alpha"]
    message = transport.messages[0]
    assert message["To"] == "john@example.com, sarah@example.com"
    alpha = services.teams.list_teams("cohort")[0]
    assert alpha.pin in message.get_content()


def test_import_dispatches_only_teams_with_members(services, sample_csv):
    """Teams without members are not dispatched at all"""
    sent = []
    services.teams.notifier.dispatch = lambda kind, payload: sent.append((kind, payload["team"].name))
    services.teams.import_from_csv(sample_csv, "cohort")
    assert sent == [(TEAM_PIN_ISSUED, "Team Alpha"), (TEAM_PIN_ISSUED, "Team Beta")]
