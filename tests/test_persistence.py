"""
Tests for persistence gateways and the data store
"""
import json

import pytest

from assessment_server.core.persistence import (
    COLLECTIONS,
    empty_collection,
    InMemoryGateway,
    JsonFileGateway,
)
from assessment_server.core.store import DataStore
from assessment_server.errors import InternalError
from assessment_server.models import Assessment, Team


def test_missing_files_yield_empty_collections(tmp_path):
    """A fresh data directory is not an error"""
    gateway = JsonFileGateway(str(tmp_path / "data"))
    assert gateway.load("teams") == []
    assert gateway.load("assessments") == []
    assert gateway.load("groups") == ["default"]
    assert gateway.load("group-emails") == {}


def test_corrupt_file_yields_empty(tmp_path):
    (tmp_path / "teams.json").write_text("{not json", encoding="utf-8")
    assert JsonFileGateway(str(tmp_path)).load("teams") == []


def test_save_all_writes_every_collection(tmp_path):
    """Snapshot is written wholesale, one file per collection"""
    data_dir = tmp_path / "nested" / "data"
    store = DataStore.open(JsonFileGateway(str(data_dir)))
    store.teams.append(Team(id="t1", name="Alpha", group="g", pin="123456", created_at="now"))
    store.group_emails["g"] = "prof@example.com"
    store.save()

    for name in COLLECTIONS:
        assert (data_dir / f"{name}.json").exists()
    teams = json.loads((data_dir / "teams.json").read_text(encoding="utf-8"))
    assert teams == [{
        "id": "t1", "name": "Alpha", "group": "g", "pin": "123456",
        "members": [], "createdAt": "now",
    }]


def test_store_reload_round_trip(tmp_path):
    """Records saved by one store load back into another"""
    gateway = JsonFileGateway(str(tmp_path))
    store = DataStore.open(gateway)
    store.groups.append("g")
    store.assessments.append(Assessment(id="a1", judge_name="J", team_name="Alpha", group="g"))
    store.save()

    reloaded = DataStore.open(JsonFileGateway(str(tmp_path)))
    assert reloaded.groups == ["default", "g"]
    assert reloaded.assessments[0].judge_name == "J"
    assert reloaded.assessments[0].ratings.overall == 1


def test_legacy_team_name_key(tmp_path):
    """Older team records stored the name under teamName"""
    (tmp_path / "teams.json").write_text(
        json.dumps([{"id": "t1", "teamName": "Old Team", "group": "g", "pin": "111111"}]),
        encoding="utf-8",
    )
    store = DataStore.open(JsonFileGateway(str(tmp_path)))
    assert store.teams[0].name == "Old Team"
    assert store.teams[0].to_json()["name"] == "Old Team"


def test_save_failure_raises_internal_error(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("file, not a directory", encoding="utf-8")
    gateway = JsonFileGateway(str(blocker / "data"))
    with pytest.raises(InternalError):
        gateway.save_all({"teams": []})


def test_in_memory_gateway_isolated_copies():
    """Loaded collections are copies, not live references"""
    gateway = InMemoryGateway({"groups": ["default", "g"]})
    groups = gateway.load("groups")
    groups.append("mutated")
    assert gateway.load("groups") == ["default", "g"]
    gateway.save_all({"groups": ["x"]})
    assert gateway.save_count == 1
    assert gateway.load("groups") == ["x"]


@pytest.mark.parametrize("collection,content", [
    ("teams", "{}"),
    ("assessments", '"text"'),
    ("groups", "null"),
    ("group-emails", "[]"),
])
def test_wrong_shape_yields_empty(tmp_path, collection, content):
    """Valid JSON of the wrong container type falls back like a corrupt file"""
    (tmp_path / f"{collection}.json").write_text(content, encoding="utf-8")
    gateway = JsonFileGateway(str(tmp_path))
    assert gateway.load(collection) == empty_collection(collection)


def test_store_opens_over_wrong_shapes(tmp_path):
    (tmp_path / "teams.json").write_text("{}", encoding="utf-8")
    (tmp_path / "groups.json").write_text("null", encoding="utf-8")
    store = DataStore.open(JsonFileGateway(str(tmp_path)))
    assert store.teams == []
    assert store.groups == ["default"]
