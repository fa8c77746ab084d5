"""
Team endpoints: listing, single registration and CSV upload
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile

from assessment_server.config import Settings
from assessment_server.errors import ValidationError
from assessment_server.services.team_catalog import TeamCatalog
from assessment_server.state import get_settings, get_team_catalog


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/teams", tags=["teams"])

CSV_CONTENT_TYPES = ("text/csv", "application/csv", "application/vnd.ms-excel")


@router.get("")
async def list_teams(group: Optional[str] = None,
                     catalog: TeamCatalog = Depends(get_team_catalog)):
    """
    List teams

    With ?group= returns a plain list of that group's teams; without it,
    every team wrapped as {"teams": [...]}.
    """
    if group:
        return [t.to_json() for t in catalog.list_teams(group)]
    return {"teams": [t.to_json() for t in catalog.list_teams()]}


@router.post("")
async def add_team(payload: dict, group: Optional[str] = None,
                   catalog: TeamCatalog = Depends(get_team_catalog)):
    """
    Register a single team (group from body, else ?group=)

    Request:
        {"name": "Team Alpha", "group": "cohort-a"}
    """
    team = catalog.add_team(payload.get("name"), payload.get("group") or group)
    return team.to_json()


@router.post("/upload")
async def upload_teams(csvFile: Optional[UploadFile] = File(None),
                       group: Optional[str] = None,
                       catalog: TeamCatalog = Depends(get_team_catalog),
                       settings: Settings = Depends(get_settings)):
    """
    Import teams from a CSV file (multipart field "csvFile") into ?group=

    Response (success):
        {
            "success": true,
            "imported": 3,
            "duplicatesSkipped": 1,
            "totalProcessed": 4,
            "newTeams": [{"name": "...", "id": "..."}],
            "duplicates": ["..."]
        }
    """
    if csvFile is None:
        raise ValidationError("No CSV file uploaded")

    filename = csvFile.filename or ""
    if csvFile.content_type not in CSV_CONTENT_TYPES and not filename.lower().endswith(".csv"):
        raise ValidationError("Only CSV files are allowed")

    data = await csvFile.read(settings.max_upload_bytes + 1)
    if len(data) > settings.max_upload_bytes:
        raise ValidationError(
            f"CSV file too large (limit {settings.max_upload_bytes // (1024 * 1024)}MB)"
        )

    logger.info(f"📥 CSV upload {filename} ({len(data)} bytes) for group={group or 'default'}")
    return catalog.import_from_csv(data, group)
