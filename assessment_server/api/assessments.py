"""
Assessment endpoints: judge submissions, listings and completion
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request

from assessment_server.services.assessment_store import AssessmentStore
from assessment_server.state import get_assessment_store


router = APIRouter(prefix="/api/assessments", tags=["assessments"])
logger = logging.getLogger(__name__)


@router.post("")
async def submit_assessment(payload: dict, request: Request, group: Optional[str] = None,
                            store: AssessmentStore = Depends(get_assessment_store)):
    """
    Submit (or resubmit) a judge's assessment of a team

    Request:
        {
            "judgeName": "Dr. Smith",
            "teamName": "Team Alpha",
            "group": "cohort-a",          # optional, team's own group wins
            "ratings": {"complexity": 4, "storytelling": 5, "actionPlan": 3, "overall": 4},
            "comments": {"complexity": "...", "storytelling": "", "actionPlan": "", "overall": ""}
        }

    Response:
        {"success": true, "assessmentId": "<uuid>"}
    """
    client_ip = request.client.host if request.client else "unknown"
    logger.info(
        f"📥 Assessment from {client_ip} | judge={payload.get('judgeName')!r} "
        f"team={payload.get('teamName')!r}"
    )

    assessment = store.upsert(
        payload.get("judgeName"),
        payload.get("teamName"),
        payload.get("ratings"),
        payload.get("comments"),
        payload.get("group") or group,
    )
    return {
        "success": True,
        "message": "Assessment submitted successfully",
        "assessmentId": assessment.id
    }


@router.get("")
async def list_assessments(group: Optional[str] = None,
                           store: AssessmentStore = Depends(get_assessment_store)):
    return [a.to_json() for a in store.list_by_group(group or None)]


@router.get("/team/{team_name}")
async def list_team_assessments(team_name: str, group: Optional[str] = None,
                                store: AssessmentStore = Depends(get_assessment_store)):
    """Assessments for one team (name matched ignoring case)"""
    return [a.to_json() for a in store.list_by_team(team_name, group or None)]


@router.get("/group/{group_name}")
async def list_group_assessments(group_name: str,
                                 store: AssessmentStore = Depends(get_assessment_store)):
    """Assessments for every team on the group's roster"""
    return {"assessments": [a.to_json() for a in store.list_for_roster(group_name)]}


@router.post("/complete")
async def mark_complete(payload: dict, store: AssessmentStore = Depends(get_assessment_store)):
    """
    Judge marks a group done; fails unless every team in it was assessed

    Request:
        {"judgeName": "Dr. Smith", "groupName": "cohort-a"}
    """
    return store.mark_complete(payload.get("judgeName"), payload.get("groupName"))
