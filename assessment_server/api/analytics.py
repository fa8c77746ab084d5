"""
Analytics and team results endpoints
"""
from typing import Optional

from fastapi import APIRouter, Depends

from assessment_server.core.scoring import get_analytics, get_team_results, roster_summary
from assessment_server.state import Services, get_services


router = APIRouter(prefix="/api", tags=["analytics"])


@router.get("/analytics")
async def analytics(group: Optional[str] = None, services: Services = Depends(get_services)):
    """
    Team rankings and judge list, optionally for one group

    Returns:
        {
            "totalAssessments": 12,
            "totalTeams": 4,
            "teamStats": [{"teamName", "judgeCount", "averages", "totalScore", "assessments"}],
            "judgeList": ["..."]
        }
    """
    return get_analytics(services.store.assessments, group or None)


@router.get("/analytics/roster")
async def roster(group: Optional[str] = None, services: Services = Depends(get_services)):
    """Every team with its scores, or status "not_yet_assessed" """
    teams = roster_summary(services.store.teams, services.store.assessments, group or None)
    return {
        "teams": teams,
        "assessedTeams": sum(1 for t in teams if t["status"] == "assessed"),
        "totalTeams": len(teams)
    }


@router.get("/team-results")
async def team_results(pin: Optional[str] = None, group: Optional[str] = None,
                       services: Services = Depends(get_services)):
    """
    Aggregated results for the team holding ?pin= in ?group=

    Response:
        {"teamName", "judgeCount", "averages", "totalScore", "assessments", "members"}
    """
    return get_team_results(services.store.teams, services.store.assessments, group, pin)
