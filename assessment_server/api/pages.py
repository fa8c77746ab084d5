"""
HTML page routes

Pages are static files under settings.static_dir; a placeholder 404 page is
returned when a file is missing.
"""
import os

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from assessment_server.config import Settings
from assessment_server.state import get_settings


router = APIRouter(tags=["pages"])


def _serve(settings: Settings, filename: str) -> HTMLResponse:
    html_path = os.path.join(settings.static_dir, filename)

    if not os.path.exists(html_path):
        return HTMLResponse(
            content=f"<h1>Page not found</h1><p>Please create {html_path}</p>",
            status_code=404
        )

    with open(html_path, "r", encoding="utf-8") as f:
        return HTMLResponse(content=f.read())


@router.get("/", response_class=HTMLResponse)
async def assessment_form(settings: Settings = Depends(get_settings)):
    return _serve(settings, "index.html")


@router.get("/admin", response_class=HTMLResponse)
async def admin_dashboard(settings: Settings = Depends(get_settings)):
    return _serve(settings, "admin.html")


@router.get("/team-results", response_class=HTMLResponse)
async def team_results_page(settings: Settings = Depends(get_settings)):
    return _serve(settings, "team-results.html")


@router.get("/assess/{group_name}", response_class=HTMLResponse)
async def group_assessment_form(group_name: str, settings: Settings = Depends(get_settings)):
    # The page reads the group from its own URL
    return _serve(settings, "group-assessment.html")


@router.get("/batch-assessment", response_class=HTMLResponse)
async def batch_assessment_form(settings: Settings = Depends(get_settings)):
    return _serve(settings, "batch-assessment.html")
