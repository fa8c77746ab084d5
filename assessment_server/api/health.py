"""
Health check and runtime configuration endpoints
"""
from fastapi import APIRouter, Depends

from assessment_server import __version__
from assessment_server.config import Settings
from assessment_server.core.scoring import AVERAGE_KEYS
from assessment_server.models import MAX_RATING, MIN_RATING
from assessment_server.state import Services, get_services, get_settings
from assessment_server.utils import utc_now_iso


router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
async def health_check(services: Services = Depends(get_services)):
    """Health check endpoint"""
    return {
        "status": "healthy",
        "version": __version__,
        "timestamp": utc_now_iso(),
        "assessments": len(services.store.assessments),
        "teams": len(services.store.teams),
        "emailConfigured": services.settings.email_configured,
    }


@router.get("/config")
async def get_config(settings: Settings = Depends(get_settings)):
    """Non-secret settings the front end needs"""
    return {
        "ratingDimensions": list(AVERAGE_KEYS.values()),
        "minRating": MIN_RATING,
        "maxRating": MAX_RATING,
        "strictRatings": settings.strict_ratings,
        "notifyOnSubmit": settings.notify_on_submit,
        "emailConfigured": settings.email_configured,
        "maxUploadBytes": settings.max_upload_bytes,
    }
