"""
CSV export, upload template and email endpoints
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from starlette.concurrency import run_in_threadpool

from assessment_server.core.csv_export import export_assessments_csv, results_csv, teams_template_csv
from assessment_server.core.groups import is_valid_email, normalize_group
from assessment_server.core.scoring import filter_by_group
from assessment_server.errors import InternalError, ValidationError
from assessment_server.state import Services, get_services
from assessment_server.utils import clean_str, utc_now_iso


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["export"])


def _csv_response(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


@router.get("/template/teams-csv")
async def teams_template():
    """Downloadable CSV template for team upload"""
    return _csv_response(teams_template_csv(), "teams-upload-template.csv")


@router.get("/export/csv")
async def export_csv(group: Optional[str] = None, services: Services = Depends(get_services)):
    """All assessments (or one group's) as an 11-column CSV"""
    source = filter_by_group(services.store.assessments, group or None)
    return _csv_response(export_assessments_csv(source), "team-assessments.csv")


@router.post("/email/results")
async def email_results(group: Optional[str] = None, services: Services = Depends(get_services)):
    """Mail a group's results CSV to the program team"""
    group = normalize_group(group)
    source = filter_by_group(services.store.assessments, group)
    if not source:
        raise ValidationError("No assessment data available to email")

    recipients = services.settings.program_team_emails
    if not recipients:
        logger.info("No program team emails configured, skipping results email")
        return {
            "success": False,
            "message": "No program team recipients configured",
            "recipients": [],
            "assessmentCount": len(source)
        }

    message = services.mailer.compose_results_export(
        group, results_csv(source), len(source), recipients, utc_now_iso()
    )
    try:
        await run_in_threadpool(services.mailer.deliver, message)
    except Exception as e:
        logger.error(f"❌ Error emailing results: {e}")
        raise InternalError(f"Failed to email results: {e}") from e

    logger.info(f"📧 Assessment results emailed to: {', '.join(recipients)}")
    return {
        "success": True,
        "message": "Assessment results emailed successfully",
        "recipients": recipients,
        "assessmentCount": len(source)
    }


@router.post("/test-email")
async def test_email(payload: Optional[dict] = None, services: Services = Depends(get_services)):
    """
    Send a test message

    Request:
        {"email": "someone@example.com"}   # optional, defaults to the sender
    """
    smtp = services.settings.smtp
    to = clean_str((payload or {}).get("email")) or smtp.username or smtp.sender
    if not is_valid_email(to):
        raise ValidationError("Invalid email format")

    message = services.mailer.compose_test(to, utc_now_iso())
    try:
        await run_in_threadpool(services.mailer.deliver, message)
    except Exception as e:
        logger.error(f"❌ Test email failed: {e}")
        raise InternalError(
            "Failed to send test email",
            details=[str(e)],
            suggestion="Check EMAIL_USER, EMAIL_PASS and SMTP_HOST settings"
        ) from e

    logger.info(f"✅ Test email sent successfully to: {to}")
    return {"success": True, "message": "Test email sent successfully", "recipient": to}
