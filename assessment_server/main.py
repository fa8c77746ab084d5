"""
FastAPI main application
Team Assessment Server - judge ratings, team PINs and group-scoped results

Modular architecture with separated API routers in assessment_server/api/:
- health.py: Health check and runtime configuration
- groups.py: Group registry and per-group notification email
- teams.py: Team listing, registration and CSV upload
- assessments.py: Judge submissions, listings and completion
- analytics.py: Rankings, roster view and PIN-based team results
- export.py: CSV export/template and email endpoints
- pages.py: Static HTML pages

All routers reach shared services through the dependencies in state.py.
"""
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from typing import Optional
import logging
import os

from assessment_server import __version__
from assessment_server.config import Settings, load_settings
from assessment_server.errors import AssessmentError
from assessment_server.state import Services, build_services

# Import all API routers
from assessment_server.api import analytics, assessments, export, groups, health, pages, teams


# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    # Startup: load settings and data unless services were injected
    if getattr(app.state, "services", None) is None:
        try:
            app.state.services = build_services(load_settings())
        except Exception as e:
            logger.error(f"❌ Failed to initialize services: {e}")
            raise

    services: Services = app.state.services
    logger.info(
        f"✅ Team Assessment Server started with {len(services.store.teams)} teams, "
        f"{len(services.store.assessments)} assessments"
    )
    if not services.settings.email_configured:
        logger.info("Email notifications will not be delivered: configure EMAIL_USER, EMAIL_PASS and SMTP_HOST")

    yield

    # Shutdown
    services.close()
    logger.info("🛑 Server shutting down")


def register_exception_handlers(app: FastAPI) -> None:
    """Render every failure as {"error": message}"""

    @app.exception_handler(AssessmentError)
    async def assessment_error_handler(request: Request, exc: AssessmentError):
        if exc.status_code >= 500:
            logger.error(f"❌ {request.method} {request.url.path}: {exc.message} {exc.details or ''}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        message = exc.detail
        if exc.status_code == 404 and message == "Not Found":
            message = "Endpoint not found"
        return JSONResponse(status_code=exc.status_code, content={"error": message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request", "details": [str(e.get("msg")) for e in exc.errors()]}
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(f"❌ Unhandled error in {request.method} {request.url.path}", exc_info=exc)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app(services: Optional[Services] = None) -> FastAPI:
    """
    Build the FastAPI application

    Args:
        services: Pre-built services (tests); built from settings at startup otherwise
    """
    app = FastAPI(
        title="Team Assessment Server",
        description="Judge assessments of student teams across classroom groups",
        version=__version__,
        lifespan=lifespan
    )
    app.state.services = services

    # CORS middleware (allow all origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # ==================== INCLUDE ROUTERS ====================

    # Health and config (GET /api/health, /api/config)
    app.include_router(health.router)

    # Groups (GET/POST /api/groups, DELETE /api/groups/{name}, /email)
    app.include_router(groups.router)

    # Teams (GET/POST /api/teams, POST /api/teams/upload)
    app.include_router(teams.router)

    # Assessments (POST /api/assessments, /complete, listings)
    app.include_router(assessments.router)

    # Analytics and PIN results (GET /api/analytics, /api/team-results)
    app.include_router(analytics.router)

    # Export and email (GET /api/export/csv, POST /api/email/results)
    app.include_router(export.router)

    # HTML pages (/, /admin, /team-results, /assess/{group})
    app.include_router(pages.router)

    # ==================== STATIC FILES ====================

    # Mount static files directory for CSS/JS/images
    static_dir = services.settings.static_dir if services else Settings().static_dir
    if os.path.exists(static_dir):
        app.mount("/static", StaticFiles(directory=static_dir), name="static")

    return app


app = create_app()


# ==================== RUN SERVER ====================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.environ.get("PORT", 3000)))
