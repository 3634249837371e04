"""
FastAPI application for the UCalgaryConnect API.

Provides endpoints for:
- Sign-in, sign-up and session lookup (Supabase Auth)
- Profile setup and viewing
- Finding study partners
- Connection requests and connections
- Leaderboard and dashboard
- Events and study groups
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ucconnect.api.auth import LOGIN_PATH, SessionRequired
from ucconnect.api.rate_limit import limiter, rate_limit_exceeded_handler
from ucconnect.api.session import router as session_router
from ucconnect.api.profiles import router as profiles_router
from ucconnect.api.partners import router as partners_router
from ucconnect.api.connections import router as connections_router
from ucconnect.api.dashboard import router as dashboard_router
from ucconnect.api.events import router as events_router
from ucconnect.api.study_groups import router as study_groups_router
from ucconnect.config import Settings, get_settings
from ucconnect.models.database import create_db_engine, create_session_factory, init_db
from ucconnect.services.auth_service import SupabaseAuthClient
from ucconnect.services.errors import ConnectError, ProfileNotFound

logger = logging.getLogger(__name__)

PROFILE_SETUP_PATH = "/profile-setup"


def configure_logging(settings: Settings):
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# =============================================================================
# Error handlers
# =============================================================================

async def session_required_handler(request: Request, exc: SessionRequired) -> JSONResponse:
    """No session: tell the client to go log in."""
    return JSONResponse(
        status_code=401,
        content={"detail": exc.detail, "redirect": LOGIN_PATH},
    )


async def profile_not_found_handler(request: Request, exc: ProfileNotFound) -> JSONResponse:
    """Missing profile means "needs setup", not a failure."""
    return JSONResponse(
        status_code=404,
        content={"detail": str(exc), "code": exc.code, "redirect": PROFILE_SETUP_PATH},
    )


async def connect_error_handler(request: Request, exc: ConnectError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "Something went wrong", "retry": True},
    )


# =============================================================================
# App factory
# =============================================================================

def create_app(
    settings: Optional[Settings] = None,
    session_factory=None,
    auth_client: Optional[SupabaseAuthClient] = None,
) -> FastAPI:
    """
    Build the API.

    The database session factory and auth client are passed in explicitly;
    when omitted they are built from settings (the database on startup).
    """
    settings = settings or get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Connect to the database on startup if no session factory was given."""
        engine = None
        if app.state.session_factory is None:
            engine = create_db_engine(settings=settings)
            init_db(engine)
            app.state.session_factory = create_session_factory(engine)
        yield
        if engine is not None:
            engine.dispose()

    app = FastAPI(
        title=f"{settings.app_name} API",
        description="""
API for UCalgaryConnect, a networking app for University of Calgary students.

Features:
- Profile setup with faculty, major, courses, skills and interests
- Search for study partners by course, skill or interest
- Send, accept, decline and withdraw connection requests
- Leaderboard of the most connected students
- Campus events and study groups
        """,
        version=settings.app_version,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.auth_client = auth_client or SupabaseAuthClient.from_settings(settings)
    if app.state.auth_client is None:
        logger.warning("Supabase is not configured; authenticated endpoints will fail")

    # Rate limiting
    limiter.enabled = settings.rate_limit_enabled
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    app.add_exception_handler(SessionRequired, session_required_handler)
    app.add_exception_handler(ProfileNotFound, profile_not_found_handler)
    app.add_exception_handler(ConnectError, connect_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # CORS middleware for frontend access
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(session_router)
    app.include_router(profiles_router)
    app.include_router(partners_router)
    app.include_router(connections_router)
    app.include_router(dashboard_router)
    app.include_router(events_router)
    app.include_router(study_groups_router)

    @app.get("/", tags=["Health"])
    async def root():
        """API root - health check and basic info."""
        return {
            "name": f"{settings.app_name} API",
            "version": settings.app_version,
            "status": "healthy",
            "docs": "/docs",
        }

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Detailed health check."""
        if app.state.session_factory is None:
            raise HTTPException(status_code=503, detail="Database not initialized")
        try:
            with app.state.session_factory() as session:
                session.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            raise HTTPException(status_code=503, detail=f"Service unhealthy: {str(e)}")

        return {
            "status": "healthy",
            "database": "connected",
            "auth": "configured" if app.state.auth_client is not None else "not configured",
        }

    return app


app = create_app()
