import os
import time
from typing import Callable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.orm import Session
import structlog

from .config import settings
from .db import SessionLocal, create_tables
from .logging import setup_logging, RequestIdMiddleware, SecurityHeadersMiddleware
from .services.maintenance_mode import MaintenanceModeMiddleware
from .services.scheduling import utcnow
from .auth.router import router as auth_router
from .routes.equipment import router as equipment_router
from .routes.maintenance import router as maintenance_router
from .routes.notifications import router as notifications_router
from .routes.activities import router as activities_router
from .routes.tags import router as tags_router
from .routes.users import router as users_router
from .routes.settings import router as settings_router
from .routes.reports import router as reports_router
from .routes.cron import router as cron_router


logger = structlog.get_logger(__name__)
STARTED_AT = time.monotonic()


def create_app(session_factory: Optional[Callable[[], Session]] = None) -> FastAPI:
    """
    Build the API application.

    session_factory defaults to the configured SessionLocal; it is also what the
    maintenance-mode middleware and the startup table creation use.
    """
    setup_logging()
    session_factory = session_factory or SessionLocal
    app = FastAPI(title=settings.app_name, version=settings.app_version)

    # Middlewares (last added runs first)
    app.add_middleware(MaintenanceModeMiddleware, session_factory=session_factory)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIdMiddleware)

    limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # Routers
    app.include_router(auth_router)
    app.include_router(equipment_router)
    app.include_router(maintenance_router)
    app.include_router(notifications_router)
    app.include_router(activities_router)
    app.include_router(tags_router)
    app.include_router(users_router)
    app.include_router(settings_router)
    app.include_router(reports_router)
    app.include_router(cron_router)

    @app.get("/api/health")
    def health():
        return {
            "status": "OK",
            "message": "Asset Management API is running",
            "environment": settings.environment,
            "timestamp": utcnow().isoformat(),
            "uptime": round(time.monotonic() - STARTED_AT, 3),
        }

    @app.get("/")
    def root():
        return {
            "message": f"{settings.app_name} v{settings.app_version}",
            "endpoints": {
                "health": "/api/health",
                "auth": "/api/auth",
                "equipment": "/api/equipment",
                "maintenance": "/api/maintenance",
                "notifications": "/api/notifications",
                "activities": "/api/activities",
                "tags": "/api/tags",
                "users": "/api/users",
                "settings": "/api/settings",
                "reports": "/api/reports",
                "cron": "/api/cron",
                "metrics": "/metrics",
            },
        }

    # Metrics
    Instrumentator().instrument(app).expose(app)

    @app.on_event("startup")
    def _startup():
        # Ensure local SQLite directory exists
        if settings.database_url.startswith("sqlite:///./"):
            os.makedirs("var", exist_ok=True)
        if settings.auto_create_db:
            db = session_factory()
            try:
                create_tables(bind=db.get_bind())
            finally:
                db.close()
        logger.info("startup_complete", environment=settings.environment, auto_create_db=settings.auto_create_db)

    return app


app = create_app()
