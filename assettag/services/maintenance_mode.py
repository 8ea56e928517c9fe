"""
Maintenance mode.
While the flag is set the API rejects write requests; the flag is read through a short TTL cache.
"""
import time
from typing import Callable, Optional

import structlog
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from ..config import settings
from ..models.models import AppSettings
from .app_settings import get_or_create_settings


logger = structlog.get_logger(__name__)

MAINTENANCE_MESSAGE = "Application is currently in maintenance mode. Please try again later."
READ_METHODS = {"GET", "HEAD", "OPTIONS"}
# Always writable: sign-in and the settings that clear the flag
EXEMPT_PREFIXES = ("/api/auth", "/api/settings")

_cache = {"value": None, "at": 0.0}


def clear_maintenance_mode_cache() -> None:
    _cache["value"] = None
    _cache["at"] = 0.0


def is_maintenance_mode(db: Session, ttl_seconds: Optional[int] = None) -> bool:
    ttl = settings.maintenance_mode_cache_seconds if ttl_seconds is None else ttl_seconds
    now = time.monotonic()
    if _cache["value"] is not None and now - _cache["at"] < ttl:
        return _cache["value"]
    app_settings: AppSettings = get_or_create_settings(db)
    _cache["value"] = bool(app_settings.maintenance_mode)
    _cache["at"] = now
    return _cache["value"]


class MaintenanceModeMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, session_factory: Callable[[], Session]):
        super().__init__(app)
        self.session_factory = session_factory

    def _maintenance_mode_on(self) -> bool:
        db = self.session_factory()
        try:
            return is_maintenance_mode(db)
        except Exception as e:
            # fail open
            logger.error("maintenance_mode_check_failed", error=str(e))
            return False
        finally:
            db.close()

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if (
            not path.startswith("/api")
            or request.method in READ_METHODS
            or path.startswith(EXEMPT_PREFIXES)
        ):
            return await call_next(request)

        if await run_in_threadpool(self._maintenance_mode_on):
            return JSONResponse(
                status_code=503,
                content={"message": MAINTENANCE_MESSAGE, "maintenanceMode": True},
            )
        return await call_next(request)
