"""
Admin gate in front of the mutating API routes.
"""

from __future__ import annotations

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from cms.auth import is_authenticated
from cms.config import Settings

logger = logging.getLogger(__name__)

PROTECTED_ROUTES = (
    "/content-clean",
    "/content-html",
    "/upload",
    "/list-blobs",
    "/storage-status",
)

# The public site reads content through these with GET.
PUBLIC_READ_ROUTES = (
    "/content-clean",
    "/content-html",
)


def _matches(path: str, routes: tuple[str, ...], api_prefix: str) -> bool:
    for route in routes:
        full = f"{api_prefix}{route}"
        if path == full or path.startswith(full + "/"):
            return True
    return False


def requires_auth(path: str, method: str, api_prefix: str = "/api") -> bool:
    if not _matches(path, PROTECTED_ROUTES, api_prefix):
        return False
    if method in ("GET", "HEAD") and _matches(path, PUBLIC_READ_ROUTES, api_prefix):
        return False
    return True


class AdminAuthMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, settings: Settings):
        super().__init__(app)
        self.settings = settings

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if requires_auth(path, request.method, self.settings.api_prefix):
            if not is_authenticated(request.cookies, self.settings):
                logger.info("Rejected unauthenticated %s %s", request.method, path)
                return JSONResponse(status_code=401, content={"error": "Unauthorized"})
        return await call_next(request)
