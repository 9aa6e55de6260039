"""
FastAPI application entry point for the studio site and CMS.
"""

from __future__ import annotations

import logging
from pathlib import Path

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles

from cms import auth_routes, pages
from cms.config import Settings, get_settings
from cms.exceptions import (
    CmsError,
    cms_error_handler,
    unhandled_error_handler,
    validation_error_handler,
)
from cms.middleware import AdminAuthMiddleware
from cms.routes import router

_STATIC_DIR = Path(__file__).parent / "static"


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level)

    app = FastAPI(title="ZSCORE.studio", version="0.1.0")
    if settings is not get_settings():
        app.dependency_overrides[get_settings] = lambda: settings

    app.add_middleware(AdminAuthMiddleware, settings=settings)
    app.add_exception_handler(CmsError, cms_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(router, prefix=settings.api_prefix)
    app.include_router(auth_routes.router, prefix=settings.api_prefix)
    app.include_router(pages.router)
    app.mount("/static", StaticFiles(directory=str(_STATIC_DIR)), name="static")
    return app


app = create_app()
