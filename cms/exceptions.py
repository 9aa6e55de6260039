"""
Error hierarchy for the CMS and the handlers that turn it into JSON.

Route handlers raise these; the handlers registered in ``cms.app`` convert
them to ``{"success": false, "error": ...}`` with the matching status code.
"""

from __future__ import annotations

import logging

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class CmsError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        return {"success": False, "error": self.message}


class InvalidContentTypeError(CmsError):
    status_code = 400

    def __init__(self, content_type: str):
        super().__init__(f"Invalid content type: {content_type}")
        self.content_type = content_type


class NotArrayTypeError(CmsError):
    status_code = 400

    def __init__(self, content_type: str, expected_array: bool = True):
        if expected_array:
            message = f"{content_type} is not an array type"
        else:
            message = f"{content_type} is an array type"
        super().__init__(message)
        self.content_type = content_type


class ItemNotFoundError(CmsError):
    status_code = 404

    def __init__(self, content_type: str, item_id: str):
        super().__init__(f"Item {item_id} not found in {content_type}")
        self.content_type = content_type
        self.item_id = item_id


class ImageValidationError(CmsError):
    status_code = 400


class StorageError(CmsError):
    """Raised when the blob store rejects a read or write."""

    status_code = 502


class GitHubError(CmsError):
    """Raised when the GitHub Contents API call fails."""

    status_code = 502


async def cms_error_handler(request: Request, exc: CmsError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "error": "Invalid request",
            "details": jsonable_encoder(exc.errors()),
        },
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unexpected error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "Internal server error"},
    )
