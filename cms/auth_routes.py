"""
Admin login, logout and session check.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from cms.auth import (
    create_session_token,
    get_cookie_options,
    verify_credentials,
    verify_session_token,
)
from cms.config import Settings, get_settings
from cms.dependencies import get_rate_limiter
from cms.ratelimit import LoginRateLimiter, get_client_ip
from cms.schemas import LoginRequest, LoginResponse, SessionResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth")


def _set_session_cookie(response: JSONResponse, settings: Settings, token: str, max_age: int):
    options = get_cookie_options(settings)
    response.set_cookie(
        key=options.name,
        value=token,
        max_age=max_age,
        path=options.path,
        secure=options.secure,
        httponly=options.httponly,
        samesite=options.samesite,
    )


@router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    request: Request,
    settings: Settings = Depends(get_settings),
    limiter: LoginRateLimiter = Depends(get_rate_limiter),
):
    ip = get_client_ip(request)
    status = limiter.check(ip)
    if not status.allowed:
        logger.warning("Login locked out for %s", ip)
        return JSONResponse(
            status_code=429,
            content={
                "error": "Too many failed attempts. Try again later.",
                "retryAfter": status.retry_after,
            },
        )

    if not payload.username or not payload.password:
        return JSONResponse(
            status_code=400,
            content={"error": "Username and password are required."},
        )

    if not verify_credentials(payload.username, payload.password, settings):
        remaining = limiter.record_failure(ip)
        logger.info("Failed login from %s (%d attempts left)", ip, remaining)
        return JSONResponse(
            status_code=401,
            content={"error": "Invalid credentials.", "remaining": remaining},
        )

    limiter.clear(ip)
    response = JSONResponse(content={"success": True})
    _set_session_cookie(
        response,
        settings,
        create_session_token(settings),
        settings.session_duration_seconds,
    )
    logger.info("Admin signed in from %s", ip)
    return response


@router.post("/logout", response_model=LoginResponse)
def logout(settings: Settings = Depends(get_settings)):
    response = JSONResponse(content={"success": True})
    _set_session_cookie(response, settings, "", 0)
    return response


@router.get("/session", response_model=SessionResponse)
def session(request: Request, settings: Settings = Depends(get_settings)):
    token = request.cookies.get(settings.session_cookie_name)
    payload = verify_session_token(token, settings)
    return SessionResponse(authenticated=payload is not None)
