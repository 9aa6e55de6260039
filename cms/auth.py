"""
Admin authentication: password hashing and signed session tokens.

Session tokens are HS256 JWTs keyed by ``ADMIN_SECRET_KEY`` carrying
``{"sub": "admin", "iat": <epoch s>, "exp": <epoch s>}``.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import time
from dataclasses import dataclass
from typing import Optional

import jwt

from cms.config import Settings

logger = logging.getLogger(__name__)

TOKEN_ALGORITHM = "HS256"
TOKEN_SUBJECT = "admin"


def hash_password(password: str, secret: str) -> str:
    """Hex HMAC-SHA256 of ``password`` keyed by ``secret``."""
    return hmac.new(
        secret.encode("utf-8"), password.encode("utf-8"), hashlib.sha256
    ).hexdigest()


def verify_password(password: str, settings: Settings) -> bool:
    stored = settings.admin_password_hash or ""
    if not stored or not settings.admin_secret_key:
        return False
    candidate = hash_password(password, settings.admin_secret_key)
    if len(stored) != len(candidate):
        return False
    return hmac.compare_digest(stored.encode("utf-8"), candidate.encode("utf-8"))


def verify_credentials(username: str, password: str, settings: Settings) -> bool:
    username_ok = hmac.compare_digest(
        username.encode("utf-8"), settings.admin_username.encode("utf-8")
    )
    return verify_password(password, settings) and username_ok


def create_session_token(settings: Settings, issued_at: Optional[int] = None) -> str:
    issued = int(time.time()) if issued_at is None else issued_at
    payload = {
        "sub": TOKEN_SUBJECT,
        "iat": issued,
        "exp": issued + settings.session_duration_seconds,
    }
    return jwt.encode(payload, settings.admin_secret_key, algorithm=TOKEN_ALGORITHM)


def verify_session_token(token: Optional[str], settings: Settings) -> Optional[dict]:
    """
    Checks the token's signature, claims and expiry.

    Returns:
        dict | None: The payload if the token is valid, None otherwise.
    """
    secret = settings.admin_secret_key
    if not token or not secret:
        return None
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[TOKEN_ALGORITHM],
            options={"require": ["sub", "iat", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        logger.info("Session token expired")
        return None
    except jwt.InvalidTokenError:
        return None
    if payload.get("sub") != TOKEN_SUBJECT:
        return None
    return payload


@dataclass(frozen=True)
class CookieOptions:
    name: str
    max_age: int
    secure: bool
    httponly: bool = True
    samesite: str = "lax"
    path: str = "/"


def get_cookie_options(settings: Settings) -> CookieOptions:
    return CookieOptions(
        name=settings.session_cookie_name,
        max_age=settings.session_duration_seconds,
        secure=settings.is_production,
    )


def is_authenticated(cookies: dict, settings: Settings) -> bool:
    token = cookies.get(settings.session_cookie_name)
    return verify_session_token(token, settings) is not None
