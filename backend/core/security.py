# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Central security module.  All cryptographic primitives live here.  No other
module should touch raw crypto directly.

Responsibilities
----------------
1. Password hashing / verification          (passlib bcrypt, cost 12)
2. Session tokens – issue / verify          (PyJWT / HS256)
3. Session cookie attributes
4. Client IP extraction
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt as _jwt        # PyJWT
from fastapi import Request
from fastapi.responses import Response
from passlib.hash import bcrypt as _bcrypt

from core.config import settings
from core.errors import ExpiredTokenError, InvalidTokenError

# ---------------------------------------------------------------------------
# 1.  bcrypt – password hashing
# ---------------------------------------------------------------------------
# Every call draws a fresh salt, so hashing the same password twice gives two
# different digests.  The salt and cost are embedded in the "$2b$12$..." string.
# bcrypt only reads the first 72 bytes of the secret; longer secrets are
# refused here instead of being silently truncated.
# ---------------------------------------------------------------------------

MAX_PASSWORD_BYTES = 72


def password_too_long(plain: str) -> bool:
    return len(plain.encode("utf-8")) > MAX_PASSWORD_BYTES


def hash_password(plain: str) -> str:
    """Hash a plaintext password with bcrypt at ``settings.bcrypt_rounds``."""
    if password_too_long(plain):
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return _bcrypt.using(rounds=settings.bcrypt_rounds, truncate_error=True).hash(plain)


def verify_password(plain: str, stored_hash: str) -> bool:
    """
    Check *plain* against a digest produced by :func:`hash_password`.

    A malformed or foreign digest, or a secret bcrypt would truncate, yields
    ``False`` rather than an exception.
    """
    if not stored_hash or password_too_long(plain):
        return False
    try:
        return _bcrypt.verify(plain, stored_hash)
    except (ValueError, TypeError):
        return False


# ---------------------------------------------------------------------------
# 2.  JWT – session tokens
# ---------------------------------------------------------------------------

_ALGORITHM = "HS256"
_REQUIRED_CLAIMS = ("userId", "email", "role", "iat", "exp")


def create_access_token(
    user_id: str,
    email: str,
    role: str,
    expires_delta: Optional[timedelta] = None,
    issued_at: Optional[datetime] = None,
) -> str:
    """
    Sign ``{userId, email, role, iat, exp}`` with HS256.

    The role is a snapshot taken at login; API guards re-read the user row
    and never rely on it for permission decisions.
    """
    now = issued_at or datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    payload = {
        "userId": user_id,
        "email": email,
        "role": role,
        "iat": now,
        "exp": expire,
    }
    return _jwt.encode(payload, settings.secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str) -> dict:
    """
    Verify signature and expiry, then return the claims.

    Raises :class:`ExpiredTokenError` for a well-signed but expired token and
    :class:`InvalidTokenError` for everything else.  Callers that face a
    client collapse both into the same "not authenticated" answer.
    """
    try:
        claims = _jwt.decode(
            token,
            settings.secret_key,
            algorithms=[_ALGORITHM],
            options={"require": ["iat", "exp"]},
        )
    except _jwt.ExpiredSignatureError as exc:
        raise ExpiredTokenError("Token expired") from exc
    except _jwt.InvalidTokenError as exc:
        raise InvalidTokenError("Invalid token") from exc

    for claim in _REQUIRED_CLAIMS:
        if claim not in claims:
            raise InvalidTokenError(f"Missing claim: {claim}")
    return claims


# ---------------------------------------------------------------------------
# 3.  Session cookie
# ---------------------------------------------------------------------------

AUTH_COOKIE = "auth-token"


def set_auth_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=AUTH_COOKIE,
        value=token,
        max_age=settings.access_token_expire_minutes * 60,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
    )


def clear_auth_cookie(response: Response) -> None:
    response.delete_cookie(
        key=AUTH_COOKIE,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
    )


# -- IP Address extraction ----------------------------------------------------


def get_client_ip(request: Request) -> str:
    """
    Extract the client IP address from the request.

    X-Forwarded-For is trusted as-is, which is only safe behind a proxy that
    overwrites it.  Falls back to X-Real-IP, then to the socket peer.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # X-Forwarded-For can contain multiple IPs, take the first (original client)
        return forwarded.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    if request.client:
        return request.client.host

    return "unknown"
