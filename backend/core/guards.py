# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
FastAPI dependency guards for the API.

Each protected request runs the same sequence, stopping at the first
failure:

1. read the ``auth-token`` cookie                  → 401 when absent
2. verify signature and expiry                     → 401
3. reload the user by id (current role, existence) → 401 when gone/revoked
4. check required roles / permissions against the
   *reloaded* role                                 → 403

All 401s carry the same message whatever the cause, so a client cannot tell
"no token" from "expired" from "account deleted".

Usage::

    @router.delete("/users/{user_id}")
    def delete_user(user: PublicUser = Depends(require_auth(
        required_permissions=[Permission.USERS_DELETE],
    ))):
        ...
"""

from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from auth.directory import PublicUser, get_user_by_id
from core.errors import FORBIDDEN, UNAUTHENTICATED, RoleMappingError, TokenError
from core.logger import logger
from core.permissions import Permission, Role, has_all_permissions, has_role
from core.security import AUTH_COOKIE, decode_access_token
from database import get_db


def _unauthenticated() -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=UNAUTHENTICATED)


def _issued_before_revocation(claims: dict, user: PublicUser) -> bool:
    cutoff = user.sessions_valid_after
    if cutoff is None:
        return False
    if cutoff.tzinfo is None:
        # SQLite drops the offset; values are always written in UTC
        cutoff = cutoff.replace(tzinfo=timezone.utc)
    # iat has one-second resolution
    return int(claims["iat"]) < int(cutoff.timestamp())


def resolve_session(request: Request, db: Session) -> PublicUser:
    """Steps 1–3: cookie → claims → freshly loaded user.  Raises 401."""
    token = request.cookies.get(AUTH_COOKIE)
    if not token:
        raise _unauthenticated()

    try:
        claims = decode_access_token(token)
    except TokenError as exc:
        logger.info("Rejected session token on %s: %s", request.url.path, exc)
        raise _unauthenticated()

    try:
        user = get_user_by_id(db, str(claims["userId"]))
    except RoleMappingError:
        logger.error("User %s has an unmapped stored role", claims["userId"])
        raise

    if user is None:
        logger.info("Session for missing user %s on %s", claims["userId"], request.url.path)
        raise _unauthenticated()

    if _issued_before_revocation(claims, user):
        logger.info("Revoked session for user %s on %s", user.id, request.url.path)
        raise _unauthenticated()

    return user


def require_auth(
    required_permissions: Optional[Iterable[Permission]] = None,
    required_roles: Optional[Iterable[Role]] = None,
) -> Callable[..., PublicUser]:
    """
    Build a dependency that authenticates the request and, optionally,
    asserts roles and/or permissions.  Every listed permission must be held;
    the role must be one of ``required_roles`` when given.
    """
    permissions = tuple(required_permissions or ())
    roles = tuple(required_roles or ())

    def _guard(request: Request, db: Session = Depends(get_db)) -> PublicUser:
        user = resolve_session(request, db)

        if roles and not has_role(user.role, roles):
            logger.warning(
                "Forbidden: user=%s role=%s path=%s (role not allowed)",
                user.id, user.role.value, request.url.path,
            )
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=FORBIDDEN)

        if permissions and not has_all_permissions(user.role, permissions):
            logger.warning(
                "Forbidden: user=%s role=%s path=%s (missing permission)",
                user.id, user.role.value, request.url.path,
            )
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=FORBIDDEN)

        return user

    return _guard


# Plain "any logged-in user" guard
get_current_user = require_auth()
