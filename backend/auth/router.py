# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Auth endpoints – register, login, logout, current user, password change,
tutorial flag.

Security notes
--------------
* Login returns the *same* error whether the email doesn't exist or the
  password is wrong.  This prevents user-enumeration attacks.
* Login attempts are throttled per client IP before any credential check,
  so the 6th attempt inside the window fails even with a good password.
* Registration always creates a ``demandeur``; roles are raised only through
  the users admin endpoints.
* change-password verifies the old password, and every token issued before
  the change stops working.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from auth.directory import PublicUser, authenticate_user, create_user
from auth.schemas import (
    ChangePasswordRequest,
    LoginRequest,
    MeResponse,
    RegisterRequest,
    UserResponse,
)
from core import audit
from core.errors import DuplicateEmailError
from core.guards import get_current_user
from core.logger import logger
from core.permissions import permissions_for
from core.rate_limit import login_rate_limiter
from core.security import (
    clear_auth_cookie,
    create_access_token,
    get_client_ip,
    hash_password,
    set_auth_cookie,
    verify_password,
)
from database import get_db
from models.user import User

router = APIRouter(prefix="/api", tags=["auth"])

# Generic message used for both "no such email" and "wrong password"
_LOGIN_FAIL = "Invalid email or password"
_RATE_LIMITED = "Too many login attempts. Please try again later."


def _user_json(user: PublicUser) -> dict:
    return user.model_dump(mode="json")


# ---------------------------------------------------------------------------
# POST /api/auth/register
# ---------------------------------------------------------------------------


@router.post("/auth/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(body: RegisterRequest, request: Request, db: Session = Depends(get_db)):
    """Self-service sign-up.  The new account is always a ``demandeur``."""
    try:
        user = create_user(db, body.name, body.email, body.password)
    except DuplicateEmailError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))

    audit.record_audit(
        audit.REGISTER,
        actor_id=user.id,
        subject=f"user:{user.id}",
        request_ip=get_client_ip(request),
    )
    logger.info("Registered user %s", user.id)
    return UserResponse(message="User created", user=user)


# ---------------------------------------------------------------------------
# POST /api/auth/login
# ---------------------------------------------------------------------------


@router.post("/auth/login", response_model=UserResponse)
def login(body: LoginRequest, request: Request, db: Session = Depends(get_db)):
    """Authenticate, then set the signed session token as an HTTP-only cookie."""
    client_ip = get_client_ip(request)

    limit = login_rate_limiter.hit(client_ip)
    if not limit.allowed:
        retry_after = max(0, int(limit.reset_at - datetime.now(timezone.utc).timestamp()))
        logger.warning("Login rate limit hit for %s", client_ip)
        audit.record_audit(audit.LOGIN_RATE_LIMITED, subject=body.email, request_ip=client_ip)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "error": _RATE_LIMITED,
                "retryAfter": datetime.fromtimestamp(limit.reset_at, timezone.utc).isoformat(),
            },
            headers={"Retry-After": str(retry_after)},
        )

    user = authenticate_user(db, body.email, body.password)

    # Unified failure path – no information leaks about whether the email exists
    if user is None:
        logger.info("Failed login from %s", client_ip)
        audit.record_audit(audit.LOGIN_FAILURE, subject=body.email, request_ip=client_ip)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=_LOGIN_FAIL)

    token = create_access_token(user.id, user.email, user.role.value)
    audit.record_audit(
        audit.LOGIN_SUCCESS,
        actor_id=user.id,
        subject=f"user:{user.id}",
        request_ip=client_ip,
    )

    response = JSONResponse(
        status_code=status.HTTP_200_OK,
        content={"success": True, "message": "Logged in", "user": _user_json(user)},
    )
    set_auth_cookie(response, token)
    return response


# ---------------------------------------------------------------------------
# POST /api/auth/logout
# ---------------------------------------------------------------------------


@router.post("/auth/logout")
def logout():
    """Drop the session cookie.  The token itself stays valid until it expires."""
    response = JSONResponse(content={"success": True, "message": "Logged out"})
    clear_auth_cookie(response)
    return response


# ---------------------------------------------------------------------------
# GET /api/auth/me
# ---------------------------------------------------------------------------


@router.get("/auth/me", response_model=MeResponse)
def me(current_user: PublicUser = Depends(get_current_user)):
    """Return the authenticated user's public profile and permission list."""
    return MeResponse(
        user=current_user,
        permissions=sorted(p.value for p in permissions_for(current_user.role)),
    )


# ---------------------------------------------------------------------------
# PUT /api/auth/change-password
# ---------------------------------------------------------------------------


@router.put("/auth/change-password")
def change_password(
    body: ChangePasswordRequest,
    request: Request,
    current_user: PublicUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Change the caller's password.  Older sessions are revoked and a fresh
    cookie is issued for this one.
    """
    row = db.get(User, current_user.id)
    if not verify_password(body.old_password, row.password_hash):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Old password is incorrect",
        )

    now = datetime.now(timezone.utc)
    row.password_hash = hash_password(body.new_password)
    row.sessions_valid_after = now
    db.commit()

    audit.record_audit(
        audit.PASSWORD_CHANGE,
        actor_id=current_user.id,
        subject=f"user:{current_user.id}",
        request_ip=get_client_ip(request),
    )

    response = JSONResponse(content={"success": True, "message": "Password changed"})
    set_auth_cookie(
        response,
        create_access_token(current_user.id, current_user.email, current_user.role.value, issued_at=now),
    )
    return response


# ---------------------------------------------------------------------------
# POST / DELETE /api/user/complete-tutorial
# ---------------------------------------------------------------------------


def _set_tutorial_flag(db: Session, user_id: str, done: bool) -> PublicUser:
    row = db.get(User, user_id)
    row.has_completed_tutorial = done
    db.commit()
    db.refresh(row)
    return PublicUser.from_row(row)


@router.post("/user/complete-tutorial", response_model=UserResponse)
def complete_tutorial(
    current_user: PublicUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = _set_tutorial_flag(db, current_user.id, True)
    return UserResponse(message="Tutorial completed", user=user)


@router.delete("/user/complete-tutorial", response_model=UserResponse)
def reset_tutorial(
    current_user: PublicUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = _set_tutorial_flag(db, current_user.id, False)
    return UserResponse(message="Tutorial reset", user=user)
