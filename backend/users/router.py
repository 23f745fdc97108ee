# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
User administration and audit trail endpoints.

Every endpoint is guarded by ``require_auth`` with an explicit permission, so
a caller whose role lacks it gets 403 before any business logic runs.  Role
changes happen here and only here – the self-service profile paths cannot
touch the role.
"""

import io
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import StreamingResponse
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from auth.directory import PublicUser, provision_user, role_to_storage
from core import audit
from core.errors import DuplicateEmailError
from core.guards import require_auth
from core.logger import logger
from core.permissions import Permission
from core.security import get_client_ip
from database import get_db
from models.audit_log import AuditLog
from models.ticket import Ticket
from models.user import User
from users.schemas import (
    AuditLogListResponse,
    AuditLogRow,
    CreateUserRequest,
    UpdateUserRequest,
    UserDetailResponse,
    UserListResponse,
    UserRow,
)

router = APIRouter(prefix="/api", tags=["users"])


def _ticket_counts(db: Session, column) -> dict[str, int]:
    rows = db.query(column, func.count(Ticket.id)).filter(column.isnot(None)).group_by(column).all()
    return {user_id: count for user_id, count in rows}


def _get_target(db: Session, user_id: str) -> User:
    target = db.get(User, user_id)
    if target is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return target


# ---------------------------------------------------------------------------
# GET /api/users  – list all users
# ---------------------------------------------------------------------------


@router.get("/users", response_model=UserListResponse)
def list_users(
    caller: PublicUser = Depends(require_auth(required_permissions=[Permission.USERS_VIEW])),
    db: Session = Depends(get_db),
):
    """Every user ordered by name, with created/assigned ticket counts."""
    created = _ticket_counts(db, Ticket.created_by_id)
    assigned = _ticket_counts(db, Ticket.assigned_to_id)

    users = []
    for row in db.query(User).order_by(User.name).all():
        public = PublicUser.from_row(row)
        users.append(UserRow(
            **public.model_dump(),
            created_tickets=created.get(row.id, 0),
            assigned_tickets=assigned.get(row.id, 0),
        ))
    return UserListResponse(users=users)


# ---------------------------------------------------------------------------
# POST /api/users  – administrative creation
# ---------------------------------------------------------------------------


@router.post("/users", response_model=UserDetailResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    body: CreateUserRequest,
    request: Request,
    caller: PublicUser = Depends(require_auth(required_permissions=[Permission.USERS_CREATE])),
    db: Session = Depends(get_db),
):
    """Create an account with an explicitly chosen role."""
    try:
        user = provision_user(db, body.name, body.email, body.password, body.role)
    except DuplicateEmailError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))

    audit.record_audit(
        audit.CREATE_USER,
        actor_id=caller.id,
        subject=f"user:{user.id}",
        detail=f"role={user.role.value}",
        request_ip=get_client_ip(request),
    )
    return UserDetailResponse(user=user)


# ---------------------------------------------------------------------------
# PATCH /api/users/{id}  – edit profile fields / change role
# ---------------------------------------------------------------------------


@router.patch("/users/{user_id}", response_model=UserDetailResponse)
def update_user(
    user_id: str,
    body: UpdateUserRequest,
    request: Request,
    caller: PublicUser = Depends(require_auth(required_permissions=[Permission.USERS_UPDATE])),
    db: Session = Depends(get_db),
):
    """
    Update name, email and/or role.  Guards:
    * A caller cannot change their own role (prevents accidental self-lockout).
    * A role change revokes the target's existing sessions.
    """
    target = _get_target(db, user_id)
    changes = []

    if body.name is not None:
        target.name = body.name
        changes.append("name")

    if body.email is not None and body.email != target.email:
        if db.query(User.id).filter(User.email == body.email).first():
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already in use")
        target.email = body.email
        changes.append("email")

    role_changed = False
    if body.role is not None and role_to_storage(body.role) != target.role:
        if user_id == caller.id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot change your own role",
            )
        target.role = role_to_storage(body.role)
        target.sessions_valid_after = datetime.now(timezone.utc)
        role_changed = True

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already in use")
    db.refresh(target)

    client_ip = get_client_ip(request)
    if changes:
        audit.record_audit(
            audit.UPDATE_USER,
            actor_id=caller.id,
            subject=f"user:{user_id}",
            detail="fields=" + ",".join(changes),
            request_ip=client_ip,
        )
    if role_changed:
        logger.info("User %s changed role of %s to %s", caller.id, user_id, body.role.value)
        audit.record_audit(
            audit.CHANGE_ROLE,
            actor_id=caller.id,
            subject=f"user:{user_id}",
            detail=f"new_role={body.role.value}",
            request_ip=client_ip,
        )

    return UserDetailResponse(user=PublicUser.from_row(target))


# ---------------------------------------------------------------------------
# DELETE /api/users/{id}
# ---------------------------------------------------------------------------


@router.delete("/users/{user_id}")
def delete_user(
    user_id: str,
    request: Request,
    caller: PublicUser = Depends(require_auth(required_permissions=[Permission.USERS_DELETE])),
    db: Session = Depends(get_db),
):
    """Hard delete, refused while the user owns or is assigned any ticket."""
    if user_id == caller.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot delete yourself")

    target = _get_target(db, user_id)

    ticket_count = (
        db.query(func.count(Ticket.id))
        .filter(or_(Ticket.created_by_id == user_id, Ticket.assigned_to_id == user_id))
        .scalar()
    )
    if ticket_count:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot delete this user: {ticket_count} ticket(s) still reference them",
        )

    email = target.email
    db.delete(target)
    db.commit()

    audit.record_audit(
        audit.DELETE_USER,
        actor_id=caller.id,
        subject=email,
        request_ip=get_client_ip(request),
    )
    return {"success": True, "message": "User deleted"}


# ---------------------------------------------------------------------------
# GET /api/audit  – audit trail with optional filters
# ---------------------------------------------------------------------------


def _audit_query(db: Session, actions, since, until):
    q = db.query(AuditLog, User.email).outerjoin(User, AuditLog.actor_id == User.id)
    if actions:
        q = q.filter(AuditLog.action.in_(actions))
    if since:
        q = q.filter(AuditLog.created_at >= since)
    if until:
        q = q.filter(AuditLog.created_at <= until)
    return q.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())


@router.get("/audit", response_model=AuditLogListResponse)
def list_audit_logs(
    actions: list[str] | None = Query(None, description="Filter by action name(s) – repeated param"),
    since: datetime | None = Query(None, description="ISO-8601 start of time window"),
    until: datetime | None = Query(None, description="ISO-8601 end of time window"),
    limit: int = Query(100, ge=1, le=1000),
    caller: PublicUser = Depends(require_auth(required_permissions=[Permission.AUDIT_VIEW])),
    db: Session = Depends(get_db),
):
    """Newest-first audit records (default 100, cap 1000)."""
    rows = _audit_query(db, actions, since, until).limit(limit).all()
    return AuditLogListResponse(logs=[
        AuditLogRow(
            id=log.id,
            actor_email=actor_email,
            action=log.action,
            subject=log.subject,
            detail=log.detail,
            request_ip=log.request_ip,
            created_at=log.created_at,
        )
        for log, actor_email in rows
    ])


# ---------------------------------------------------------------------------
# GET /api/audit/export  – download the audit trail as Excel
# ---------------------------------------------------------------------------

_AUDIT_HEADER_FONT = Font(name="Calibri", size=11, bold=True, color="FFFFFF")
_AUDIT_HEADER_FILL = PatternFill(start_color="2563EB", end_color="2563EB", fill_type="solid")
_AUDIT_HEADER_ALIGN = Alignment(horizontal="center", vertical="center")
_AUDIT_THIN_BORDER = Border(
    left=Side(style="thin", color="CCCCCC"),
    right=Side(style="thin", color="CCCCCC"),
    top=Side(style="thin", color="CCCCCC"),
    bottom=Side(style="thin", color="CCCCCC"),
)

_AUDIT_EXPORT_HEADERS = ["ID", "Time", "Actor", "Action", "Subject", "Request IP", "Details"]
_AUDIT_COL_WIDTHS = [8, 20, 28, 20, 36, 16, 50]


@router.get("/audit/export")
def export_audit_logs(
    caller: PublicUser = Depends(require_auth(required_permissions=[Permission.AUDIT_VIEW])),
    db: Session = Depends(get_db),
):
    """Every audit record as a single-sheet workbook."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Audit Logs"

    ws.append(_AUDIT_EXPORT_HEADERS)
    for cell in ws[1]:
        cell.font = _AUDIT_HEADER_FONT
        cell.fill = _AUDIT_HEADER_FILL
        cell.alignment = _AUDIT_HEADER_ALIGN
        cell.border = _AUDIT_THIN_BORDER

    for log, actor_email in _audit_query(db, None, None, None).all():
        ws.append([
            log.id,
            log.created_at.strftime("%Y-%m-%d %H:%M:%S") if log.created_at else "",
            actor_email or "",
            log.action,
            log.subject or "",
            log.request_ip or "",
            log.detail or "",
        ])
        for cell in ws[ws.max_row]:
            cell.border = _AUDIT_THIN_BORDER

    for col_idx, width in enumerate(_AUDIT_COL_WIDTHS, start=1):
        ws.column_dimensions[chr(64 + col_idx)].width = width

    buf = io.BytesIO()
    wb.save(buf)
    buf.seek(0)
    wb.close()

    logger.info("Audit export by user %s", caller.id)
    return StreamingResponse(
        buf,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": 'attachment; filename="audit-logs.xlsx"'},
    )
