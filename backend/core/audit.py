# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Best-effort audit writer.

The record is written through its own short-lived session, so a failure here
never rolls back or blocks the caller's transaction.  Errors are logged and
dropped.
"""

from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from core.logger import logger
from database import SessionLocal
from models.audit_log import AuditLog

# Action names
LOGIN_SUCCESS = "login_success"
LOGIN_FAILURE = "login_failure"
LOGIN_RATE_LIMITED = "login_rate_limited"
REGISTER = "register"
PASSWORD_CHANGE = "password_change"
CREATE_USER = "create_user"
UPDATE_USER = "update_user"
CHANGE_ROLE = "change_role"
DELETE_USER = "delete_user"


def record_audit(
    action: str,
    actor_id: Optional[str] = None,
    subject: Optional[str] = None,
    detail: Optional[str] = None,
    request_ip: Optional[str] = None,
) -> None:
    db = SessionLocal()
    try:
        db.add(AuditLog(
            actor_id=actor_id,
            action=action,
            subject=subject,
            detail=detail,
            request_ip=request_ip,
        ))
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to write audit record action=%s subject=%s", action, subject)
    finally:
        db.close()
