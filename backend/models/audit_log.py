# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""AuditLog ORM model – append-only trail of sensitive actions."""

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.sql import func

from database import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # Who performed the action (NULL for failed logins of unknown accounts)
    actor_id = Column(
        String(32),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    action = Column(String(64), nullable=False, index=True)   # e.g. "login_success"
    subject = Column(String(255), nullable=True)              # e.g. "user:<id>" or an email
    detail = Column(Text, nullable=True)
    request_ip = Column(String(45), nullable=True)            # fits IPv6
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
