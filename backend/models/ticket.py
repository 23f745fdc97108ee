# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""Ticket ORM model (only the columns the authorization layer relies on)."""

from sqlalchemy import Column, Integer, String, Text, Enum, DateTime, ForeignKey
from sqlalchemy.sql import func

from database import Base

TICKET_STATUSES = ("OUVERT", "EN_COURS", "EN_ATTENTE", "RESOLU", "FERME")
TICKET_PRIORITIES = ("BASSE", "MOYENNE", "HAUTE", "CRITIQUE")


class Ticket(Base):
    __tablename__ = "tickets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    status = Column(Enum(*TICKET_STATUSES, name="ticket_status"), nullable=False, default="OUVERT")
    priority = Column(Enum(*TICKET_PRIORITIES, name="ticket_priority"), nullable=False, default="MOYENNE")
    # RESTRICT: a user cannot disappear while tickets still point at them
    created_by_id = Column(
        String(32),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    assigned_to_id = Column(
        String(32),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
