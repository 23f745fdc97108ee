# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""User ORM model."""

import uuid

from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.sql import func

from database import Base


def _new_id() -> str:
    return uuid.uuid4().hex


class User(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=_new_id)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    # bcrypt string – salt and cost factor are embedded
    password_hash = Column(String(255), nullable=False)
    # DEMANDEUR | AGENT | MANAGER | ADMIN.  Plain string: auth.directory owns
    # the mapping to the application Role and rejects anything else.
    role = Column(String(16), nullable=False, default="DEMANDEUR")
    avatar = Column(String(2048), nullable=True)
    two_factor_enabled = Column(Boolean, nullable=False, default=False)
    has_completed_tutorial = Column(Boolean, nullable=False, default=False)
    # Tokens issued before this instant are rejected (password change, role change)
    sessions_valid_after = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
