# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
User directory – the only code that reads user rows for authentication.

* Returned objects are :class:`PublicUser`; the password digest never leaves
  this module.
* Stored roles are uppercase (``DEMANDEUR`` …).  They are mapped to the
  lowercase :class:`Role` here and only here.  An unmapped value raises
  :class:`RoleMappingError` instead of falling back to some default role.
"""

from datetime import datetime
from functools import lru_cache
from typing import Optional

from pydantic import BaseModel, Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.errors import DuplicateEmailError, RoleMappingError
from core.permissions import Role
from core.security import hash_password, verify_password
from models.user import User

_FROM_STORAGE: dict[str, Role] = {
    "DEMANDEUR": Role.DEMANDEUR,
    "AGENT": Role.AGENT,
    "MANAGER": Role.MANAGER,
    "ADMIN": Role.ADMIN,
}
_TO_STORAGE: dict[Role, str] = {role: stored for stored, role in _FROM_STORAGE.items()}


def role_from_storage(stored: str) -> Role:
    try:
        return _FROM_STORAGE[stored]
    except KeyError:
        raise RoleMappingError(f"Unknown stored role: {stored!r}") from None


def role_to_storage(role: Role) -> str:
    return _TO_STORAGE[Role(role)]


class PublicUser(BaseModel):
    """A user as seen by the rest of the application – no password field."""

    id: str
    email: str
    name: str
    role: Role
    avatar: Optional[str] = None
    two_factor_enabled: bool = False
    has_completed_tutorial: bool = False
    created_at: datetime
    updated_at: datetime
    # Used by the request guard; never serialised to clients
    sessions_valid_after: Optional[datetime] = Field(default=None, exclude=True)

    @classmethod
    def from_row(cls, row: User) -> "PublicUser":
        return cls(
            id=row.id,
            email=row.email,
            name=row.name,
            role=role_from_storage(row.role),
            avatar=row.avatar,
            two_factor_enabled=bool(row.two_factor_enabled),
            has_completed_tutorial=bool(row.has_completed_tutorial),
            created_at=row.created_at,
            updated_at=row.updated_at,
            sessions_valid_after=row.sessions_valid_after,
        )


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    # Verified against when the email is unknown so both failure paths cost
    # one bcrypt comparison.
    return hash_password("ticketflow-timing-equaliser")


def _insert_user(db: Session, name: str, email: str, password: str, role: Role) -> PublicUser:
    # Check-then-insert; the unique index on email catches the rare race.
    if db.query(User.id).filter(User.email == email).first():
        raise DuplicateEmailError("A user with this email already exists")

    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=role_to_storage(role),
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateEmailError("A user with this email already exists") from None
    db.refresh(user)
    return PublicUser.from_row(user)


def create_user(db: Session, name: str, email: str, password: str) -> PublicUser:
    """Self-service registration.  The role is always ``demandeur``."""
    return _insert_user(db, name, email, password, Role.DEMANDEUR)


def provision_user(db: Session, name: str, email: str, password: str, role: Role) -> PublicUser:
    """Administrative creation – the caller has already been authorised."""
    return _insert_user(db, name, email, password, role)


def authenticate_user(db: Session, email: str, password: str) -> Optional[PublicUser]:
    """
    Return the user when *email* exists and *password* matches, else None.

    "No such email" and "wrong password" are indistinguishable to the caller.
    """
    user = db.query(User).filter(User.email == email).first()
    if user is None:
        verify_password(password, _dummy_hash())
        return None
    if not verify_password(password, user.password_hash):
        return None
    return PublicUser.from_row(user)


def get_user_by_id(db: Session, user_id: str) -> Optional[PublicUser]:
    user = db.get(User, user_id)
    if user is None:
        return None
    return PublicUser.from_row(user)
