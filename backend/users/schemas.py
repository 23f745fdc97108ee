# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the user-administration endpoints."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from auth.directory import PublicUser
from auth.schemas import PolicyPassword
from core.permissions import Role


# -- Requests --------------------------------------------------------------


class CreateUserRequest(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    email: EmailStr
    password: PolicyPassword
    role: Role = Role.DEMANDEUR


class UpdateUserRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    email: Optional[EmailStr] = None
    role: Optional[Role] = None


# -- Responses -------------------------------------------------------------


class UserRow(PublicUser):
    created_tickets: int = 0
    assigned_tickets: int = 0


class UserListResponse(BaseModel):
    success: bool = True
    users: List[UserRow]


class UserDetailResponse(BaseModel):
    success: bool = True
    user: PublicUser


# -- Audit log responses ---------------------------------------------------


class AuditLogRow(BaseModel):
    id: int
    actor_email: Optional[str] = None       # resolved from actor_id join
    action: str
    subject: Optional[str] = None
    detail: Optional[str] = None
    request_ip: Optional[str] = None
    created_at: datetime


class AuditLogListResponse(BaseModel):
    success: bool = True
    logs: List[AuditLogRow]
