# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the auth endpoints."""

import re
from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, EmailStr, Field, model_validator

from auth.directory import PublicUser
from core.security import MAX_PASSWORD_BYTES, password_too_long

# upper + lower + digit + one of @$!%*?&
_PASSWORD_RE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]")
_PASSWORD_RULE = (
    "Password must contain an uppercase letter, a lowercase letter, "
    "a digit and a special character (@$!%*?&)"
)


def check_password_policy(pw: str) -> str:
    if not _PASSWORD_RE.match(pw):
        raise ValueError(_PASSWORD_RULE)
    if password_too_long(pw):
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return pw


PolicyPassword = Annotated[str, Field(min_length=8, max_length=100), AfterValidator(check_password_policy)]


# -- Requests --------------------------------------------------------------


class RegisterRequest(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    email: EmailStr
    password: PolicyPassword
    confirm_password: Optional[str] = Field(default=None, alias="confirmPassword")

    model_config = {"populate_by_name": True}

    @model_validator(mode="after")
    def _passwords_match(self):
        if self.confirm_password is not None and self.confirm_password != self.password:
            raise ValueError("Passwords do not match")
        return self


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class ChangePasswordRequest(BaseModel):
    old_password: str = Field(min_length=1)
    new_password: PolicyPassword


# -- Responses -------------------------------------------------------------


class UserResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    user: PublicUser


class MeResponse(BaseModel):
    success: bool = True
    user: PublicUser
    # Advisory only – lets the UI hide what the API would refuse anyway
    permissions: List[str]
