import re
import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

USERNAME_RE = re.compile(r"^[A-Za-z0-9_]{3,50}$")
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 8


def _check_email(value: str) -> str:
    value = (value or "").strip().lower()
    if not EMAIL_RE.match(value):
        raise ValueError("Invalid email address")
    return value


def _check_password(value: str) -> str:
    if len(value or "") < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    return value


class UserSummary(BaseModel):
    id: uuid.UUID
    name: Optional[str] = None
    username: Optional[str] = None
    image: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


class UserRegister(BaseModel):
    name: Optional[str] = None
    email: str
    username: str
    password: str

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return _check_email(v)

    @field_validator("username")
    @classmethod
    def _username(cls, v: str) -> str:
        v = (v or "").strip()
        if not USERNAME_RE.match(v):
            raise ValueError("Username must be at least 3 characters of letters, digits or underscores")
        return v

    @field_validator("password")
    @classmethod
    def _password(cls, v: str) -> str:
        return _check_password(v)


class RegisterResponse(BaseModel):
    id: uuid.UUID
    email: str
    username: str
    message: str


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return (v or "").strip().lower()


class LoginResponse(BaseModel):
    token: str
    expires_at: Optional[datetime] = None
    user: UserSummary


class ForgotPasswordRequest(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return _check_email(v)


class ResetPasswordRequest(BaseModel):
    token: str
    password: str

    @field_validator("password")
    @classmethod
    def _password(cls, v: str) -> str:
        return _check_password(v)


class ProfileBase(BaseModel):
    name: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None
    github: Optional[str] = None
    twitter: Optional[str] = None
    tech_stack: Optional[List[str]] = None
    years_of_experience: Optional[int] = Field(default=None, ge=0, le=80)
    current_role: Optional[str] = None
    company: Optional[str] = None
    looking_for_work: Optional[bool] = None
    image: Optional[str] = None


class ProfileUpdate(ProfileBase):
    username: Optional[str] = None

    @field_validator("username")
    @classmethod
    def _username(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not USERNAME_RE.match(v):
            raise ValueError("Username must be at least 3 characters of letters, digits or underscores")
        return v

    @field_validator("tech_stack")
    @classmethod
    def _tech_stack(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return v
        seen = []
        for item in v:
            item = (item or "").strip()
            if item and item not in seen:
                seen.append(item)
        return seen[:30]


class Profile(ProfileBase):
    id: uuid.UUID
    email: str
    username: Optional[str] = None
    is_superadmin: bool = False
    email_verified_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class ReputationSummary(BaseModel):
    points: int
    level: str


class Me(Profile):
    reputation: ReputationSummary


class FollowStats(BaseModel):
    followers: int
    following: int
    is_following: bool = False


class FollowToggleResponse(BaseModel):
    following: bool
    followers: int


class AuthorSummary(UserSummary):
    post_count: int


class ActivityItem(BaseModel):
    type: str
    created_at: datetime
    actor: UserSummary
    resource_id: uuid.UUID
    resource_title: str
