from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .users import _check_email


class ContactRequest(BaseModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: str
    phone: Optional[str] = Field(default=None, max_length=40)
    issue_type: str = Field(min_length=1, max_length=100)
    message: str = Field(min_length=10, max_length=5000)

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return _check_email(v)

    @field_validator("first_name", "last_name", "issue_type", "message")
    @classmethod
    def _strip(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class ContactResponse(BaseModel):
    status: str
    message: str
