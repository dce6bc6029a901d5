from __future__ import annotations

import uuid
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .users import UserSummary


class CommentCreate(BaseModel):
    content: str = Field(max_length=10000)
    parent_id: Optional[uuid.UUID] = None

    @field_validator("content")
    @classmethod
    def _content(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Comment content must not be blank")
        return v.strip()


class CommentUpdate(BaseModel):
    content: str = Field(max_length=10000)

    @field_validator("content")
    @classmethod
    def _content(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Comment content must not be blank")
        return v.strip()


class Comment(BaseModel):
    id: uuid.UUID
    blog_id: uuid.UUID
    parent_id: Optional[uuid.UUID] = None
    content: str
    created_at: datetime
    updated_at: datetime
    author: UserSummary
    model_config = ConfigDict(from_attributes=True)


class CommentNode(Comment):
    reactions: Dict[str, int] = {}
    replies: List[CommentNode] = []


class CommentDeleteResponse(BaseModel):
    deleted: int


CommentNode.model_rebuild()
