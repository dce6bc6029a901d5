import uuid
from datetime import date, datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from byteinit.utils.urls import is_http_url
from .users import UserSummary


def _non_blank(value: Optional[str], field: str) -> Optional[str]:
    if value is None:
        return value
    if not value.strip():
        raise ValueError(f"{field} must not be blank")
    return value.strip() if field == "title" else value


class BlogBase(BaseModel):
    title: str = Field(max_length=300)
    content: str
    summary: Optional[str] = None
    cover_image: Optional[str] = None
    tags: List[str] = []
    published: bool = False

    @field_validator("title")
    @classmethod
    def _title(cls, v: str) -> str:
        return _non_blank(v, "title")

    @field_validator("content")
    @classmethod
    def _content(cls, v: str) -> str:
        return _non_blank(v, "content")

    @field_validator("cover_image")
    @classmethod
    def _cover_image(cls, v: Optional[str]) -> Optional[str]:
        if v and not is_http_url(v):
            raise ValueError("cover_image must be an http(s) URL")
        return v or None


class BlogCreate(BlogBase):
    pass


class BlogUpdate(BaseModel):
    title: Optional[str] = Field(default=None, max_length=300)
    content: Optional[str] = None
    summary: Optional[str] = None
    cover_image: Optional[str] = None
    tags: Optional[List[str]] = None
    published: Optional[bool] = None

    @field_validator("title")
    @classmethod
    def _title(cls, v: Optional[str]) -> Optional[str]:
        return _non_blank(v, "title")

    @field_validator("content")
    @classmethod
    def _content(cls, v: Optional[str]) -> Optional[str]:
        return _non_blank(v, "content")

    @field_validator("cover_image")
    @classmethod
    def _cover_image(cls, v: Optional[str]) -> Optional[str]:
        if v and not is_http_url(v):
            raise ValueError("cover_image must be an http(s) URL")
        return v


class BlogCounts(BaseModel):
    votes: int = 0
    upvotes: int = 0
    downvotes: int = 0
    likes: int = 0
    saves: int = 0
    comments: int = 0
    views: int = 0
    unique_views: int = 0


class BlogViewerState(BaseModel):
    vote: Optional[Literal["UP", "DOWN"]] = None
    liked: bool = False
    saved: bool = False


class BlogCard(BaseModel):
    id: uuid.UUID
    title: str
    slug: str
    summary: Optional[str] = None
    cover_image: Optional[str] = None
    published: bool
    featured: bool
    tags: List[str] = []
    topics: List[str] = []
    created_at: datetime
    updated_at: datetime
    author: UserSummary
    counts: BlogCounts = BlogCounts()
    model_config = ConfigDict(from_attributes=True)


class BlogDetail(BlogCard):
    content: str
    viewer: BlogViewerState = BlogViewerState()


class BlogListResponse(BaseModel):
    blogs: List[BlogCard]
    page: int
    limit: int
    total: int


class VoteRequest(BaseModel):
    type: Literal["UP", "DOWN"]


class VoteResponse(BaseModel):
    vote: Optional[Literal["UP", "DOWN"]] = None
    counts: BlogCounts


class LikeToggleResponse(BaseModel):
    liked: bool
    counts: BlogCounts


class SaveToggleResponse(BaseModel):
    saved: bool
    counts: BlogCounts


class ViewResponse(BaseModel):
    recorded: bool
    views: int


class ReactionToggleRequest(BaseModel):
    emoji: str = Field(min_length=1, max_length=32)

    @field_validator("emoji")
    @classmethod
    def _emoji(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("emoji must not be blank")
        return v


class ReactionsResponse(BaseModel):
    counts: Dict[str, int]
    mine: List[str] = []


class ReactionToggleResponse(ReactionsResponse):
    reacted: bool


class AuthorStats(BaseModel):
    total_posts: int
    published_posts: int
    total_views: int
    total_votes: int
    views_today: int
    views_yesterday: int
    votes_today: int
    votes_yesterday: int


class BlogChartPoint(BaseModel):
    date: date
    views: int
    votes: int


class HistoryEntry(BaseModel):
    viewed_at: datetime
    blog: BlogCard


class FeaturedRefreshResponse(BaseModel):
    featured: List[uuid.UUID]
