import uuid
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from byteinit.utils.choices import ResourceCategory, ResourceType
from byteinit.utils.urls import is_http_url
from .users import UserSummary


class ResourceBase(BaseModel):
    title: str = Field(max_length=200)
    description: str
    url: str
    image: Optional[str] = None
    type: ResourceType
    category: ResourceCategory
    tags: List[str] = []

    @field_validator("title")
    @classmethod
    def _title(cls, v: str) -> str:
        v = (v or "").strip()
        if len(v) < 3:
            raise ValueError("Title must be at least 3 characters")
        return v

    @field_validator("description")
    @classmethod
    def _description(cls, v: str) -> str:
        v = (v or "").strip()
        if len(v) < 10:
            raise ValueError("Description must be at least 10 characters")
        return v

    @field_validator("url")
    @classmethod
    def _url(cls, v: str) -> str:
        v = (v or "").strip()
        if not is_http_url(v):
            raise ValueError("Must be a valid http(s) URL")
        return v

    @field_validator("image")
    @classmethod
    def _image(cls, v: Optional[str]) -> Optional[str]:
        if v and not is_http_url(v):
            raise ValueError("Image must be a valid http(s) URL")
        return v or None


class ResourceCreate(ResourceBase):
    pass


class ResourceUpdate(BaseModel):
    title: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = None
    url: Optional[str] = None
    image: Optional[str] = None
    type: Optional[ResourceType] = None
    category: Optional[ResourceCategory] = None
    tags: Optional[List[str]] = None

    @field_validator("title")
    @classmethod
    def _title(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and len(v.strip()) < 3:
            raise ValueError("Title must be at least 3 characters")
        return v.strip() if v else v

    @field_validator("description")
    @classmethod
    def _description(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and len(v.strip()) < 10:
            raise ValueError("Description must be at least 10 characters")
        return v.strip() if v else v

    @field_validator("url", "image")
    @classmethod
    def _urls(cls, v: Optional[str]) -> Optional[str]:
        if v and not is_http_url(v.strip()):
            raise ValueError("Must be a valid http(s) URL")
        return v.strip() if v else v


class ResourceCounts(BaseModel):
    likes: int = 0
    saves: int = 0
    views: int = 0
    unique_views: int = 0


class Resource(BaseModel):
    id: uuid.UUID
    title: str
    description: str
    url: str
    image: Optional[str] = None
    type: str
    category: str
    tags: List[str] = []
    created_at: datetime
    updated_at: datetime
    author: UserSummary
    counts: ResourceCounts = ResourceCounts()
    liked: bool = False
    saved: bool = False
    model_config = ConfigDict(from_attributes=True)


class ResourceListResponse(BaseModel):
    resources: List[Resource]
    total: int
    page: int
    total_pages: int


class ResourceLikeResponse(BaseModel):
    liked: bool
    likes: int
    message: str


class ResourceLikeState(BaseModel):
    liked: bool
    likes: int


class ResourceViewResponse(BaseModel):
    views: int


class SaveResourceRequest(BaseModel):
    resource_id: uuid.UUID


class SavedResourceItem(BaseModel):
    id: uuid.UUID
    saved_at: datetime
    resource: Resource


class SavedResourceStats(BaseModel):
    total: int
    today: int
    yesterday: int
    this_month: int


class ResourceChartPoint(BaseModel):
    date: date
    likes: int
    saves: int


class TagCount(BaseModel):
    name: str
    count: int
