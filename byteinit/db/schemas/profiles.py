"""Read models that combine a user with their posts and resources."""
import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from .blogs import BlogCard
from .resources import Resource
from .users import FollowStats, ReputationSummary


class PublicProfile(BaseModel):
    id: uuid.UUID
    username: Optional[str] = None
    name: Optional[str] = None
    image: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None
    github: Optional[str] = None
    twitter: Optional[str] = None
    tech_stack: List[str] = []
    current_role: Optional[str] = None
    company: Optional[str] = None
    looking_for_work: bool = False
    created_at: Optional[datetime] = None
    follow: FollowStats
    reputation: ReputationSummary
    recent_posts: List[BlogCard] = []


class GeneratedProfile(BaseModel):
    """Shape the LLM is asked to return."""
    tagline: str = ""
    bio: str = ""
    headline: str = ""
    highlights: List[str] = Field(default_factory=list)
    tech_stack: List[str] = Field(default_factory=list)
    fun_fact: str = ""
    current_role: Optional[str] = None
    company: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None
    github: Optional[str] = None


class PortfolioResponse(GeneratedProfile):
    id: uuid.UUID
    username: Optional[str] = None
    name: Optional[str] = None
    image: Optional[str] = None
    twitter: Optional[str] = None
    years_of_experience: Optional[int] = None
    looking_for_work: bool = False
    followers: int = 0
    following: int = 0
    is_following: bool = False
    is_owner: bool = False
    resources: List[Resource] = []
    top_blogs: List[BlogCard] = []


class UploadResponse(BaseModel):
    url: str
    file_id: Optional[str] = None
    name: str
