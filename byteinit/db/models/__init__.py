"""
Domain-split SQLAlchemy models with a single import surface.

Exposes `Base`, `now_utc`, `as_utc` and all ORM classes so callers can write
`from byteinit.db import models` and reference `models.Blog` etc.
"""

from .base import Base, now_utc, as_utc  # re-export

# Domain models
from .users import User, Follow
from .tokens import SessionToken
from .tags import Tag, BlogTag, ResourceTag
from .blogs import Blog, BlogTopic, BlogVote, BlogLike, BlogSave, BlogView, BlogReaction
from .comments import Comment, CommentReaction
from .resources import Resource, ResourceInteraction, SavedResource, ResourceView, ResourceReaction
from .notifications import UserNotificationPreference, Notification, EmailNotificationLog
from .search import SearchQuery

__all__ = [
    # base
    "Base",
    "now_utc",
    "as_utc",
    # users
    "User",
    "Follow",
    "SessionToken",
    # tags
    "Tag",
    "BlogTag",
    "ResourceTag",
    # blog
    "Blog",
    "BlogTopic",
    "BlogVote",
    "BlogLike",
    "BlogSave",
    "BlogView",
    "BlogReaction",
    "Comment",
    "CommentReaction",
    # resources
    "Resource",
    "ResourceInteraction",
    "SavedResource",
    "ResourceView",
    "ResourceReaction",
    # notifications/search
    "UserNotificationPreference",
    "Notification",
    "EmailNotificationLog",
    "SearchQuery",
]
