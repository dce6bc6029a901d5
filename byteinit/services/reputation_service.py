"""
Author reputation.

Reputation is computed on demand from the engagement a user's published
posts received; nothing is stored.
"""
import math
import uuid
from typing import Dict

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from byteinit.db import models, schemas
from byteinit.utils.choices import VoteType

REPUTATION_POINTS: Dict[str, float] = {
    "POST_CREATED": 10,
    "POST_VIEWED": 0.1,
    "POST_LIKED": 5,
    "POST_SAVED": 8,
    "COMMENT_RECEIVED": 2,
    "POST_VOTE_UP": 10,
    "POST_VOTE_DOWN": -5,
    "TRENDING_POST": 50,
}

# (minimum points, level), highest first
REPUTATION_LEVELS = (
    (5000, "MASTER"),
    (1000, "EXPERT"),
    (500, "ADVANCED"),
    (100, "INTERMEDIATE"),
    (0, "BEGINNER"),
)


def calculate_reputation(
    *,
    posts_count: int = 0,
    total_views: int = 0,
    total_likes: int = 0,
    total_saves: int = 0,
    total_comments: int = 0,
    upvotes: int = 0,
    downvotes: int = 0,
    trending_posts: int = 0,
) -> int:
    return math.floor(
        posts_count * REPUTATION_POINTS["POST_CREATED"]
        + total_views * REPUTATION_POINTS["POST_VIEWED"]
        + total_likes * REPUTATION_POINTS["POST_LIKED"]
        + total_saves * REPUTATION_POINTS["POST_SAVED"]
        + total_comments * REPUTATION_POINTS["COMMENT_RECEIVED"]
        + upvotes * REPUTATION_POINTS["POST_VOTE_UP"]
        + downvotes * REPUTATION_POINTS["POST_VOTE_DOWN"]
        + trending_posts * REPUTATION_POINTS["TRENDING_POST"]
    )


def reputation_level(points: int) -> str:
    for minimum, level in REPUTATION_LEVELS:
        if points >= minimum:
            return level
    return "BEGINNER"


def gather_stats(db: Session, user_id: uuid.UUID) -> Dict[str, int]:
    """Engagement totals across the user's published posts."""
    published = select(models.Blog.id).where(
        models.Blog.user_id == user_id, models.Blog.published.is_(True)
    )

    def _count(model, *criteria) -> int:
        return int(db.query(func.count(model.id)).filter(model.blog_id.in_(published), *criteria).scalar() or 0)

    posts_count = int(
        db.query(func.count(models.Blog.id))
        .filter(models.Blog.user_id == user_id, models.Blog.published.is_(True))
        .scalar()
        or 0
    )
    trending_posts = int(
        db.query(func.count(models.Blog.id))
        .filter(
            models.Blog.user_id == user_id,
            models.Blog.published.is_(True),
            models.Blog.featured.is_(True),
        )
        .scalar()
        or 0
    )
    return {
        "posts_count": posts_count,
        "total_views": _count(models.BlogView),
        "total_likes": _count(models.BlogLike),
        "total_saves": _count(models.BlogSave),
        "total_comments": _count(models.Comment),
        "upvotes": _count(models.BlogVote, models.BlogVote.type == VoteType.UP.value),
        "downvotes": _count(models.BlogVote, models.BlogVote.type == VoteType.DOWN.value),
        "trending_posts": trending_posts,
    }


def get_user_reputation(db: Session, user_id: uuid.UUID) -> schemas.ReputationSummary:
    points = calculate_reputation(**gather_stats(db, user_id))
    return schemas.ReputationSummary(points=points, level=reputation_level(points))
