"""
User repository functions.

Lookups by id, email, username and fuzzy identifier; credential-account
creation; profile updates; follows; author rankings and activity feeds.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, aliased

from byteinit.db import models, schemas
from byteinit.utils.choices import InteractionType
from byteinit.utils.text import compact_identifier, like_pattern

TOP_AUTHORS_LIMIT = 5
ACTIVITY_LIMIT = 20


def get_user(db: Session, user_id: uuid.UUID) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.email == (email or "").strip().lower()).first()


def get_user_by_username(db: Session, username: str) -> Optional[models.User]:
    return (
        db.query(models.User)
        .filter(func.lower(models.User.username) == (username or "").strip().lower())
        .first()
    )


def find_user(db: Session, identifier: str) -> Optional[models.User]:
    """Exact username or email match first, then a fuzzy match.

    The fuzzy pass compares the identifier reduced to ``[a-z0-9]`` against
    usernames (substring) and email addresses (prefix).
    """
    ident = (identifier or "").strip()
    if not ident:
        return None
    user = get_user_by_username(db, ident) or get_user_by_email(db, ident)
    if user is not None:
        return user
    compact = compact_identifier(ident)
    if not compact:
        return None
    return (
        db.query(models.User)
        .filter(
            or_(
                func.lower(models.User.username).like(like_pattern(compact), escape="\\"),
                models.User.email.like(f"{compact}%"),
            )
        )
        .order_by(models.User.created_at.asc())
        .first()
    )


def username_taken(db: Session, username: str, exclude_user_id: Optional[uuid.UUID] = None) -> bool:
    query = db.query(models.User.id).filter(func.lower(models.User.username) == username.lower())
    if exclude_user_id is not None:
        query = query.filter(models.User.id != exclude_user_id)
    return query.first() is not None


def create_credentials_user(
    db: Session,
    *,
    email: str,
    username: str,
    name: Optional[str],
    password_hash: str,
    verification_token: str,
    verification_token_expires_at: datetime,
) -> models.User:
    user = models.User(
        email=email,
        username=username,
        name=name or username,
        password_hash=password_hash,
        verification_token=verification_token,
        verification_token_expires_at=verification_token_expires_at,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def get_user_by_verification_token(db: Session, token: str) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.verification_token == token).first()


def get_user_by_reset_token(db: Session, token: str) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.reset_token == token).first()


def update_profile(db: Session, *, user: models.User, payload: schemas.ProfileUpdate) -> models.User:
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(user, field, value)
    db.commit()
    db.refresh(user)
    return user


# --- follows ------------------------------------------------------------------

def is_following(db: Session, follower_id: Optional[uuid.UUID], following_id: uuid.UUID) -> bool:
    if follower_id is None:
        return False
    return (
        db.query(models.Follow.id)
        .filter(models.Follow.follower_id == follower_id, models.Follow.following_id == following_id)
        .first()
        is not None
    )


def toggle_follow(db: Session, *, follower_id: uuid.UUID, following_id: uuid.UUID) -> bool:
    """Follow or unfollow. Returns True when now following. Flushes only."""
    existing = (
        db.query(models.Follow)
        .filter(models.Follow.follower_id == follower_id, models.Follow.following_id == following_id)
        .first()
    )
    if existing is not None:
        db.delete(existing)
        db.flush()
        return False
    db.add(models.Follow(follower_id=follower_id, following_id=following_id))
    db.flush()
    return True


def follow_counts(db: Session, user_id: uuid.UUID) -> Tuple[int, int]:
    """Return (followers, following)."""
    followers = db.query(func.count(models.Follow.id)).filter(models.Follow.following_id == user_id).scalar()
    following = db.query(func.count(models.Follow.id)).filter(models.Follow.follower_id == user_id).scalar()
    return int(followers or 0), int(following or 0)


def follow_stats(db: Session, user_id: uuid.UUID, viewer_id: Optional[uuid.UUID] = None) -> schemas.FollowStats:
    followers, following = follow_counts(db, user_id)
    return schemas.FollowStats(
        followers=followers,
        following=following,
        is_following=is_following(db, viewer_id, user_id),
    )


# --- rankings and activity ----------------------------------------------------

def top_authors(db: Session, limit: int = TOP_AUTHORS_LIMIT) -> List[Tuple[models.User, int]]:
    """Users with the most published posts."""
    post_count = func.count(models.Blog.id)
    return (
        db.query(models.User, post_count)
        .join(models.Blog, models.Blog.user_id == models.User.id)
        .filter(models.Blog.published.is_(True))
        .group_by(models.User.id)
        .order_by(post_count.desc(), models.User.created_at.asc())
        .limit(limit)
        .all()
    )


def recent_activity(db: Session, user_id: uuid.UUID, limit: int = ACTIVITY_LIMIT) -> List[Dict[str, Any]]:
    """Likes and saves by other users on this user's resources, newest first."""
    actor = aliased(models.User)
    likes = (
        db.query(models.ResourceInteraction.created_at, actor, models.Resource.id, models.Resource.title)
        .join(models.Resource, models.Resource.id == models.ResourceInteraction.resource_id)
        .join(actor, actor.id == models.ResourceInteraction.user_id)
        .filter(
            models.Resource.user_id == user_id,
            models.ResourceInteraction.user_id != user_id,
            models.ResourceInteraction.type == InteractionType.LIKE.value,
        )
        .order_by(models.ResourceInteraction.created_at.desc())
        .limit(limit)
        .all()
    )
    saves = (
        db.query(models.SavedResource.saved_at, actor, models.Resource.id, models.Resource.title)
        .join(models.Resource, models.Resource.id == models.SavedResource.resource_id)
        .join(actor, actor.id == models.SavedResource.user_id)
        .filter(
            models.Resource.user_id == user_id,
            models.SavedResource.user_id != user_id,
        )
        .order_by(models.SavedResource.saved_at.desc())
        .limit(limit)
        .all()
    )
    items = [
        {"type": "like", "created_at": created_at, "actor": who, "resource_id": rid, "resource_title": title}
        for created_at, who, rid, title in likes
    ] + [
        {"type": "save", "created_at": created_at, "actor": who, "resource_id": rid, "resource_title": title}
        for created_at, who, rid, title in saves
    ]
    items.sort(key=lambda item: models.as_utc(item["created_at"]), reverse=True)
    return items[:limit]
