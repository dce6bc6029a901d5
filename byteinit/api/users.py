"""
Users API endpoints.

Self profile, public profiles, follows, top authors and the activity feed
on the caller's resources.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from byteinit.api.deps import get_current_user_context, get_optional_user_context, viewer_id
from byteinit.db import models, schemas
from byteinit.db.database import get_db
from byteinit.db.repositories import blogs as blog_repo
from byteinit.db.repositories import users as user_repo
from byteinit.services.notification_service import EVENT_NEW_FOLLOWER, NotificationService
from byteinit.services.reputation_service import get_user_reputation

logger = logging.getLogger(__name__)

router = APIRouter(tags=["users"])

RECENT_POSTS_LIMIT = 5


def _me(db: Session, user: models.User) -> schemas.Me:
    profile = schemas.Profile.model_validate(user)
    return schemas.Me(**profile.model_dump(), reputation=get_user_reputation(db, user.id))


def _user_or_404(db: Session, username: str) -> models.User:
    user = user_repo.get_user_by_username(db, username)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.get("/users/me", response_model=schemas.Me)
def read_me(db: Session = Depends(get_db), user_context=Depends(get_current_user_context)):
    user, _ctx = user_context
    return _me(db, user)


@router.get("/profile", response_model=schemas.Profile)
def read_profile(user_context=Depends(get_current_user_context)):
    user, _ctx = user_context
    return user


@router.put("/profile", response_model=schemas.Profile)
def update_profile(
    payload: schemas.ProfileUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    if payload.username and user_repo.username_taken(db, payload.username, exclude_user_id=user.id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already taken")
    return user_repo.update_profile(db, user=user, payload=payload)


@router.get("/users/authors/top", response_model=List[schemas.AuthorSummary])
def top_authors(db: Session = Depends(get_db)):
    return [
        schemas.AuthorSummary(**schemas.UserSummary.model_validate(user).model_dump(), post_count=count)
        for user, count in user_repo.top_authors(db)
    ]


@router.get("/users/me/activity", response_model=List[schemas.ActivityItem])
def my_activity(db: Session = Depends(get_db), user_context=Depends(get_current_user_context)):
    user, _ctx = user_context
    return [
        schemas.ActivityItem(
            type=item["type"],
            created_at=item["created_at"],
            actor=schemas.UserSummary.model_validate(item["actor"]),
            resource_id=item["resource_id"],
            resource_title=item["resource_title"],
        )
        for item in user_repo.recent_activity(db, user.id)
    ]


@router.get("/users/{username}", response_model=schemas.PublicProfile)
def public_profile(
    username: str,
    db: Session = Depends(get_db),
    user_context=Depends(get_optional_user_context),
):
    user = _user_or_404(db, username)
    recent = blog_repo.list_user_blogs(db, user.id, published_only=True, limit=RECENT_POSTS_LIMIT)
    return schemas.PublicProfile(
        id=user.id,
        username=user.username,
        name=user.name,
        image=user.image,
        bio=user.bio,
        location=user.location,
        website=user.website,
        github=user.github,
        twitter=user.twitter,
        tech_stack=user.tech_stack or [],
        current_role=user.current_role,
        company=user.company,
        looking_for_work=bool(user.looking_for_work),
        created_at=user.created_at,
        follow=user_repo.follow_stats(db, user.id, viewer_id(user_context)),
        reputation=get_user_reputation(db, user.id),
        recent_posts=blog_repo.to_cards(db, recent),
    )


@router.post("/users/{username}/follow", response_model=schemas.FollowToggleResponse)
def toggle_follow(
    username: str,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    target = _user_or_404(db, username)
    if target.id == user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot follow yourself")

    notifier = NotificationService(db)
    try:
        following = user_repo.toggle_follow(db, follower_id=user.id, following_id=target.id)
        if following:
            notifier.notify_interaction(target.id, user, EVENT_NEW_FOLLOWER)
        else:
            notifier.withdraw_interaction(target.id, user.id, EVENT_NEW_FOLLOWER)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Follow state changed concurrently")
    notifier.flush_emails()

    followers, _following = user_repo.follow_counts(db, target.id)
    return schemas.FollowToggleResponse(following=following, followers=followers)


@router.get("/users/{username}/follow-stats", response_model=schemas.FollowStats)
def follow_stats(
    username: str,
    db: Session = Depends(get_db),
    user_context=Depends(get_optional_user_context),
):
    target = _user_or_404(db, username)
    return user_repo.follow_stats(db, target.id, viewer_id(user_context))
