"""
Comment API endpoints: threaded comments on posts and their reactions.
"""
import logging
import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from byteinit.api.deps import get_current_user_context, get_optional_user_context, viewer_id
from byteinit.db import models, schemas
from byteinit.db.database import get_db
from byteinit.db.repositories import blogs as blog_repo
from byteinit.db.repositories import comments as comment_repo
from byteinit.db.repositories import reactions as reactions_repo
from byteinit.services.notification_service import (
    EVENT_BLOG_COMMENT,
    EVENT_COMMENT_REPLY,
    NotificationService,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["comments"])


def _blog_or_404(db: Session, blog_id: uuid.UUID, user) -> models.Blog:
    blog = blog_repo.get_blog(db, blog_id)
    if not blog or (not blog.published and (user is None or user.id != blog.user_id)):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Blog not found")
    return blog


def _comment_or_404(db: Session, comment_id: uuid.UUID) -> models.Comment:
    comment = comment_repo.get_comment(db, comment_id)
    if not comment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Comment not found")
    return comment


def _visible_comment_or_404(db: Session, comment_id: uuid.UUID, user) -> models.Comment:
    """Comment whose post the caller may see; comments under others' drafts are 404."""
    comment = _comment_or_404(db, comment_id)
    _blog_or_404(db, comment.blog_id, user)
    return comment


def _owned_comment(db: Session, comment_id: uuid.UUID, user: models.User) -> models.Comment:
    comment = _comment_or_404(db, comment_id)
    if comment.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not the author of this comment")
    return comment


@router.get("/blog/{blog_id}/comments", response_model=List[schemas.CommentNode])
def list_comments(
    blog_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_optional_user_context),
):
    user, _ctx = user_context
    blog = _blog_or_404(db, blog_id, user)
    return comment_repo.list_comment_tree(db, blog.id)


@router.post("/blog/{blog_id}/comments", response_model=schemas.Comment, status_code=status.HTTP_201_CREATED)
def add_comment(
    blog_id: uuid.UUID,
    payload: schemas.CommentCreate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    blog = _blog_or_404(db, blog_id, user)
    parent = None
    if payload.parent_id is not None:
        parent = comment_repo.get_comment(db, payload.parent_id)
        if parent is None or parent.blog_id != blog.id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Parent comment not found on this post")

    notifier = NotificationService(db)
    try:
        comment = comment_repo.add_comment(
            db, blog_id=blog.id, user_id=user.id, content=payload.content, parent_id=payload.parent_id
        )
        if parent is not None:
            notifier.notify_interaction(parent.user_id, user, EVENT_COMMENT_REPLY, blog=blog, comment=comment)
        # A post author replied to directly only gets the reply notification
        if parent is None or parent.user_id != blog.user_id:
            notifier.notify_interaction(blog.user_id, user, EVENT_BLOG_COMMENT, blog=blog, comment=comment)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Comment could not be saved")
    db.refresh(comment)
    notifier.flush_emails()
    return comment


@router.patch("/comments/{comment_id}", response_model=schemas.Comment)
def edit_comment(
    comment_id: uuid.UUID,
    payload: schemas.CommentUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    comment = _owned_comment(db, comment_id, user)
    return comment_repo.edit_comment(db, comment=comment, content=payload.content)


@router.delete("/comments/{comment_id}", response_model=schemas.CommentDeleteResponse)
def delete_comment(
    comment_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    comment = _owned_comment(db, comment_id, user)
    try:
        deleted = comment_repo.delete_comment_thread(db, comment=comment)
    except Exception:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete comment")
    logger.info(f"User {user.id} deleted comment {comment_id} and {deleted - 1} replies")
    return schemas.CommentDeleteResponse(deleted=deleted)


@router.get("/comments/{comment_id}/reactions", response_model=schemas.ReactionsResponse)
def comment_reactions(
    comment_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_optional_user_context),
):
    user, _ctx = user_context
    comment = _visible_comment_or_404(db, comment_id, user)
    return schemas.ReactionsResponse(
        counts=reactions_repo.reaction_counts(db, models.CommentReaction, comment.id),
        mine=reactions_repo.user_reactions(db, models.CommentReaction, comment.id, viewer_id(user_context)),
    )


@router.post("/comments/{comment_id}/reactions", response_model=schemas.ReactionToggleResponse)
def toggle_comment_reaction(
    comment_id: uuid.UUID,
    payload: schemas.ReactionToggleRequest,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    comment = _visible_comment_or_404(db, comment_id, user)
    try:
        reacted, counts, mine = reactions_repo.toggle_reaction(
            db, models.CommentReaction, comment.id, user.id, payload.emoji
        )
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Reaction changed concurrently")
    return schemas.ReactionToggleResponse(reacted=reacted, counts=counts, mine=mine)
