"""
Comment repository functions.

Comments form a tree through ``parent_id``. Listing assembles the tree in
memory from one query; deletion walks it level by level so a whole thread,
with every reaction on it, disappears in one transaction.
"""
from __future__ import annotations

import logging
import uuid
from typing import Dict, List, Optional, Set

from sqlalchemy.orm import Session

from byteinit.db import models, schemas
from byteinit.db.repositories import reactions as reactions_repo

logger = logging.getLogger(__name__)


def get_comment(db: Session, comment_id: uuid.UUID) -> Optional[models.Comment]:
    return db.query(models.Comment).filter(models.Comment.id == comment_id).first()


def list_comment_tree(db: Session, blog_id: uuid.UUID) -> List[schemas.CommentNode]:
    """Nested comment tree for a post, oldest first at every level."""
    rows = (
        db.query(models.Comment)
        .filter(models.Comment.blog_id == blog_id)
        .order_by(models.Comment.created_at.asc(), models.Comment.id.asc())
        .all()
    )
    counts = reactions_repo.reaction_counts_many(db, models.CommentReaction, [c.id for c in rows])

    nodes: Dict[uuid.UUID, schemas.CommentNode] = {}
    for comment in rows:
        node = schemas.CommentNode.model_validate(comment)
        node.reactions = counts.get(comment.id, {})
        node.replies = []
        nodes[comment.id] = node

    roots: List[schemas.CommentNode] = []
    for comment in rows:
        node = nodes[comment.id]
        if comment.parent_id is None:
            roots.append(node)
        elif comment.parent_id in nodes:
            nodes[comment.parent_id].replies.append(node)
    # Nodes on a corrupted parent cycle never reach a root and are left out.
    return roots


def add_comment(
    db: Session,
    *,
    blog_id: uuid.UUID,
    user_id: uuid.UUID,
    content: str,
    parent_id: Optional[uuid.UUID] = None,
) -> models.Comment:
    """Insert a comment. Flushes only; the caller commits with its notifications."""
    comment = models.Comment(blog_id=blog_id, user_id=user_id, content=content, parent_id=parent_id)
    db.add(comment)
    db.flush()
    return comment


def edit_comment(db: Session, *, comment: models.Comment, content: str) -> models.Comment:
    comment.content = content
    db.commit()
    db.refresh(comment)
    return comment


def collect_thread_ids(db: Session, root_id: uuid.UUID) -> List[uuid.UUID]:
    """Return the root and all of its descendants, breadth first.

    A visited set guards against malformed parent links.
    """
    visited: Set[uuid.UUID] = {root_id}
    ordered: List[uuid.UUID] = [root_id]
    frontier: List[uuid.UUID] = [root_id]
    while frontier:
        children = [
            child_id
            for (child_id,) in db.query(models.Comment.id)
            .filter(models.Comment.parent_id.in_(frontier))
            .all()
        ]
        frontier = []
        for child_id in children:
            if child_id in visited:
                continue
            visited.add(child_id)
            ordered.append(child_id)
            frontier.append(child_id)
    return ordered


def delete_comment_thread(db: Session, *, comment: models.Comment) -> int:
    """Delete a comment, its replies and all their reactions atomically.

    Returns the number of comments removed. Rolls back and re-raises on error.
    """
    root_id = comment.id
    try:
        ids = collect_thread_ids(db, root_id)
        db.query(models.CommentReaction).filter(
            models.CommentReaction.comment_id.in_(ids)
        ).delete(synchronize_session=False)
        db.query(models.Notification).filter(
            models.Notification.comment_id.in_(ids)
        ).delete(synchronize_session=False)
        # Deepest replies first so no row outlives its parent mid-statement
        for comment_id in reversed(ids):
            db.query(models.Comment).filter(models.Comment.id == comment_id).delete(synchronize_session=False)
        db.commit()
    except Exception:
        db.rollback()
        logger.error(f"Failed to delete comment thread {root_id}", exc_info=True)
        raise
    return len(ids)
