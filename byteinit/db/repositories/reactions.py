"""
Emoji reactions shared by blogs, comments and resources.

Each reaction model has a target foreign key column (``blog_id``,
``comment_id`` or ``resource_id``), a ``user_id`` and an ``emoji``; a user
holds at most one row per (target, emoji).
"""
from __future__ import annotations

import uuid
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from byteinit.db import models

_TARGET_COLUMNS = {
    models.BlogReaction: "blog_id",
    models.CommentReaction: "comment_id",
    models.ResourceReaction: "resource_id",
}


def _target_col(model):
    return getattr(model, _TARGET_COLUMNS[model])


def reaction_counts(db: Session, model, target_id: uuid.UUID) -> Dict[str, int]:
    col = _target_col(model)
    rows = (
        db.query(model.emoji, func.count(model.id))
        .filter(col == target_id)
        .group_by(model.emoji)
        .order_by(func.count(model.id).desc(), model.emoji.asc())
        .all()
    )
    return {emoji: int(n) for emoji, n in rows}


def reaction_counts_many(db: Session, model, target_ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, Dict[str, int]]:
    ids = list(target_ids)
    if not ids:
        return {}
    col = _target_col(model)
    rows = (
        db.query(col, model.emoji, func.count(model.id))
        .filter(col.in_(ids))
        .group_by(col, model.emoji)
        .all()
    )
    out: Dict[uuid.UUID, Dict[str, int]] = {}
    for target_id, emoji, n in rows:
        out.setdefault(target_id, {})[emoji] = int(n)
    return out


def user_reactions(db: Session, model, target_id: uuid.UUID, user_id: Optional[uuid.UUID]) -> List[str]:
    if user_id is None:
        return []
    col = _target_col(model)
    rows = (
        db.query(model.emoji)
        .filter(col == target_id, model.user_id == user_id)
        .order_by(model.created_at.asc())
        .all()
    )
    return [emoji for (emoji,) in rows]


def toggle_reaction(
    db: Session,
    model,
    target_id: uuid.UUID,
    user_id: uuid.UUID,
    emoji: str,
) -> Tuple[bool, Dict[str, int], List[str]]:
    """Add or remove the user's ``emoji`` on a target and commit.

    Returns (reacted, grouped counts, the user's emojis).
    """
    col = _target_col(model)
    existing = (
        db.query(model)
        .filter(col == target_id, model.user_id == user_id, model.emoji == emoji)
        .first()
    )
    if existing:
        db.delete(existing)
        reacted = False
    else:
        db.add(model(**{_TARGET_COLUMNS[model]: target_id, "user_id": user_id, "emoji": emoji}))
        reacted = True
    db.commit()
    return reacted, reaction_counts(db, model, target_id), user_reactions(db, model, target_id, user_id)
