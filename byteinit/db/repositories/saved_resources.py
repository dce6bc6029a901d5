"""
Saved-resource (bookmark) repository functions.
"""
from __future__ import annotations

import uuid
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from byteinit.db import models, schemas
from byteinit.utils.dates import start_of_utc_month, today_and_yesterday


def get_saved(db: Session, *, resource_id: uuid.UUID, user_id: uuid.UUID) -> Optional[models.SavedResource]:
    return (
        db.query(models.SavedResource)
        .filter(
            models.SavedResource.resource_id == resource_id,
            models.SavedResource.user_id == user_id,
        )
        .first()
    )


def list_saved(db: Session, *, user_id: uuid.UUID) -> List[models.SavedResource]:
    return (
        db.query(models.SavedResource)
        .filter(models.SavedResource.user_id == user_id)
        .order_by(models.SavedResource.saved_at.desc())
        .all()
    )


def save(db: Session, *, resource_id: uuid.UUID, user_id: uuid.UUID) -> Optional[models.SavedResource]:
    """Bookmark a resource. Returns None when already saved. Flushes only."""
    if get_saved(db, resource_id=resource_id, user_id=user_id) is not None:
        return None
    saved = models.SavedResource(resource_id=resource_id, user_id=user_id)
    db.add(saved)
    db.flush()
    return saved


def unsave(db: Session, *, resource_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    """Remove a bookmark. Returns False when it did not exist. Flushes only."""
    saved = get_saved(db, resource_id=resource_id, user_id=user_id)
    if saved is None:
        return False
    db.delete(saved)
    db.flush()
    return True


def saved_stats(db: Session, *, owner_id: uuid.UUID) -> schemas.SavedResourceStats:
    """How often other users saved the owner's resources."""
    own = select(models.Resource.id).where(models.Resource.user_id == owner_id)
    today, yesterday = today_and_yesterday()
    month = start_of_utc_month()

    def _count(*criteria) -> int:
        return int(
            db.query(func.count(models.SavedResource.id))
            .filter(
                models.SavedResource.resource_id.in_(own),
                models.SavedResource.user_id != owner_id,
                *criteria,
            )
            .scalar()
            or 0
        )

    return schemas.SavedResourceStats(
        total=_count(),
        today=_count(models.SavedResource.saved_at >= today),
        yesterday=_count(models.SavedResource.saved_at >= yesterday, models.SavedResource.saved_at < today),
        this_month=_count(models.SavedResource.saved_at >= month),
    )
