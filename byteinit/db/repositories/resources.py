"""
Resource directory repository functions.

CRUD, filtered listings (latest, popular, trending, category, search), the
like toggle and view recording. Likes, saves and views are aggregated from
their tables on read.
"""
from __future__ import annotations

import math
import re
import uuid
from collections import Counter
from typing import Dict, Iterable, List, Optional, Set, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from byteinit.db import models, schemas
from byteinit.db.repositories import tags as tags_repo
from byteinit.utils.choices import ALL_RESOURCE_CATEGORIES, ALL_RESOURCE_TYPES, InteractionType
from byteinit.utils.dates import days_ago, start_of_utc_day, utc_days
from byteinit.utils.text import like_pattern

DEFAULT_PAGE_SIZE = 10
LATEST_LIMIT = 20
POPULAR_LIMIT = 20
TRENDING_LIMIT = 10
TRENDING_WINDOW_DAYS = 7
SEARCH_LIMIT = 50

_LIKE = InteractionType.LIKE.value


# --- derived counters ---------------------------------------------------------

def _likes_count():
    return (
        select(func.count(models.ResourceInteraction.id))
        .where(
            models.ResourceInteraction.resource_id == models.Resource.id,
            models.ResourceInteraction.type == _LIKE,
        )
        .correlate(models.Resource)
        .scalar_subquery()
    )


def _saves_count():
    return (
        select(func.count(models.SavedResource.id))
        .where(models.SavedResource.resource_id == models.Resource.id)
        .correlate(models.Resource)
        .scalar_subquery()
    )


def _unique_views_count():
    return (
        select(func.count(models.ResourceView.user_id.distinct()))
        .where(models.ResourceView.resource_id == models.Resource.id)
        .correlate(models.Resource)
        .scalar_subquery()
    )


def resource_counts(db: Session, resource_ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, schemas.ResourceCounts]:
    ids = list(resource_ids)
    if not ids:
        return {}
    likes = dict(
        db.query(models.ResourceInteraction.resource_id, func.count(models.ResourceInteraction.id))
        .filter(models.ResourceInteraction.resource_id.in_(ids), models.ResourceInteraction.type == _LIKE)
        .group_by(models.ResourceInteraction.resource_id)
        .all()
    )
    saves = dict(
        db.query(models.SavedResource.resource_id, func.count(models.SavedResource.id))
        .filter(models.SavedResource.resource_id.in_(ids))
        .group_by(models.SavedResource.resource_id)
        .all()
    )
    views = {
        resource_id: (int(total), int(unique))
        for resource_id, total, unique in db.query(
            models.ResourceView.resource_id,
            func.count(models.ResourceView.id),
            func.count(models.ResourceView.user_id.distinct()),
        )
        .filter(models.ResourceView.resource_id.in_(ids))
        .group_by(models.ResourceView.resource_id)
        .all()
    }
    out = {}
    for resource_id in ids:
        total_views, unique_views = views.get(resource_id, (0, 0))
        out[resource_id] = schemas.ResourceCounts(
            likes=int(likes.get(resource_id, 0)),
            saves=int(saves.get(resource_id, 0)),
            views=total_views,
            unique_views=unique_views,
        )
    return out


def viewer_flags(db: Session, resource_ids: List[uuid.UUID], user_id: Optional[uuid.UUID]) -> Tuple[Set[uuid.UUID], Set[uuid.UUID]]:
    """Return (liked ids, saved ids) among ``resource_ids`` for the viewer."""
    if user_id is None or not resource_ids:
        return set(), set()
    liked = {
        rid
        for (rid,) in db.query(models.ResourceInteraction.resource_id).filter(
            models.ResourceInteraction.resource_id.in_(resource_ids),
            models.ResourceInteraction.user_id == user_id,
            models.ResourceInteraction.type == _LIKE,
        )
    }
    saved = {
        rid
        for (rid,) in db.query(models.SavedResource.resource_id).filter(
            models.SavedResource.resource_id.in_(resource_ids),
            models.SavedResource.user_id == user_id,
        )
    }
    return liked, saved


def to_schemas(db: Session, resources: List[models.Resource], viewer_id: Optional[uuid.UUID] = None) -> List[schemas.Resource]:
    ids = [r.id for r in resources]
    counts = resource_counts(db, ids)
    liked, saved = viewer_flags(db, ids, viewer_id)
    out = []
    for resource in resources:
        item = schemas.Resource.model_validate(resource)
        item.counts = counts.get(resource.id, schemas.ResourceCounts())
        item.liked = resource.id in liked
        item.saved = resource.id in saved
        out.append(item)
    return out


def to_schema(db: Session, resource: models.Resource, viewer_id: Optional[uuid.UUID] = None) -> schemas.Resource:
    return to_schemas(db, [resource], viewer_id)[0]


# --- CRUD ---------------------------------------------------------------------

def get_resource(db: Session, resource_id: uuid.UUID) -> Optional[models.Resource]:
    return db.query(models.Resource).filter(models.Resource.id == resource_id).first()


def create_resource(db: Session, *, user_id: uuid.UUID, payload: schemas.ResourceCreate) -> models.Resource:
    resource = models.Resource(
        user_id=user_id,
        title=payload.title,
        description=payload.description,
        url=payload.url,
        image=payload.image,
        type=payload.type.value,
        category=payload.category.value,
    )
    db.add(resource)
    tags_repo.set_resource_tags(db, resource, payload.tags)
    db.commit()
    db.refresh(resource)
    return resource


def update_resource(db: Session, *, resource: models.Resource, payload: schemas.ResourceUpdate) -> models.Resource:
    changes = payload.model_dump(exclude_unset=True)
    tags = changes.pop("tags", None)
    for field, value in changes.items():
        if value is None and field != "image":
            continue
        if field in ("type", "category"):
            value = value.value if hasattr(value, "value") else value
        setattr(resource, field, value)
    if tags is not None:
        tags_repo.set_resource_tags(db, resource, tags)
    db.commit()
    db.refresh(resource)
    return resource


def delete_resource(db: Session, *, resource: models.Resource) -> None:
    db.delete(resource)
    db.commit()


# --- listings -----------------------------------------------------------------

def list_resources(
    db: Session,
    *,
    category: Optional[str] = None,
    resource_type: Optional[str] = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
) -> Tuple[List[models.Resource], int, int]:
    """Return (items, total, total_pages)."""
    query = db.query(models.Resource)
    if category:
        query = query.filter(models.Resource.category == category)
    if resource_type:
        query = query.filter(models.Resource.type == resource_type)
    total = query.count()
    items = (
        query.order_by(models.Resource.created_at.desc())
        .offset((max(page, 1) - 1) * limit)
        .limit(limit)
        .all()
    )
    return items, total, math.ceil(total / limit) if limit else 0


def latest(db: Session, limit: int = LATEST_LIMIT) -> List[models.Resource]:
    return db.query(models.Resource).order_by(models.Resource.created_at.desc()).limit(limit).all()


def popular(db: Session, limit: int = POPULAR_LIMIT) -> List[models.Resource]:
    return (
        db.query(models.Resource)
        .order_by(
            _unique_views_count().desc(),
            _likes_count().desc(),
            _saves_count().desc(),
            models.Resource.created_at.desc(),
        )
        .limit(limit)
        .all()
    )


def trending(db: Session, limit: int = TRENDING_LIMIT) -> List[models.Resource]:
    return (
        db.query(models.Resource)
        .filter(models.Resource.created_at >= days_ago(TRENDING_WINDOW_DAYS))
        .order_by(_likes_count().desc(), _saves_count().desc(), models.Resource.created_at.desc())
        .limit(limit)
        .all()
    )


def by_category(db: Session, category: str, limit: int = SEARCH_LIMIT) -> List[models.Resource]:
    return (
        db.query(models.Resource)
        .filter(models.Resource.category == category)
        .order_by(models.Resource.created_at.desc())
        .limit(limit)
        .all()
    )


def by_user(db: Session, user_id: uuid.UUID) -> List[models.Resource]:
    return (
        db.query(models.Resource)
        .filter(models.Resource.user_id == user_id)
        .order_by(models.Resource.created_at.desc())
        .all()
    )


def _enum_matches(q: str, values: Iterable[str]) -> List[str]:
    """Enum names matching a free-text query, e.g. "ai ml" -> AI_ML."""
    key = re.sub(r"[\s-]+", "_", q.strip()).upper()
    return [value for value in values if key and (value == key or (len(key) >= 3 and key in value))]


def search(db: Session, q: str, limit: int = SEARCH_LIMIT) -> List[models.Resource]:
    pattern = like_pattern(q)
    tagged = (
        select(models.ResourceTag.resource_id)
        .join(models.Tag, models.Tag.id == models.ResourceTag.tag_id)
        .where(models.Tag.name.like(like_pattern(q.strip().lower()), escape="\\"))
    )
    criteria = [
        models.Resource.title.ilike(pattern, escape="\\"),
        models.Resource.description.ilike(pattern, escape="\\"),
        models.Resource.id.in_(tagged),
    ]
    categories = _enum_matches(q, ALL_RESOURCE_CATEGORIES)
    if categories:
        criteria.append(models.Resource.category.in_(categories))
    types = _enum_matches(q, ALL_RESOURCE_TYPES)
    if types:
        criteria.append(models.Resource.type.in_(types))
    return (
        db.query(models.Resource)
        .filter(or_(*criteria))
        .order_by(models.Resource.created_at.desc())
        .limit(limit)
        .all()
    )


# --- interactions -------------------------------------------------------------

def like_count(db: Session, resource_id: uuid.UUID) -> int:
    return int(
        db.query(func.count(models.ResourceInteraction.id))
        .filter(
            models.ResourceInteraction.resource_id == resource_id,
            models.ResourceInteraction.type == _LIKE,
        )
        .scalar()
        or 0
    )


def has_liked(db: Session, resource_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    return (
        db.query(models.ResourceInteraction.id)
        .filter(
            models.ResourceInteraction.resource_id == resource_id,
            models.ResourceInteraction.user_id == user_id,
            models.ResourceInteraction.type == _LIKE,
        )
        .first()
        is not None
    )


def toggle_like(db: Session, *, resource_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    """Returns True when the resource is now liked. Flushes only."""
    existing = (
        db.query(models.ResourceInteraction)
        .filter(
            models.ResourceInteraction.resource_id == resource_id,
            models.ResourceInteraction.user_id == user_id,
            models.ResourceInteraction.type == _LIKE,
        )
        .first()
    )
    if existing is not None:
        db.delete(existing)
        db.flush()
        return False
    db.add(models.ResourceInteraction(resource_id=resource_id, user_id=user_id, type=_LIKE))
    db.flush()
    return True


def record_view(db: Session, *, resource_id: uuid.UUID, user_id: Optional[uuid.UUID]) -> bool:
    """Signed-in viewers count once per UTC day; anonymous views always count."""
    if user_id is not None:
        seen_today = (
            db.query(models.ResourceView.id)
            .filter(
                models.ResourceView.resource_id == resource_id,
                models.ResourceView.user_id == user_id,
                models.ResourceView.created_at >= start_of_utc_day(),
            )
            .first()
        )
        if seen_today is not None:
            return False
    db.add(models.ResourceView(resource_id=resource_id, user_id=user_id))
    db.commit()
    return True


def view_count(db: Session, resource_id: uuid.UUID) -> int:
    return int(
        db.query(func.count(models.ResourceView.id))
        .filter(models.ResourceView.resource_id == resource_id)
        .scalar()
        or 0
    )


CHART_DAYS = (7, 30, 180)
DEFAULT_CHART_DAYS = 30


def owner_chart(db: Session, user_id: uuid.UUID, days: int = DEFAULT_CHART_DAYS) -> List[schemas.ResourceChartPoint]:
    """Daily likes and saves received by the owner's resources over the last ``days`` UTC days."""
    own = select(models.Resource.id).where(models.Resource.user_id == user_id)
    start = start_of_utc_day(days_ago(days - 1))
    liked_at = (
        db.query(models.ResourceInteraction.created_at)
        .filter(
            models.ResourceInteraction.resource_id.in_(own),
            models.ResourceInteraction.type == _LIKE,
            models.ResourceInteraction.created_at >= start,
        )
    )
    saved_at = (
        db.query(models.SavedResource.saved_at)
        .filter(models.SavedResource.resource_id.in_(own), models.SavedResource.saved_at >= start)
    )
    likes = Counter(models.as_utc(moment).date() for (moment,) in liked_at)
    saves = Counter(models.as_utc(moment).date() for (moment,) in saved_at)
    return [schemas.ResourceChartPoint(date=day, likes=likes[day], saves=saves[day]) for day in utc_days(start)]
