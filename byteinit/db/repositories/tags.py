"""
Tag repository functions.

Tags are shared by blogs and resources; names are stored normalized
(lower-case, trimmed) so lookups are plain equality.
"""
from __future__ import annotations

from typing import Iterable, List, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from byteinit.db import models
from byteinit.utils.text import like_pattern, normalize_tags


def get_or_create_tags(db: Session, names: Iterable[str]) -> List[models.Tag]:
    """Return Tag rows for ``names`` in input order, creating the missing ones."""
    wanted = normalize_tags(names)
    if not wanted:
        return []
    existing = {
        tag.name: tag
        for tag in db.query(models.Tag).filter(models.Tag.name.in_(wanted)).all()
    }
    out: List[models.Tag] = []
    for name in wanted:
        tag = existing.get(name)
        if tag is None:
            tag = models.Tag(name=name)
            db.add(tag)
            existing[name] = tag
        out.append(tag)
    db.flush()
    return out


def set_blog_tags(db: Session, blog: models.Blog, names: Iterable[str]) -> None:
    tags = get_or_create_tags(db, names)
    keep = {tag.id for tag in tags}
    current = {link.tag_id for link in blog.tag_links}
    for link in list(blog.tag_links):
        if link.tag_id not in keep:
            blog.tag_links.remove(link)
    for tag in tags:
        if tag.id not in current:
            blog.tag_links.append(models.BlogTag(tag=tag))


def set_resource_tags(db: Session, resource: models.Resource, names: Iterable[str]) -> None:
    tags = get_or_create_tags(db, names)
    keep = {tag.id for tag in tags}
    current = {link.tag_id for link in resource.tag_links}
    for link in list(resource.tag_links):
        if link.tag_id not in keep:
            resource.tag_links.remove(link)
    for tag in tags:
        if tag.id not in current:
            resource.tag_links.append(models.ResourceTag(tag=tag))


def suggest_tags(db: Session, q: str, limit: int = 10) -> List[str]:
    """Tag names containing ``q``, most used first."""
    q = (q or "").strip().lower()
    if not q:
        return []
    usage = (
        func.count(models.BlogTag.blog_id.distinct())
        + func.count(models.ResourceTag.resource_id.distinct())
    )
    rows = (
        db.query(models.Tag.name)
        .outerjoin(models.BlogTag, models.BlogTag.tag_id == models.Tag.id)
        .outerjoin(models.ResourceTag, models.ResourceTag.tag_id == models.Tag.id)
        .filter(models.Tag.name.like(like_pattern(q), escape="\\"))
        .group_by(models.Tag.id, models.Tag.name)
        .order_by(usage.desc(), models.Tag.name.asc())
        .limit(limit)
        .all()
    )
    return [name for (name,) in rows]


def top_resource_tags(db: Session, limit: int = 20) -> List[Tuple[str, int]]:
    count = func.count(models.ResourceTag.resource_id)
    rows = (
        db.query(models.Tag.name, count)
        .join(models.ResourceTag, models.ResourceTag.tag_id == models.Tag.id)
        .group_by(models.Tag.id, models.Tag.name)
        .order_by(count.desc(), models.Tag.name.asc())
        .limit(limit)
        .all()
    )
    return [(name, int(n)) for name, n in rows]
