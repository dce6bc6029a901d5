"""
Blog repository functions.

Implements post CRUD with slug and topic maintenance, the section/scoped
listings, vote/like/save toggles and view recording. Interaction counts are
never stored; they are aggregated from the interaction tables when read.
"""
from __future__ import annotations

import secrets
import time
import uuid
from collections import Counter
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import case, func, or_, select
from sqlalchemy.orm import Session

from byteinit.db import models, schemas
from byteinit.db.repositories import tags as tags_repo
from byteinit.utils.choices import VoteType
from byteinit.utils.dates import days_ago, start_of_utc_day, today_and_yesterday, utc_days
from byteinit.utils.text import like_pattern, slugify
from byteinit.utils.topics import categorize_topic

SECTION_HOT = "hot"
SECTION_LATEST = "latest"
SECTION_POPULAR = "popular"
SECTION_BEST = "best"
SECTIONS = (SECTION_HOT, SECTION_LATEST, SECTION_POPULAR, SECTION_BEST)

DEFAULT_PAGE_SIZE = 20
FEATURED_LIMIT = 6
FEATURED_REFRESH_COUNT = 3
FEATURED_WINDOW_DAYS = 7
SEARCH_LIMIT = 10


# --- derived counters ---------------------------------------------------------

def _count_for_blog(model, *criteria):
    """Correlated COUNT(*) of ``model`` rows for the outer Blog row."""
    return (
        select(func.count(model.id))
        .where(model.blog_id == models.Blog.id, *criteria)
        .correlate(models.Blog)
        .scalar_subquery()
    )


def votes_count():
    return _count_for_blog(models.BlogVote)


def vote_score():
    up = _count_for_blog(models.BlogVote, models.BlogVote.type == VoteType.UP.value)
    down = _count_for_blog(models.BlogVote, models.BlogVote.type == VoteType.DOWN.value)
    return up - down


def comments_count():
    return _count_for_blog(models.Comment)


def views_count():
    return _count_for_blog(models.BlogView)


def _grouped_counts(db: Session, fk_col, ids: List[uuid.UUID]) -> Dict[uuid.UUID, int]:
    rows = db.query(fk_col, func.count()).filter(fk_col.in_(ids)).group_by(fk_col).all()
    return {key: int(n) for key, n in rows}


def blog_counts(db: Session, blog_ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, schemas.BlogCounts]:
    ids = list(blog_ids)
    if not ids:
        return {}

    votes = {}
    vote_rows = (
        db.query(
            models.BlogVote.blog_id,
            func.count(models.BlogVote.id),
            func.sum(case((models.BlogVote.type == VoteType.UP.value, 1), else_=0)),
            func.sum(case((models.BlogVote.type == VoteType.DOWN.value, 1), else_=0)),
        )
        .filter(models.BlogVote.blog_id.in_(ids))
        .group_by(models.BlogVote.blog_id)
        .all()
    )
    for blog_id, total, up, down in vote_rows:
        votes[blog_id] = (int(total), int(up or 0), int(down or 0))

    views = {}
    view_rows = (
        db.query(
            models.BlogView.blog_id,
            func.count(models.BlogView.id),
            func.count(models.BlogView.user_id.distinct()),
        )
        .filter(models.BlogView.blog_id.in_(ids))
        .group_by(models.BlogView.blog_id)
        .all()
    )
    for blog_id, total, unique in view_rows:
        views[blog_id] = (int(total), int(unique))

    likes = _grouped_counts(db, models.BlogLike.blog_id, ids)
    saves = _grouped_counts(db, models.BlogSave.blog_id, ids)
    comments = _grouped_counts(db, models.Comment.blog_id, ids)

    out: Dict[uuid.UUID, schemas.BlogCounts] = {}
    for blog_id in ids:
        total_votes, up, down = votes.get(blog_id, (0, 0, 0))
        total_views, unique_views = views.get(blog_id, (0, 0))
        out[blog_id] = schemas.BlogCounts(
            votes=total_votes,
            upvotes=up,
            downvotes=down,
            likes=likes.get(blog_id, 0),
            saves=saves.get(blog_id, 0),
            comments=comments.get(blog_id, 0),
            views=total_views,
            unique_views=unique_views,
        )
    return out


def get_counts(db: Session, blog_id: uuid.UUID) -> schemas.BlogCounts:
    return blog_counts(db, [blog_id]).get(blog_id, schemas.BlogCounts())


def to_cards(db: Session, blogs: List[models.Blog]) -> List[schemas.BlogCard]:
    counts = blog_counts(db, [b.id for b in blogs])
    cards = []
    for blog in blogs:
        card = schemas.BlogCard.model_validate(blog)
        card.counts = counts.get(blog.id, schemas.BlogCounts())
        cards.append(card)
    return cards


def viewer_state(db: Session, blog_id: uuid.UUID, user_id: Optional[uuid.UUID]) -> schemas.BlogViewerState:
    if user_id is None:
        return schemas.BlogViewerState()
    vote = (
        db.query(models.BlogVote.type)
        .filter(models.BlogVote.blog_id == blog_id, models.BlogVote.user_id == user_id)
        .scalar()
    )
    liked = db.query(
        db.query(models.BlogLike)
        .filter(models.BlogLike.blog_id == blog_id, models.BlogLike.user_id == user_id)
        .exists()
    ).scalar()
    saved = db.query(
        db.query(models.BlogSave)
        .filter(models.BlogSave.blog_id == blog_id, models.BlogSave.user_id == user_id)
        .exists()
    ).scalar()
    return schemas.BlogViewerState(vote=vote, liked=bool(liked), saved=bool(saved))


def to_detail(db: Session, blog: models.Blog, viewer_id: Optional[uuid.UUID]) -> schemas.BlogDetail:
    detail = schemas.BlogDetail.model_validate(blog)
    detail.counts = get_counts(db, blog.id)
    detail.viewer = viewer_state(db, blog.id, viewer_id)
    return detail


# --- CRUD ---------------------------------------------------------------------

def get_blog(db: Session, blog_id: uuid.UUID) -> Optional[models.Blog]:
    return db.query(models.Blog).filter(models.Blog.id == blog_id).first()


def get_blog_by_slug(db: Session, slug: str) -> Optional[models.Blog]:
    return db.query(models.Blog).filter(models.Blog.slug == slug).first()


# Path segments the blog router serves itself; a post with one of these slugs
# would be shadowed by the fixed route.
RESERVED_SLUGS = frozenset({
    "featured", "following", "saved", "history", "search", "mine", "stats",
    "tag", "topic", "chart-data",
})


def _epoch_millis() -> int:
    return int(time.time() * 1000)


def _slug_taken(db: Session, slug: str) -> bool:
    if slug in RESERVED_SLUGS:
        return True
    return db.query(models.Blog.id).filter(models.Blog.slug == slug).first() is not None


def unique_slug(db: Session, title: str) -> str:
    """Slug from the title; a taken or reserved slug gets an epoch-millis suffix."""
    base = slugify(title) or "post"
    if not _slug_taken(db, base):
        return base
    candidate = f"{base}-{_epoch_millis()}"
    while _slug_taken(db, candidate):
        # same title twice within one millisecond
        candidate = f"{base}-{_epoch_millis()}-{secrets.token_hex(2)}"
    return candidate


def _set_topics(blog: models.Blog, topics: List[str]) -> None:
    keep = set(topics)
    current = {link.topic for link in blog.topic_links}
    for link in list(blog.topic_links):
        if link.topic not in keep:
            blog.topic_links.remove(link)
    for topic in topics:
        if topic not in current:
            blog.topic_links.append(models.BlogTopic(topic=topic))


def _refresh_topics(blog: models.Blog) -> None:
    _set_topics(blog, categorize_topic(blog.title, blog.content, blog.tags))


def create_blog(db: Session, *, user_id: uuid.UUID, payload: schemas.BlogCreate) -> models.Blog:
    blog = models.Blog(
        user_id=user_id,
        title=payload.title,
        slug=unique_slug(db, payload.title),
        content=payload.content,
        summary=payload.summary,
        cover_image=payload.cover_image,
        published=payload.published,
    )
    db.add(blog)
    tags_repo.set_blog_tags(db, blog, payload.tags)
    _refresh_topics(blog)
    db.commit()
    db.refresh(blog)
    return blog


def update_blog(db: Session, *, blog: models.Blog, payload: schemas.BlogUpdate) -> models.Blog:
    changes = payload.model_dump(exclude_unset=True)
    tags = changes.pop("tags", None)
    for field, value in changes.items():
        if field in ("title", "content") and value is None:
            continue
        setattr(blog, field, value)
    if tags is not None:
        tags_repo.set_blog_tags(db, blog, tags)
    _refresh_topics(blog)
    db.commit()
    db.refresh(blog)
    return blog


def delete_blog(db: Session, *, blog: models.Blog) -> None:
    db.delete(blog)
    db.commit()


# --- listings -----------------------------------------------------------------

def _published():
    return models.Blog.published.is_(True)


def _section_order(section: str):
    if section == SECTION_LATEST:
        return [models.Blog.created_at.desc()]
    if section == SECTION_POPULAR:
        return [views_count().desc(), models.Blog.created_at.desc()]
    if section == SECTION_BEST:
        return [vote_score().desc(), models.Blog.created_at.desc()]
    return [votes_count().desc(), models.Blog.created_at.desc()]


def _paginate(query, page: int, limit: int, order) -> Tuple[List[models.Blog], int]:
    total = query.count()
    items = query.order_by(*order).offset((max(page, 1) - 1) * limit).limit(limit).all()
    return items, total


def list_section(db: Session, section: str = SECTION_HOT, page: int = 1, limit: int = DEFAULT_PAGE_SIZE):
    query = db.query(models.Blog).filter(_published())
    return _paginate(query, page, limit, _section_order(section))


def list_featured(db: Session, limit: int = FEATURED_LIMIT) -> List[models.Blog]:
    """Flagged posts, or the best of the last week when nothing is flagged."""
    flagged = (
        db.query(models.Blog)
        .filter(_published(), models.Blog.featured.is_(True))
        .order_by(models.Blog.created_at.desc())
        .limit(limit)
        .all()
    )
    if flagged:
        return flagged
    return (
        db.query(models.Blog)
        .filter(_published(), models.Blog.created_at >= days_ago(FEATURED_WINDOW_DAYS))
        .order_by(votes_count().desc(), comments_count().desc(), views_count().desc(), models.Blog.created_at.desc())
        .limit(limit)
        .all()
    )


def refresh_featured(db: Session, count: int = FEATURED_REFRESH_COUNT) -> List[uuid.UUID]:
    """Reset every featured flag and flag the top published posts, in one commit."""
    db.query(models.Blog).filter(models.Blog.featured.is_(True)).update(
        {models.Blog.featured: False}, synchronize_session=False
    )
    top_ids = [
        blog_id
        for (blog_id,) in db.query(models.Blog.id)
        .filter(_published())
        .order_by(votes_count().desc(), comments_count().desc(), views_count().desc(), models.Blog.created_at.desc())
        .limit(count)
        .all()
    ]
    if top_ids:
        db.query(models.Blog).filter(models.Blog.id.in_(top_ids)).update(
            {models.Blog.featured: True}, synchronize_session=False
        )
    db.commit()
    return top_ids


def list_by_tag(db: Session, tag: str, page: int = 1, limit: int = DEFAULT_PAGE_SIZE):
    query = (
        db.query(models.Blog)
        .join(models.BlogTag, models.BlogTag.blog_id == models.Blog.id)
        .join(models.Tag, models.Tag.id == models.BlogTag.tag_id)
        .filter(_published(), models.Tag.name == (tag or "").strip().lower())
    )
    return _paginate(query, page, limit, [models.Blog.created_at.desc()])


def list_by_topic(db: Session, topic: str, page: int = 1, limit: int = DEFAULT_PAGE_SIZE):
    query = (
        db.query(models.Blog)
        .join(models.BlogTopic, models.BlogTopic.blog_id == models.Blog.id)
        .filter(_published(), models.BlogTopic.topic == topic)
    )
    return _paginate(query, page, limit, [models.Blog.created_at.desc()])


def list_following(db: Session, user_id: uuid.UUID, page: int = 1, limit: int = DEFAULT_PAGE_SIZE):
    followed = select(models.Follow.following_id).where(models.Follow.follower_id == user_id)
    query = db.query(models.Blog).filter(_published(), models.Blog.user_id.in_(followed))
    return _paginate(query, page, limit, [models.Blog.created_at.desc()])


def list_saved(db: Session, user_id: uuid.UUID, page: int = 1, limit: int = DEFAULT_PAGE_SIZE):
    query = (
        db.query(models.Blog)
        .join(models.BlogSave, models.BlogSave.blog_id == models.Blog.id)
        .filter(_published(), models.BlogSave.user_id == user_id)
    )
    return _paginate(query, page, limit, [models.BlogSave.created_at.desc()])


def list_user_blogs(db: Session, user_id: uuid.UUID, published_only: bool = False, limit: Optional[int] = None):
    query = db.query(models.Blog).filter(models.Blog.user_id == user_id)
    if published_only:
        query = query.filter(_published())
    query = query.order_by(models.Blog.created_at.desc())
    if limit:
        query = query.limit(limit)
    return query.all()


def top_blogs_by_votes(db: Session, user_id: uuid.UUID, limit: int = 3) -> List[models.Blog]:
    return (
        db.query(models.Blog)
        .filter(_published(), models.Blog.user_id == user_id)
        .order_by(votes_count().desc(), models.Blog.created_at.desc())
        .limit(limit)
        .all()
    )


def latest_published(db: Session, limit: int = 20) -> List[models.Blog]:
    return (
        db.query(models.Blog)
        .filter(_published())
        .order_by(models.Blog.created_at.desc())
        .limit(limit)
        .all()
    )


def published_for_sitemap(db: Session) -> List[models.Blog]:
    return db.query(models.Blog).filter(_published()).order_by(models.Blog.updated_at.desc()).all()


def search_blogs(db: Session, q: str, limit: int = SEARCH_LIMIT) -> List[models.Blog]:
    """Published posts whose title or content contains ``q``, or tagged exactly ``q``."""
    pattern = like_pattern(q)
    tagged = (
        select(models.BlogTag.blog_id)
        .join(models.Tag, models.Tag.id == models.BlogTag.tag_id)
        .where(models.Tag.name == q.strip().lower())
    )
    return (
        db.query(models.Blog)
        .filter(
            _published(),
            or_(
                models.Blog.title.ilike(pattern, escape="\\"),
                models.Blog.content.ilike(pattern, escape="\\"),
                models.Blog.id.in_(tagged),
            ),
        )
        .order_by(models.Blog.created_at.desc())
        .limit(limit)
        .all()
    )


# --- history ------------------------------------------------------------------

def reading_history(db: Session, user_id: uuid.UUID, limit: int = 50) -> List[Tuple[models.Blog, datetime]]:
    """Posts the user viewed, most recently viewed first."""
    last_view = (
        db.query(
            models.BlogView.blog_id.label("blog_id"),
            func.max(models.BlogView.created_at).label("viewed_at"),
        )
        .filter(models.BlogView.user_id == user_id)
        .group_by(models.BlogView.blog_id)
        .subquery()
    )
    return (
        db.query(models.Blog, last_view.c.viewed_at)
        .join(last_view, last_view.c.blog_id == models.Blog.id)
        .order_by(last_view.c.viewed_at.desc())
        .limit(limit)
        .all()
    )


def clear_history(db: Session, user_id: uuid.UUID, blog_id: Optional[uuid.UUID] = None) -> int:
    """Delete the user's view rows (for one post or all)."""
    query = db.query(models.BlogView).filter(models.BlogView.user_id == user_id)
    if blog_id is not None:
        query = query.filter(models.BlogView.blog_id == blog_id)
    removed = query.delete(synchronize_session=False)
    db.commit()
    return removed


# --- interactions -------------------------------------------------------------

def toggle_vote(db: Session, *, blog_id: uuid.UUID, user_id: uuid.UUID, vote_type: str) -> Tuple[Optional[str], str]:
    """Create, remove (same type) or switch (other type) the user's vote. Flushes only.

    Returns (current vote or None, action) where action is one of
    ``created``, ``removed`` or ``switched``.
    """
    existing = (
        db.query(models.BlogVote)
        .filter(models.BlogVote.blog_id == blog_id, models.BlogVote.user_id == user_id)
        .first()
    )
    if existing is None:
        db.add(models.BlogVote(blog_id=blog_id, user_id=user_id, type=vote_type))
        action = "created"
        current = vote_type
    elif existing.type == vote_type:
        db.delete(existing)
        action = "removed"
        current = None
    else:
        existing.type = vote_type
        action = "switched"
        current = vote_type
    db.flush()
    return current, action


def _toggle_pair(db: Session, model, blog_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    existing = db.query(model).filter(model.blog_id == blog_id, model.user_id == user_id).first()
    if existing is not None:
        db.delete(existing)
        db.flush()
        return False
    db.add(model(blog_id=blog_id, user_id=user_id))
    db.flush()
    return True


def toggle_like(db: Session, *, blog_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    """Returns True when the post is now liked. Flushes only."""
    return _toggle_pair(db, models.BlogLike, blog_id, user_id)


def toggle_save(db: Session, *, blog_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    """Returns True when the post is now saved. Flushes only."""
    return _toggle_pair(db, models.BlogSave, blog_id, user_id)


def record_view(db: Session, *, blog_id: uuid.UUID, user_id: Optional[uuid.UUID]) -> bool:
    """Signed-in viewers count once per UTC day; anonymous views always count."""
    if user_id is not None:
        seen_today = (
            db.query(models.BlogView.id)
            .filter(
                models.BlogView.blog_id == blog_id,
                models.BlogView.user_id == user_id,
                models.BlogView.created_at >= start_of_utc_day(),
            )
            .first()
        )
        if seen_today is not None:
            return False
    db.add(models.BlogView(blog_id=blog_id, user_id=user_id))
    db.commit()
    return True


# --- author stats -------------------------------------------------------------

def author_stats(db: Session, user_id: uuid.UUID) -> schemas.AuthorStats:
    own = select(models.Blog.id).where(models.Blog.user_id == user_id)
    today, yesterday = today_and_yesterday()

    def _count(model, *criteria) -> int:
        return int(
            db.query(func.count(model.id)).filter(model.blog_id.in_(own), *criteria).scalar() or 0
        )

    total_posts = db.query(func.count(models.Blog.id)).filter(models.Blog.user_id == user_id).scalar() or 0
    published_posts = (
        db.query(func.count(models.Blog.id))
        .filter(models.Blog.user_id == user_id, _published())
        .scalar()
        or 0
    )
    return schemas.AuthorStats(
        total_posts=int(total_posts),
        published_posts=int(published_posts),
        total_views=_count(models.BlogView),
        total_votes=_count(models.BlogVote),
        views_today=_count(models.BlogView, models.BlogView.created_at >= today),
        views_yesterday=_count(
            models.BlogView, models.BlogView.created_at >= yesterday, models.BlogView.created_at < today
        ),
        votes_today=_count(models.BlogVote, models.BlogVote.created_at >= today),
        votes_yesterday=_count(
            models.BlogVote, models.BlogVote.created_at >= yesterday, models.BlogVote.created_at < today
        ),
    )


# Look-back per chart range, in days; "all" starts at the author's first post.
CHART_RANGES = {"today": 0, "7d": 7, "30d": 30, "3m": 90, "6m": 182, "1y": 365, "all": None}
DEFAULT_CHART_RANGE = "30d"


def _chart_start(db: Session, user_id: uuid.UUID, chart_range: str) -> datetime:
    days = CHART_RANGES[chart_range]
    if days is not None:
        return start_of_utc_day(days_ago(days))
    first = db.query(func.min(models.Blog.created_at)).filter(models.Blog.user_id == user_id).scalar()
    return start_of_utc_day(models.as_utc(first)) if first else start_of_utc_day()


def author_chart(
    db: Session, user_id: uuid.UUID, chart_range: str = DEFAULT_CHART_RANGE
) -> List[schemas.BlogChartPoint]:
    """Daily views and votes received by the author's posts, one point per UTC day."""
    own = select(models.Blog.id).where(models.Blog.user_id == user_id)
    start = _chart_start(db, user_id, chart_range)

    def _per_day(model) -> Counter:
        rows = db.query(model.created_at).filter(model.blog_id.in_(own), model.created_at >= start)
        return Counter(models.as_utc(created_at).date() for (created_at,) in rows)

    views = _per_day(models.BlogView)
    votes = _per_day(models.BlogVote)
    return [schemas.BlogChartPoint(date=day, views=views[day], votes=votes[day]) for day in utc_days(start)]
