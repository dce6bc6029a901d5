"""
Blog API endpoints.

Listings, post CRUD, votes/likes/saves with their notifications, views,
reading history, author stats and charts, emoji reactions, the RSS feed
and the sitemap.
"""
import os
import hmac
import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from fastapi.responses import Response
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from byteinit.api.deps import get_current_user_context, get_optional_user_context, viewer_id
from byteinit.db import models, schemas
from byteinit.db.database import get_db
from byteinit.db.repositories import blogs as blog_repo
from byteinit.db.repositories import reactions as reactions_repo
from byteinit.db.repositories import search as search_repo
from byteinit.services.featured_posts import update_featured_posts
from byteinit.services.feed_service import render_rss, render_sitemap
from byteinit.services.notification_service import (
    EVENT_BLOG_LIKE,
    EVENT_BLOG_SAVE,
    EVENT_BLOG_VOTE,
    NotificationService,
)
from byteinit.utils.text import normalize_query

logger = logging.getLogger(__name__)

router = APIRouter(tags=["blog"])

FEED_SIZE = 20


def _published_or_404(db: Session, blog_id: uuid.UUID) -> models.Blog:
    blog = blog_repo.get_blog(db, blog_id)
    if not blog or not blog.published:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Blog not found")
    return blog


def _visible_by_slug(db: Session, slug: str, user: Optional[models.User]) -> models.Blog:
    blog = blog_repo.get_blog_by_slug(db, slug)
    if not blog or (not blog.published and (user is None or user.id != blog.user_id)):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Blog not found")
    return blog


def _owned_by_slug(db: Session, slug: str, user: models.User) -> models.Blog:
    blog = blog_repo.get_blog_by_slug(db, slug)
    if not blog:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Blog not found")
    if blog.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not the author of this post")
    return blog


def _listing(db: Session, blogs: List[models.Blog], page: int, limit: int, total: int) -> schemas.BlogListResponse:
    return schemas.BlogListResponse(blogs=blog_repo.to_cards(db, blogs), page=page, limit=limit, total=total)


def _conflict(db: Session) -> HTTPException:
    db.rollback()
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Interaction changed concurrently")


# --- listings -----------------------------------------------------------------

@router.get("/blog", response_model=schemas.BlogListResponse)
def list_blogs(
    section: str = Query(default=blog_repo.SECTION_HOT),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=blog_repo.DEFAULT_PAGE_SIZE, ge=1, le=100),
    db: Session = Depends(get_db),
):
    if section not in blog_repo.SECTIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown section '{section}'. Expected one of: {', '.join(blog_repo.SECTIONS)}",
        )
    blogs, total = blog_repo.list_section(db, section, page, limit)
    return _listing(db, blogs, page, limit, total)


@router.post("/blog", response_model=schemas.BlogDetail, status_code=status.HTTP_201_CREATED)
def create_blog(
    payload: schemas.BlogCreate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    try:
        blog = blog_repo.create_blog(db, user_id=user.id, payload=payload)
    except IntegrityError:
        # a concurrent post claimed the same slug between check and insert
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Slug already taken, please retry")
    logger.info(f"User {user.id} created blog {blog.id} ({blog.slug})")
    return blog_repo.to_detail(db, blog, user.id)


@router.get("/blog/featured", response_model=List[schemas.BlogCard])
def featured_blogs(db: Session = Depends(get_db)):
    return blog_repo.to_cards(db, blog_repo.list_featured(db))


@router.post("/blog/featured/refresh", response_model=schemas.FeaturedRefreshResponse)
def refresh_featured(
    x_cron_secret: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
    user_context=Depends(get_optional_user_context),
):
    cron_secret = os.getenv("CRON_SECRET", "")
    via_cron = bool(cron_secret and x_cron_secret and hmac.compare_digest(cron_secret, x_cron_secret))
    user, current_user = user_context
    if not via_cron:
        if user is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
        if not current_user.get("is_superadmin"):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return schemas.FeaturedRefreshResponse(featured=update_featured_posts(db))


@router.get("/blog/following", response_model=schemas.BlogListResponse)
def following_feed(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=blog_repo.DEFAULT_PAGE_SIZE, ge=1, le=100),
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    blogs, total = blog_repo.list_following(db, user.id, page, limit)
    return _listing(db, blogs, page, limit, total)


@router.get("/blog/saved", response_model=schemas.BlogListResponse)
def saved_blogs(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=blog_repo.DEFAULT_PAGE_SIZE, ge=1, le=100),
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    blogs, total = blog_repo.list_saved(db, user.id, page, limit)
    return _listing(db, blogs, page, limit, total)


@router.get("/blog/history", response_model=List[schemas.HistoryEntry])
def reading_history(db: Session = Depends(get_db), user_context=Depends(get_current_user_context)):
    user, _ctx = user_context
    rows = blog_repo.reading_history(db, user.id)
    cards = blog_repo.to_cards(db, [blog for blog, _viewed_at in rows])
    return [
        schemas.HistoryEntry(viewed_at=models.as_utc(viewed_at), blog=card)
        for (_blog, viewed_at), card in zip(rows, cards)
    ]


@router.delete("/blog/history", status_code=status.HTTP_204_NO_CONTENT)
def clear_history(db: Session = Depends(get_db), user_context=Depends(get_current_user_context)):
    user, _ctx = user_context
    blog_repo.clear_history(db, user.id)


@router.delete("/blog/history/{blog_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_from_history(
    blog_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    blog_repo.clear_history(db, user.id, blog_id)


@router.get("/blog/search", response_model=List[schemas.BlogCard])
def search_blogs(
    q: str = Query(default=""),
    db: Session = Depends(get_db),
    user_context=Depends(get_optional_user_context),
):
    query = normalize_query(q)
    if not query:
        return []
    search_repo.log_query(db, query=query, user_id=viewer_id(user_context))
    return blog_repo.to_cards(db, blog_repo.search_blogs(db, query))


@router.get("/blog/mine", response_model=List[schemas.BlogCard])
def my_blogs(db: Session = Depends(get_db), user_context=Depends(get_current_user_context)):
    user, _ctx = user_context
    return blog_repo.to_cards(db, blog_repo.list_user_blogs(db, user.id))


@router.get("/blog/stats", response_model=schemas.AuthorStats)
def my_stats(db: Session = Depends(get_db), user_context=Depends(get_current_user_context)):
    user, _ctx = user_context
    return blog_repo.author_stats(db, user.id)


@router.get("/blog/chart-data", response_model=List[schemas.BlogChartPoint])
def my_chart_data(
    chart_range: str = Query(default=blog_repo.DEFAULT_CHART_RANGE, alias="range"),
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    if chart_range not in blog_repo.CHART_RANGES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown range '{chart_range}'. Expected one of: {', '.join(blog_repo.CHART_RANGES)}",
        )
    return blog_repo.author_chart(db, user.id, chart_range)


@router.get("/blog/tag/{tag}", response_model=schemas.BlogListResponse)
def blogs_by_tag(
    tag: str,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=blog_repo.DEFAULT_PAGE_SIZE, ge=1, le=100),
    db: Session = Depends(get_db),
):
    blogs, total = blog_repo.list_by_tag(db, tag, page, limit)
    return _listing(db, blogs, page, limit, total)


@router.get("/blog/topic/{topic}", response_model=schemas.BlogListResponse)
def blogs_by_topic(
    topic: str,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=blog_repo.DEFAULT_PAGE_SIZE, ge=1, le=100),
    db: Session = Depends(get_db),
):
    blogs, total = blog_repo.list_by_topic(db, topic, page, limit)
    return _listing(db, blogs, page, limit, total)


# --- single post --------------------------------------------------------------

@router.get("/blog/{slug}", response_model=schemas.BlogDetail)
def read_blog(
    slug: str,
    db: Session = Depends(get_db),
    user_context=Depends(get_optional_user_context),
):
    user, _ctx = user_context
    blog = _visible_by_slug(db, slug, user)
    return blog_repo.to_detail(db, blog, viewer_id(user_context))


@router.patch("/blog/{slug}", response_model=schemas.BlogDetail)
def update_blog(
    slug: str,
    payload: schemas.BlogUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    blog = _owned_by_slug(db, slug, user)
    blog = blog_repo.update_blog(db, blog=blog, payload=payload)
    return blog_repo.to_detail(db, blog, user.id)


@router.delete("/blog/{slug}", status_code=status.HTTP_204_NO_CONTENT)
def delete_blog(
    slug: str,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    blog = _owned_by_slug(db, slug, user)
    blog_repo.delete_blog(db, blog=blog)
    logger.info(f"User {user.id} deleted blog {blog.id}")


@router.get("/blog/{slug}/reactions", response_model=schemas.ReactionsResponse)
def blog_reactions(
    slug: str,
    db: Session = Depends(get_db),
    user_context=Depends(get_optional_user_context),
):
    user, _ctx = user_context
    blog = _visible_by_slug(db, slug, user)
    return schemas.ReactionsResponse(
        counts=reactions_repo.reaction_counts(db, models.BlogReaction, blog.id),
        mine=reactions_repo.user_reactions(db, models.BlogReaction, blog.id, viewer_id(user_context)),
    )


@router.post("/blog/{slug}/reactions", response_model=schemas.ReactionToggleResponse)
def toggle_blog_reaction(
    slug: str,
    payload: schemas.ReactionToggleRequest,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    blog = _visible_by_slug(db, slug, user)
    try:
        reacted, counts, mine = reactions_repo.toggle_reaction(db, models.BlogReaction, blog.id, user.id, payload.emoji)
    except IntegrityError:
        raise _conflict(db)
    return schemas.ReactionToggleResponse(reacted=reacted, counts=counts, mine=mine)


# --- interactions -------------------------------------------------------------

@router.post("/blog/{blog_id}/view", response_model=schemas.ViewResponse)
def record_view(
    blog_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_optional_user_context),
):
    _published_or_404(db, blog_id)
    recorded = blog_repo.record_view(db, blog_id=blog_id, user_id=viewer_id(user_context))
    return schemas.ViewResponse(recorded=recorded, views=blog_repo.get_counts(db, blog_id).views)


@router.post("/blog/{blog_id}/vote", response_model=schemas.VoteResponse)
def vote(
    blog_id: uuid.UUID,
    payload: schemas.VoteRequest,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    blog = _published_or_404(db, blog_id)
    notifier = NotificationService(db)
    try:
        current, action = blog_repo.toggle_vote(db, blog_id=blog.id, user_id=user.id, vote_type=payload.type)
        if action == "created":
            notifier.notify_interaction(blog.user_id, user, EVENT_BLOG_VOTE, blog=blog)
        elif action == "removed":
            notifier.withdraw_interaction(blog.user_id, user.id, EVENT_BLOG_VOTE, blog_id=blog.id)
        db.commit()
    except IntegrityError:
        raise _conflict(db)
    notifier.flush_emails()
    return schemas.VoteResponse(vote=current, counts=blog_repo.get_counts(db, blog.id))


@router.post("/blog/{blog_id}/like", response_model=schemas.LikeToggleResponse)
def toggle_like(
    blog_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    blog = _published_or_404(db, blog_id)
    notifier = NotificationService(db)
    try:
        liked = blog_repo.toggle_like(db, blog_id=blog.id, user_id=user.id)
        if liked:
            notifier.notify_interaction(blog.user_id, user, EVENT_BLOG_LIKE, blog=blog)
        else:
            notifier.withdraw_interaction(blog.user_id, user.id, EVENT_BLOG_LIKE, blog_id=blog.id)
        db.commit()
    except IntegrityError:
        raise _conflict(db)
    notifier.flush_emails()
    return schemas.LikeToggleResponse(liked=liked, counts=blog_repo.get_counts(db, blog.id))


@router.post("/blog/{blog_id}/save", response_model=schemas.SaveToggleResponse)
def toggle_save(
    blog_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    blog = _published_or_404(db, blog_id)
    notifier = NotificationService(db)
    try:
        saved = blog_repo.toggle_save(db, blog_id=blog.id, user_id=user.id)
        if saved:
            notifier.notify_interaction(blog.user_id, user, EVENT_BLOG_SAVE, blog=blog)
        else:
            notifier.withdraw_interaction(blog.user_id, user.id, EVENT_BLOG_SAVE, blog_id=blog.id)
        db.commit()
    except IntegrityError:
        raise _conflict(db)
    notifier.flush_emails()
    return schemas.SaveToggleResponse(saved=saved, counts=blog_repo.get_counts(db, blog.id))


# --- feed ---------------------------------------------------------------------

@router.get("/feed.xml", include_in_schema=False)
def rss_feed(db: Session = Depends(get_db)):
    xml = render_rss(blog_repo.latest_published(db, limit=FEED_SIZE))
    return Response(content=xml, media_type="application/rss+xml; charset=utf-8")


@router.get("/sitemap.xml", include_in_schema=False)
def sitemap(db: Session = Depends(get_db)):
    xml = render_sitemap(blog_repo.published_for_sitemap(db))
    return Response(content=xml, media_type="application/xml; charset=utf-8")
