"""
Resource directory API endpoints.
"""
import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from byteinit.api.deps import get_current_user_context, get_optional_user_context, viewer_id
from byteinit.db import models, schemas
from byteinit.db.database import get_db
from byteinit.db.repositories import reactions as reactions_repo
from byteinit.db.repositories import resources as resource_repo
from byteinit.db.repositories import search as search_repo
from byteinit.db.repositories import tags as tags_repo
from byteinit.services.notification_service import EVENT_RESOURCE_LIKE, NotificationService
from byteinit.utils.choices import ALL_RESOURCE_TYPES, category_from_slug
from byteinit.utils.text import normalize_query

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/resources", tags=["resources"])

TOP_TAGS_LIMIT = 20


def _resource_or_404(db: Session, resource_id: uuid.UUID) -> models.Resource:
    resource = resource_repo.get_resource(db, resource_id)
    if not resource:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Resource not found")
    return resource


def _owned_resource(db: Session, resource_id: uuid.UUID, user: models.User) -> models.Resource:
    resource = _resource_or_404(db, resource_id)
    if resource.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not the owner of this resource")
    return resource


@router.get("", response_model=schemas.ResourceListResponse)
def list_resources(
    category: Optional[str] = None,
    type: Optional[str] = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=resource_repo.DEFAULT_PAGE_SIZE, ge=1, le=100),
    db: Session = Depends(get_db),
    user_context=Depends(get_optional_user_context),
):
    category_value = None
    if category:
        matched = category_from_slug(category)
        if matched is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown category '{category}'")
        category_value = matched.value
    type_value = None
    if type:
        type_value = type.strip().upper().replace("-", "_")
        if type_value not in ALL_RESOURCE_TYPES:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown resource type '{type}'")

    items, total, total_pages = resource_repo.list_resources(
        db, category=category_value, resource_type=type_value, page=page, limit=limit
    )
    return schemas.ResourceListResponse(
        resources=resource_repo.to_schemas(db, items, viewer_id(user_context)),
        total=total,
        page=page,
        total_pages=total_pages,
    )


@router.post("", response_model=schemas.Resource, status_code=status.HTTP_201_CREATED)
def create_resource(
    payload: schemas.ResourceCreate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    resource = resource_repo.create_resource(db, user_id=user.id, payload=payload)
    logger.info(f"User {user.id} shared resource {resource.id}")
    return resource_repo.to_schema(db, resource, user.id)


@router.get("/latest", response_model=List[schemas.Resource])
def latest_resources(db: Session = Depends(get_db), user_context=Depends(get_optional_user_context)):
    return resource_repo.to_schemas(db, resource_repo.latest(db), viewer_id(user_context))


@router.get("/popular", response_model=List[schemas.Resource])
def popular_resources(db: Session = Depends(get_db), user_context=Depends(get_optional_user_context)):
    return resource_repo.to_schemas(db, resource_repo.popular(db), viewer_id(user_context))


@router.get("/trending", response_model=List[schemas.Resource])
def trending_resources(db: Session = Depends(get_db), user_context=Depends(get_optional_user_context)):
    return resource_repo.to_schemas(db, resource_repo.trending(db), viewer_id(user_context))


@router.get("/search", response_model=List[schemas.Resource])
def search_resources(
    q: str = Query(default=""),
    db: Session = Depends(get_db),
    user_context=Depends(get_optional_user_context),
):
    query = normalize_query(q)
    if not query:
        return []
    search_repo.log_query(db, query=query, user_id=viewer_id(user_context))
    return resource_repo.to_schemas(db, resource_repo.search(db, query), viewer_id(user_context))


@router.get("/tags", response_model=List[schemas.TagCount])
def top_tags(db: Session = Depends(get_db)):
    return [
        schemas.TagCount(name=name, count=count)
        for name, count in tags_repo.top_resource_tags(db, limit=TOP_TAGS_LIMIT)
    ]


@router.get("/category/{slug}", response_model=List[schemas.Resource])
def resources_by_category(
    slug: str,
    db: Session = Depends(get_db),
    user_context=Depends(get_optional_user_context),
):
    category = category_from_slug(slug)
    if category is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    return resource_repo.to_schemas(db, resource_repo.by_category(db, category.value), viewer_id(user_context))


@router.get("/mine", response_model=List[schemas.Resource])
def my_resources(db: Session = Depends(get_db), user_context=Depends(get_current_user_context)):
    user, _ctx = user_context
    return resource_repo.to_schemas(db, resource_repo.by_user(db, user.id), user.id)


@router.get("/chart-data", response_model=List[schemas.ResourceChartPoint])
def my_chart_data(
    days: int = Query(default=resource_repo.DEFAULT_CHART_DAYS, alias="range"),
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    if days not in resource_repo.CHART_DAYS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown range '{days}'. Expected one of: {', '.join(map(str, resource_repo.CHART_DAYS))}",
        )
    return resource_repo.owner_chart(db, user.id, days)


@router.get("/{resource_id}", response_model=schemas.Resource)
def read_resource(
    resource_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_optional_user_context),
):
    resource = _resource_or_404(db, resource_id)
    return resource_repo.to_schema(db, resource, viewer_id(user_context))


@router.patch("/{resource_id}", response_model=schemas.Resource)
def update_resource(
    resource_id: uuid.UUID,
    payload: schemas.ResourceUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    resource = _owned_resource(db, resource_id, user)
    resource = resource_repo.update_resource(db, resource=resource, payload=payload)
    return resource_repo.to_schema(db, resource, user.id)


@router.delete("/{resource_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_resource(
    resource_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    resource = _owned_resource(db, resource_id, user)
    resource_repo.delete_resource(db, resource=resource)
    logger.info(f"User {user.id} deleted resource {resource_id}")


@router.get("/{resource_id}/like", response_model=schemas.ResourceLikeState)
def like_state(
    resource_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    resource = _resource_or_404(db, resource_id)
    return schemas.ResourceLikeState(
        liked=resource_repo.has_liked(db, resource.id, user.id),
        likes=resource_repo.like_count(db, resource.id),
    )


@router.post("/{resource_id}/like", response_model=schemas.ResourceLikeResponse)
def toggle_like(
    resource_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    resource = _resource_or_404(db, resource_id)
    notifier = NotificationService(db)
    try:
        liked = resource_repo.toggle_like(db, resource_id=resource.id, user_id=user.id)
        if liked:
            notifier.notify_interaction(resource.user_id, user, EVENT_RESOURCE_LIKE, resource=resource)
        else:
            notifier.withdraw_interaction(resource.user_id, user.id, EVENT_RESOURCE_LIKE, resource_id=resource.id)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Like changed concurrently")
    notifier.flush_emails()
    return schemas.ResourceLikeResponse(
        liked=liked,
        likes=resource_repo.like_count(db, resource.id),
        message="Resource liked" if liked else "Resource unliked",
    )


@router.post("/{resource_id}/view", response_model=schemas.ResourceViewResponse)
def record_view(
    resource_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_optional_user_context),
):
    resource = _resource_or_404(db, resource_id)
    resource_repo.record_view(db, resource_id=resource.id, user_id=viewer_id(user_context))
    return schemas.ResourceViewResponse(views=resource_repo.view_count(db, resource.id))


@router.get("/{resource_id}/reactions", response_model=schemas.ReactionsResponse)
def resource_reactions(
    resource_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_optional_user_context),
):
    resource = _resource_or_404(db, resource_id)
    return schemas.ReactionsResponse(
        counts=reactions_repo.reaction_counts(db, models.ResourceReaction, resource.id),
        mine=reactions_repo.user_reactions(db, models.ResourceReaction, resource.id, viewer_id(user_context)),
    )


@router.post("/{resource_id}/reactions", response_model=schemas.ReactionToggleResponse)
def toggle_resource_reaction(
    resource_id: uuid.UUID,
    payload: schemas.ReactionToggleRequest,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    resource = _resource_or_404(db, resource_id)
    try:
        reacted, counts, mine = reactions_repo.toggle_reaction(
            db, models.ResourceReaction, resource.id, user.id, payload.emoji
        )
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Reaction changed concurrently")
    return schemas.ReactionToggleResponse(reacted=reacted, counts=counts, mine=mine)
