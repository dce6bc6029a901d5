"""
Saved-resource (bookmark) API endpoints.
"""
import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from byteinit.api.deps import get_current_user_context
from byteinit.db import schemas
from byteinit.db.database import get_db
from byteinit.db.repositories import resources as resource_repo
from byteinit.db.repositories import saved_resources as saved_repo
from byteinit.services.notification_service import EVENT_RESOURCE_SAVE, NotificationService

router = APIRouter(prefix="/saved-resources", tags=["saved-resources"])


@router.get("", response_model=List[schemas.SavedResourceItem])
def list_saved(db: Session = Depends(get_db), user_context=Depends(get_current_user_context)):
    user, _ctx = user_context
    saved = saved_repo.list_saved(db, user_id=user.id)
    resources = resource_repo.to_schemas(db, [item.resource for item in saved], user.id)
    return [
        schemas.SavedResourceItem(id=item.id, saved_at=item.saved_at, resource=resource)
        for item, resource in zip(saved, resources)
    ]


@router.post("", response_model=schemas.SavedResourceItem, status_code=status.HTTP_201_CREATED)
def save_resource(
    payload: schemas.SaveResourceRequest,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    resource = resource_repo.get_resource(db, payload.resource_id)
    if not resource:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Resource not found")

    notifier = NotificationService(db)
    try:
        saved = saved_repo.save(db, resource_id=resource.id, user_id=user.id)
        if saved is None:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Resource already saved")
        notifier.notify_interaction(resource.user_id, user, EVENT_RESOURCE_SAVE, resource=resource)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Resource already saved")
    db.refresh(saved)
    notifier.flush_emails()
    return schemas.SavedResourceItem(
        id=saved.id,
        saved_at=saved.saved_at,
        resource=resource_repo.to_schema(db, resource, user.id),
    )


@router.delete("/{resource_id}", status_code=status.HTTP_204_NO_CONTENT)
def unsave_resource(
    resource_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    resource = resource_repo.get_resource(db, resource_id)
    if not resource or not saved_repo.unsave(db, resource_id=resource_id, user_id=user.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Saved resource not found")
    NotificationService(db).withdraw_interaction(
        resource.user_id, user.id, EVENT_RESOURCE_SAVE, resource_id=resource_id
    )
    db.commit()


@router.get("/stats", response_model=schemas.SavedResourceStats)
def saved_stats(db: Session = Depends(get_db), user_context=Depends(get_current_user_context)):
    user, _ctx = user_context
    return saved_repo.saved_stats(db, owner_id=user.id)
