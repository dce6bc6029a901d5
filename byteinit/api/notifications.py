"""
In-app notification endpoints: the caller's inbox, read state, deletion,
per-event delivery preferences and the superadmin expiry sweep.
"""
import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from byteinit.api.deps import get_current_user_context, require_superadmin
from byteinit.db import schemas
from byteinit.db.database import get_db
from byteinit.services.notification_service import ALL_EVENT_TYPES, NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=schemas.NotificationListResponse)
def list_notifications(
    unread_only: bool = False,
    limit: int = Query(default=50, ge=1, le=200),
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    """Newest first, at most ``limit``; ``unread_count`` covers the whole inbox."""
    user, _ctx = user_context
    service = NotificationService(db)
    items = service.get_user_notifications(user_id=user.id, unread_only=unread_only, limit=limit)
    return schemas.NotificationListResponse(
        notifications=items,
        unread_count=service.get_unread_count(user.id),
        total_count=len(items),
    )


@router.get("/stats", response_model=schemas.NotificationStatsResponse)
def notification_stats(db: Session = Depends(get_db), user_context=Depends(get_current_user_context)):
    user, _ctx = user_context
    return schemas.NotificationStatsResponse(**NotificationService(db).get_notification_stats(user.id))


@router.post("/{notification_id}/read", status_code=status.HTTP_204_NO_CONTENT)
def mark_one_read(
    notification_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    # Someone else's notification is reported as missing
    if not NotificationService(db).mark_notification_read(notification_id, user.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")


@router.patch("/read", response_model=schemas.NotificationBulkResult)
def mark_many_read(
    payload: schemas.MarkReadRequest,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    """Mark ``ids`` read, or the whole inbox when ``ids`` is omitted."""
    user, _ctx = user_context
    return schemas.NotificationBulkResult(updated=NotificationService(db).mark_notifications_read(user.id, payload.ids))


@router.delete("", response_model=schemas.NotificationBulkResult)
def delete_many(
    ids: List[uuid.UUID] = Query(default=[]),
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    user, _ctx = user_context
    if not ids:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No notification ids given")
    return schemas.NotificationBulkResult(updated=NotificationService(db).delete_notifications(user.id, ids))


@router.get("/preferences", response_model=schemas.NotificationPreferencesResponse)
def get_preferences(db: Session = Depends(get_db), user_context=Depends(get_current_user_context)):
    user, _ctx = user_context
    return schemas.NotificationPreferencesResponse(preferences=NotificationService(db).get_user_preferences(user.id))


@router.put("/preferences/{event_type}", response_model=schemas.UserNotificationPreference)
def update_preference(
    event_type: str,
    update: schemas.UserNotificationPreferenceUpdate,
    db: Session = Depends(get_db),
    user_context=Depends(get_current_user_context),
):
    """Change one event's channels; an omitted channel keeps its current setting."""
    user, _ctx = user_context
    if event_type not in ALL_EVENT_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown event type '{event_type}'; expected one of {', '.join(ALL_EVENT_TYPES)}",
        )

    service = NotificationService(db)
    merged = {**service.get_user_preferences(user.id)[event_type], **update.model_dump(exclude_none=True)}
    return service.set_user_preference(
        user_id=user.id,
        event_type=event_type,
        email_enabled=merged["email_enabled"],
        in_app_enabled=merged["in_app_enabled"],
    )


@router.delete("/cleanup/expired")
def purge_expired(db: Session = Depends(get_db), user_context=Depends(require_superadmin)):
    deleted = NotificationService(db).cleanup_expired_notifications()
    return {"message": f"Removed {deleted} expired notifications", "deleted": deleted}
