import uuid
from datetime import datetime
from typing import Optional, Dict, Any, List
from pydantic import BaseModel, ConfigDict, Field

from .users import UserSummary


class UserNotificationPreferenceUpdate(BaseModel):
    email_enabled: Optional[bool] = None
    in_app_enabled: Optional[bool] = None


class UserNotificationPreference(BaseModel):
    event_type: str
    email_enabled: bool
    in_app_enabled: bool
    model_config = ConfigDict(from_attributes=True)


class Notification(BaseModel):
    id: uuid.UUID
    event_type: str
    title: str
    message: str
    action_url: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = Field(default=None, validation_alias="metadata_json")
    actor: Optional[UserSummary] = None
    blog_id: Optional[uuid.UUID] = None
    resource_id: Optional[uuid.UUID] = None
    comment_id: Optional[uuid.UUID] = None
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: datetime
    expires_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class NotificationListResponse(BaseModel):
    notifications: List[Notification]
    unread_count: int
    total_count: int


class MarkReadRequest(BaseModel):
    ids: Optional[List[uuid.UUID]] = None


class NotificationBulkResult(BaseModel):
    updated: int


class NotificationPreferencesResponse(BaseModel):
    preferences: Dict[str, Dict[str, bool]]


class NotificationStatsResponse(BaseModel):
    total: int
    unread: int
    by_event_type: Dict[str, int]
