import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class SessionInfo(BaseModel):
    id: uuid.UUID
    token_id: str
    user_agent: Optional[str] = None
    status: str
    created_at: datetime
    last_used_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)
