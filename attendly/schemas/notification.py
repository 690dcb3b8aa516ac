from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Optional


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: str
    title: str
    message: str
    related_leave_id: Optional[int] = None
    is_read: bool
    created_at: Optional[datetime] = None


class UnreadCountResponse(BaseModel):
    unread: int
