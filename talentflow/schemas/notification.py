from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    message: str
    type: Optional[str] = "info"
    link: Optional[str] = None
    is_read: bool
    created_at: Optional[datetime] = None
