from datetime import datetime
from typing import List

from pydantic import BaseModel

from aquahub.models.notification import NotificationType


class NotificationOut(BaseModel):

    id: str
    user_id: str
    type: NotificationType
    title: str
    body: str
    link: str
    is_read: bool
    sender_id: str
    sender_name: str
    sender_avatar: str = ""
    created_at: datetime


class NotificationList(BaseModel):

    items: List[NotificationOut]
    unread: int
