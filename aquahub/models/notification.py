from datetime import datetime
from typing import Literal, TypedDict


NotificationType = Literal["new_message", "new_comment", "new_reply", "publication_like"]


class NotificationDocument(TypedDict, total=False):
    _id: str
    # recipient
    user_id: str
    type: NotificationType
    title: str
    body: str
    link: str
    is_read: bool
    sender_id: str
    sender_name: str
    sender_avatar: str
    created_at: datetime
