from datetime import datetime
from typing import Any, Dict, Optional, TypedDict


class MessageDocument(TypedDict, total=False):
    _id: str
    conversation_id: str
    sender_id: str
    # tagged payload, see aquahub.schemas.chat.MessagePayload
    payload: Dict[str, Any]
    text: str
    image_url: Optional[str]
    created_at: datetime
