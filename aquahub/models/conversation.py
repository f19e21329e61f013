from datetime import datetime
from typing import List, Optional, TypedDict


class ParticipantSnapshot(TypedDict):
    user_id: str
    name: str
    avatar_url: str


class LastMessage(TypedDict):
    text: str
    sender_id: str
    timestamp: datetime


class ConversationDocument(TypedDict, total=False):
    _id: str
    # sorted pair; participant_key is the same pair joined with ":"
    participant_ids: List[str]
    participant_key: str
    # display snapshot taken at creation, never refreshed
    participants: List[ParticipantSnapshot]
    last_message: Optional[LastMessage]
    last_updated_at: datetime
    # per-user unread counters (user_id -> count)
    unread_counts: dict[str, int]
