from datetime import datetime
from typing import Dict, List, Literal, Optional, TypedDict


class PollOption(TypedDict):
    text: str
    votes: int


class Poll(TypedDict):
    options: List[PollOption]
    # user_id -> option index
    voters: Dict[str, int]
    total_votes: int
    ends_at: datetime


class ForumPostDocument(TypedDict, total=False):
    _id: str
    author_id: str
    author_name: str
    author_avatar: str
    type: Literal["standard", "poll"]
    content: str
    poll: Optional[Poll]
    # bumped on every committed vote
    poll_version: int
    likes_count: int
    liked_by: List[str]
    comments_count: int
    created_at: datetime
