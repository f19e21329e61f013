from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class PollCreate(BaseModel):

    options: List[str]
    duration_hours: int = Field(default=24, ge=1, le=24 * 30)


class PostCreate(BaseModel):

    content: str = ""
    poll: Optional[PollCreate] = None


class VoteRequest(BaseModel):

    option_index: int


class PollOptionOut(BaseModel):

    text: str
    votes: int


class PollOut(BaseModel):

    options: List[PollOptionOut]
    voters: Dict[str, int]
    total_votes: int
    ends_at: datetime
    is_closed: bool = False


class PostOut(BaseModel):

    id: str
    author_id: str
    author_name: str
    author_avatar: str = ""
    type: Literal["standard", "poll"]
    content: str
    poll: Optional[PollOut] = None
    likes_count: int
    liked_by: List[str]
    comments_count: int
    created_at: datetime


class LikeOut(BaseModel):

    liked: bool
    likes_count: int


class CommentCreate(BaseModel):

    text: str = Field(min_length=1)
    parent_id: Optional[str] = None


class CommentOut(BaseModel):

    id: str
    thread_type: Literal["forum_post", "publication"]
    thread_id: str
    author_id: str
    author_name: str
    author_avatar: str = ""
    text: str
    parent_id: Optional[str] = None
    created_at: datetime
    replies: List["CommentOut"] = []
