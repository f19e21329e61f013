from datetime import datetime
from typing import Literal, Optional, TypedDict


ThreadType = Literal["forum_post", "publication"]


class CommentDocument(TypedDict, total=False):
    _id: str
    thread_type: ThreadType
    thread_id: str
    author_id: str
    author_name: str
    author_avatar: str
    text: str
    # None for top-level comments
    parent_id: Optional[str]
    created_at: datetime
