import logging
from typing import Any, Dict, List, Optional

from aquahub.models.comment import ThreadType
from aquahub.repositories.comment_repository import CommentRepository
from aquahub.repositories.forum_repository import ForumRepository
from aquahub.repositories.publication_repository import PublicationRepository
from aquahub.services.notification_service import NotificationService
from aquahub.session import Session
from aquahub.utils.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def build_tree(comments: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Nest a flat, time-ordered comment list under its parents."""

    def children_of(parent_id: Optional[str]) -> List[Dict[str, Any]]:
        return [
            {**c, "replies": children_of(c["_id"])}
            for c in comments
            if c.get("parent_id") == parent_id
        ]

    return children_of(None)


class CommentService:

    def __init__(
        self,
        comment_repo: CommentRepository,
        forum_repo: ForumRepository,
        publication_repo: PublicationRepository,
        notification_service: NotificationService,
    ) -> None:
        self._comment_repo = comment_repo
        self._forum_repo = forum_repo
        self._publication_repo = publication_repo
        self._notifications = notification_service

    async def _get_thread(self, thread_type: ThreadType, thread_id: str) -> Dict[str, Any]:
        if thread_type == "forum_post":
            thread = await self._forum_repo.get(thread_id)
        else:
            thread = await self._publication_repo.get(thread_id)
        if thread is None:
            raise NotFoundError("Thread not found")
        return thread

    @staticmethod
    def _link(thread_type: ThreadType, thread_id: str) -> str:
        if thread_type == "forum_post":
            return f"/dashboard?postId={thread_id}"
        return f"/publications/{thread_id}"

    async def post_comment(
        self,
        session: Session,
        thread_type: ThreadType,
        thread_id: str,
        text: str,
        parent_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        if not text or not text.strip():
            raise ValidationError("Comment cannot be empty")
        thread = await self._get_thread(thread_type, thread_id)
        thread_id = thread["_id"]

        parent = None
        if parent_id is not None:
            parent = await self._comment_repo.get(parent_id)
            if parent is None or parent["thread_type"] != thread_type or parent["thread_id"] != thread_id:
                raise NotFoundError("Parent comment not found")

        comment = await self._comment_repo.create(
            thread_type, thread_id, session.snapshot(), text.strip(), parent["_id"] if parent else None
        )
        if thread_type == "forum_post":
            await self._forum_repo.increment_comments(thread_id)

        # a reply notifies the parent comment's author instead of the thread author
        if parent is not None:
            await self._notifications.try_notify(
                parent["author_id"],
                session,
                "new_reply",
                title=f"{session.name} replied to your comment",
                body=comment["text"],
                link=self._link(thread_type, thread_id),
            )
        else:
            await self._notifications.try_notify(
                thread.get("author_id"),
                session,
                "new_comment",
                title=f"{session.name} commented on your post",
                body=comment["text"],
                link=self._link(thread_type, thread_id),
            )
        return comment

    async def list_thread(self, thread_type: ThreadType, thread_id: str) -> List[Dict[str, Any]]:
        thread = await self._get_thread(thread_type, thread_id)
        comments = await self._comment_repo.list_thread(thread_type, thread["_id"])
        return build_tree(comments)
