import copy
import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from aquahub.config import settings
from aquahub.repositories.forum_repository import ForumRepository
from aquahub.services.notification_service import NotificationService
from aquahub.session import Session
from aquahub.utils.errors import (
    InvalidVoteError,
    NotFoundError,
    PollEndedError,
    TransactionConflictError,
    ValidationError,
)
from aquahub.utils.timeutils import as_utc, utcnow

logger = logging.getLogger(__name__)

MIN_OPTIONS = 2
MAX_OPTIONS = 4


def is_closed(poll: Dict[str, Any], now: datetime) -> bool:
    """A poll is open strictly before ``ends_at`` and read-only from then on."""
    return now >= as_utc(poll["ends_at"])


def new_poll(options: List[str], duration_hours: int, now: datetime) -> Dict[str, Any]:
    texts = [o.strip() for o in options if o and o.strip()]
    if len(texts) < MIN_OPTIONS:
        raise ValidationError(f"A poll needs at least {MIN_OPTIONS} options")
    if len(texts) > MAX_OPTIONS:
        raise ValidationError(f"A poll allows at most {MAX_OPTIONS} options")
    if duration_hours < 1:
        raise ValidationError("Poll duration must be at least one hour")
    return {
        "options": [{"text": t, "votes": 0} for t in texts],
        "voters": {},
        "total_votes": 0,
        "ends_at": now + timedelta(hours=duration_hours),
    }


def apply_vote(poll: Dict[str, Any], user_id: str, option_index: int, now: datetime) -> Optional[Dict[str, Any]]:
    """Poll after ``user_id`` picks ``option_index``, or None when nothing changes.

    Raises PollEndedError once the poll has closed and InvalidVoteError for an
    option that does not exist. ``poll`` itself is left untouched.
    """
    if is_closed(poll, now):
        raise PollEndedError()
    options = poll.get("options") or []
    if not 0 <= option_index < len(options):
        raise InvalidVoteError(f"Option {option_index} does not exist")

    previous = poll.get("voters", {}).get(user_id)
    if previous == option_index:
        return None

    updated = copy.deepcopy(poll)
    if previous is not None:
        updated["options"][previous]["votes"] -= 1
    else:
        updated["total_votes"] = updated.get("total_votes", 0) + 1
    updated["options"][option_index]["votes"] += 1
    updated.setdefault("voters", {})[user_id] = option_index
    return updated


class PollService:

    def __init__(
        self,
        forum_repo: ForumRepository,
        notification_service: NotificationService,
        clock: Callable[[], datetime] = utcnow,
        max_attempts: Optional[int] = None,
    ) -> None:
        self._forum_repo = forum_repo
        self._notifications = notification_service
        self._clock = clock
        self._max_attempts = max_attempts or settings.POLL_MAX_ATTEMPTS

    async def create_post(
        self,
        session: Session,
        content: str,
        poll_options: Optional[List[str]] = None,
        duration_hours: int = 24,
    ) -> Dict[str, Any]:
        poll = None
        if poll_options is not None:
            poll = new_poll(poll_options, duration_hours, self._clock())
        elif not content.strip():
            raise ValidationError("Post content cannot be empty")
        return await self._forum_repo.create_post(session.snapshot(), content.strip(), poll)

    async def get_post(self, post_id: str) -> Dict[str, Any]:
        post = await self._forum_repo.get(post_id)
        if post is None:
            raise NotFoundError("Post not found")
        return post

    async def cast_vote(self, session: Session, post_id: str, option_index: int) -> Dict[str, Any]:
        """Record the caller's vote and return the committed poll.

        Each attempt reads the post, applies the vote and writes it back only
        if no other vote committed in between; otherwise it starts over.
        """
        for attempt in range(1, self._max_attempts + 1):
            post = await self._forum_repo.get(post_id)
            if post is None or not post.get("poll"):
                raise NotFoundError("Poll not found")
            poll = post["poll"]
            updated = apply_vote(poll, session.user_id, option_index, self._clock())
            if updated is None:
                return poll
            if await self._forum_repo.replace_poll_if_unchanged(post["_id"], post.get("poll_version"), updated):
                logger.info("Vote on post %s by %s for option %d", post["_id"], session.user_id, option_index)
                return updated
            logger.info("Vote on post %s conflicted (attempt %d), retrying", post["_id"], attempt)
        raise TransactionConflictError("Too many concurrent votes, try again")

    async def toggle_like(self, session: Session, post_id: str) -> Dict[str, Any]:
        post = await self._forum_repo.add_like(post_id, session.user_id)
        if post is not None:
            await self._notifications.try_notify(
                post["author_id"],
                session,
                "publication_like",
                title=f"{session.name} liked your post",
                body=post.get("content", ""),
                link=f"/dashboard?postId={post['_id']}",
            )
            return {"liked": True, "likes_count": post["likes_count"]}
        post = await self._forum_repo.remove_like(post_id, session.user_id)
        if post is None:
            raise NotFoundError("Post not found")
        return {"liked": False, "likes_count": post["likes_count"]}
