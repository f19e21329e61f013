import json
import logging
from typing import Any, Dict, List, Optional

from aquahub.models.notification import NotificationType
from aquahub.repositories.notification_repository import NotificationRepository
from aquahub.session import Session
from aquahub.utils.errors import NotFoundError
from aquahub.utils.realtime_bus import get_bus, notifications_topic, publish_event
from aquahub.utils.subscriptions import Subscription

logger = logging.getLogger(__name__)

BODY_LIMIT = 200


class NotificationService:

    def __init__(self, notification_repo: NotificationRepository) -> None:
        self._notification_repo = notification_repo

    async def notify(
        self,
        recipient_id: str,
        sender: Session,
        type: NotificationType,
        title: str,
        body: str,
        link: str,
    ) -> Optional[Dict[str, Any]]:
        """Record a notification for ``recipient_id``; nothing is created for your own actions."""
        if not recipient_id or recipient_id == sender.user_id:
            return None
        doc = await self._notification_repo.create(
            {
                "user_id": recipient_id,
                "type": type,
                "title": title,
                "body": (body or "")[:BODY_LIMIT],
                "link": link,
                "sender_id": sender.user_id,
                "sender_name": sender.name,
                "sender_avatar": sender.avatar_url,
            }
        )
        await publish_event(notifications_topic(recipient_id), json.dumps({"type": "notification", "id": doc["_id"]}))
        return doc

    async def try_notify(self, *args, **kwargs) -> Optional[Dict[str, Any]]:
        # derived write: the primary action already committed, so a failure here is only logged
        try:
            return await self.notify(*args, **kwargs)
        except Exception:
            logger.exception("Failed to create notification")
            return None

    async def list_for_user(self, session: Session, limit: int = 20, unread_only: bool = False) -> List[Dict[str, Any]]:
        return await self._notification_repo.list_for_user(session.user_id, limit=limit, unread_only=unread_only)

    async def unread_count(self, session: Session) -> int:
        return await self._notification_repo.unread_count(session.user_id)

    async def mark_read(self, session: Session, notification_id: str) -> Dict[str, Any]:
        doc = await self._notification_repo.mark_read(notification_id, session.user_id)
        if doc is None:
            raise NotFoundError("Notification not found")
        await publish_event(notifications_topic(session.user_id), json.dumps({"type": "read", "id": doc["_id"]}))
        return doc

    async def mark_all_read(self, session: Session) -> int:
        # notifications arriving after this read stay unread until the next call
        ids = await self._notification_repo.unread_ids(session.user_id)
        updated = await self._notification_repo.mark_many_read(ids)
        if updated:
            await publish_event(notifications_topic(session.user_id), json.dumps({"type": "read_all"}))
        return updated

    async def subscribe(self, session: Session, limit: int = 20) -> Subscription:
        async def fetch():
            items = await self._notification_repo.list_for_user(session.user_id, limit=limit)
            unread = await self._notification_repo.unread_count(session.user_id)
            return {"items": items, "unread": unread}

        return Subscription(await get_bus(), notifications_topic(session.user_id), fetch)
