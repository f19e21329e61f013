import json
import logging
from typing import Any, Dict, List, Optional, Tuple

from aquahub.repositories.conversation_repository import ConversationRepository
from aquahub.repositories.message_repository import MessageRepository
from aquahub.schemas.chat import ImagePayload, MessagePayload
from aquahub.services.notification_service import NotificationService
from aquahub.services.participants import canonical_participants, other_participant
from aquahub.session import Session
from aquahub.utils.errors import NotFoundError
from aquahub.utils.realtime_bus import conversations_topic, get_bus, messages_topic, publish_event
from aquahub.utils.subscriptions import Subscription

logger = logging.getLogger(__name__)


class ChatService:

    def __init__(
        self,
        message_repo: MessageRepository,
        conversation_repo: ConversationRepository,
        notification_service: NotificationService,
    ) -> None:
        self._message_repo = message_repo
        self._conversation_repo = conversation_repo
        self._notifications = notification_service

    async def find_or_create(
        self,
        session: Session,
        recipient_id: str,
        recipient_name: str = "",
        recipient_avatar: str = "",
    ) -> Tuple[Dict[str, Any], bool]:
        participant_ids = canonical_participants(session.user_id, recipient_id)
        snapshots = [
            session.snapshot(),
            {"user_id": recipient_id, "name": recipient_name or "User", "avatar_url": recipient_avatar},
        ]
        convo, created = await self._conversation_repo.find_or_create(participant_ids, snapshots)
        if created:
            logger.info("Created conversation %s between %s", convo["_id"], participant_ids)
            for pid in participant_ids:
                await publish_event(conversations_topic(pid), json.dumps({"type": "created", "id": convo["_id"]}))
        return convo, created

    async def get_for_participant(self, session: Session, conversation_id: str) -> Dict[str, Any]:
        convo = await self._conversation_repo.get(conversation_id)
        if convo is None:
            raise NotFoundError("Conversation not found")
        # raises NotParticipantError for outsiders
        other_participant(convo["participant_ids"], session.user_id)
        return convo

    async def send_message(self, session: Session, conversation_id: str, payload: MessagePayload) -> Dict[str, Any]:
        convo = await self.get_for_participant(session, conversation_id)
        recipient_id = other_participant(convo["participant_ids"], session.user_id)

        image_url = payload.image_url if isinstance(payload, ImagePayload) else None
        saved = await self._message_repo.append(
            conversation_id=convo["_id"],
            sender_id=session.user_id,
            payload=payload.model_dump(),
            text=payload.body(),
            image_url=image_url,
        )
        # separate write from the append above; a failure here leaves the message without its counter bump
        preview = payload.preview()
        await self._conversation_repo.update_on_new_message(convo["_id"], preview, session.user_id, recipient_id)

        event = json.dumps({"type": "message", "conversation_id": convo["_id"], "message_id": saved["_id"]})
        await publish_event(messages_topic(convo["_id"]), event)
        for pid in convo["participant_ids"]:
            await publish_event(conversations_topic(pid), event)

        await self._notifications.try_notify(
            recipient_id,
            session,
            "new_message",
            title=f"New message from {session.name}",
            body=preview,
            link="/messages",
        )
        return saved

    async def send_first_contact(
        self,
        session: Session,
        recipient_id: str,
        payload: MessagePayload,
        recipient_name: str = "",
        recipient_avatar: str = "",
    ) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        convo, _ = await self.find_or_create(session, recipient_id, recipient_name, recipient_avatar)
        message = await self.send_message(session, convo["_id"], payload)
        return convo, message

    async def mark_read(self, session: Session, conversation_id: str) -> None:
        convo = await self.get_for_participant(session, conversation_id)
        await self._conversation_repo.reset_unread(convo["_id"], session.user_id)
        await publish_event(conversations_topic(session.user_id), json.dumps({"type": "read", "id": convo["_id"]}))

    async def get_history(self, session: Session, conversation_id: str, limit: int = 50, cursor: Optional[str] = None):
        convo = await self.get_for_participant(session, conversation_id)
        return await self._message_repo.get_messages_by_conversation(convo["_id"], limit=limit, cursor=cursor)

    async def list_conversations(self, session: Session, limit: int = 20, cursor: Optional[str] = None) -> Tuple[List[Dict[str, Any]], Optional[str]]:
        return await self._conversation_repo.list_for_user(session.user_id, limit=limit, cursor=cursor)

    async def total_unread(self, session: Session) -> int:
        return await self._conversation_repo.total_unread(session.user_id)

    async def subscribe_conversations(self, session: Session, limit: int = 20) -> Subscription:
        async def fetch():
            items, _ = await self._conversation_repo.list_for_user(session.user_id, limit=limit)
            return items

        return Subscription(await get_bus(), conversations_topic(session.user_id), fetch)

    async def subscribe_messages(self, session: Session, conversation_id: str, limit: int = 50) -> Subscription:
        convo = await self.get_for_participant(session, conversation_id)

        async def fetch():
            items, _ = await self._message_repo.get_messages_by_conversation(convo["_id"], limit=limit)
            return items

        return Subscription(await get_bus(), messages_topic(convo["_id"]), fetch)
