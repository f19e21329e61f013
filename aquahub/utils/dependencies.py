from fastapi import Depends

from aquahub.database.connection import mongo_db_dependency
from aquahub.repositories.comment_repository import CommentRepository
from aquahub.repositories.conversation_repository import ConversationRepository
from aquahub.repositories.forum_repository import ForumRepository
from aquahub.repositories.message_repository import MessageRepository
from aquahub.repositories.notification_repository import NotificationRepository
from aquahub.repositories.publication_repository import PublicationRepository
from aquahub.services.chat_service import ChatService
from aquahub.services.comment_service import CommentService
from aquahub.services.notification_service import NotificationService
from aquahub.services.poll_service import PollService


def get_notification_service(db = Depends(mongo_db_dependency)) -> NotificationService:
    return NotificationService(NotificationRepository(db))


def get_chat_service(db = Depends(mongo_db_dependency), notifications: NotificationService = Depends(get_notification_service)) -> ChatService:
    return ChatService(MessageRepository(db), ConversationRepository(db), notifications)


def get_poll_service(db = Depends(mongo_db_dependency), notifications: NotificationService = Depends(get_notification_service)) -> PollService:
    return PollService(ForumRepository(db), notifications)


def get_comment_service(db = Depends(mongo_db_dependency), notifications: NotificationService = Depends(get_notification_service)) -> CommentService:
    return CommentService(CommentRepository(db), ForumRepository(db), PublicationRepository(db), notifications)


def to_out(doc):
    """Expose ``_id`` as ``id`` for response models."""
    out = {k: v for k, v in doc.items() if k != "_id"}
    out["id"] = str(doc["_id"])
    return out
