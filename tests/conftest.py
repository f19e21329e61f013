"""Shared test fixtures.

Sets environment variables BEFORE any app imports so that
``aquahub.config.settings`` resolves without a real .env file, MongoDB or Redis.
"""

import os

# --- Environment setup (must happen before app imports) -------------------
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("MONGODB_DB", "aquahub_test")
os.environ.pop("REDIS_URL", None)

# --- Now it's safe to import app modules ---------------------------------
from datetime import datetime, timedelta, timezone

import jwt
import pytest
from mongomock_motor import AsyncMongoMockClient
from starlette.testclient import TestClient

from aquahub.config import settings
from aquahub.database.connection import mongo_db_dependency
from aquahub.main import app
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
from aquahub.session import Session
from aquahub.utils import realtime_bus


class FakeClock:
    """Settable stand-in for ``utcnow``."""

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime(2024, 5, 22, 10, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


def make_token(user_id: str, name: str = "Test User", picture: str = "") -> str:
    claims = {
        "sub": user_id,
        "name": name,
        "picture": picture,
        "exp": datetime.now(timezone.utc) + timedelta(hours=1),
    }
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def auth_headers(user_id: str, name: str = "Test User") -> dict:
    return {"Authorization": f"Bearer {make_token(user_id, name)}"}


@pytest.fixture(autouse=True)
def local_bus():
    """Fresh in-process bus per test."""
    bus = realtime_bus.LocalBus()
    realtime_bus._bus = bus
    yield bus
    realtime_bus._bus = None


@pytest.fixture()
def db():
    return AsyncMongoMockClient()["aquahub_test"]


@pytest.fixture()
def alice() -> Session:
    return Session(user_id="alice", name="Alice Gómez", avatar_url="https://img/alice.png")


@pytest.fixture()
def bob() -> Session:
    return Session(user_id="bob", name="Bob Mendoza")


@pytest.fixture()
def carol() -> Session:
    return Session(user_id="carol", name="Carol Ruiz")


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def notification_repo(db):
    return NotificationRepository(db)


@pytest.fixture()
def notification_service(notification_repo):
    return NotificationService(notification_repo)


@pytest.fixture()
def conversation_repo(db):
    return ConversationRepository(db)


@pytest.fixture()
def message_repo(db):
    return MessageRepository(db)


@pytest.fixture()
def forum_repo(db):
    return ForumRepository(db)


@pytest.fixture()
def chat_service(message_repo, conversation_repo, notification_service):
    return ChatService(message_repo, conversation_repo, notification_service)


@pytest.fixture()
def poll_service(forum_repo, notification_service, clock):
    return PollService(forum_repo, notification_service, clock=clock)


@pytest.fixture()
def comment_service(db, forum_repo, notification_service):
    return CommentService(CommentRepository(db), forum_repo, PublicationRepository(db), notification_service)


@pytest.fixture()
def client(db):
    """FastAPI TestClient with ``mongo_db_dependency`` overridden to use the in-memory database."""

    async def _override_db():
        return db

    app.dependency_overrides[mongo_db_dependency] = _override_db
    yield TestClient(app)
    app.dependency_overrides.clear()
