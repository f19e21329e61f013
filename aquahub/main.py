import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from aquahub.database.connection import close_mongo_connection, connect_to_mongo, get_database
from aquahub.repositories.comment_repository import CommentRepository
from aquahub.repositories.conversation_repository import ConversationRepository
from aquahub.repositories.forum_repository import ForumRepository
from aquahub.repositories.message_repository import MessageRepository
from aquahub.repositories.notification_repository import NotificationRepository
from aquahub.routers.chat import router as chat_router
from aquahub.routers.comments import router as comments_router
from aquahub.routers.conversations import router as conversations_router
from aquahub.routers.forum import router as forum_router
from aquahub.routers.notifications import router as notifications_router
from aquahub.routers.session import router as session_router
from aquahub.utils.errors import AquaHubError
from aquahub.utils.logging_config import setup_logging
from aquahub.utils.middleware import logging_middleware
from aquahub.utils.realtime_bus import close_bus

logger = logging.getLogger(__name__)


async def ensure_indexes(db) -> None:
    for repo in (
        ConversationRepository(db),
        MessageRepository(db),
        NotificationRepository(db),
        ForumRepository(db),
        CommentRepository(db),
    ):
        await repo.ensure_indexes()


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    await connect_to_mongo()
    await ensure_indexes(get_database())
    try:
        yield
    finally:
        await close_bus()
        await close_mongo_connection()


app = FastAPI(title="AquaHub API", lifespan=lifespan)
app.middleware("http")(logging_middleware)


@app.exception_handler(AquaHubError)
async def aquahub_error_handler(request: Request, exc: AquaHubError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(PyMongoError)
async def storage_error_handler(request: Request, exc: PyMongoError):
    logger.error("Storage error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": "storage unavailable"})


app.include_router(conversations_router)
app.include_router(chat_router)
app.include_router(notifications_router)
app.include_router(forum_router)
app.include_router(comments_router)
app.include_router(session_router)


@app.get("/health")
async def health():
    return {"status": "ok"}
