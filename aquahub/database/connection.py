import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from aquahub.config import settings

logger = logging.getLogger(__name__)

_client: Optional[AsyncIOMotorClient] = None


async def connect_to_mongo() -> None:
    global _client
    if _client is not None:
        return
    _client = AsyncIOMotorClient(
        settings.MONGODB_URL,
        tz_aware=True,
        serverSelectionTimeoutMS=settings.MONGO_TIMEOUT_MS,
    )
    logger.info("Connected to MongoDB database %s", settings.MONGODB_DB)


async def close_mongo_connection() -> None:
    global _client
    if _client is None:
        return
    _client.close()
    _client = None
    logger.info("Closed MongoDB connection")


def get_database() -> AsyncIOMotorDatabase:
    if _client is None:
        raise RuntimeError("MongoDB client is not connected")
    return _client[settings.MONGODB_DB]


async def mongo_db_dependency() -> AsyncIOMotorDatabase:
    return get_database()
