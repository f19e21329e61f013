from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, UpdateOne

from aquahub.models.notification import NotificationDocument
from aquahub.utils.object_ids import stringify_id, to_object_id
from aquahub.utils.timeutils import utcnow


class NotificationRepository:

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db

    @property
    def collection(self):
        return self._db["notifications"]

    async def ensure_indexes(self) -> None:
        await self.collection.create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
        await self.collection.create_index([("user_id", ASCENDING), ("is_read", ASCENDING)])

    async def create(self, doc: Dict[str, Any]) -> NotificationDocument:
        record: NotificationDocument = {**doc, "is_read": False, "created_at": utcnow()}
        result = await self.collection.insert_one(record)
        record["_id"] = str(result.inserted_id)
        return record

    async def list_for_user(self, user_id: str, limit: int = 20, unread_only: bool = False) -> List[Dict[str, Any]]:
        query: Dict[str, Any] = {"user_id": user_id}
        if unread_only:
            query["is_read"] = False
        cur = self.collection.find(query).sort([("created_at", DESCENDING), ("_id", DESCENDING)]).limit(limit)
        items = await cur.to_list(length=limit)
        for it in items:
            stringify_id(it)
        return items

    async def unread_count(self, user_id: str) -> int:
        return await self.collection.count_documents({"user_id": user_id, "is_read": False})

    async def mark_read(self, notification_id, user_id: str) -> Optional[Dict[str, Any]]:
        """Returns the notification, or None when it does not belong to ``user_id``."""
        oid = to_object_id(notification_id, "Notification")
        await self.collection.update_one({"_id": oid, "user_id": user_id}, {"$set": {"is_read": True}})
        return stringify_id(await self.collection.find_one({"_id": oid, "user_id": user_id}))

    async def unread_ids(self, user_id: str) -> List[Any]:
        cur = self.collection.find({"user_id": user_id, "is_read": False}, {"_id": 1})
        docs = await cur.to_list(length=None)
        return [d["_id"] for d in docs]

    async def mark_many_read(self, ids: List[Any]) -> int:
        if not ids:
            return 0
        result = await self.collection.bulk_write(
            [UpdateOne({"_id": oid}, {"$set": {"is_read": True}}) for oid in ids],
            ordered=False,
        )
        return result.modified_count or 0
