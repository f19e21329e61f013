from typing import Any, Dict, List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from aquahub.models.message import MessageDocument
from aquahub.utils.object_ids import stringify_id
from aquahub.utils.timeutils import decode_cursor, encode_cursor, utcnow


class MessageRepository:
    """Append-only log of messages, each owned by one conversation."""

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db

    @property
    def collection(self):
        return self._db["messages"]

    async def ensure_indexes(self) -> None:
        await self.collection.create_index([("conversation_id", ASCENDING), ("created_at", ASCENDING), ("_id", ASCENDING)])

    async def append(
        self,
        conversation_id: str,
        sender_id: str,
        payload: Dict[str, Any],
        text: str,
        image_url: Optional[str] = None,
    ) -> MessageDocument:
        doc: MessageDocument = {
            "conversation_id": conversation_id,
            "sender_id": sender_id,
            "payload": payload,
            "text": text,
            "image_url": image_url,
            "created_at": utcnow(),
        }
        result = await self.collection.insert_one(doc)
        doc["_id"] = str(result.inserted_id)
        return doc

    async def count(self, conversation_id: str) -> int:
        return await self.collection.count_documents({"conversation_id": conversation_id})

    async def get_messages_by_conversation(
        self,
        conversation_id: str,
        limit: int = 50,
        cursor: Optional[str] = None,
    ) -> Tuple[List[Dict[str, Any]], Optional[str]]:
        """Newest page first from the store, returned oldest-to-newest.

        ``next_cursor`` points at the oldest message of the page and fetches
        the page before it.
        """
        query: Dict[str, Any] = {"conversation_id": conversation_id}
        sort = [("created_at", DESCENDING), ("_id", DESCENDING)]
        position = decode_cursor(cursor) if cursor else None
        if position:
            ts, oid = position
            query["$or"] = [
                {"created_at": {"$lt": ts}},
                {"created_at": ts, "_id": {"$lt": oid}},
            ]
        cur = self.collection.find(query).sort(sort).limit(limit)
        items = await cur.to_list(length=limit)
        for it in items:
            stringify_id(it)
        next_cursor = None
        if len(items) == limit:
            last = items[-1]
            next_cursor = encode_cursor(last["created_at"], last["_id"])
        # ascending chronological order regardless of insertion order
        return list(reversed(items)), next_cursor
