from typing import Any, Dict, List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import DuplicateKeyError

from aquahub.models.conversation import ConversationDocument, ParticipantSnapshot
from aquahub.services.participants import participant_key
from aquahub.utils.object_ids import stringify_id, to_object_id
from aquahub.utils.timeutils import decode_cursor, encode_cursor, utcnow


class ConversationRepository:

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db

    @property
    def collection(self):
        return self._db["conversations"]

    async def ensure_indexes(self) -> None:
        await self.collection.create_index([("participant_key", ASCENDING)], unique=True)
        await self.collection.create_index([("participant_ids", ASCENDING), ("last_updated_at", DESCENDING)])

    async def get(self, conversation_id) -> Optional[ConversationDocument]:
        doc = await self.collection.find_one({"_id": to_object_id(conversation_id, "Conversation")})
        return stringify_id(doc)

    async def find_by_participants(self, participant_ids: List[str]) -> Optional[ConversationDocument]:
        doc = await self.collection.find_one({"participant_ids": participant_ids})
        return stringify_id(doc)

    async def find_or_create(self, participant_ids: List[str], participants: List[ParticipantSnapshot]) -> Tuple[ConversationDocument, bool]:
        """Return ``(conversation, created)`` for an already sorted participant pair."""
        existing = await self.find_by_participants(participant_ids)
        if existing:
            return existing, False
        doc: ConversationDocument = {
            "participant_ids": participant_ids,
            "participant_key": participant_key(participant_ids),
            "participants": participants,
            "last_message": None,
            "last_updated_at": utcnow(),
            "unread_counts": {pid: 0 for pid in participant_ids},
        }
        try:
            result = await self.collection.insert_one(doc)
        except DuplicateKeyError:
            # lost a first-contact race; the other insert wins
            winner = await self.find_by_participants(participant_ids)
            if winner is None:
                raise
            return winner, False
        doc["_id"] = str(result.inserted_id)
        return doc, True

    async def update_on_new_message(self, conversation_id, preview: str, sender_id: str, receiver_id: str) -> None:
        now = utcnow()
        await self.collection.update_one(
            {"_id": to_object_id(conversation_id, "Conversation")},
            {
                "$set": {
                    "last_message": {"text": preview, "sender_id": sender_id, "timestamp": now},
                    "last_updated_at": now,
                },
                "$inc": {f"unread_counts.{receiver_id}": 1},
            },
        )

    async def reset_unread(self, conversation_id, user_id: str) -> None:
        await self.collection.update_one(
            {"_id": to_object_id(conversation_id, "Conversation")},
            {"$set": {f"unread_counts.{user_id}": 0}},
        )

    async def list_for_user(self, user_id: str, limit: int = 20, cursor: Optional[str] = None) -> Tuple[List[Dict[str, Any]], Optional[str]]:
        query: Dict[str, Any] = {"participant_ids": user_id}
        sort = [("last_updated_at", DESCENDING), ("_id", DESCENDING)]
        position = decode_cursor(cursor) if cursor else None
        if position:
            ts, oid = position
            query["$or"] = [
                {"last_updated_at": {"$lt": ts}},
                {"last_updated_at": ts, "_id": {"$lt": oid}},
            ]

        cursor_db = self.collection.find(query).sort(sort).limit(limit)
        items = await cursor_db.to_list(length=limit)
        for it in items:
            stringify_id(it)
        next_cursor = None
        if len(items) == limit:
            last = items[-1]
            next_cursor = encode_cursor(last["last_updated_at"], last["_id"])
        return items, next_cursor

    async def total_unread(self, user_id: str) -> int:
        pipeline = [
            {"$match": {"participant_ids": user_id}},
            {"$group": {"_id": None, "total": {"$sum": f"$unread_counts.{user_id}"}}},
        ]
        rows = await self.collection.aggregate(pipeline).to_list(length=1)
        return int(rows[0]["total"]) if rows else 0
