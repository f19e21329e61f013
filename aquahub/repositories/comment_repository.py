from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING

from aquahub.models.comment import CommentDocument, ThreadType
from aquahub.utils.object_ids import stringify_id, to_object_id
from aquahub.utils.timeutils import utcnow


class CommentRepository:

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db

    @property
    def collection(self):
        return self._db["comments"]

    async def ensure_indexes(self) -> None:
        await self.collection.create_index([("thread_type", ASCENDING), ("thread_id", ASCENDING), ("created_at", ASCENDING)])

    async def create(
        self,
        thread_type: ThreadType,
        thread_id: str,
        author: Dict[str, str],
        text: str,
        parent_id: Optional[str] = None,
    ) -> CommentDocument:
        doc: CommentDocument = {
            "thread_type": thread_type,
            "thread_id": thread_id,
            "author_id": author["user_id"],
            "author_name": author["name"],
            "author_avatar": author.get("avatar_url", ""),
            "text": text,
            "parent_id": parent_id,
            "created_at": utcnow(),
        }
        result = await self.collection.insert_one(doc)
        doc["_id"] = str(result.inserted_id)
        return doc

    async def get(self, comment_id) -> Optional[Dict[str, Any]]:
        doc = await self.collection.find_one({"_id": to_object_id(comment_id, "Comment")})
        return stringify_id(doc)

    async def list_thread(self, thread_type: str, thread_id: str) -> List[Dict[str, Any]]:
        cur = self.collection.find({"thread_type": thread_type, "thread_id": thread_id}).sort(
            [("created_at", ASCENDING), ("_id", ASCENDING)]
        )
        items = await cur.to_list(length=None)
        for it in items:
            stringify_id(it)
        return items
