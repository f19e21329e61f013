from typing import Any, Dict, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import DESCENDING, ReturnDocument

from aquahub.models.forum_post import ForumPostDocument, Poll
from aquahub.utils.object_ids import stringify_id, to_object_id
from aquahub.utils.timeutils import utcnow


class ForumRepository:

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db

    @property
    def collection(self):
        return self._db["forum_posts"]

    async def ensure_indexes(self) -> None:
        await self.collection.create_index([("created_at", DESCENDING)])

    async def create_post(self, author: Dict[str, str], content: str, poll: Optional[Poll]) -> ForumPostDocument:
        doc: ForumPostDocument = {
            "author_id": author["user_id"],
            "author_name": author["name"],
            "author_avatar": author.get("avatar_url", ""),
            "type": "poll" if poll else "standard",
            "content": content,
            "poll": poll,
            "poll_version": 0,
            "likes_count": 0,
            "liked_by": [],
            "comments_count": 0,
            "created_at": utcnow(),
        }
        result = await self.collection.insert_one(doc)
        doc["_id"] = str(result.inserted_id)
        return doc

    async def get(self, post_id) -> Optional[ForumPostDocument]:
        doc = await self.collection.find_one({"_id": to_object_id(post_id, "Post")})
        return stringify_id(doc)

    async def replace_poll_if_unchanged(self, post_id, expected_version: Optional[int], poll: Poll) -> bool:
        """Conditional write of the poll; False when another vote committed since ``expected_version`` was read."""
        # posts written before versioning have no poll_version yet
        version = expected_version if expected_version is not None else {"$exists": False}
        result = await self.collection.update_one(
            {"_id": to_object_id(post_id, "Post"), "poll_version": version},
            {"$set": {"poll": poll}, "$inc": {"poll_version": 1}},
        )
        return result.matched_count == 1

    async def add_like(self, post_id, user_id: str) -> Optional[Dict[str, Any]]:
        return await self.collection.find_one_and_update(
            {"_id": to_object_id(post_id, "Post"), "liked_by": {"$ne": user_id}},
            {"$addToSet": {"liked_by": user_id}, "$inc": {"likes_count": 1}},
            return_document=ReturnDocument.AFTER,
        )

    async def remove_like(self, post_id, user_id: str) -> Optional[Dict[str, Any]]:
        return await self.collection.find_one_and_update(
            {"_id": to_object_id(post_id, "Post"), "liked_by": user_id},
            {"$pull": {"liked_by": user_id}, "$inc": {"likes_count": -1}},
            return_document=ReturnDocument.AFTER,
        )

    async def increment_comments(self, post_id) -> None:
        await self.collection.update_one({"_id": to_object_id(post_id, "Post")}, {"$inc": {"comments_count": 1}})
