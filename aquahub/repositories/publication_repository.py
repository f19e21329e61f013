from typing import Any, Dict, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from aquahub.utils.object_ids import stringify_id, to_object_id


class PublicationRepository:
    """Read-only access; publications are written by the content library screens."""

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db

    @property
    def collection(self):
        return self._db["publications"]

    async def get(self, publication_id) -> Optional[Dict[str, Any]]:
        doc = await self.collection.find_one(
            {"_id": to_object_id(publication_id, "Publication")},
            {"author_id": 1, "author_name": 1, "title": 1},
        )
        return stringify_id(doc)
