from bson import ObjectId
from bson.errors import InvalidId

from aquahub.utils.errors import NotFoundError


def to_object_id(value, what: str = "Document") -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise NotFoundError(f"{what} not found")


def stringify_id(doc):
    if doc is not None:
        doc["_id"] = str(doc.get("_id"))
    return doc
