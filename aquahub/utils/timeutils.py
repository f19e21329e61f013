from datetime import datetime, timezone
from typing import Optional, Tuple

from bson import ObjectId
from bson.errors import InvalidId


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # drivers without tz_aware hand back naive UTC datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def encode_cursor(ts: datetime, oid) -> str:
    return f"{int(as_utc(ts).timestamp() * 1000)}:{oid}"


def decode_cursor(cursor: str) -> Optional[Tuple[datetime, ObjectId]]:
    # Cursor format: timestamp_ms:object_id_hex
    try:
        ts_str, oid_hex = cursor.split(":", 1)
        ts = datetime.fromtimestamp(int(ts_str) / 1000.0, tz=timezone.utc)
        return ts, ObjectId(oid_hex)
    except (ValueError, InvalidId):
        return None
