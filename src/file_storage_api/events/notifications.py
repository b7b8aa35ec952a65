"""Parsing of S3 object-created notifications.

Two shapes are accepted:

* S3 event notifications: ``{"Records": [{"s3": {"bucket": {...}, "object": {...}}}]}``
* EventBridge "Object Created" events: ``{"detail": {"bucket": {...}, "object": {...}}}``
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib.parse import unquote_plus


def decode_object_key(raw_key: str) -> str:
    """S3 URL-encodes keys in notifications, with spaces as '+'."""
    return unquote_plus(raw_key)


def raw_notifications(event: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Split an incoming event into one raw entry per object."""
    if isinstance(event, dict) and "Records" in event:
        records = event["Records"] or []
        return list(records) if isinstance(records, list) else [records]
    return [event]


@dataclass(frozen=True)
class ObjectCreatedNotification:
    """One object written to the bucket."""
    bucket: str
    key: str
    size: Optional[int] = None
    content_type: Optional[str] = None

    @classmethod
    def parse(cls, raw: Dict[str, Any]) -> "ObjectCreatedNotification":
        """
        Build a notification from a single S3 record or EventBridge event.

        Raises:
            ValueError: the entry is not a mapping, has neither shape or lacks bucket/key
        """
        if not isinstance(raw, dict):
            raise ValueError(f"Not an object-created notification: {type(raw).__name__}")
        if "s3" in raw:
            body = raw["s3"]
        elif "detail" in raw:
            body = raw["detail"]
        else:
            raise ValueError(f"Not an object-created notification: keys={sorted(raw)}")

        try:
            bucket = body["bucket"]["name"]
            obj = body["object"]
            raw_key = obj["key"]
        except (KeyError, TypeError) as e:
            raise ValueError(f"Notification is missing bucket/object fields: {e}") from e

        size = obj.get("size")
        content_type = obj.get("contentType")
        return cls(
            bucket=bucket,
            key=decode_object_key(raw_key),
            size=int(size) if size is not None else None,
            content_type=content_type if isinstance(content_type, str) else None,
        )
