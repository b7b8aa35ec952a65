"""Lambda handler deriving 300x300 JPEG thumbnails for uploaded images and videos.

Per object: received -> skipped (thumbnail key or not media) | downloaded ->
converted -> stored, or failed (logged). Thumbnailing is best-effort and no
failure is ever raised to the caller.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

import pydantic

from file_storage_api.config.settings import Settings, get_settings
from file_storage_api.errors import ConversionFailure
from file_storage_api.events.notifications import ObjectCreatedNotification, decode_object_key, raw_notifications
from file_storage_api.media.thumbnails import (
    THUMBNAIL_CONTENT_TYPE,
    MediaKind,
    thumbnail_key_for,
    render_image_thumbnail,
    render_video_thumbnail,
)
from file_storage_api.s3.read_objects import fetch_s3_object_bytes, head_s3_object
from file_storage_api.s3.write_objects import upload_s3_object
from file_storage_api.utils.log_setup import configure_logging

logger = logging.getLogger(__name__)


class ConversionOutcome(str, Enum):
    STORED = "stored"
    SKIPPED_DERIVED = "skipped_derived"
    SKIPPED_UNSUPPORTED = "skipped_unsupported"
    FAILED = "failed"


@dataclass(frozen=True)
class ConversionResult:
    key: Optional[str]
    outcome: ConversionOutcome
    thumbnail_key: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "outcome": self.outcome.value,
            "thumbnail_key": self.thumbnail_key,
            "error": self.error,
        }


def render_thumbnail(kind: MediaKind, data: bytes, key: str, settings: Settings) -> bytes:
    """Render the thumbnail for a supported media kind."""
    if kind is MediaKind.IMAGE:
        return render_image_thumbnail(data, size=settings.thumbnail_size, quality=settings.thumbnail_quality)
    if kind is MediaKind.VIDEO:
        return render_video_thumbnail(
            data,
            key=key,
            ffmpeg_path=settings.ffmpeg_path,
            size=settings.thumbnail_size,
            frame_offset=settings.video_frame_offset,
            scratch_dir=settings.scratch_dir,
            timeout_seconds=settings.ffmpeg_timeout_seconds,
        )
    raise ConversionFailure(key, f"no renderer for {kind.value} objects")


def convert_object(bucket: str, key: str, settings: Settings) -> ConversionResult:
    """
    Probe, download, render and store the thumbnail for one decoded key.

    Raises:
        ConversionFailure: any step after the prefix check failed
    """
    try:
        head = head_s3_object(bucket, key)
        content_type = head.get("ContentType", "")
        kind = MediaKind.from_content_type(content_type)
        if kind is MediaKind.UNSUPPORTED:
            logger.info(f"Skipping non-media: {key} ({content_type or 'no content type'})")
            return ConversionResult(key=key, outcome=ConversionOutcome.SKIPPED_UNSUPPORTED)

        data = fetch_s3_object_bytes(bucket, key)
        logger.info(f"Downloaded {key} ({len(data)} bytes, {kind.value})")
        thumbnail = render_thumbnail(kind, data, key, settings)

        thumbnail_key = thumbnail_key_for(key, settings.thumbnail_prefix)
        upload_s3_object(
            bucket_name=bucket,
            object_key=thumbnail_key,
            file_content=thumbnail,
            content_type=THUMBNAIL_CONTENT_TYPE,
        )
    except ConversionFailure:
        raise
    except Exception as e:
        raise ConversionFailure(key, str(e)) from e

    logger.info(f"Thumbnail created: {thumbnail_key}")
    return ConversionResult(key=key, outcome=ConversionOutcome.STORED, thumbnail_key=thumbnail_key)


def on_object_created(bucket: str, key: str, settings: Optional[Settings] = None) -> ConversionResult:
    """
    Derive and store a thumbnail for a newly created object, if it is an image or a video.

    Args:
        bucket: Bucket the object was written to
        key: Object key as received in the notification (URL-encoded)
        settings: Settings to use (defaults to the cached settings)

    Returns:
        ConversionResult: what happened to this object
    """
    return derive_thumbnail(bucket, decode_object_key(key), settings)


def derive_thumbnail(bucket: str, key: str, settings: Optional[Settings] = None) -> ConversionResult:
    """
    Thumbnail an already decoded key.

    Keys under the thumbnail prefix are skipped before any S3 call, so a
    stored thumbnail never triggers another conversion.
    """
    settings = settings or get_settings()

    if key.startswith(settings.thumbnail_prefix):
        logger.info(f"Skipping thumbnail: {key}")
        return ConversionResult(key=key, outcome=ConversionOutcome.SKIPPED_DERIVED)

    try:
        return convert_object(bucket, key, settings)
    except ConversionFailure as e:
        logger.error(f"Failed to process {key}: {e.reason}", exc_info=e.__cause__)
        return ConversionResult(key=key, outcome=ConversionOutcome.FAILED, error=e.reason)


def handle_event(event: Dict[str, Any], settings: Optional[Settings] = None) -> List[ConversionResult]:
    """Process every object of an EventBridge event or S3 notification independently."""
    results: List[ConversionResult] = []
    for raw in raw_notifications(event):
        try:
            notification = ObjectCreatedNotification.parse(raw)
        except ValueError as e:
            logger.error(f"Ignoring malformed object-created event: {e}")
            results.append(ConversionResult(key=None, outcome=ConversionOutcome.FAILED, error=str(e)))
            continue
        results.append(derive_thumbnail(notification.bucket, notification.key, settings))
    return results


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Entry point for the media converter Lambda.

    Always returns normally; per-object outcomes are in the summary.
    """
    try:
        settings = get_settings()
    except pydantic.ValidationError as e:
        configure_logging()
        logger.error(f"Invalid configuration, failing every object: {e}")
        results = [
            ConversionResult(key=None, outcome=ConversionOutcome.FAILED, error="invalid configuration")
            for _ in raw_notifications(event)
        ]
    else:
        configure_logging(settings.log_level)
        results = handle_event(event, settings)
    return {
        "processed": len(results),
        "results": [result.to_dict() for result in results],
    }
