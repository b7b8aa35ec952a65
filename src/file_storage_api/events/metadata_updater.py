"""Lambda handler finalizing upload metadata when S3 confirms an object write."""

import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

import pydantic

from file_storage_api.config.settings import get_settings
from file_storage_api.db_layer import FileRecordService, get_file_record_service
from file_storage_api.errors import PreconditionFailedError
from file_storage_api.events.notifications import ObjectCreatedNotification, raw_notifications
from file_storage_api.schemas import DEFAULT_CONTENT_TYPE
from file_storage_api.utils.log_setup import configure_logging
from file_storage_api.utils.timestamps import utc_now_iso

logger = logging.getLogger(__name__)


class UpdateOutcome(str, Enum):
    COMPLETED = "completed"
    NOT_TRACKED = "not_tracked"
    FAILED = "failed"


@dataclass(frozen=True)
class UpdateResult:
    key: Optional[str]
    outcome: UpdateOutcome
    error: Optional[str] = None


def resolve_content_type(declared_content_type: Optional[str]) -> str:
    """The declared content type if present and non-blank, else a generic binary type."""
    if declared_content_type and declared_content_type.strip():
        return declared_content_type.strip()
    return DEFAULT_CONTENT_TYPE


def on_object_written(
    bucket: str,
    key: str,
    size: Optional[int],
    declared_content_type: Optional[str] = None,
    records: Optional[FileRecordService] = None,
) -> UpdateResult:
    """
    Mark the record for `key` completed.

    The object key is the fileId. Objects without a record (thumbnails,
    anything written out of band) fail the conditional update; that is
    reported as NOT_TRACKED and never creates a record.

    Args:
        bucket: Bucket the object was written to
        key: Decoded object key
        size: Object size in bytes from the notification
        declared_content_type: Content type carried by the notification, if any
        records: FileRecordService to use (defaults to the configured table)

    Returns:
        UpdateResult: what happened to this notification
    """
    try:
        if size is None:
            raise ValueError("notification carries no object size")
        records = records or get_file_record_service()
        records.mark_completed(
            file_id=key,
            file_size=size,
            content_type=resolve_content_type(declared_content_type),
            uploaded_at=utc_now_iso(),
        )
    except PreconditionFailedError as e:
        logger.warning(f"Skipping s3://{bucket}/{key}: {e.message}")
        return UpdateResult(key=key, outcome=UpdateOutcome.NOT_TRACKED, error=e.message)
    except Exception as e:
        logger.exception(f"Failed to update metadata for s3://{bucket}/{key}")
        return UpdateResult(key=key, outcome=UpdateOutcome.FAILED, error=str(e))

    logger.info(f"Updated metadata for file: {key}")
    return UpdateResult(key=key, outcome=UpdateOutcome.COMPLETED)


def handle_event(event: Dict[str, Any], records: Optional[FileRecordService] = None) -> List[UpdateResult]:
    """Process every record of an S3 event independently."""
    results: List[UpdateResult] = []
    for raw in raw_notifications(event):
        try:
            notification = ObjectCreatedNotification.parse(raw)
        except ValueError as e:
            logger.error(f"Ignoring malformed S3 record: {e}")
            results.append(UpdateResult(key=None, outcome=UpdateOutcome.FAILED, error=str(e)))
            continue
        results.append(
            on_object_written(
                bucket=notification.bucket,
                key=notification.key,
                size=notification.size,
                declared_content_type=notification.content_type,
                records=records,
            )
        )
    return results


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Entry point for the metadata updater Lambda.

    Always returns normally; per-record outcomes are in the summary.
    """
    try:
        configure_logging(get_settings().log_level)
    except pydantic.ValidationError as e:
        configure_logging()
        logger.error(f"Invalid configuration, failing every record: {e}")
        results = [
            UpdateResult(key=None, outcome=UpdateOutcome.FAILED, error="invalid configuration")
            for _ in raw_notifications(event)
        ]
    else:
        results = handle_event(event)
    summary = {
        "processed": len(results),
        "results": [{**asdict(result), "outcome": result.outcome.value} for result in results],
    }
    logger.info(f"Processed {len(results)} S3 record(s)")
    return summary
