"""
Upload/API operations.

Creates pending records and presigned URLs; the client uploads straight to S3
and the S3 event handlers take it from there.
"""

import logging
import uuid
from contextlib import contextmanager
from typing import Iterator, Optional
from urllib.parse import quote

from botocore.exceptions import BotoCoreError, ClientError

from file_storage_api.config.settings import Settings, get_settings
from file_storage_api.db_layer import FileRecordService, get_file_record_service
from file_storage_api.errors import InternalError, NotFoundError, ValidationError
from file_storage_api.media.thumbnails import thumbnail_key_for
from file_storage_api.s3.delete_objects import delete_s3_object
from file_storage_api.s3.presigned_urls import (
    generate_presigned_download_url,
    generate_presigned_upload_url,
)
from file_storage_api.s3.read_objects import object_exists_in_s3
from file_storage_api.schemas import (
    DeleteFileResponse,
    DownloadUrlResponse,
    ListFilesResponse,
    ThumbnailUrlResponse,
    UploadUrlResponse,
    is_valid_content_type,
    is_valid_file_name,
)
from file_storage_api.utils.timestamps import utc_now_iso

logger = logging.getLogger(__name__)

# Same set of unescaped characters as JavaScript's encodeURIComponent
URI_COMPONENT_SAFE_CHARS = "-_.!~*'()"


def content_disposition_for(file_name: str) -> str:
    return f'attachment; filename="{quote(file_name, safe=URI_COMPONENT_SAFE_CHARS)}"'


@contextmanager
def _adapter_errors(operation: str) -> Iterator[None]:
    """Re-raise S3/DynamoDB failures as InternalError so no AWS detail reaches the caller."""
    try:
        yield
    except (ClientError, BotoCoreError) as e:
        logger.error(f"{operation} failed: {e}")
        raise InternalError() from e


class FileService:
    """Operations behind the HTTP routes"""

    def __init__(self, settings: Optional[Settings] = None, records: Optional[FileRecordService] = None):
        self.settings = settings or get_settings()
        self.records = records or get_file_record_service(self.settings.dynamodb_table_name)

    def issue_upload_url(self, file_name: Optional[str], content_type: Optional[str]) -> UploadUrlResponse:
        """
        Create a pending record and a presigned PUT URL for it.

        Args:
            file_name: Display name; 1-255 characters, no path separator
            content_type: MIME type the client will upload with

        Returns:
            UploadUrlResponse: the new fileId and the upload URL

        Raises:
            ValidationError: a parameter is missing or invalid
        """
        if not file_name or not content_type:
            raise ValidationError("fileName and contentType are required")
        if not is_valid_file_name(file_name) or not is_valid_content_type(content_type):
            raise ValidationError("Invalid fileName or contentType")

        file_id = str(uuid.uuid4())
        with _adapter_errors(f"Issuing upload URL for {file_id}"):
            upload_url = generate_presigned_upload_url(
                bucket_name=self.settings.s3_bucket_name,
                object_key=file_id,
                content_type=content_type,
                content_disposition=content_disposition_for(file_name),
                expires_in=self.settings.presigned_url_expiry_seconds,
            )
            self.records.create_pending(
                file_id=file_id,
                file_name=file_name,
                content_type=content_type,
                created_at=utc_now_iso(),
            )

        logger.info(f"Issued upload URL for {file_id} ({file_name!r})")
        return UploadUrlResponse(file_id=file_id, upload_url=upload_url)

    def list_files(self) -> ListFilesResponse:
        """List up to `list_files_limit` records, in no particular order."""
        with _adapter_errors("Listing files"):
            records = self.records.list_records(limit=self.settings.list_files_limit)
        return ListFilesResponse(items=records)

    def issue_download_url(self, file_id: str) -> DownloadUrlResponse:
        """Presigned GET for the original object; 404 when the object is absent."""
        url = self._presign_existing(file_id, not_found_message="File not found")
        return DownloadUrlResponse(download_url=url)

    def issue_thumbnail_url(self, file_id: str) -> ThumbnailUrlResponse:
        """Presigned GET for the derived thumbnail; 404 until (or unless) one was generated."""
        key = thumbnail_key_for(file_id, self.settings.thumbnail_prefix)
        url = self._presign_existing(key, not_found_message="Thumbnail not found")
        return ThumbnailUrlResponse(thumbnail_url=url)

    def delete_file(self, file_id: str) -> DeleteFileResponse:
        """
        Delete the original object and its record without checking that either exists.

        The thumbnail is left in place unless `delete_thumbnail_on_delete` is set.
        """
        bucket = self.settings.s3_bucket_name
        with _adapter_errors(f"Deleting {file_id}"):
            delete_s3_object(bucket, file_id)
            self.records.delete_record(file_id)
            if self.settings.delete_thumbnail_on_delete:
                delete_s3_object(bucket, thumbnail_key_for(file_id, self.settings.thumbnail_prefix))

        logger.info(f"Deleted file {file_id}")
        return DeleteFileResponse(message="File deleted")

    def _presign_existing(self, object_key: str, not_found_message: str) -> str:
        bucket = self.settings.s3_bucket_name
        with _adapter_errors(f"Presigning {object_key}"):
            if not object_exists_in_s3(bucket, object_key):
                raise NotFoundError(not_found_message)
            return generate_presigned_download_url(
                bucket_name=bucket,
                object_key=object_key,
                expires_in=self.settings.presigned_url_expiry_seconds,
            )

