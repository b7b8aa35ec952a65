####################################
# --- Request/response schemas --- #
####################################

import re
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

MAX_FILE_NAME_LENGTH = 255
MAX_CONTENT_TYPE_LENGTH = 100
PATH_SEPARATORS = ("/", "\\")
CONTENT_TYPE_PATTERN = re.compile(r"[\w\-+./]+", re.ASCII)
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def is_valid_file_name(file_name: str) -> bool:
    """A display name: 1-255 characters and no path separator."""
    return (
        0 < len(file_name) <= MAX_FILE_NAME_LENGTH
        and not any(separator in file_name for separator in PATH_SEPARATORS)
    )


def is_valid_content_type(content_type: str) -> bool:
    """A MIME type made of word characters, hyphen, plus, dot and slash, at most 100 characters."""
    return (
        len(content_type) <= MAX_CONTENT_TYPE_LENGTH
        and CONTENT_TYPE_PATTERN.fullmatch(content_type) is not None
    )


class CamelModel(BaseModel):
    """Serializes with the camelCase field names the web client expects."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FileStatus(str, Enum):
    """Lifecycle of an upload. Only ever moves forward."""
    PENDING = "pending"
    COMPLETED = "completed"


class FileRecord(CamelModel):
    """Metadata of an uploaded file, one item per fileId."""
    file_id: str = Field(
        description="Identifier of the upload, also the S3 key of the original object.",
        json_schema_extra={"example": "6f1c2a52-4a8e-4c55-9a55-3a1d1e0d9c7e"},
    )
    file_name: str = Field(description="Display name supplied by the uploader.")
    content_type: str = Field(description="MIME type of the file.")
    status: FileStatus = Field(description="pending until S3 confirms the upload.")
    created_at: str = Field(description="When the upload URL was issued (ISO-8601, UTC).")
    uploaded_at: Optional[str] = Field(None, description="When S3 confirmed the upload.")
    file_size: Optional[int] = Field(None, ge=0, description="Size in bytes, known once completed.")


class UploadUrlResponse(CamelModel):
    """Response model for `GET /upload-url`."""
    file_id: str
    upload_url: str = Field(description="Presigned PUT URL, valid for one hour.")


class ListFilesResponse(CamelModel):
    """Response model for `GET /files`."""
    items: List[FileRecord]

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "items": [
                    {
                        "fileId": "6f1c2a52-4a8e-4c55-9a55-3a1d1e0d9c7e",
                        "fileName": "photo.jpg",
                        "contentType": "image/jpeg",
                        "status": "completed",
                        "createdAt": "2024-01-01T00:00:00.000Z",
                        "uploadedAt": "2024-01-01T00:00:05.000Z",
                        "fileSize": 52344,
                    }
                ]
            }
        }
    )


class DownloadUrlResponse(CamelModel):
    """Response model for `GET /files/{fileId}`."""
    download_url: str


class ThumbnailUrlResponse(CamelModel):
    """Response model for `GET /files/{fileId}/thumbnail`."""
    thumbnail_url: str


class DeleteFileResponse(BaseModel):
    """Response model for `DELETE /files/{fileId}`."""
    message: str


class ErrorResponse(BaseModel):
    """Body of every 4xx/5xx response."""
    error: str
