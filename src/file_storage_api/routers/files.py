from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, Request, status

from file_storage_api.config.settings import Settings
from file_storage_api.schemas import (
    DeleteFileResponse,
    DownloadUrlResponse,
    ErrorResponse,
    ListFilesResponse,
    ThumbnailUrlResponse,
    UploadUrlResponse,
)
from file_storage_api.services import FileService

router = APIRouter()


def get_file_service(request: Request) -> FileService:
    """Build a FileService from the settings the app was created with."""
    settings: Settings = request.app.state.settings
    return FileService(settings=settings)


@router.get(
    "/upload-url",
    response_model=UploadUrlResponse,
    responses={
        status.HTTP_400_BAD_REQUEST: {
            "model": ErrorResponse,
            "description": "`fileName` or `contentType` is missing or invalid.",
        },
    },
)
def get_upload_url(
    file_name: Optional[str] = Query(None, alias="fileName", description="Display name of the file"),
    content_type: Optional[str] = Query(None, alias="contentType", description="MIME type of the upload"),
    service: FileService = Depends(get_file_service),
) -> UploadUrlResponse:
    """
    Issue a presigned PUT URL and register the upload as pending.

    The client must PUT the file with the same `Content-Type` within one hour.
    """
    return service.issue_upload_url(file_name, content_type)


@router.get("/files", response_model=ListFilesResponse, response_model_exclude_none=True)
def list_files(service: FileService = Depends(get_file_service)) -> ListFilesResponse:
    """List up to 50 uploads. `uploadedAt` and `fileSize` appear once the upload completed."""
    return service.list_files()


@router.get(
    "/files/{file_id}",
    response_model=DownloadUrlResponse,
    responses={
        status.HTTP_404_NOT_FOUND: {"model": ErrorResponse, "description": "No object for the given `file_id`."},
    },
)
def get_download_url(
    file_id: str = Path(..., description="Identifier returned by /upload-url"),
    service: FileService = Depends(get_file_service),
) -> DownloadUrlResponse:
    """Issue a presigned GET URL for the original file."""
    return service.issue_download_url(file_id)


@router.get(
    "/files/{file_id}/thumbnail",
    response_model=ThumbnailUrlResponse,
    responses={
        status.HTTP_404_NOT_FOUND: {
            "model": ErrorResponse,
            "description": "No thumbnail yet, or the file is not an image or video.",
        },
    },
)
def get_thumbnail_url(
    file_id: str = Path(..., description="Identifier returned by /upload-url"),
    service: FileService = Depends(get_file_service),
) -> ThumbnailUrlResponse:
    """Issue a presigned GET URL for the 300x300 JPEG thumbnail."""
    return service.issue_thumbnail_url(file_id)


@router.delete("/files/{file_id}", response_model=DeleteFileResponse)
def delete_file(
    file_id: str = Path(..., description="Identifier returned by /upload-url"),
    service: FileService = Depends(get_file_service),
) -> DeleteFileResponse:
    """
    Delete a file and its metadata.

    NOTE: always succeeds, whether or not the file existed.
    """
    return service.delete_file(file_id)
