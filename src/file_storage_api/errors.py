"""Error taxonomy and FastAPI error handlers for the File Storage API."""
import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Internal server error"
NOT_FOUND_MESSAGE = "Not found"


class FileStorageError(Exception):
    """Base class for every error raised by this package."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = GENERIC_ERROR_MESSAGE):
        super().__init__(message)
        self.message = message


class ValidationError(FileStorageError):
    """Missing or malformed request input."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(FileStorageError):
    """The referenced object or thumbnail does not exist in the bucket."""

    status_code = status.HTTP_404_NOT_FOUND


class PreconditionFailedError(FileStorageError):
    """A conditional metadata write found no record to update.

    Only raised inside the S3 event handlers, never surfaced over HTTP.
    """

    def __init__(self, file_id: str):
        super().__init__(f"No metadata record for fileId '{file_id}'")
        self.file_id = file_id


class ConversionFailure(FileStorageError):
    """Any failure while deriving a thumbnail."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"Thumbnail generation failed for '{key}': {reason}")
        self.key = key
        self.reason = reason


class InternalError(FileStorageError):
    """An S3 or DynamoDB call failed. The message never carries adapter detail."""

    def __init__(self, message: str = GENERIC_ERROR_MESSAGE):
        super().__init__(message)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def handle_file_storage_errors(request: Request, exc: FileStorageError) -> JSONResponse:
    """Map domain errors onto `{"error": ...}` bodies."""
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(f"{request.method} {request.url.path} failed: {exc!r}", exc_info=exc.__cause__)
        return error_response(exc.status_code, GENERIC_ERROR_MESSAGE)
    return error_response(exc.status_code, exc.message)


async def handle_http_exceptions(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Unknown routes and unsupported methods are both reported as 404."""
    if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
        return error_response(status.HTTP_404_NOT_FOUND, NOT_FOUND_MESSAGE)
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        return error_response(exc.status_code, GENERIC_ERROR_MESSAGE)
    return error_response(exc.status_code, str(exc.detail))


async def handle_broad_exceptions(request: Request, call_next):
    """Handle any exception that propagates during the request, returning a generic 500."""
    try:
        return await call_next(request)
    except Exception:
        logger.exception(f"Unhandled error for {request.method} {request.url.path}")
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_ERROR_MESSAGE)
