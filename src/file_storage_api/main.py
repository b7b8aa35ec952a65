from textwrap import dedent
import logging

from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from starlette.exceptions import HTTPException as StarletteHTTPException

from file_storage_api.config.settings import Settings, get_settings
from file_storage_api.errors import (
    FileStorageError,
    handle_broad_exceptions,
    handle_file_storage_errors,
    handle_http_exceptions,
)
from file_storage_api.routers.files import router as files_router
from file_storage_api.routers.health import router as health_router
from file_storage_api.utils.log_setup import configure_logging

logger = logging.getLogger(__name__)

# Included in every response, errors and preflights too
CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Create a FastAPI application.

    Only the resource names and behaviour flags are read from `settings` (bucket,
    table, prefix, expiry, limits). The boto3 clients are process-wide and always
    take their endpoint, region and credentials from `get_settings()`.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="File Storage API",
        summary="Upload files straight to S3 and get thumbnails for images and videos",
        version="v1",
        description=dedent(
            """\
        1. `GET /upload-url` registers a pending upload and returns a presigned PUT URL.
        2. PUT the file to that URL.
        3. S3 notifications mark the upload completed and derive a thumbnail for images and videos.
        4. `GET /files`, `GET /files/{fileId}` and `GET /files/{fileId}/thumbnail` read it back.
        """
        ),
        docs_url="/docs",
        generate_unique_id_function=custom_generate_unique_id,
    )
    app.state.settings = settings

    app.include_router(files_router, tags=["files"])
    app.include_router(health_router, tags=["health"])

    app.add_exception_handler(
        exc_class_or_status_code=FileStorageError,
        handler=handle_file_storage_errors,
    )
    app.add_exception_handler(
        exc_class_or_status_code=StarletteHTTPException,
        handler=handle_http_exceptions,
    )
    # Registration order matters: the CORS middleware is added last so it wraps the 500s
    app.middleware("http")(handle_broad_exceptions)
    app.middleware("http")(add_cors_headers)

    logger.info(f"Created {settings.app_name} in {settings.deployment_mode} mode")
    return app


# CORSMiddleware only decorates requests carrying an Origin header and rejects
# unknown preflights, but every response here needs the headers and every OPTIONS a 200
async def add_cors_headers(request: Request, call_next) -> Response:
    """Answer every preflight with an empty 200 and put the CORS headers on every response."""
    if request.method == "OPTIONS":
        response: Response = JSONResponse(status_code=status.HTTP_200_OK, content={})
    else:
        response = await call_next(request)
    response.headers.update(CORS_HEADERS)
    return response


def custom_generate_unique_id(route: APIRoute):
    """
    Generate prettier `operationId`s in the OpenAPI schema.

    These become the function names in generated client SDKs.
    """
    return f"{route.tags[0]}-{route.name}"


if __name__ == "__main__":
    import uvicorn

    app = create_app()
    uvicorn.run(app, host="0.0.0.0", port=8000)
