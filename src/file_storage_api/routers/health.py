from fastapi import APIRouter, Request

from file_storage_api.config.settings import Settings

router = APIRouter()


@router.get("/health")
def health_check(request: Request):
    """
    Health check endpoint for monitoring API status.

    Reports the deployment mode and the storage resources this instance is wired to.
    """
    settings: Settings = request.app.state.settings
    return {
        "status": "ok",
        "deployment_mode": settings.deployment_mode,
        "components": {
            "bucket": settings.s3_bucket_name,
            "table": settings.dynamodb_table_name,
        },
    }
