"""Process-wide boto3 clients shared by the API and the S3 event handlers.

Clients are created on first use and then reused for the lifetime of the
process (i.e. across warm Lambda invocations). They are stateless connection
wrappers, so nothing needs to be closed.
"""
import logging
from functools import lru_cache
from typing import TYPE_CHECKING, Any, Dict

import boto3
from botocore.config import Config

from file_storage_api.config.settings import get_settings

if TYPE_CHECKING:
    from mypy_boto3_dynamodb import DynamoDBClient
    from mypy_boto3_s3 import S3Client

logger = logging.getLogger(__name__)


def _client_kwargs(**config_overrides: Any) -> Dict[str, Any]:
    settings = get_settings()
    client_kwargs: Dict[str, Any] = {
        "region_name": settings.aws_region,
        "config": Config(
            connect_timeout=settings.aws_connect_timeout,
            read_timeout=settings.aws_read_timeout,
            retries={"max_attempts": settings.aws_max_attempts, "mode": "standard"},
            **config_overrides,
        ),
    }

    # Explicit credentials only when configured; aws-prod relies on the execution role
    if settings.aws_access_key_id:
        client_kwargs["aws_access_key_id"] = settings.aws_access_key_id
    if settings.aws_secret_access_key:
        client_kwargs["aws_secret_access_key"] = settings.aws_secret_access_key

    if settings.aws_endpoint_url:
        client_kwargs["endpoint_url"] = settings.aws_endpoint_url

    return client_kwargs


@lru_cache()
def get_s3_client() -> "S3Client":
    """Get the shared S3 client."""
    # Presigned URLs must be SigV4 so they work in every region
    kwargs = _client_kwargs(signature_version="s3v4")
    logger.debug(f"Creating s3 client (region={kwargs['region_name']}, endpoint={kwargs.get('endpoint_url')})")
    return boto3.client("s3", **kwargs)


@lru_cache()
def get_dynamodb_client() -> "DynamoDBClient":
    """Get the shared DynamoDB client."""
    kwargs = _client_kwargs()
    logger.debug(f"Creating dynamodb client (region={kwargs['region_name']}, endpoint={kwargs.get('endpoint_url')})")
    return boto3.client("dynamodb", **kwargs)


def reset_clients() -> None:
    """Drop the cached clients so the next call picks up fresh settings."""
    get_s3_client.cache_clear()
    get_dynamodb_client.cache_clear()
