# cli.py
import logging

import click
from botocore.exceptions import ClientError

from file_storage_api.aws_clients import get_dynamodb_client, get_s3_client
from file_storage_api.config.settings import get_settings
from file_storage_api.utils.log_setup import configure_logging

logger = logging.getLogger(__name__)

ALREADY_EXISTS_CODES = {"BucketAlreadyOwnedByYou", "BucketAlreadyExists", "ResourceInUseException"}


@click.group()
def cli():
    """CLI commands for the File Storage API"""
    configure_logging(get_settings().log_level)


@cli.command()
def show_config():
    """Show current configuration"""
    settings = get_settings()

    print("Current Configuration:")
    print(f"  Deployment Mode: {settings.deployment_mode}")
    print(f"  AWS Region: {settings.aws_region}")
    print(f"  AWS Endpoint: {settings.aws_endpoint_url}")
    print(f"  S3 Bucket: {settings.s3_bucket_name}")
    print(f"  DynamoDB Table: {settings.dynamodb_table_name}")
    print(f"  Thumbnail Prefix: {settings.thumbnail_prefix}")
    print(f"  FFmpeg Path: {settings.ffmpeg_path}")
    print(f"  Delete Thumbnail On Delete: {settings.delete_thumbnail_on_delete}")


@cli.command()
def init_resources():
    """Create the bucket and the metadata table (local-dev / aws-mock against a moto server)"""
    settings = get_settings()
    if not settings.is_local:
        raise click.ClickException(
            f"init-resources only runs in local modes, not {settings.deployment_mode}; "
            "aws-prod resources are provisioned with the infrastructure stack"
        )

    try:
        create_bucket(settings.s3_bucket_name, settings.aws_region)
        print(f"✅ Bucket ready: {settings.s3_bucket_name}")
        create_table(settings.dynamodb_table_name)
        print(f"✅ Table ready: {settings.dynamodb_table_name}")
    except ClientError as e:
        raise click.ClickException(f"Failed to create resources: {e}") from e


@cli.command()
@click.option("--host", default="0.0.0.0", help="Interface to bind")
@click.option("--port", default=8000, type=int, help="Port to listen on")
def serve(host, port):
    """Run the API locally with uvicorn"""
    import uvicorn

    from file_storage_api.main import create_app

    uvicorn.run(create_app(), host=host, port=port)


def create_bucket(bucket_name: str, region: str) -> None:
    """Create the bucket, tolerating one that already exists."""
    s3_client = get_s3_client()
    kwargs = {"Bucket": bucket_name}
    # us-east-1 rejects an explicit LocationConstraint
    if region != "us-east-1":
        kwargs["CreateBucketConfiguration"] = {"LocationConstraint": region}
    try:
        s3_client.create_bucket(**kwargs)
    except ClientError as e:
        if e.response.get("Error", {}).get("Code") not in ALREADY_EXISTS_CODES:
            raise
        logger.info(f"Bucket {bucket_name} already exists")


def create_table(table_name: str) -> None:
    """Create the metadata table keyed by fileId, tolerating one that already exists."""
    dynamodb_client = get_dynamodb_client()
    try:
        dynamodb_client.create_table(
            TableName=table_name,
            KeySchema=[{"AttributeName": "fileId", "KeyType": "HASH"}],
            AttributeDefinitions=[{"AttributeName": "fileId", "AttributeType": "S"}],
            BillingMode="PAY_PER_REQUEST",
        )
    except ClientError as e:
        if e.response.get("Error", {}).get("Code") not in ALREADY_EXISTS_CODES:
            raise
        logger.info(f"Table {table_name} already exists")


if __name__ == "__main__":
    cli()
