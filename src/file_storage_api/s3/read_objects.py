"""Functions for reading objects from an S3 bucket--the "R" in CRUD."""

from typing import TYPE_CHECKING, Optional

from botocore.exceptions import ClientError

from file_storage_api.aws_clients import get_s3_client

if TYPE_CHECKING:
    from mypy_boto3_s3 import S3Client
    from mypy_boto3_s3.type_defs import HeadObjectOutputTypeDef

MISSING_OBJECT_ERROR_CODES = {"404", "NoSuchKey", "NotFound"}


def is_missing_object_error(error: ClientError) -> bool:
    """Whether a ClientError means the object does not exist."""
    return error.response.get("Error", {}).get("Code") in MISSING_OBJECT_ERROR_CODES


def object_exists_in_s3(bucket_name: str, object_key: str, s3_client: Optional["S3Client"] = None) -> bool:
    """
    Check if an object exists in the S3 bucket using head_object.

    :param bucket_name: Name of the S3 bucket.
    :param object_key: Key of the object to check.
    :param s3_client: An optional boto3 S3 client. If not provided, the shared one is used.

    :return: True if the object exists, False otherwise.
    """
    s3_client = s3_client or get_s3_client()
    try:
        s3_client.head_object(Bucket=bucket_name, Key=object_key)
    except ClientError as err:
        if is_missing_object_error(err):
            return False
        raise
    return True


def head_s3_object(
    bucket_name: str,
    object_key: str,
    s3_client: Optional["S3Client"] = None,
) -> "HeadObjectOutputTypeDef":
    """
    Read an object's metadata without downloading its body.

    :param bucket_name: Name of the S3 bucket.
    :param object_key: Key of the object.
    :param s3_client: An optional boto3 S3 client. If not provided, the shared one is used.

    :return: The head_object response (ContentType, ContentLength, ...).
    """
    s3_client = s3_client or get_s3_client()
    return s3_client.head_object(Bucket=bucket_name, Key=object_key)


def fetch_s3_object_bytes(bucket_name: str, object_key: str, s3_client: Optional["S3Client"] = None) -> bytes:
    """
    Download a whole object into memory.

    :param bucket_name: Name of the S3 bucket.
    :param object_key: Key of the object.
    :param s3_client: An optional boto3 S3 client. If not provided, the shared one is used.

    :return: The object body.
    """
    s3_client = s3_client or get_s3_client()
    response = s3_client.get_object(Bucket=bucket_name, Key=object_key)
    return response["Body"].read()
