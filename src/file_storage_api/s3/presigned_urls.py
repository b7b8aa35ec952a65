"""Time-limited presigned URLs for direct client uploads and downloads."""

from typing import TYPE_CHECKING, Optional

from file_storage_api.aws_clients import get_s3_client

if TYPE_CHECKING:
    from mypy_boto3_s3 import S3Client

DEFAULT_EXPIRY_SECONDS = 3600


def generate_presigned_upload_url(
    bucket_name: str,
    object_key: str,
    content_type: str,
    content_disposition: str,
    expires_in: int = DEFAULT_EXPIRY_SECONDS,
    s3_client: Optional["S3Client"] = None,
) -> str:
    """
    Presign a single PUT of `object_key`.

    The client must send the same Content-Type and Content-Disposition headers,
    since both are part of the signature.

    :param bucket_name: The name of the S3 bucket.
    :param object_key: The key the client is allowed to write.
    :param content_type: The MIME type the upload must declare.
    :param content_disposition: The Content-Disposition stored with the object.
    :param expires_in: Lifetime of the URL in seconds.
    :param s3_client: An optional boto3 S3 client. If not provided, the shared one is used.

    :return: The presigned URL.
    """
    s3_client = s3_client or get_s3_client()
    return s3_client.generate_presigned_url(
        ClientMethod="put_object",
        Params={
            "Bucket": bucket_name,
            "Key": object_key,
            "ContentType": content_type,
            "ContentDisposition": content_disposition,
        },
        ExpiresIn=expires_in,
    )


def generate_presigned_download_url(
    bucket_name: str,
    object_key: str,
    expires_in: int = DEFAULT_EXPIRY_SECONDS,
    s3_client: Optional["S3Client"] = None,
) -> str:
    """
    Presign a GET of `object_key`. Does not check that the object exists.

    :param bucket_name: The name of the S3 bucket.
    :param object_key: The key to read.
    :param expires_in: Lifetime of the URL in seconds.
    :param s3_client: An optional boto3 S3 client. If not provided, the shared one is used.

    :return: The presigned URL.
    """
    s3_client = s3_client or get_s3_client()
    return s3_client.generate_presigned_url(
        ClientMethod="get_object",
        Params={"Bucket": bucket_name, "Key": object_key},
        ExpiresIn=expires_in,
    )
