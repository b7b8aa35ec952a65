"""
FileRecord service for DynamoDB operations.
Handles the pending -> completed lifecycle of upload metadata.
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from botocore.exceptions import ClientError

from file_storage_api.aws_clients import get_dynamodb_client
from file_storage_api.config.settings import get_settings
from file_storage_api.errors import PreconditionFailedError
from file_storage_api.schemas import FileRecord, FileStatus

if TYPE_CHECKING:
    from mypy_boto3_dynamodb import DynamoDBClient

logger = logging.getLogger(__name__)

CONDITIONAL_CHECK_FAILED = "ConditionalCheckFailedException"


def _is_conditional_check_failure(error: ClientError) -> bool:
    return error.response.get("Error", {}).get("Code") == CONDITIONAL_CHECK_FAILED


def _to_item(record: FileRecord) -> Dict[str, Any]:
    item: Dict[str, Any] = {
        "fileId": {"S": record.file_id},
        "fileName": {"S": record.file_name},
        "contentType": {"S": record.content_type},
        "status": {"S": record.status.value},
        "createdAt": {"S": record.created_at},
    }
    if record.uploaded_at is not None:
        item["uploadedAt"] = {"S": record.uploaded_at}
    if record.file_size is not None:
        item["fileSize"] = {"N": str(record.file_size)}
    return item


def _from_item(item: Dict[str, Any]) -> FileRecord:
    return FileRecord(
        file_id=item["fileId"]["S"],
        file_name=item.get("fileName", {}).get("S", ""),
        content_type=item.get("contentType", {}).get("S", ""),
        status=FileStatus(item.get("status", {}).get("S", FileStatus.PENDING.value)),
        created_at=item.get("createdAt", {}).get("S", ""),
        uploaded_at=item["uploadedAt"]["S"] if "uploadedAt" in item else None,
        file_size=int(item["fileSize"]["N"]) if "fileSize" in item else None,
    )


class FileRecordService:
    """Service for managing FileRecord items keyed by fileId"""

    def __init__(self, table_name: Optional[str] = None, dynamodb_client: Optional["DynamoDBClient"] = None):
        self.table_name = table_name or get_settings().dynamodb_table_name
        self.client = dynamodb_client or get_dynamodb_client()

    def create_pending(self, file_id: str, file_name: str, content_type: str, created_at: str) -> FileRecord:
        """Create the record for a freshly issued upload URL"""
        record = FileRecord(
            file_id=file_id,
            file_name=file_name,
            content_type=content_type,
            status=FileStatus.PENDING,
            created_at=created_at,
        )
        self.client.put_item(
            TableName=self.table_name,
            Item=_to_item(record),
            ConditionExpression="attribute_not_exists(fileId)",
        )
        logger.info(f"Created pending record {file_id} ({content_type})")
        return record

    def mark_completed(self, file_id: str, file_size: int, content_type: str, uploaded_at: str) -> FileRecord:
        """
        Move an existing record to completed.

        The write is conditional on the record existing, so an S3 notification
        for an untracked object (a thumbnail, an out-of-band upload) can never
        create a record. uploadedAt keeps its first value, so a replayed
        notification rewrites the record with identical values.

        Raises:
            PreconditionFailedError: no record exists for file_id
        """
        try:
            response = self.client.update_item(
                TableName=self.table_name,
                Key={"fileId": {"S": file_id}},
                UpdateExpression=(
                    "SET #status = :status, fileSize = :size, contentType = :contentType, "
                    "uploadedAt = if_not_exists(uploadedAt, :uploadedAt)"
                ),
                ConditionExpression="attribute_exists(fileId)",
                ExpressionAttributeNames={"#status": "status"},
                ExpressionAttributeValues={
                    ":status": {"S": FileStatus.COMPLETED.value},
                    ":size": {"N": str(file_size)},
                    ":contentType": {"S": content_type},
                    ":uploadedAt": {"S": uploaded_at},
                },
                ReturnValues="ALL_NEW",
            )
        except ClientError as e:
            if _is_conditional_check_failure(e):
                raise PreconditionFailedError(file_id) from e
            raise

        logger.info(f"Marked {file_id} completed ({file_size} bytes)")
        return _from_item(response["Attributes"])

    def get_record(self, file_id: str) -> Optional[FileRecord]:
        """Get a record by fileId"""
        response = self.client.get_item(
            TableName=self.table_name,
            Key={"fileId": {"S": file_id}},
            ConsistentRead=True,
        )
        item = response.get("Item")
        return _from_item(item) if item else None

    def list_records(self, limit: int) -> List[FileRecord]:
        """
        Single bounded scan. Order is whatever DynamoDB returns and larger
        tables are truncated; there is no pagination.
        """
        response = self.client.scan(TableName=self.table_name, Limit=limit)
        return [_from_item(item) for item in response.get("Items", [])]

    def delete_record(self, file_id: str) -> None:
        """Delete a record; deleting a missing record is not an error"""
        self.client.delete_item(
            TableName=self.table_name,
            Key={"fileId": {"S": file_id}},
        )
        logger.info(f"Deleted record {file_id}")
