"""
Metadata store layer.

Every read and write of FileRecord items goes through FileRecordService, which
is the only place that knows the DynamoDB attribute-value encoding.
"""

from typing import Optional

from file_storage_api.db_layer.file_record_service import FileRecordService


def get_file_record_service(table_name: Optional[str] = None) -> FileRecordService:
    """Get a FileRecordService bound to the configured (or given) table."""
    return FileRecordService(table_name=table_name)


__all__ = ["FileRecordService", "get_file_record_service"]
