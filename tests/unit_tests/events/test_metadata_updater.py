import pytest

from file_storage_api.config.settings import get_settings
from file_storage_api.db_layer import FileRecordService, get_file_record_service
from file_storage_api.events import metadata_updater
from file_storage_api.events.metadata_updater import UpdateOutcome, handle_event, on_object_written, resolve_content_type
from file_storage_api.schemas import FileStatus
from tests.consts import TEST_BUCKET_NAME

CREATED_AT = "2024-01-01T00:00:00.000Z"


def s3_event(*objects) -> dict:
    return {
        "Records": [
            {
                "eventSource": "aws:s3",
                "eventName": "ObjectCreated:Put",
                "s3": {"bucket": {"name": TEST_BUCKET_NAME}, "object": obj},
            }
            for obj in objects
        ]
    }


@pytest.fixture
def records(mocked_aws) -> FileRecordService:
    return get_file_record_service()


@pytest.mark.parametrize(
    "declared, expected",
    [
        ("image/png", "image/png"),
        (None, "application/octet-stream"),
        ("", "application/octet-stream"),
        ("   ", "application/octet-stream"),
    ],
)
def test__resolve_content_type(declared, expected):
    assert resolve_content_type(declared) == expected


def test__on_object_written__completes_pending_record(records: FileRecordService):
    records.create_pending("file-1", "photo.jpg", "image/jpeg", CREATED_AT)

    result = on_object_written(TEST_BUCKET_NAME, "file-1", size=2048, declared_content_type="image/jpeg")

    assert result.outcome == UpdateOutcome.COMPLETED
    record = records.get_record("file-1")
    assert record.status == FileStatus.COMPLETED
    assert record.file_size == 2048
    assert record.content_type == "image/jpeg"
    assert record.uploaded_at.endswith("Z")
    assert record.created_at == CREATED_AT


def test__on_object_written__defaults_content_type(records: FileRecordService):
    records.create_pending("file-1", "photo.jpg", "image/jpeg", CREATED_AT)

    on_object_written(TEST_BUCKET_NAME, "file-1", size=10)

    assert records.get_record("file-1").content_type == "application/octet-stream"


def test__on_object_written__untracked_key_creates_nothing(records: FileRecordService):
    result = on_object_written(TEST_BUCKET_NAME, "thumbnails/file-1.jpg", size=100)

    assert result.outcome == UpdateOutcome.NOT_TRACKED
    assert records.get_record("thumbnails/file-1.jpg") is None
    assert records.list_records(limit=50) == []


def test__on_object_written__missing_size_fails(records: FileRecordService):
    records.create_pending("file-1", "photo.jpg", "image/jpeg", CREATED_AT)

    result = on_object_written(TEST_BUCKET_NAME, "file-1", size=None)

    assert result.outcome == UpdateOutcome.FAILED
    assert records.get_record("file-1").status == FileStatus.PENDING


def test__replayed_notification_is_idempotent(records: FileRecordService):
    records.create_pending("file-1", "photo.jpg", "image/jpeg", CREATED_AT)
    event = s3_event({"key": "file-1", "size": 2048})

    handle_event(event)
    first = records.get_record("file-1")
    handle_event(event)

    assert records.get_record("file-1") == first


def test__handle_event__failures_are_isolated(records: FileRecordService):
    records.create_pending("file-1", "a.txt", "text/plain", CREATED_AT)
    records.create_pending("file-2", "b.txt", "text/plain", CREATED_AT)
    event = s3_event(
        {"key": "file-1", "size": 1},
        {"key": "not-tracked", "size": 1},
        {"size": 1},
        {"key": "file-2", "size": 2},
    )

    results = handle_event(event)

    assert [result.outcome for result in results] == [
        UpdateOutcome.COMPLETED,
        UpdateOutcome.NOT_TRACKED,
        UpdateOutcome.FAILED,
        UpdateOutcome.COMPLETED,
    ]
    assert records.get_record("file-2").file_size == 2


def test__handle_event__unexpected_store_error_is_reported(monkeypatch: pytest.MonkeyPatch, records: FileRecordService):
    def unavailable(*args, **kwargs):
        raise RuntimeError("table unavailable")

    monkeypatch.setattr(FileRecordService, "mark_completed", unavailable)

    results = handle_event(s3_event({"key": "file-1", "size": 1}))

    assert results[0].outcome == UpdateOutcome.FAILED
    assert results[0].error == "table unavailable"


def test__lambda_handler__summary(records: FileRecordService):
    records.create_pending("file-1", "a.txt", "text/plain", CREATED_AT)

    summary = metadata_updater.lambda_handler(s3_event({"key": "file-1", "size": 3}), context=None)

    assert summary == {
        "processed": 1,
        "results": [{"key": "file-1", "outcome": "completed", "error": None}],
    }


def test__lambda_handler__never_raises_on_garbage(mocked_aws):
    summary = metadata_updater.lambda_handler({"unexpected": True}, context=None)
    assert summary["processed"] == 1
    assert summary["results"][0]["outcome"] == "failed"


def test__lambda_handler__non_mapping_record_does_not_abort_batch(records: FileRecordService):
    records.create_pending("file-1", "a.txt", "text/plain", CREATED_AT)
    event = s3_event({"key": "file-1", "size": 3})
    event["Records"].insert(0, None)

    summary = metadata_updater.lambda_handler(event, context=None)

    assert summary["processed"] == 2
    assert [result["outcome"] for result in summary["results"]] == ["failed", "completed"]
    assert records.get_record("file-1").status == FileStatus.COMPLETED


def test__lambda_handler__invalid_configuration_fails_every_record(mocked_aws, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("DEPLOYMENT_MODE", "staging")
    get_settings.cache_clear()

    summary = metadata_updater.lambda_handler(s3_event({"key": "a", "size": 1}, {"key": "b", "size": 1}), context=None)

    assert summary["processed"] == 2
    assert {result["outcome"] for result in summary["results"]} == {"failed"}
