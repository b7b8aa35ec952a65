import io
import subprocess
from pathlib import Path

import pytest
from PIL import Image

from file_storage_api.config.settings import Settings, get_settings
from file_storage_api.events import media_converter
from file_storage_api.events.media_converter import ConversionOutcome, derive_thumbnail, handle_event, on_object_created
from file_storage_api.media import thumbnails
from tests.consts import TEST_BUCKET_NAME
from tests.fixtures.media_fixtures import make_image_bytes


@pytest.fixture
def settings(mocked_aws, tmp_path: Path) -> Settings:
    return get_settings().model_copy(update={"scratch_dir": str(tmp_path)})


@pytest.fixture
def fake_ffmpeg(monkeypatch: pytest.MonkeyPatch):
    """Stand-in for ffmpeg that writes a small JPEG to the requested output path."""
    calls = []

    def run(cmd, **kwargs):
        calls.append(cmd)
        Path(cmd[-1]).write_bytes(make_image_bytes(300, 300, "JPEG"))
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")

    monkeypatch.setattr(thumbnails.subprocess, "run", run)
    return calls


def read_image(s3_client, key: str) -> Image.Image:
    body = s3_client.get_object(Bucket=TEST_BUCKET_NAME, Key=key)["Body"].read()
    return Image.open(io.BytesIO(body))


def test__image_thumbnail_is_stored(settings: Settings, s3_client, png_bytes: bytes):
    s3_client.put_object(Bucket=TEST_BUCKET_NAME, Key="file-1", Body=png_bytes, ContentType="image/png")

    result = derive_thumbnail(TEST_BUCKET_NAME, "file-1", settings)

    assert result.outcome == ConversionOutcome.STORED
    assert result.thumbnail_key == "thumbnails/file-1.jpg"
    head = s3_client.head_object(Bucket=TEST_BUCKET_NAME, Key="thumbnails/file-1.jpg")
    assert head["ContentType"] == "image/jpeg"
    thumbnail = read_image(s3_client, "thumbnails/file-1.jpg")
    assert thumbnail.format == "JPEG"
    assert thumbnail.size == (300, 300)


def test__thumbnail_keys_are_skipped_without_touching_s3(settings: Settings, monkeypatch: pytest.MonkeyPatch):
    def unexpected(*args, **kwargs):
        raise AssertionError("S3 must not be called for thumbnail keys")

    monkeypatch.setattr(media_converter, "head_s3_object", unexpected)
    monkeypatch.setattr(media_converter, "fetch_s3_object_bytes", unexpected)

    result = derive_thumbnail(TEST_BUCKET_NAME, "thumbnails/file-1.jpg", settings)

    assert result.outcome == ConversionOutcome.SKIPPED_DERIVED


def test__non_media_is_skipped_without_download(settings: Settings, s3_client, monkeypatch: pytest.MonkeyPatch):
    s3_client.put_object(Bucket=TEST_BUCKET_NAME, Key="file-1", Body=b"%PDF-1.4", ContentType="application/pdf")

    def unexpected(*args, **kwargs):
        raise AssertionError("non-media objects must not be downloaded")

    monkeypatch.setattr(media_converter, "fetch_s3_object_bytes", unexpected)

    result = derive_thumbnail(TEST_BUCKET_NAME, "file-1", settings)

    assert result.outcome == ConversionOutcome.SKIPPED_UNSUPPORTED
    assert s3_client.list_objects_v2(Bucket=TEST_BUCKET_NAME, Prefix="thumbnails/")["KeyCount"] == 0


def test__corrupt_image_fails_without_raising(settings: Settings, s3_client):
    s3_client.put_object(Bucket=TEST_BUCKET_NAME, Key="file-1", Body=b"not an image", ContentType="image/png")

    result = derive_thumbnail(TEST_BUCKET_NAME, "file-1", settings)

    assert result.outcome == ConversionOutcome.FAILED
    assert result.error
    assert s3_client.list_objects_v2(Bucket=TEST_BUCKET_NAME, Prefix="thumbnails/")["KeyCount"] == 0


def test__missing_object_fails_without_raising(settings: Settings):
    result = derive_thumbnail(TEST_BUCKET_NAME, "never-uploaded", settings)
    assert result.outcome == ConversionOutcome.FAILED


def test__encoded_key_is_decoded(settings: Settings, s3_client, jpeg_bytes: bytes):
    s3_client.put_object(Bucket=TEST_BUCKET_NAME, Key="my photo.jpg", Body=jpeg_bytes, ContentType="image/jpeg")

    result = on_object_created(TEST_BUCKET_NAME, "my+photo.jpg", settings)

    assert result.outcome == ConversionOutcome.STORED
    assert result.thumbnail_key == "thumbnails/my photo.jpg.jpg"


def test__video_thumbnail_is_stored(settings: Settings, s3_client, fake_ffmpeg, tmp_path: Path):
    s3_client.put_object(Bucket=TEST_BUCKET_NAME, Key="file-1", Body=b"\x00\x00\x00\x18ftypmp42", ContentType="video/mp4")

    result = derive_thumbnail(TEST_BUCKET_NAME, "file-1", settings)

    assert result.outcome == ConversionOutcome.STORED
    assert read_image(s3_client, "thumbnails/file-1.jpg").format == "JPEG"

    cmd = fake_ffmpeg[0]
    assert cmd[0] == "ffmpeg"
    assert cmd[cmd.index("-ss") + 1] == "00:00:01"
    assert cmd[cmd.index("-vframes") + 1] == "1"
    assert cmd[cmd.index("-s") + 1] == "300x300"
    assert list(tmp_path.iterdir()) == []


def test__video_scratch_dir_removed_on_ffmpeg_failure(
    settings: Settings, s3_client, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
):
    s3_client.put_object(Bucket=TEST_BUCKET_NAME, Key="file-1", Body=b"garbage", ContentType="video/mp4")

    def failing_run(cmd, **kwargs):
        return subprocess.CompletedProcess(cmd, 1, stdout="", stderr="Invalid data found when processing input")

    monkeypatch.setattr(thumbnails.subprocess, "run", failing_run)

    result = derive_thumbnail(TEST_BUCKET_NAME, "file-1", settings)

    assert result.outcome == ConversionOutcome.FAILED
    assert "Invalid data" in result.error
    assert list(tmp_path.iterdir()) == []


def test__video_scratch_dir_removed_on_timeout(
    settings: Settings, s3_client, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
):
    s3_client.put_object(Bucket=TEST_BUCKET_NAME, Key="file-1", Body=b"garbage", ContentType="video/quicktime")

    def hanging_run(cmd, **kwargs):
        raise subprocess.TimeoutExpired(cmd, kwargs.get("timeout"))

    monkeypatch.setattr(thumbnails.subprocess, "run", hanging_run)

    result = derive_thumbnail(TEST_BUCKET_NAME, "file-1", settings)

    assert result.outcome == ConversionOutcome.FAILED
    assert "timed out" in result.error
    assert list(tmp_path.iterdir()) == []


def test__handle_event__eventbridge(settings: Settings, s3_client, png_bytes: bytes):
    s3_client.put_object(Bucket=TEST_BUCKET_NAME, Key="file-1", Body=png_bytes, ContentType="image/png")
    event = {
        "source": "aws.s3",
        "detail-type": "Object Created",
        "detail": {"bucket": {"name": TEST_BUCKET_NAME}, "object": {"key": "file-1", "size": len(png_bytes)}},
    }

    results = handle_event(event, settings)

    assert [result.outcome for result in results] == [ConversionOutcome.STORED]


def test__lambda_handler__batch(mocked_aws, s3_client, png_bytes: bytes):
    s3_client.put_object(Bucket=TEST_BUCKET_NAME, Key="file-1", Body=png_bytes, ContentType="image/png")
    s3_client.put_object(Bucket=TEST_BUCKET_NAME, Key="file-2", Body=b"text", ContentType="text/plain")
    event = {
        "Records": [
            {"s3": {"bucket": {"name": TEST_BUCKET_NAME}, "object": {"key": key}}}
            for key in ("file-1", "file-2", "thumbnails/file-1.jpg")
        ]
    }

    summary = media_converter.lambda_handler(event, context=None)

    assert summary["processed"] == 3
    assert [result["outcome"] for result in summary["results"]] == [
        "stored",
        "skipped_unsupported",
        "skipped_derived",
    ]
    assert summary["results"][0]["thumbnail_key"] == "thumbnails/file-1.jpg"


def test__lambda_handler__non_mapping_record_does_not_abort_batch(mocked_aws, s3_client, png_bytes: bytes):
    s3_client.put_object(Bucket=TEST_BUCKET_NAME, Key="file-1", Body=png_bytes, ContentType="image/png")
    event = {"Records": [None, 42, {"s3": {"bucket": {"name": TEST_BUCKET_NAME}, "object": {"key": "file-1"}}}]}

    summary = media_converter.lambda_handler(event, context=None)

    assert summary["processed"] == 3
    assert [result["outcome"] for result in summary["results"]] == ["failed", "failed", "stored"]


def test__lambda_handler__invalid_configuration_fails_every_object(mocked_aws, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("DEPLOYMENT_MODE", "staging")
    get_settings.cache_clear()
    event = {"Records": [{"s3": {"bucket": {"name": TEST_BUCKET_NAME}, "object": {"key": "file-1"}}}]}

    summary = media_converter.lambda_handler(event, context=None)

    assert summary["processed"] == 1
    assert summary["results"][0]["outcome"] == "failed"
    assert summary["results"][0]["error"] == "invalid configuration"
