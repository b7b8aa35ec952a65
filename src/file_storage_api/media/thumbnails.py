"""Thumbnail rendering for images (Pillow) and videos (ffmpeg)."""

import io
import logging
import subprocess
import tempfile
from enum import Enum
from pathlib import Path
from typing import Optional

from PIL import Image, ImageOps

from file_storage_api.utils.decorators import log_execution_time

logger = logging.getLogger(__name__)

THUMBNAIL_CONTENT_TYPE = "image/jpeg"
DEFAULT_SIZE = 300
DEFAULT_QUALITY = 80
DEFAULT_FRAME_OFFSET = "00:00:01"


class MediaKind(Enum):
    """What an object is, as far as thumbnailing is concerned. Decided once from the content type."""
    IMAGE = "image"
    VIDEO = "video"
    UNSUPPORTED = "unsupported"

    @classmethod
    def from_content_type(cls, content_type: Optional[str]) -> "MediaKind":
        major_type = (content_type or "").strip().lower().split("/", 1)[0]
        if major_type == "image":
            return cls.IMAGE
        if major_type == "video":
            return cls.VIDEO
        return cls.UNSUPPORTED


def thumbnail_key_for(object_key: str, thumbnail_prefix: str) -> str:
    """Key of the derived thumbnail for an original object, e.g. thumbnails/<fileId>.jpg."""
    return f"{thumbnail_prefix}{object_key}.jpg"


class FrameExtractionError(RuntimeError):
    """ffmpeg exited non-zero, timed out or produced no frame."""


@log_execution_time
def render_image_thumbnail(data: bytes, size: int = DEFAULT_SIZE, quality: int = DEFAULT_QUALITY) -> bytes:
    """
    Scale and centre-crop an image to exactly `size` x `size` ("cover" fit) and encode it as JPEG.

    Args:
        data: Encoded source image
        size: Edge length of the square thumbnail
        quality: JPEG quality

    Returns:
        bytes: JPEG-encoded thumbnail
    """
    with Image.open(io.BytesIO(data)) as image:
        # JPEG has no alpha or palette modes
        if image.mode != "RGB":
            image = image.convert("RGB")
        thumbnail = ImageOps.fit(image, (size, size), method=Image.Resampling.LANCZOS)

    out = io.BytesIO()
    thumbnail.save(out, format="JPEG", quality=quality)
    return out.getvalue()


@log_execution_time
def render_video_thumbnail(
    data: bytes,
    key: str,
    ffmpeg_path: str = "ffmpeg",
    size: int = DEFAULT_SIZE,
    frame_offset: str = DEFAULT_FRAME_OFFSET,
    scratch_dir: Optional[str] = None,
    timeout_seconds: Optional[float] = None,
) -> bytes:
    """
    Grab one frame of a video with ffmpeg and return it as a `size` x `size` JPEG.

    The video is written to a private scratch directory that is removed when
    this function exits, whether it succeeded, failed or ffmpeg timed out.

    Args:
        data: The whole video file
        key: Object key, used to name the scratch input file
        ffmpeg_path: ffmpeg executable
        size: Edge length of the frame
        frame_offset: Timestamp of the frame to grab
        scratch_dir: Parent directory for the scratch directory
        timeout_seconds: Kill ffmpeg after this long

    Returns:
        bytes: JPEG-encoded frame

    Raises:
        FrameExtractionError: ffmpeg failed or produced nothing
    """
    with tempfile.TemporaryDirectory(prefix="thumb-", dir=scratch_dir) as workdir:
        input_path = Path(workdir) / key.replace("/", "_")
        output_path = Path(workdir) / "thumbnail.jpg"
        input_path.write_bytes(data)

        cmd = [
            ffmpeg_path,
            "-hide_banner",
            "-loglevel", "error",
            "-i", str(input_path),
            "-ss", frame_offset,
            "-vframes", "1",
            "-s", f"{size}x{size}",
            str(output_path),
        ]
        logger.debug(f"Running {' '.join(cmd)}")
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout_seconds)
        except subprocess.TimeoutExpired as e:
            raise FrameExtractionError(f"ffmpeg timed out after {timeout_seconds}s") from e
        except OSError as e:
            raise FrameExtractionError(f"could not run {ffmpeg_path}: {e}") from e

        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            raise FrameExtractionError(f"ffmpeg exited with {result.returncode}: {stderr[-500:] or 'unknown error'}")
        if not output_path.exists():
            raise FrameExtractionError("ffmpeg produced no frame (video shorter than the frame offset?)")

        return output_path.read_bytes()
