"""Upload staging - stream request files to disk and clean them up"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union, TYPE_CHECKING

if TYPE_CHECKING:
    from fastapi import UploadFile

from vision.core.config import settings, ALLOWED_VIDEO_EXTENSIONS, ALLOWED_VIDEO_MIME_TYPES
from vision.core.errors import ValidationFailed, FileTooLarge

upload_logger = logging.getLogger("upload")
cleanup_logger = logging.getLogger("cleanup")


@dataclass
class StagedUpload:
    """A request file written to a request-unique temp path"""
    path: Path
    filename: str
    content_type: str
    size: int


def validate_video_file(filename: Optional[str], content_type: Optional[str]) -> str:
    """Check extension and MIME type against the allow-lists. Returns the lowercase extension."""
    if not filename:
        raise ValidationFailed("No video file uploaded")

    ext = Path(filename).suffix.lower().lstrip(".")
    if ext not in ALLOWED_VIDEO_EXTENSIONS or content_type not in ALLOWED_VIDEO_MIME_TYPES:
        raise ValidationFailed(
            "Invalid file type. Only video files are allowed.",
            details={"filename": filename, "content_type": content_type}
        )
    return ext


async def save_upload(
    file: "UploadFile",
    upload_dir: Optional[Path] = None,
    max_size: Optional[int] = None
) -> StagedUpload:
    """Stream an UploadFile to disk in 1MB chunks with validation

    Raises:
        ValidationFailed: Disallowed container or MIME type
        FileTooLarge: The stream exceeded the size ceiling (partial file removed)
    """
    ext = validate_video_file(file.filename, file.content_type)
    upload_dir = Path(upload_dir or settings.UPLOAD_DIR)
    max_size = max_size or settings.MAX_FILE_SIZE
    upload_dir.mkdir(parents=True, exist_ok=True)

    path = upload_dir / f"video-{uuid.uuid4().hex}.{ext}"
    file_size = 0
    chunk_size = 1024 * 1024  # 1MB chunks
    start_time = asyncio.get_event_loop().time()

    try:
        with open(path, "wb") as f:
            while True:
                chunk = await file.read(chunk_size)
                if not chunk:
                    break

                file_size += len(chunk)
                if file_size > max_size:
                    max_mb = max_size / (1024 * 1024)
                    raise FileTooLarge(
                        f"File too large: {file.filename} exceeds the maximum size of {max_mb:.0f} MB.",
                        details={"filename": file.filename, "max_size": max_size}
                    )

                f.write(chunk)
    except BaseException:
        # Never leave a partial file behind
        remove_files(path)
        raise

    elapsed = asyncio.get_event_loop().time() - start_time
    upload_logger.info(
        f"Staged {file.filename} as {path.name} "
        f"({file_size / (1024*1024):.2f} MB, {elapsed:.1f}s)"
    )
    return StagedUpload(path=path, filename=file.filename, content_type=file.content_type, size=file_size)


def remove_files(*paths: Optional[Union[str, Path]]) -> None:
    """Best-effort unlink of temp files; missing files and None entries are ignored"""
    for path in paths:
        if not path:
            continue
        try:
            Path(path).unlink(missing_ok=True)
            cleanup_logger.debug(f"Removed temp file {path}")
        except OSError as e:
            cleanup_logger.warning(f"Could not remove temp file {path}: {e}")
