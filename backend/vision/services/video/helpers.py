"""Local media helpers - ffprobe duration, ffmpeg audio strip, duration labels"""

import logging
import subprocess
from pathlib import Path
from typing import Union

from vision.core.config import settings

upload_logger = logging.getLogger("upload")


class MediaProcessingError(Exception):
    """ffmpeg/ffprobe could not process a file"""


def format_duration(seconds: float) -> str:
    """Format seconds as H:MM:SS, dropping the hour part when it is zero

    65 -> "1:05", 3725 -> "1:02:05"
    """
    total = int(seconds)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def probe_duration(video_path: Union[str, Path]) -> float:
    """Get video duration in seconds using ffprobe

    Raises:
        MediaProcessingError: If ffprobe is not available or the file cannot be analyzed
    """
    cmd = [
        settings.FFPROBE_BINARY,
        '-v', 'error',
        '-show_entries', 'format=duration',
        '-of', 'default=noprint_wrappers=1:nokey=1',
        str(video_path)
    ]

    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=settings.FFPROBE_TIMEOUT
        )
    except FileNotFoundError as e:
        raise MediaProcessingError("ffprobe not found. Please install ffmpeg.") from e
    except subprocess.TimeoutExpired as e:
        raise MediaProcessingError(f"ffprobe timed out after {settings.FFPROBE_TIMEOUT}s") from e

    if result.returncode != 0:
        raise MediaProcessingError(f"ffprobe failed: {result.stderr.strip()}")

    duration_str = result.stdout.strip()
    if not duration_str:
        raise MediaProcessingError("ffprobe returned empty duration")

    try:
        duration = float(duration_str)
    except ValueError as e:
        raise MediaProcessingError(f"Unparseable duration: {duration_str!r}") from e

    if duration <= 0:
        raise MediaProcessingError(f"Invalid duration: {duration}")

    return duration


def muted_path_for(video_path: Union[str, Path]) -> Path:
    """Sibling path for the audio-stripped copy: clip.mp4 -> clip.muted.mp4"""
    path = Path(video_path)
    return path.with_name(f"{path.stem}.muted{path.suffix}")


def mute_audio(video_path: Union[str, Path]) -> Path:
    """Copy the video stream and drop audio into a sibling file. Returns the new path.

    Raises:
        MediaProcessingError: If ffmpeg fails; a partial output file is removed
    """
    output_path = muted_path_for(video_path)
    cmd = [
        settings.FFMPEG_BINARY,
        '-y',
        '-v', 'error',
        '-i', str(video_path),
        '-c:v', 'copy',
        '-an',
        str(output_path)
    ]

    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=settings.FFMPEG_TIMEOUT
        )
    except FileNotFoundError as e:
        raise MediaProcessingError("ffmpeg not found. Please install ffmpeg.") from e
    except subprocess.TimeoutExpired as e:
        output_path.unlink(missing_ok=True)
        raise MediaProcessingError(f"ffmpeg timed out after {settings.FFMPEG_TIMEOUT}s") from e

    if result.returncode != 0:
        output_path.unlink(missing_ok=True)
        raise MediaProcessingError(f"ffmpeg failed: {result.stderr.strip()}")

    upload_logger.info(f"Stripped audio: {Path(video_path).name} -> {output_path.name}")
    return output_path
