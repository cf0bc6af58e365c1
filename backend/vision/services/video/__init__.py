"""Video service module - public API exports"""

from vision.services.video.helpers import (
    MediaProcessingError,
    format_duration,
    probe_duration,
    mute_audio,
)

from vision.services.video.file_handler import (
    StagedUpload,
    save_upload,
    remove_files,
)

from vision.services.video.pipeline import (
    UploadOptions,
    BatchItemResult,
    parse_tags,
    upload_video_to_game,
    upload_videos_to_game,
    replace_video_file,
)

__all__ = [
    "MediaProcessingError",
    "format_duration",
    "probe_duration",
    "mute_audio",
    "StagedUpload",
    "save_upload",
    "remove_files",
    "UploadOptions",
    "BatchItemResult",
    "parse_tags",
    "upload_video_to_game",
    "upload_videos_to_game",
    "replace_video_file",
]
