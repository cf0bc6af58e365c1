"""Upload pipeline - stage, mute, probe, upload to PeerTube, persist, clean up

A Video row is only ever written after PeerTube accepted the file, so a
failed remote upload leaves no local trace. Temp files are removed on
every exit path.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from vision.core.config import DEFAULT_PRIVACY, DEFAULT_CATEGORY, DEFAULT_LICENSE, DEFAULT_LANGUAGE
from vision.core.errors import (
    VisionError, NotFound, ValidationFailed, NoRemoteChannel, RemoteServiceError,
    RemoteUploadFailed, InternalError
)
from vision.core.metrics import (
    successful_uploads_counter, failed_uploads_counter, remote_delete_failures_counter
)
from vision.db.helpers import (
    get_game, get_season, get_video, get_remote_account, create_video, push_video_to_game
)
from vision.models.video import Video
from vision.services.peertube import PeerTubeClient
from vision.services.video.file_handler import StagedUpload, remove_files
from vision.services.video.helpers import (
    MediaProcessingError, format_duration, probe_duration, mute_audio
)

upload_logger = logging.getLogger("upload")


@dataclass
class UploadOptions:
    """Metadata sent to PeerTube along with the file"""
    name: str
    description: str = ""
    mute: bool = False
    privacy: int = DEFAULT_PRIVACY
    category: int = DEFAULT_CATEGORY
    license: int = DEFAULT_LICENSE
    language: str = DEFAULT_LANGUAGE
    tags: List[str] = field(default_factory=list)

    def to_metadata(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "privacy": self.privacy,
            "category": self.category,
            "license": self.license,
            "language": self.language,
            "tags": self.tags,
        }


@dataclass
class BatchItemResult:
    """Outcome of one file in a batch upload"""
    filename: str
    video: Optional[Video] = None
    error: Optional[VisionError] = None

    @property
    def success(self) -> bool:
        return self.error is None


def parse_tags(raw) -> List[str]:
    """Accept a list or a comma separated string"""
    if not raw:
        return []
    items = raw if isinstance(raw, (list, tuple)) else str(raw).split(",")
    return [t.strip() for t in items if t and t.strip()]


def _resolve_channel_id(user_id: int, db: Session) -> int:
    account = get_remote_account(user_id, db)
    if not account or not account.channel_id:
        raise NoRemoteChannel(details={"user_id": user_id})
    return account.channel_id


def _probe_label(path) -> Tuple[Optional[float], str]:
    """Probe duration; a failure yields (None, "") and never aborts the upload"""
    try:
        seconds = probe_duration(path)
    except MediaProcessingError as e:
        upload_logger.warning(f"Could not probe duration of {path}: {e}")
        return None, ""
    return seconds, format_duration(seconds)


def _fetch_details(peertube: PeerTubeClient, uploaded: Dict[str, Any]) -> Dict[str, Any]:
    """Enrich with the full video record, falling back to the upload response"""
    try:
        return peertube.get_video_details(uploaded["id"])
    except VisionError as e:
        upload_logger.warning(
            f"Could not fetch details for PeerTube video {uploaded['id']}, using upload response: {e.message}"
        )
        return uploaded


def _remote_fields(peertube: PeerTubeClient, uploaded: Dict[str, Any], details: Dict[str, Any]) -> Dict[str, Any]:
    """Video columns derived from PeerTube's upload response and details"""
    uuid = details.get("uuid") or uploaded.get("uuid")
    thumbnail_url = peertube.build_url(details.get("thumbnailPath"))
    preview_url = peertube.build_url(details.get("previewPath"))
    return {
        "remote_video_id": uploaded["id"],
        "remote_uuid": uuid,
        "remote_share_url": details.get("url") or "",
        "remote_channel_ref": (details.get("channel") or {}).get("url") or "",
        "embed_url": peertube.embed_url(uuid),
        "file_path": uploaded.get("url") or details.get("url") or "",
        "thumbnail_url": thumbnail_url or preview_url,
        "preview_url": preview_url,
    }


def _discard_remote(peertube: PeerTubeClient, remote_video_id) -> None:
    """Remove a remote object whose local row could not be written"""
    try:
        peertube.delete_video(remote_video_id)
    except RemoteServiceError as e:
        remote_delete_failures_counter.inc()
        upload_logger.error(f"Orphaned PeerTube video {remote_video_id} could not be removed: {e.message}")


def upload_video_to_game(
    game_id: int,
    staged: StagedUpload,
    options: UploadOptions,
    db: Session,
    peertube: PeerTubeClient
) -> Video:
    """Upload one staged file into the game's owner's channel and record it

    Raises:
        ValidationFailed: Missing video name
        NotFound: Game or its Season missing
        NoRemoteChannel: Owner has no provisioned channel
        RemoteUploadFailed: PeerTube rejected the upload (no row is created)
    """
    muted_path = None
    try:
        if not options.name or not options.name.strip():
            raise ValidationFailed("Video name is required")

        game = get_game(game_id, db)
        if not game:
            raise NotFound("Game not found", details={"game_id": game_id})
        season = get_season(game.season_id, db)
        if not season:
            raise NotFound("Season not found", details={"season_id": game.season_id})
        channel_id = _resolve_channel_id(season.user_id, db)

        upload_path = staged.path
        if options.mute:
            try:
                muted_path = mute_audio(staged.path)
                upload_path = muted_path
            except MediaProcessingError as e:
                upload_logger.warning(f"Muting failed for {staged.filename}, uploading original: {e}")

        duration, duration_label = _probe_label(upload_path)

        upload_logger.info(
            f"Uploading {staged.filename} to PeerTube channel {channel_id} "
            f"(game {game_id}, user {season.user_id}, muted={muted_path is not None})"
        )
        try:
            uploaded = peertube.upload_video(
                channel_id, options.to_metadata(), str(upload_path), staged.filename, staged.content_type
            )
        except RemoteUploadFailed:
            failed_uploads_counter.labels(stage="upload").inc()
            raise

        details = _fetch_details(peertube, uploaded)

        try:
            video = create_video(
                db,
                user_id=season.user_id,
                remote_channel_id=channel_id,
                title=options.name.strip(),
                description=options.description or "",
                duration=duration if duration is not None else details.get("duration"),
                duration_label=duration_label,
                privacy=options.privacy,
                category=options.category,
                license=options.license,
                language=options.language,
                muted=muted_path is not None,
                tags=options.tags,
                upload_status="published",
                **_remote_fields(peertube, uploaded, details),
            )
            push_video_to_game(game.id, video.id, db)
            db.commit()
        except Exception:
            db.rollback()
            failed_uploads_counter.labels(stage="persist").inc()
            _discard_remote(peertube, uploaded["id"])
            raise

        db.refresh(video)
        successful_uploads_counter.inc()
        upload_logger.info(f"Video {video.id} (PeerTube {video.remote_video_id}) added to game {game_id}")
        return video
    finally:
        remove_files(staged.path, muted_path)


def upload_videos_to_game(
    game_id: int,
    items: List[Tuple[StagedUpload, UploadOptions]],
    db: Session,
    peertube: PeerTubeClient
) -> List[BatchItemResult]:
    """Upload files one after another; a failing file does not stop the rest"""
    results = []
    for staged, options in items:
        try:
            video = upload_video_to_game(game_id, staged, options, db, peertube)
            results.append(BatchItemResult(filename=staged.filename, video=video))
        except VisionError as e:
            upload_logger.warning(f"Batch upload of {staged.filename} to game {game_id} failed: {e.message}")
            results.append(BatchItemResult(filename=staged.filename, error=e))
        except Exception as e:
            upload_logger.error(f"Unexpected error uploading {staged.filename} to game {game_id}: {e}", exc_info=True)
            results.append(BatchItemResult(filename=staged.filename, error=InternalError(f"Upload failed: {e}")))

    succeeded = sum(1 for r in results if r.success)
    upload_logger.info(f"Batch upload to game {game_id}: {succeeded}/{len(results)} succeeded")
    return results


def replace_video_file(
    video_id: int,
    staged: StagedUpload,
    db: Session,
    peertube: PeerTubeClient
) -> Video:
    """Swap the remote file behind an existing Video, keeping its local id and metadata

    The old remote object is deleted first (best-effort), then the new file is
    uploaded with the record's current title/description/privacy/etc.
    """
    try:
        video = get_video(video_id, db)
        if not video:
            raise NotFound("Video not found", details={"video_id": video_id})

        account = get_remote_account(video.user_id, db)
        channel_id = (account.channel_id if account else None) or video.remote_channel_id
        if not channel_id:
            raise NoRemoteChannel(details={"user_id": video.user_id})

        old_remote_id = video.remote_video_id
        try:
            peertube.delete_video(old_remote_id)
        except RemoteServiceError as e:
            remote_delete_failures_counter.inc()
            upload_logger.warning(f"Could not delete old PeerTube video {old_remote_id} for video {video_id}: {e.message}")

        duration, duration_label = _probe_label(staged.path)

        metadata = {
            "name": video.title,
            "description": video.description or "",
            "privacy": video.privacy,
            "category": video.category,
            "license": video.license,
            "language": video.language or DEFAULT_LANGUAGE,
            "tags": video.tags or [],
        }
        try:
            uploaded = peertube.upload_video(
                channel_id, metadata, str(staged.path), staged.filename, staged.content_type
            )
        except RemoteUploadFailed:
            failed_uploads_counter.labels(stage="replace").inc()
            raise

        details = _fetch_details(peertube, uploaded)

        fields = _remote_fields(peertube, uploaded, details)
        fields["remote_channel_id"] = channel_id
        fields["duration"] = duration if duration is not None else details.get("duration", video.duration)
        fields["duration_label"] = duration_label or video.duration_label
        for key, value in fields.items():
            setattr(video, key, value)
        db.commit()
        db.refresh(video)

        successful_uploads_counter.inc()
        upload_logger.info(f"Replaced file of video {video_id}: PeerTube {old_remote_id} -> {video.remote_video_id}")
        return video
    finally:
        remove_files(staged.path)
