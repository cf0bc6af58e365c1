"""Videos API routes"""
import asyncio
import logging

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session

from vision.api.deps import get_peertube_client, ensure_game_owner, ensure_video_owner
from vision.core.errors import success_envelope
from vision.core.security import require_auth
from vision.db.session import get_db
from vision.schemas.video import (
    VideoRename, VideoMove, VideoResponse, VideoDetailsResponse, VideoOwnershipResponse
)
from vision.services import lifecycle_service
from vision.services.peertube import PeerTubeClient
from vision.services.video import remove_files, save_upload, replace_video_file

router = APIRouter(prefix="/api/videos", tags=["videos"])
upload_logger = logging.getLogger("upload")


def _video_json(video) -> dict:
    return VideoResponse.model_validate(video).model_dump(mode="json")


@router.get("/{video_id}")
def get_video_details(
    video_id: int,
    user_id: int = Depends(require_auth),
    db: Session = Depends(get_db),
    peertube: PeerTubeClient = Depends(get_peertube_client)
):
    """Local record plus PeerTube playback metadata"""
    ensure_video_owner(video_id, user_id, db)
    details = lifecycle_service.get_video_details(video_id, db, peertube)
    return success_envelope(VideoDetailsResponse.from_details(details).model_dump(mode="json"))


@router.patch("/{video_id}")
def rename_video(
    video_id: int,
    body: VideoRename,
    user_id: int = Depends(require_auth),
    db: Session = Depends(get_db),
    peertube: PeerTubeClient = Depends(get_peertube_client)
):
    ensure_video_owner(video_id, user_id, db)
    video = lifecycle_service.rename_video(video_id, body.title, db, peertube)
    return success_envelope(_video_json(video), "Video renamed successfully")


@router.delete("/{video_id}")
def delete_video(
    video_id: int,
    user_id: int = Depends(require_auth),
    db: Session = Depends(get_db),
    peertube: PeerTubeClient = Depends(get_peertube_client)
):
    ensure_video_owner(video_id, user_id, db)
    report = lifecycle_service.delete_video(video_id, db, peertube)
    return success_envelope(report.to_dict(), "Video deleted successfully")


@router.put("/{video_id}/file")
async def replace_file(
    video_id: int,
    file: UploadFile = File(...),
    user_id: int = Depends(require_auth),
    db: Session = Depends(get_db),
    peertube: PeerTubeClient = Depends(get_peertube_client)
):
    """Replace the video file on PeerTube, keeping the local video id and metadata"""
    ensure_video_owner(video_id, user_id, db)
    upload_logger.info(f"Replacing file of video {video_id} for user {user_id}: {file.filename}")

    staged = await save_upload(file)
    try:
        video = await asyncio.to_thread(replace_video_file, video_id, staged, db, peertube)
    finally:
        remove_files(staged.path)
    return success_envelope(_video_json(video), "Video file updated successfully")


@router.put("/{video_id}/game")
def move_video(
    video_id: int,
    body: VideoMove,
    user_id: int = Depends(require_auth),
    db: Session = Depends(get_db)
):
    ensure_video_owner(video_id, user_id, db)
    ensure_game_owner(body.game_id, user_id, db)
    video = lifecycle_service.move_video(video_id, body.game_id, db)
    return success_envelope(_video_json(video), "Video moved successfully")


@router.get("/{video_id}/ownership")
def check_video_ownership(video_id: int, user_id: int = Depends(require_auth), db: Session = Depends(get_db)):
    """Whether the caller owns a video reached through a share link"""
    owned = lifecycle_service.is_video_owner(video_id, user_id, db)
    return success_envelope(VideoOwnershipResponse(video_id=video_id, owned=owned).model_dump())
