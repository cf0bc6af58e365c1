"""Games API routes, including video uploads into a game"""
import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from vision.api.deps import get_peertube_client, ensure_game_owner, ensure_season_owner
from vision.core.config import DEFAULT_PRIVACY, DEFAULT_CATEGORY, DEFAULT_LICENSE, DEFAULT_LANGUAGE
from vision.core.errors import VisionError, success_envelope
from vision.core.security import require_auth
from vision.db.session import get_db
from vision.schemas.game import GameRename, GameMove, GameResponse
from vision.schemas.season import SeasonResponse
from vision.schemas.video import VideoResponse, BatchUploadItem
from vision.services import lifecycle_service
from vision.services.peertube import PeerTubeClient
from vision.services.video import (
    BatchItemResult, UploadOptions, parse_tags, remove_files, save_upload,
    upload_video_to_game, upload_videos_to_game
)

router = APIRouter(prefix="/api/games", tags=["games"])
upload_logger = logging.getLogger("upload")


def _game_json(game) -> dict:
    return GameResponse.model_validate(game).model_dump(mode="json")


def _video_json(video) -> dict:
    return VideoResponse.model_validate(video).model_dump(mode="json")


def game_details_json(details) -> dict:
    season = details["season"]
    return {
        "game": _game_json(details["game"]),
        "season": SeasonResponse.model_validate(season).model_dump(mode="json") if season else None,
        "videos": [_video_json(v) for v in details["videos"]],
    }


@router.get("/{game_id}")
def get_game_details(game_id: int, user_id: int = Depends(require_auth), db: Session = Depends(get_db)):
    """Game with its season and videos"""
    ensure_game_owner(game_id, user_id, db)
    details = lifecycle_service.get_game_details(game_id, db)
    return success_envelope(game_details_json(details))


@router.patch("/{game_id}")
def rename_game(
    game_id: int,
    body: GameRename,
    user_id: int = Depends(require_auth),
    db: Session = Depends(get_db)
):
    ensure_game_owner(game_id, user_id, db)
    game = lifecycle_service.rename_game(game_id, body.name, db)
    return success_envelope(_game_json(game), "Game renamed successfully")


@router.delete("/{game_id}")
def delete_game(
    game_id: int,
    user_id: int = Depends(require_auth),
    db: Session = Depends(get_db),
    peertube: PeerTubeClient = Depends(get_peertube_client)
):
    ensure_game_owner(game_id, user_id, db)
    report = lifecycle_service.delete_game(game_id, db, peertube)
    return success_envelope(report.to_dict(), "Game and all associated videos deleted successfully")


@router.get("/{game_id}/videos")
def get_videos_for_game(game_id: int, user_id: int = Depends(require_auth), db: Session = Depends(get_db)):
    """Videos in the game ([] for an empty game)"""
    ensure_game_owner(game_id, user_id, db)
    videos = lifecycle_service.get_videos_for_game(game_id, db)
    return success_envelope([_video_json(v) for v in videos])


@router.put("/{game_id}/season")
def move_game(
    game_id: int,
    body: GameMove,
    user_id: int = Depends(require_auth),
    db: Session = Depends(get_db)
):
    ensure_game_owner(game_id, user_id, db)
    ensure_season_owner(body.season_id, user_id, db)
    game = lifecycle_service.move_game(game_id, body.season_id, db)
    return success_envelope(_game_json(game), "Game moved successfully")


@router.post("/{game_id}/videos", status_code=201)
async def upload_video(
    game_id: int,
    file: UploadFile = File(...),
    name: str = Form(...),
    description: str = Form(""),
    mute: bool = Form(False),
    privacy: int = Form(DEFAULT_PRIVACY),
    category: int = Form(DEFAULT_CATEGORY),
    license: int = Form(DEFAULT_LICENSE),
    language: str = Form(DEFAULT_LANGUAGE),
    tags: Optional[str] = Form(None),
    user_id: int = Depends(require_auth),
    db: Session = Depends(get_db),
    peertube: PeerTubeClient = Depends(get_peertube_client)
):
    """Upload one video to PeerTube and add it to the game"""
    ensure_game_owner(game_id, user_id, db)
    upload_logger.info(
        f"Upload to game {game_id} for user {user_id}: {file.filename} (Content-Type: {file.content_type}, mute={mute})"
    )

    staged = await save_upload(file)
    options = UploadOptions(
        name=name,
        description=description,
        mute=mute,
        privacy=privacy,
        category=category,
        license=license,
        language=language,
        tags=parse_tags(tags),
    )
    try:
        video = await asyncio.to_thread(upload_video_to_game, game_id, staged, options, db, peertube)
    finally:
        remove_files(staged.path)
    return success_envelope(_video_json(video), "Video uploaded successfully")


@router.post("/{game_id}/videos/batch")
async def upload_videos_batch(
    game_id: int,
    files: List[UploadFile] = File(...),
    name: Optional[str] = Form(None),
    description: str = Form(""),
    mute: bool = Form(False),
    privacy: int = Form(DEFAULT_PRIVACY),
    category: int = Form(DEFAULT_CATEGORY),
    license: int = Form(DEFAULT_LICENSE),
    language: str = Form(DEFAULT_LANGUAGE),
    tags: Optional[str] = Form(None),
    user_id: int = Depends(require_auth),
    db: Session = Depends(get_db),
    peertube: PeerTubeClient = Depends(get_peertube_client)
):
    """Upload several videos one after another; returns 207 with a result per file"""
    ensure_game_owner(game_id, user_id, db)
    upload_logger.info(f"Batch upload of {len(files)} file(s) to game {game_id} for user {user_id}")

    # None marks a slot filled later by the pipeline result for that file
    slots: List[Optional[BatchItemResult]] = []
    items = []
    try:
        for file in files:
            try:
                staged = await save_upload(file)
            except VisionError as e:
                slots.append(BatchItemResult(filename=file.filename or "", error=e))
                continue
            items.append((staged, UploadOptions(
                name=name or staged.filename,
                description=description,
                mute=mute,
                privacy=privacy,
                category=category,
                license=license,
                language=language,
                tags=parse_tags(tags),
            )))
            slots.append(None)

        uploaded = await asyncio.to_thread(upload_videos_to_game, game_id, items, db, peertube)
    finally:
        remove_files(*(staged.path for staged, _ in items))

    pending = iter(uploaded)
    results = [slot if slot is not None else next(pending) for slot in slots]

    data = []
    for result in results:
        if result.success:
            item = BatchUploadItem(filename=result.filename, success=True, video=VideoResponse.model_validate(result.video))
        else:
            item = BatchUploadItem(filename=result.filename, success=False, code=result.error.code, message=result.error.message)
        data.append(item.model_dump(mode="json"))

    succeeded = sum(1 for r in results if r.success)
    return JSONResponse(
        status_code=207,
        content=success_envelope(data, f"Batch video upload completed: {succeeded}/{len(results)} succeeded")
    )
