"""Shared route dependencies - PeerTube client handle and ownership checks"""
from fastapi import Request
from sqlalchemy.orm import Session

from vision.core.errors import NotFound, InternalError
from vision.services import lifecycle_service
from vision.services.peertube import PeerTubeClient


def get_peertube_client(request: Request) -> PeerTubeClient:
    """The client built at startup (see main.lifespan)"""
    client = getattr(request.app.state, "peertube_client", None)
    if client is None:
        raise InternalError("PeerTube client is not configured")
    return client


# Content owned by another user is reported exactly like missing content

def ensure_season_owner(season_id: int, user_id: int, db: Session) -> None:
    if lifecycle_service.get_season_owner_id(season_id, db) != user_id:
        raise NotFound("Season not found", details={"season_id": season_id})


def ensure_game_owner(game_id: int, user_id: int, db: Session) -> None:
    if lifecycle_service.get_game_owner_id(game_id, db) != user_id:
        raise NotFound("Game not found", details={"game_id": game_id})


def ensure_video_owner(video_id: int, user_id: int, db: Session) -> None:
    if lifecycle_service.get_video_owner_id(video_id, db) != user_id:
        raise NotFound("Video not found", details={"video_id": video_id})
