"""Share link routes - read-only views that need no session

A share link carries only the id, so anyone holding it can view the season,
game or video. Nothing here writes.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from vision.api.deps import get_peertube_client
from vision.api.games import game_details_json
from vision.core.errors import success_envelope
from vision.db.session import get_db
from vision.schemas.game import GameResponse
from vision.schemas.season import SeasonResponse
from vision.schemas.video import VideoResponse, VideoDetailsResponse
from vision.services import lifecycle_service
from vision.services.peertube import PeerTubeClient

router = APIRouter(prefix="/api/shared", tags=["shared"])


@router.get("/seasons/{season_id}")
def get_shared_season(season_id: int, db: Session = Depends(get_db)):
    """Season with every game and its videos"""
    details = lifecycle_service.get_season_details(season_id, db)
    data = SeasonResponse.model_validate(details["season"]).model_dump(mode="json")
    data["game_details"] = [
        {
            **GameResponse.model_validate(entry["game"]).model_dump(mode="json"),
            "video_details": [VideoResponse.model_validate(v).model_dump(mode="json") for v in entry["videos"]],
        }
        for entry in details["games"]
    ]
    return success_envelope(data)


@router.get("/games/{game_id}")
def get_shared_game(game_id: int, db: Session = Depends(get_db)):
    details = lifecycle_service.get_game_details(game_id, db)
    return success_envelope(game_details_json(details))


@router.get("/videos/{video_id}")
def get_shared_video(
    video_id: int,
    db: Session = Depends(get_db),
    peertube: PeerTubeClient = Depends(get_peertube_client)
):
    """Local record plus the PeerTube record used by the player"""
    details = lifecycle_service.get_video_details(video_id, db, peertube)
    return success_envelope(VideoDetailsResponse.from_details(details).model_dump(mode="json"))
