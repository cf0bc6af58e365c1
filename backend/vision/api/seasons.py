"""Seasons API routes"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from vision.api.deps import get_peertube_client, ensure_season_owner
from vision.core.errors import success_envelope
from vision.core.security import require_auth
from vision.db.session import get_db
from vision.schemas.game import GameCreate, GameResponse
from vision.schemas.season import SeasonCreate, SeasonRename, SeasonResponse, SeasonWithGames
from vision.services import lifecycle_service
from vision.services.peertube import PeerTubeClient

router = APIRouter(prefix="/api/seasons", tags=["seasons"])
logger = logging.getLogger(__name__)


def _season_json(season) -> dict:
    return SeasonResponse.model_validate(season).model_dump(mode="json")


@router.post("", status_code=201)
def create_season(
    body: SeasonCreate,
    user_id: int = Depends(require_auth),
    db: Session = Depends(get_db)
):
    """Create an empty season"""
    season = lifecycle_service.create_season(user_id, body.name, db)
    return success_envelope(_season_json(season), "Season created successfully")


@router.get("")
def list_seasons(user_id: int = Depends(require_auth), db: Session = Depends(get_db)):
    """All of the user's seasons with their games"""
    data = []
    for entry in lifecycle_service.list_seasons(user_id, db):
        season = SeasonResponse.model_validate(entry["season"]).model_dump()
        season["game_details"] = [GameResponse.model_validate(g) for g in entry["games"]]
        data.append(SeasonWithGames(**season).model_dump(mode="json"))
    return success_envelope(data)


@router.patch("/{season_id}")
def rename_season(
    season_id: int,
    body: SeasonRename,
    user_id: int = Depends(require_auth),
    db: Session = Depends(get_db)
):
    ensure_season_owner(season_id, user_id, db)
    season = lifecycle_service.rename_season(season_id, body.name, db)
    return success_envelope(_season_json(season), "Season renamed successfully")


@router.delete("/{season_id}")
def delete_season(
    season_id: int,
    user_id: int = Depends(require_auth),
    db: Session = Depends(get_db),
    peertube: PeerTubeClient = Depends(get_peertube_client)
):
    """Delete a season with all games and videos (PeerTube failures are reported, not fatal)"""
    ensure_season_owner(season_id, user_id, db)
    report = lifecycle_service.delete_season(season_id, db, peertube)
    return success_envelope(report.to_dict(), "Season and all associated games and videos deleted successfully")


@router.post("/{season_id}/games", status_code=201)
def add_game(
    season_id: int,
    body: GameCreate,
    user_id: int = Depends(require_auth),
    db: Session = Depends(get_db)
):
    ensure_season_owner(season_id, user_id, db)
    game = lifecycle_service.add_game(season_id, body.name, db)
    return success_envelope(GameResponse.model_validate(game).model_dump(mode="json"), "Game added successfully")


@router.get("/{season_id}/games")
def get_games_for_season(
    season_id: int,
    user_id: int = Depends(require_auth),
    db: Session = Depends(get_db)
):
    ensure_season_owner(season_id, user_id, db)
    games = lifecycle_service.get_games_for_season(season_id, db)
    return success_envelope([GameResponse.model_validate(g).model_dump(mode="json") for g in games])
