"""Lifecycle service - create, rename, move and cascade-delete Seasons, Games and Videos

Local rows are authoritative. PeerTube deletes and renames are attempted
but their failures are collected and logged, never allowed to block the
local change. In a cascade every remote delete is attempted before any
local row is removed.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from vision.core.errors import NotFound, ValidationFailed, RemoteServiceError
from vision.core.metrics import remote_delete_failures_counter, cascade_deletes_counter
from vision.db import helpers
from vision.models.season import Season
from vision.models.game import Game
from vision.models.video import Video
from vision.services.peertube import PeerTubeClient

lifecycle_logger = logging.getLogger("lifecycle")


@dataclass
class RemoteDeleteResult:
    """Outcome of deleting one video's remote object"""
    video_id: int
    remote_video_id: Optional[int]
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class CascadeReport:
    """What a season/game/video delete removed, plus any remote failures"""
    games_deleted: int = 0
    videos_deleted: int = 0
    remote_results: List[RemoteDeleteResult] = field(default_factory=list)

    @property
    def remote_failures(self) -> List[RemoteDeleteResult]:
        return [r for r in self.remote_results if not r.ok]

    def to_dict(self) -> Dict:
        return {
            "games_deleted": self.games_deleted,
            "videos_deleted": self.videos_deleted,
            "remote_failures": [
                {"video_id": r.video_id, "remote_video_id": r.remote_video_id, "error": r.error}
                for r in self.remote_failures
            ],
        }


def _require_name(name: Optional[str], label: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationFailed(f"{label} is required")
    return cleaned


def _delete_remote_videos(videos: List[Video], peertube: PeerTubeClient) -> List[RemoteDeleteResult]:
    """Delete each video's remote object one at a time, collecting failures"""
    results = []
    for video in videos:
        if not video.remote_video_id:
            continue
        try:
            peertube.delete_video(video.remote_video_id)
            results.append(RemoteDeleteResult(video.id, video.remote_video_id))
        except Exception as e:
            # Any remote failure is recorded; local cleanup always proceeds
            message = e.message if isinstance(e, RemoteServiceError) else str(e)
            remote_delete_failures_counter.inc()
            lifecycle_logger.warning(
                f"Remote delete failed for video {video.id} (PeerTube {video.remote_video_id}), "
                f"continuing with local cleanup: {message}"
            )
            results.append(RemoteDeleteResult(video.id, video.remote_video_id, error=message))
    return results


# ---------------------------------------------------------------------------
# Ownership
# ---------------------------------------------------------------------------

def get_season_owner_id(season_id: int, db: Session) -> Optional[int]:
    season = helpers.get_season(season_id, db)
    return season.user_id if season else None


def get_game_owner_id(game_id: int, db: Session) -> Optional[int]:
    game = helpers.get_game(game_id, db)
    if not game:
        return None
    return get_season_owner_id(game.season_id, db)


def get_video_owner_id(video_id: int, db: Session) -> Optional[int]:
    video = helpers.get_video(video_id, db)
    return video.user_id if video else None


def is_video_owner(video_id: int, user_id: int, db: Session) -> bool:
    """Whether user_id owns the video; NotFound when the video does not exist"""
    owner_id = get_video_owner_id(video_id, db)
    if owner_id is None:
        raise NotFound("Video not found", details={"video_id": video_id})
    return owner_id == user_id


# ---------------------------------------------------------------------------
# Seasons
# ---------------------------------------------------------------------------

def create_season(user_id: int, name: str, db: Session) -> Season:
    name = _require_name(name, "Season name")
    season = helpers.create_season(user_id, name, db)
    db.commit()
    db.refresh(season)
    lifecycle_logger.info(f"Created season {season.id} '{name}' for user {user_id}")
    return season


def list_seasons(user_id: int, db: Session) -> List[Dict]:
    """The user's seasons, each with its games"""
    result = []
    for season in helpers.get_user_seasons(user_id, db):
        result.append({"season": season, "games": helpers.get_games_by_season(season.id, db)})
    return result


def get_season_details(season_id: int, db: Session) -> Dict:
    """Season with its games and each game's videos (shared season view)"""
    season = helpers.get_season(season_id, db)
    if not season:
        raise NotFound("Season not found", details={"season_id": season_id})
    games = helpers.get_games_by_season(season_id, db)
    return {
        "season": season,
        "games": [{"game": g, "videos": helpers.get_videos_by_ids(g.videos, db)} for g in games],
    }


def rename_season(season_id: int, name: str, db: Session) -> Season:
    name = _require_name(name, "Season name")
    season = helpers.update_season(season_id, db, name=name)
    if not season:
        raise NotFound("Season not found", details={"season_id": season_id})
    db.commit()
    db.refresh(season)
    return season


def delete_season(season_id: int, db: Session, peertube: PeerTubeClient) -> CascadeReport:
    """Delete a season with all of its games and videos"""
    season = helpers.get_season(season_id, db)
    if not season:
        raise NotFound("Season not found", details={"season_id": season_id})

    games = helpers.get_games_by_season(season_id, db)
    # Membership may list games whose season_id drifted; include them too
    game_ids = list(dict.fromkeys([g.id for g in games] + season.games))
    video_ids = helpers.get_game_video_ids(game_ids, db)
    videos = helpers.get_videos_by_ids(video_ids, db)

    report = CascadeReport()
    report.remote_results = _delete_remote_videos(videos, peertube)

    report.videos_deleted = helpers.delete_videos(video_ids, db)
    report.games_deleted = helpers.delete_games(game_ids, db)
    for game_id in game_ids:
        helpers.pull_game_from_seasons(game_id, db)
    helpers.delete_season(season_id, db)
    db.commit()

    cascade_deletes_counter.labels(kind="season").inc()
    lifecycle_logger.info(
        f"Deleted season {season_id}: {report.games_deleted} games, {report.videos_deleted} videos, "
        f"{len(report.remote_failures)} remote failures"
    )
    return report


# ---------------------------------------------------------------------------
# Games
# ---------------------------------------------------------------------------

def add_game(season_id: int, name: str, db: Session) -> Game:
    """Create a game and push it onto the season in one transaction"""
    name = _require_name(name, "Game name")
    season = helpers.get_season(season_id, db)
    if not season:
        raise NotFound("Season not found", details={"season_id": season_id})

    game = helpers.create_game(season_id, name, db)
    helpers.push_game_to_season(season_id, game.id, db)
    db.commit()
    db.refresh(game)
    lifecycle_logger.info(f"Added game {game.id} '{name}' to season {season_id}")
    return game


def get_games_for_season(season_id: int, db: Session) -> List[Game]:
    if not helpers.get_season(season_id, db):
        raise NotFound("Season not found", details={"season_id": season_id})
    return helpers.get_games_by_season(season_id, db)


def get_game_details(game_id: int, db: Session) -> Dict:
    """Game with its season and videos"""
    game = helpers.get_game(game_id, db)
    if not game:
        raise NotFound("Game not found", details={"game_id": game_id})
    return {
        "game": game,
        "season": helpers.get_season(game.season_id, db),
        "videos": helpers.get_videos_by_ids(game.videos, db),
    }


def rename_game(game_id: int, name: str, db: Session) -> Game:
    name = _require_name(name, "Game name")
    game = helpers.update_game(game_id, db, name=name)
    if not game:
        raise NotFound("Game not found", details={"game_id": game_id})
    db.commit()
    db.refresh(game)
    return game


def delete_game(game_id: int, db: Session, peertube: PeerTubeClient) -> CascadeReport:
    """Delete a game and its videos, then prune it from every season"""
    game = helpers.get_game(game_id, db)
    if not game:
        raise NotFound("Game not found", details={"game_id": game_id})

    video_ids = helpers.get_game_video_ids([game_id], db)
    videos = helpers.get_videos_by_ids(video_ids, db)

    report = CascadeReport()
    report.remote_results = _delete_remote_videos(videos, peertube)

    report.videos_deleted = helpers.delete_videos(video_ids, db)
    report.games_deleted = helpers.delete_games([game_id], db)
    pruned = helpers.pull_game_from_seasons(game_id, db)
    db.commit()

    cascade_deletes_counter.labels(kind="game").inc()
    lifecycle_logger.info(
        f"Deleted game {game_id}: {report.videos_deleted} videos, pruned from {pruned} season(s), "
        f"{len(report.remote_failures)} remote failures"
    )
    return report


def move_game(game_id: int, target_season_id: int, db: Session) -> Game:
    game = helpers.get_game(game_id, db)
    if not game:
        raise NotFound("Game not found", details={"game_id": game_id})
    if not helpers.get_season(target_season_id, db):
        raise NotFound("Season not found", details={"season_id": target_season_id})

    helpers.pull_game_from_seasons(game_id, db)
    helpers.push_game_to_season(target_season_id, game_id, db)
    game.season_id = target_season_id
    db.commit()
    db.refresh(game)
    lifecycle_logger.info(f"Moved game {game_id} to season {target_season_id}")
    return game


# ---------------------------------------------------------------------------
# Videos
# ---------------------------------------------------------------------------

def get_videos_for_game(game_id: int, db: Session) -> List[Video]:
    """Videos of an existing game; an empty game gives [] rather than NotFound"""
    game = helpers.get_game(game_id, db)
    if not game:
        raise NotFound("Game not found", details={"game_id": game_id})
    return helpers.get_videos_by_ids(game.videos, db)


def get_video_details(video_id: int, db: Session, peertube: PeerTubeClient) -> Dict:
    """Local record plus the live PeerTube record (which may still be processing)"""
    video = helpers.get_video(video_id, db)
    if not video:
        raise NotFound("Video not found", details={"video_id": video_id})
    if not video.remote_video_id:
        raise NotFound("Video has no PeerTube id", details={"video_id": video_id})

    remote = peertube.get_video_details(video.remote_video_id)
    return {"video": video, "remote": remote}


def delete_video(video_id: int, db: Session, peertube: PeerTubeClient) -> CascadeReport:
    """Delete remote (best-effort) then local, and pull the id from its owning game"""
    video = helpers.get_video(video_id, db)
    if not video:
        raise NotFound("Video not found", details={"video_id": video_id})

    report = CascadeReport()
    report.remote_results = _delete_remote_videos([video], peertube)

    owner_game = helpers.find_game_containing_video(video_id, db)
    report.videos_deleted = helpers.delete_videos([video_id], db)
    helpers.pull_video_from_games(video_id, db)
    db.commit()

    lifecycle_logger.info(
        f"Deleted video {video_id}"
        + (f" from game {owner_game.id}" if owner_game else " (no owning game)")
    )
    return report


def rename_video(video_id: int, title: str, db: Session, peertube: PeerTubeClient) -> Video:
    """Rename locally, then on PeerTube; a remote failure only gets logged"""
    title = _require_name(title, "Title")
    video = helpers.update_video(video_id, db, title=title)
    if not video:
        raise NotFound("Video not found", details={"video_id": video_id})
    db.commit()
    db.refresh(video)

    try:
        peertube.rename_video(video.remote_video_id, title)
    except Exception as e:
        lifecycle_logger.warning(f"PeerTube rename failed for video {video_id} (PeerTube {video.remote_video_id}): {e}")
    return video


def move_video(video_id: int, target_game_id: int, db: Session) -> Video:
    """Pull the video from its current game and push it onto another"""
    video = helpers.get_video(video_id, db)
    if not video:
        raise NotFound("Video not found", details={"video_id": video_id})
    if not helpers.get_game(target_game_id, db):
        raise NotFound("Game not found", details={"game_id": target_game_id})

    current = helpers.find_game_containing_video(video_id, db)
    helpers.pull_video_from_games(video_id, db)
    helpers.push_video_to_game(target_game_id, video_id, db)
    db.commit()
    lifecycle_logger.info(
        f"Moved video {video_id} from game {current.id if current else None} to game {target_game_id}"
    )
    return video
