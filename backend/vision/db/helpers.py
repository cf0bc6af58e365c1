"""Database helper functions for the Season -> Game -> Video hierarchy

These helpers only stage changes (add/flush). The caller owns the transaction
and decides when to commit, so one request can group several writes.
Membership lists (season_games, game_videos) are changed only through the
push/pull helpers below; nothing cascades at the database level.
"""
from sqlalchemy.orm import Session
from typing import Optional, List, Iterable
import logging

from vision.models.season import Season, SeasonGame
from vision.models.game import Game, GameVideo
from vision.models.video import Video
from vision.models.remote_account import RemoteAccount

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Seasons
# ---------------------------------------------------------------------------

def create_season(user_id: int, name: str, db: Session) -> Season:
    season = Season(user_id=user_id, name=name)
    db.add(season)
    db.flush()
    return season


def get_season(season_id: int, db: Session) -> Optional[Season]:
    return db.query(Season).filter(Season.id == season_id).first()


def get_user_seasons(user_id: int, db: Session) -> List[Season]:
    """Get all seasons for a user, newest first"""
    return db.query(Season).filter(Season.user_id == user_id).order_by(Season.created_at.desc(), Season.id.desc()).all()


def update_season(season_id: int, db: Session, **kwargs) -> Optional[Season]:
    season = get_season(season_id, db)
    if not season:
        return None
    for key, value in kwargs.items():
        setattr(season, key, value)
    db.flush()
    return season


def delete_season(season_id: int, db: Session) -> int:
    """Delete a season row and its membership rows. Returns the number of seasons removed."""
    db.query(SeasonGame).filter(SeasonGame.season_id == season_id).delete(synchronize_session=False)
    return db.query(Season).filter(Season.id == season_id).delete(synchronize_session=False)


# ---------------------------------------------------------------------------
# Games
# ---------------------------------------------------------------------------

def create_game(season_id: int, name: str, db: Session) -> Game:
    game = Game(season_id=season_id, name=name)
    db.add(game)
    db.flush()
    return game


def get_game(game_id: int, db: Session) -> Optional[Game]:
    return db.query(Game).filter(Game.id == game_id).first()


def get_games_by_season(season_id: int, db: Session) -> List[Game]:
    """All games whose season_id points at this season (the authoritative side)"""
    return db.query(Game).filter(Game.season_id == season_id).order_by(Game.id).all()


def update_game(game_id: int, db: Session, **kwargs) -> Optional[Game]:
    game = get_game(game_id, db)
    if not game:
        return None
    for key, value in kwargs.items():
        setattr(game, key, value)
    db.flush()
    return game


def delete_games(game_ids: Iterable[int], db: Session) -> int:
    """Delete game rows and their video membership rows. Returns the number of games removed."""
    game_ids = list(game_ids)
    if not game_ids:
        return 0
    db.query(GameVideo).filter(GameVideo.game_id.in_(game_ids)).delete(synchronize_session=False)
    return db.query(Game).filter(Game.id.in_(game_ids)).delete(synchronize_session=False)


# ---------------------------------------------------------------------------
# Membership push/pull
# ---------------------------------------------------------------------------

def push_game_to_season(season_id: int, game_id: int, db: Session) -> None:
    """Add game_id to the season's games (no-op when already present)"""
    exists = db.query(SeasonGame).filter(
        SeasonGame.season_id == season_id,
        SeasonGame.game_id == game_id
    ).first()
    if not exists:
        db.add(SeasonGame(season_id=season_id, game_id=game_id))
        db.flush()


def pull_game_from_seasons(game_id: int, db: Session) -> int:
    """Remove game_id from every season that references it. Returns rows removed."""
    return db.query(SeasonGame).filter(SeasonGame.game_id == game_id).delete(synchronize_session=False)


def push_video_to_game(game_id: int, video_id: int, db: Session) -> None:
    """Add video_id to the game's videos (no-op when already present)"""
    exists = db.query(GameVideo).filter(
        GameVideo.game_id == game_id,
        GameVideo.video_id == video_id
    ).first()
    if not exists:
        db.add(GameVideo(game_id=game_id, video_id=video_id))
        db.flush()


def pull_video_from_games(video_id: int, db: Session) -> int:
    """Remove video_id from every game that references it. Returns rows removed."""
    return db.query(GameVideo).filter(GameVideo.video_id == video_id).delete(synchronize_session=False)


def get_game_video_ids(game_ids: Iterable[int], db: Session) -> List[int]:
    """Union of video ids referenced by the given games, in first-seen order"""
    game_ids = list(game_ids)
    if not game_ids:
        return []
    rows = db.query(GameVideo.video_id).filter(GameVideo.game_id.in_(game_ids)).order_by(GameVideo.game_id, GameVideo.video_id).all()
    seen = {}
    for (video_id,) in rows:
        seen.setdefault(video_id, None)
    return list(seen)


def find_game_containing_video(video_id: int, db: Session) -> Optional[Game]:
    """Reverse lookup: the game whose videos list contains video_id"""
    return db.query(Game).join(GameVideo, GameVideo.game_id == Game.id).filter(
        GameVideo.video_id == video_id
    ).order_by(Game.id).first()


# ---------------------------------------------------------------------------
# Videos
# ---------------------------------------------------------------------------

def create_video(db: Session, **fields) -> Video:
    video = Video(**fields)
    db.add(video)
    db.flush()
    return video


def get_video(video_id: int, db: Session) -> Optional[Video]:
    return db.query(Video).filter(Video.id == video_id).first()


def get_videos_by_ids(video_ids: Iterable[int], db: Session) -> List[Video]:
    """Existing videos for the given ids; ids without a row are skipped"""
    video_ids = list(video_ids)
    if not video_ids:
        return []
    return db.query(Video).filter(Video.id.in_(video_ids)).order_by(Video.id).all()


def update_video(video_id: int, db: Session, **kwargs) -> Optional[Video]:
    video = get_video(video_id, db)
    if not video:
        return None
    for key, value in kwargs.items():
        setattr(video, key, value)
    db.flush()
    return video


def delete_videos(video_ids: Iterable[int], db: Session) -> int:
    """Delete video rows by id. Returns the number of rows removed."""
    video_ids = list(video_ids)
    if not video_ids:
        return 0
    return db.query(Video).filter(Video.id.in_(video_ids)).delete(synchronize_session=False)


# ---------------------------------------------------------------------------
# Remote accounts
# ---------------------------------------------------------------------------

def get_remote_account(user_id: int, db: Session) -> Optional[RemoteAccount]:
    return db.query(RemoteAccount).filter(RemoteAccount.user_id == user_id).first()


def save_remote_account(user_id: int, db: Session, **fields) -> RemoteAccount:
    """Create or update the user's remote account row"""
    account = get_remote_account(user_id, db)
    if account:
        for key, value in fields.items():
            setattr(account, key, value)
    else:
        account = RemoteAccount(user_id=user_id, **fields)
        db.add(account)
    db.flush()
    return account
