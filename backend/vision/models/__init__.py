"""SQLAlchemy models package - imports all models so they register with Base.metadata"""
from vision.models.base import Base
from vision.models.user import User
from vision.models.remote_account import RemoteAccount
from vision.models.season import Season, SeasonGame
from vision.models.game import Game, GameVideo
from vision.models.video import Video

# Export all for convenience
__all__ = [
    "Base", "User", "RemoteAccount", "Season", "SeasonGame",
    "Game", "GameVideo", "Video"
]
