"""Game model and its video membership table"""
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship, foreign
from datetime import datetime, timezone
from vision.models.base import Base


class GameVideo(Base):
    """Membership of a Video in a Game's videos list (the only edge between the two)"""
    __tablename__ = "game_videos"

    game_id = Column(Integer, primary_key=True, index=True)
    video_id = Column(Integer, primary_key=True, index=True)


class Game(Base):
    """A Game inside a Season"""
    __tablename__ = "games"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    season_id = Column(Integer, nullable=False, index=True)  # Back-reference only, membership lives in season_games
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc), nullable=False)

    video_links = relationship(
        "GameVideo",
        primaryjoin=lambda: Game.id == foreign(GameVideo.game_id),
        viewonly=True,
        order_by=lambda: GameVideo.video_id,
    )

    @property
    def videos(self):
        """Ids of the Videos this Game references"""
        return [link.video_id for link in self.video_links]
