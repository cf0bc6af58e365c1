"""Season model and its game membership table"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship, foreign
from datetime import datetime, timezone
from vision.models.base import Base


class SeasonGame(Base):
    """Membership of a Game in a Season's games list (no FKs, maintained by explicit push/pull)"""
    __tablename__ = "season_games"

    season_id = Column(Integer, primary_key=True, index=True)
    game_id = Column(Integer, primary_key=True, index=True)


class Season(Base):
    """Top level of the content hierarchy, owned by one user"""
    __tablename__ = "seasons"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc), nullable=False)

    # Relationships
    user = relationship("User", back_populates="seasons")
    game_links = relationship(
        "SeasonGame",
        primaryjoin=lambda: Season.id == foreign(SeasonGame.season_id),
        viewonly=True,
        order_by=lambda: SeasonGame.game_id,
    )

    @property
    def games(self):
        """Ids of the Games this Season references"""
        return [link.game_id for link in self.game_links]
