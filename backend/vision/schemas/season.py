"""Pydantic schemas for season operations"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from vision.schemas.game import GameResponse


class SeasonCreate(BaseModel):
    name: str = Field(..., max_length=255)


class SeasonRename(BaseModel):
    name: str = Field(..., max_length=255)


class SeasonResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    user_id: int
    games: List[int] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SeasonWithGames(SeasonResponse):
    """Season with its games expanded (library listing)"""
    game_details: List[GameResponse] = []
