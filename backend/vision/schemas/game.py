"""Pydantic schemas for game operations"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class GameCreate(BaseModel):
    name: str = Field(..., max_length=255)


class GameRename(BaseModel):
    name: str = Field(..., max_length=255)


class GameMove(BaseModel):
    season_id: int


class GameResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    season_id: int
    videos: List[int] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
