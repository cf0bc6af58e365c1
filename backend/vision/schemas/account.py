"""Pydantic schemas for remote account provisioning"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class RemoteAccountCreate(BaseModel):
    password: str


class RemoteAccountResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    remote_user_id: int
    remote_account_id: int
    remote_username: str
    channel_id: Optional[int] = None
    channel_name: Optional[str] = None
    created_at: Optional[datetime] = None
