"""Pydantic schemas for video operations"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class VideoRename(BaseModel):
    title: str = Field(..., max_length=255)


class VideoMove(BaseModel):
    game_id: int


class VideoResponse(BaseModel):
    """Video response schema"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    remote_video_id: int
    remote_uuid: Optional[str] = None
    remote_share_url: Optional[str] = None
    remote_channel_ref: Optional[str] = None
    remote_channel_id: Optional[int] = None
    embed_url: Optional[str] = None
    title: str
    description: Optional[str] = None
    file_path: Optional[str] = None
    duration: Optional[float] = None
    duration_label: str = ""
    thumbnail_url: Optional[str] = None
    preview_url: Optional[str] = None
    privacy: int
    category: int
    license: int
    language: str
    muted: bool
    tags: List[str] = []
    upload_status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class VideoDetailsResponse(BaseModel):
    """Local record plus the PeerTube record (streamingPlaylists may be empty while processing)"""
    video: VideoResponse
    remote: Dict[str, Any]
    processing: bool = False

    @classmethod
    def from_details(cls, details: Dict[str, Any]) -> "VideoDetailsResponse":
        remote = details["remote"]
        # No playlists or files yet means PeerTube is still transcoding
        processing = not (remote.get("streamingPlaylists") or remote.get("files"))
        return cls(video=VideoResponse.model_validate(details["video"]), remote=remote, processing=processing)


class BatchUploadItem(BaseModel):
    filename: str
    success: bool
    video: Optional[VideoResponse] = None
    code: Optional[str] = None
    message: Optional[str] = None


class VideoOwnershipResponse(BaseModel):
    video_id: int
    owned: bool
