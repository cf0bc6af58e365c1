"""Video model"""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON, Boolean, Float, Index
from sqlalchemy.orm import relationship, validates
from datetime import datetime, timezone
from vision.models.base import Base
from vision.core.errors import ValidationFailed

UPLOAD_STATUSES = ("processing", "published", "failed")

# processing is the only state that may move, and only forward
ALLOWED_STATUS_TRANSITIONS = {
    "processing": {"published", "failed"},
}


class Video(Base):
    """A video that exists on the remote service"""
    __tablename__ = "videos"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    remote_video_id = Column(Integer, nullable=False, index=True)  # Join key to the PeerTube object
    remote_uuid = Column(String(64), nullable=True)
    remote_share_url = Column(String(512), nullable=True)
    remote_channel_ref = Column(String(512), nullable=True)  # Channel URL on the remote instance
    remote_channel_id = Column(Integer, nullable=True)
    embed_url = Column(String(512), nullable=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, default="")
    file_path = Column(String(512), nullable=True)
    duration = Column(Float, nullable=True)  # Seconds
    duration_label = Column(String(32), default="", nullable=False)
    thumbnail_url = Column(String(512), nullable=True)
    preview_url = Column(String(512), nullable=True)
    privacy = Column(Integer, default=1, nullable=False)
    category = Column(Integer, default=1, nullable=False)
    license = Column(Integer, default=1, nullable=False)
    language = Column(String(16), default="en", nullable=False)
    muted = Column(Boolean, default=False, nullable=False)
    tags = Column(JSON, default=list)
    upload_status = Column(String(20), default="processing", nullable=False)  # processing, published, failed
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc), nullable=False)

    # Relationship
    user = relationship("User")

    __table_args__ = (
        Index('ix_videos_user_status', 'user_id', 'upload_status'),
    )

    @validates("upload_status")
    def validate_upload_status(self, key, value):
        if value not in UPLOAD_STATUSES:
            raise ValidationFailed(f"Unknown upload status: {value}")

        current = self.upload_status
        if current is None or current == value:
            return value

        if value not in ALLOWED_STATUS_TRANSITIONS.get(current, set()):
            raise ValidationFailed(
                f"Invalid upload status transition: {current} -> {value}",
                details={"video_id": self.id, "from": current, "to": value}
            )
        return value
