"""RemoteAccount model"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from vision.models.base import Base


class RemoteAccount(Base):
    """PeerTube user and channel provisioned for a local user"""
    __tablename__ = "remote_accounts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True, index=True)
    remote_user_id = Column(Integer, nullable=False)
    remote_account_id = Column(Integer, nullable=False)
    remote_username = Column(String(255), nullable=False)
    channel_id = Column(Integer, nullable=True)  # Null until a channel exists - uploads need it
    channel_name = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc), nullable=False)

    # Relationship
    user = relationship("User", back_populates="remote_account")
