"""User model"""
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from vision.models.base import Base


class User(Base):
    """User accounts (owned by the access layer, read here for ownership and provisioning)"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    payment_status = Column(String(50), default="pending", nullable=False)  # pending, paid, failed, canceled
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)

    # Relationships
    seasons = relationship("Season", back_populates="user", cascade="all, delete-orphan")
    remote_account = relationship("RemoteAccount", back_populates="user", uselist=False, cascade="all, delete-orphan")
