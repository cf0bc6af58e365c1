"""Shared pytest fixtures for test suite"""
import os
import secrets
import sys
import tempfile
from pathlib import Path
from typing import Generator
from unittest.mock import Mock, patch

# Settings are read at import time - point them at test resources first
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="vision-uploads-"))
os.environ.setdefault("PEERTUBE_INSTANCE_URL", "https://peertube.test")
os.environ.setdefault("PEERTUBE_ADMIN_USERNAME", "root")
os.environ.setdefault("PEERTUBE_ADMIN_PASSWORD", "test-password")

import pytest
import fakeredis
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

from vision.main import app
from vision.api.deps import get_peertube_client
from vision.db.session import get_db
from vision.db import helpers as db_helpers
from vision.db import redis as redis_module
from vision.models import Base
from vision.models.user import User
from vision.models.remote_account import RemoteAccount
from vision.services.peertube import PeerTubeClient
from vision.services.video.file_handler import StagedUpload


PEERTUBE_BASE_URL = "https://peertube.test"

# SQLite in-memory database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"

# Create test engine with StaticPool for in-memory database
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Create test session factory
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create a fresh SQLite in-memory database session for each test"""
    # Create all tables
    Base.metadata.create_all(bind=test_engine)

    # Create session
    session = TestSessionLocal()

    try:
        yield session
    finally:
        session.close()
        # Drop all tables after test
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture(scope="function")
def mock_redis():
    """Mock Redis client using fakeredis"""
    fake_redis = fakeredis.FakeStrictRedis(decode_responses=True)
    with patch.object(redis_module, "_client", fake_redis):
        yield fake_redis


def _remote_video(remote_id: int = 101, uuid: str = "9c9de5e8-0a1b-4f3c-8d3e-1a2b3c4d5e6f") -> dict:
    return {
        "id": remote_id,
        "uuid": uuid,
        "shortUUID": "kZ1a2b3c",
        "url": f"{PEERTUBE_BASE_URL}/videos/watch/{uuid}",
    }


@pytest.fixture(scope="function")
def mock_peertube() -> Mock:
    """Mock PeerTube client with realistic return values"""
    peertube = Mock(spec=PeerTubeClient)
    peertube.base_url = PEERTUBE_BASE_URL
    peertube.build_url.side_effect = lambda path: f"{PEERTUBE_BASE_URL}{path}" if path else ""
    peertube.embed_url.side_effect = lambda uuid: f"{PEERTUBE_BASE_URL}/videos/embed/{uuid}" if uuid else ""

    uploaded = _remote_video()
    peertube.upload_video.return_value = uploaded
    peertube.get_video_details.return_value = {
        **uploaded,
        "name": "Week 1 highlights",
        "duration": 65,
        "thumbnailPath": "/lazy-static/thumbnails/abc.jpg",
        "previewPath": "/lazy-static/previews/abc.jpg",
        "channel": {"id": 7, "url": f"{PEERTUBE_BASE_URL}/video-channels/1_chn"},
        "streamingPlaylists": [],
    }
    peertube.delete_video.return_value = None
    peertube.rename_video.return_value = None
    return peertube


@pytest.fixture(scope="function")
def client(db_session: Session, mock_redis, mock_peertube) -> Generator[TestClient, None, None]:
    """FastAPI test client with test database, mocked Redis and mocked PeerTube"""

    # Override get_db dependency to use test database
    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Don't close session here, handled by fixture

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_peertube_client] = lambda: mock_peertube

    try:
        # No context manager: startup (DB init, Redis ping, PeerTube login) is not run in tests
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        # Cleanup - always clear overrides
        app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def test_user(db_session: Session) -> User:
    """Create a paid test user"""
    user = User(email="coach@example.com", first_name="Test", last_name="Coach", payment_status="paid")
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture(scope="function")
def test_user_2(db_session: Session) -> User:
    """Create a second test user for ownership tests"""
    user = User(email="other.coach@example.com", first_name="Other", last_name="Coach", payment_status="paid")
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture(scope="function")
def remote_account(db_session: Session, test_user: User) -> RemoteAccount:
    """PeerTube user + channel for test_user"""
    account = db_helpers.save_remote_account(
        test_user.id,
        db_session,
        remote_user_id=42,
        remote_account_id=43,
        remote_username=str(test_user.id),
        channel_id=7,
        channel_name=f"{test_user.id}_chn",
    )
    db_session.commit()
    db_session.refresh(account)
    return account


@pytest.fixture(scope="function")
def authenticated_client(client: TestClient, test_user: User, mock_redis) -> TestClient:
    """Client with a session cookie resolved to test_user"""
    session_id = secrets.token_urlsafe(32)
    redis_module.set_session(session_id, test_user.id)
    client.cookies.set("session_id", session_id)
    return client


@pytest.fixture(scope="function")
def staged_video(tmp_path):
    """Factory for staged upload files on disk"""
    def _make(name: str = "week1.mp4", content_type: str = "video/mp4", data: bytes = b"\x00\x00\x00\x18ftypmp42") -> StagedUpload:
        path = tmp_path / f"video-{secrets.token_hex(8)}{Path(name).suffix}"
        path.write_bytes(data)
        return StagedUpload(path=path, filename=name, content_type=content_type, size=len(data))
    return _make


@pytest.fixture(scope="function")
def season_with_videos(db_session: Session, test_user: User):
    """Season with two games holding three videos (remote ids 201-203)"""
    season = db_helpers.create_season(test_user.id, "2024", db_session)
    games = []
    remote_id = 201
    for game_name, video_count in (("Week 1", 2), ("Week 2", 1)):
        game = db_helpers.create_game(season.id, game_name, db_session)
        db_helpers.push_game_to_season(season.id, game.id, db_session)
        for i in range(video_count):
            video = db_helpers.create_video(
                db_session,
                user_id=test_user.id,
                remote_video_id=remote_id,
                title=f"{game_name} clip {i + 1}",
                upload_status="published",
            )
            db_helpers.push_video_to_game(game.id, video.id, db_session)
            remote_id += 1
        games.append(game)
    db_session.commit()
    return season, games
