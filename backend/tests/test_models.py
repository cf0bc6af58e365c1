"""Model tests - upload status transitions and membership lists"""
import pytest

from vision.core.errors import ValidationFailed
from vision.db import helpers as db_helpers
from vision.models.video import Video


@pytest.mark.critical
class TestUploadStatus:
    """upload_status only moves processing -> published/failed"""

    def _video(self, db_session, user_id, status="processing"):
        video = db_helpers.create_video(
            db_session, user_id=user_id, remote_video_id=1, title="Clip", upload_status=status
        )
        db_session.commit()
        return video

    def test_processing_to_published_allowed(self, db_session, test_user):
        video = self._video(db_session, test_user.id)
        video.upload_status = "published"
        db_session.commit()
        db_session.refresh(video)
        assert video.upload_status == "published"

    def test_processing_to_failed_allowed(self, db_session, test_user):
        video = self._video(db_session, test_user.id)
        video.upload_status = "failed"
        assert video.upload_status == "failed"

    def test_published_cannot_go_back_to_processing(self, db_session, test_user):
        video = self._video(db_session, test_user.id, status="published")
        with pytest.raises(ValidationFailed):
            video.upload_status = "processing"

    def test_failed_cannot_become_published(self, db_session, test_user):
        video = self._video(db_session, test_user.id, status="failed")
        with pytest.raises(ValidationFailed):
            video.upload_status = "published"

    def test_same_status_is_noop(self, db_session, test_user):
        video = self._video(db_session, test_user.id, status="published")
        video.upload_status = "published"
        assert video.upload_status == "published"

    def test_unknown_status_rejected(self, db_session, test_user):
        with pytest.raises(ValidationFailed):
            Video(user_id=test_user.id, remote_video_id=1, title="Clip", upload_status="uploading")


@pytest.mark.high
class TestMembership:
    """games/videos lists are maintained by explicit push/pull"""

    def test_season_games_reflect_pushes(self, db_session, test_user):
        season = db_helpers.create_season(test_user.id, "2024", db_session)
        game = db_helpers.create_game(season.id, "Week 1", db_session)
        db_helpers.push_game_to_season(season.id, game.id, db_session)
        db_helpers.push_game_to_season(season.id, game.id, db_session)  # duplicate push
        db_session.commit()

        assert season.games == [game.id]

    def test_reverse_lookup_finds_owning_game(self, db_session, season_with_videos):
        _, games = season_with_videos
        week2 = games[1]
        video_id = week2.videos[0]

        owner = db_helpers.find_game_containing_video(video_id, db_session)
        assert owner.id == week2.id

    def test_pull_removes_video_from_game(self, db_session, season_with_videos):
        _, games = season_with_videos
        week1 = games[0]
        video_id = week1.videos[0]

        db_helpers.pull_video_from_games(video_id, db_session)
        db_session.commit()

        assert video_id not in week1.videos
        assert db_helpers.find_game_containing_video(video_id, db_session) is None
        # The video row itself is untouched
        assert db_helpers.get_video(video_id, db_session) is not None

    def test_orphan_ids_are_skipped_when_loading(self, db_session, season_with_videos):
        _, games = season_with_videos
        week1 = games[0]
        db_helpers.push_video_to_game(week1.id, 9999, db_session)
        db_session.commit()

        videos = db_helpers.get_videos_by_ids(week1.videos, db_session)
        assert 9999 in week1.videos
        assert len(videos) == 2
