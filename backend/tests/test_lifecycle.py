"""Lifecycle service tests - cascades, renames, moves and the empty/missing distinction"""
import pytest
from unittest.mock import call

from vision.core.errors import NotFound, ValidationFailed, RemoteDeleteFailed, RemoteServiceError
from vision.db import helpers as db_helpers
from vision.models.game import Game, GameVideo
from vision.models.season import Season, SeasonGame
from vision.models.video import Video
from vision.services import lifecycle_service


@pytest.mark.critical
class TestDeleteSeason:
    """Cascade delete of a season"""

    def test_cascade_removes_games_and_videos(self, db_session, mock_peertube, season_with_videos):
        season, _ = season_with_videos

        report = lifecycle_service.delete_season(season.id, db_session, mock_peertube)

        assert report.games_deleted == 2
        assert report.videos_deleted == 3
        assert report.remote_failures == []
        assert db_session.query(Season).count() == 0
        assert db_session.query(Game).count() == 0
        assert db_session.query(Video).count() == 0
        assert db_session.query(GameVideo).count() == 0
        assert db_session.query(SeasonGame).count() == 0
        deleted = sorted(c.args[0] for c in mock_peertube.delete_video.call_args_list)
        assert deleted == [201, 202, 203]

    def test_cascade_completes_when_every_remote_delete_fails(self, db_session, mock_peertube, season_with_videos):
        season, _ = season_with_videos
        mock_peertube.delete_video.side_effect = RemoteDeleteFailed("PeerTube delete failed", status=500)

        report = lifecycle_service.delete_season(season.id, db_session, mock_peertube)

        assert mock_peertube.delete_video.call_count == 3
        assert len(report.remote_failures) == 3
        assert {r.remote_video_id for r in report.remote_failures} == {201, 202, 203}
        assert db_session.query(Game).count() == 0
        assert db_session.query(Video).count() == 0
        assert db_session.query(Season).count() == 0

    def test_cascade_survives_unexpected_remote_errors(self, db_session, mock_peertube, season_with_videos):
        season, _ = season_with_videos
        mock_peertube.delete_video.side_effect = [None, ConnectionError("reset"), None]

        report = lifecycle_service.delete_season(season.id, db_session, mock_peertube)

        assert len(report.remote_failures) == 1
        assert report.remote_failures[0].error == "reset"
        assert db_session.query(Video).count() == 0

    def test_remote_deletes_happen_before_local_deletes(self, db_session, mock_peertube, season_with_videos):
        season, _ = season_with_videos
        counts_seen = []
        mock_peertube.delete_video.side_effect = lambda _id: counts_seen.append(db_session.query(Video).count())

        lifecycle_service.delete_season(season.id, db_session, mock_peertube)

        assert counts_seen == [3, 3, 3]

    def test_missing_season_raises_not_found(self, db_session, mock_peertube):
        with pytest.raises(NotFound):
            lifecycle_service.delete_season(12345, db_session, mock_peertube)
        mock_peertube.delete_video.assert_not_called()

    def test_other_seasons_untouched(self, db_session, mock_peertube, test_user, season_with_videos):
        season, _ = season_with_videos
        other = lifecycle_service.create_season(test_user.id, "2025", db_session)
        other_game = lifecycle_service.add_game(other.id, "Opener", db_session)

        lifecycle_service.delete_season(season.id, db_session, mock_peertube)

        assert db_session.query(Season).count() == 1
        assert lifecycle_service.get_games_for_season(other.id, db_session)[0].id == other_game.id


@pytest.mark.critical
class TestDeleteGame:
    """Cascade delete of a game"""

    def test_delete_game_prunes_season_and_videos(self, db_session, mock_peertube, season_with_videos):
        season, games = season_with_videos
        week1, week2 = games

        report = lifecycle_service.delete_game(week1.id, db_session, mock_peertube)

        assert report.videos_deleted == 2
        assert report.games_deleted == 1
        assert season.games == [week2.id]
        assert db_session.query(Video).count() == 1
        assert mock_peertube.delete_video.call_args_list == [call(201), call(202)]

    def test_delete_game_tolerates_remote_failure(self, db_session, mock_peertube, season_with_videos):
        _, games = season_with_videos
        mock_peertube.delete_video.side_effect = RemoteDeleteFailed("boom")
        game_id = games[0].id

        report = lifecycle_service.delete_game(game_id, db_session, mock_peertube)

        assert len(report.remote_failures) == 2
        assert db_helpers.get_game(game_id, db_session) is None

    def test_delete_missing_game(self, db_session, mock_peertube):
        with pytest.raises(NotFound):
            lifecycle_service.delete_game(999, db_session, mock_peertube)


@pytest.mark.critical
class TestVideosForGame:
    """Empty game vs missing game"""

    def test_empty_game_returns_empty_list(self, db_session, test_user):
        season = lifecycle_service.create_season(test_user.id, "2024", db_session)
        game = lifecycle_service.add_game(season.id, "Week 1", db_session)

        assert lifecycle_service.get_videos_for_game(game.id, db_session) == []

    def test_missing_game_raises_not_found(self, db_session):
        with pytest.raises(NotFound):
            lifecycle_service.get_videos_for_game(424242, db_session)

    def test_returns_game_videos(self, db_session, season_with_videos):
        _, games = season_with_videos
        videos = lifecycle_service.get_videos_for_game(games[0].id, db_session)
        assert [v.remote_video_id for v in videos] == [201, 202]


@pytest.mark.critical
class TestDeleteVideo:
    """Single video delete"""

    def test_remote_already_gone_still_deletes_locally(self, db_session, mock_peertube, season_with_videos):
        # PeerTubeClient.delete_video returns normally on 404
        _, games = season_with_videos
        video_id = games[1].videos[0]

        report = lifecycle_service.delete_video(video_id, db_session, mock_peertube)

        assert report.videos_deleted == 1
        assert db_helpers.get_video(video_id, db_session) is None
        assert games[1].videos == []

    def test_remote_failure_still_deletes_locally(self, db_session, mock_peertube, season_with_videos):
        _, games = season_with_videos
        video_id = games[0].videos[0]
        mock_peertube.delete_video.side_effect = RemoteDeleteFailed("PeerTube delete failed", status=503)

        report = lifecycle_service.delete_video(video_id, db_session, mock_peertube)

        assert len(report.remote_failures) == 1
        assert db_helpers.get_video(video_id, db_session) is None
        assert video_id not in games[0].videos

    def test_missing_video(self, db_session, mock_peertube):
        with pytest.raises(NotFound):
            lifecycle_service.delete_video(77, db_session, mock_peertube)


@pytest.mark.critical
class TestRenameVideo:
    """Local rename wins even if PeerTube fails"""

    def test_remote_failure_keeps_local_title(self, db_session, mock_peertube, season_with_videos):
        _, games = season_with_videos
        video_id = games[0].videos[0]
        mock_peertube.rename_video.side_effect = RemoteServiceError("PeerTube rename failed", status=500)

        video = lifecycle_service.rename_video(video_id, "New Title", db_session, mock_peertube)

        assert video.title == "New Title"
        db_session.expire_all()
        assert db_helpers.get_video(video_id, db_session).title == "New Title"

    def test_title_is_trimmed_and_sent_remote(self, db_session, mock_peertube, season_with_videos):
        _, games = season_with_videos
        video_id = games[0].videos[0]

        video = lifecycle_service.rename_video(video_id, "  Final cut  ", db_session, mock_peertube)

        assert video.title == "Final cut"
        mock_peertube.rename_video.assert_called_once_with(201, "Final cut")

    def test_empty_title_rejected_without_side_effects(self, db_session, mock_peertube, season_with_videos):
        _, games = season_with_videos
        video_id = games[0].videos[0]

        with pytest.raises(ValidationFailed):
            lifecycle_service.rename_video(video_id, "   ", db_session, mock_peertube)
        mock_peertube.rename_video.assert_not_called()
        assert db_helpers.get_video(video_id, db_session).title == "Week 1 clip 1"


@pytest.mark.high
class TestSeasonsAndGames:
    """Create, rename and move"""

    def test_create_season_requires_name(self, db_session, test_user):
        with pytest.raises(ValidationFailed):
            lifecycle_service.create_season(test_user.id, "", db_session)

    def test_rename_season_is_idempotent(self, db_session, test_user):
        season = lifecycle_service.create_season(test_user.id, "2024", db_session)
        lifecycle_service.rename_season(season.id, "2024/25", db_session)
        renamed = lifecycle_service.rename_season(season.id, "2024/25", db_session)
        assert renamed.name == "2024/25"

    def test_rename_missing_season(self, db_session):
        with pytest.raises(NotFound):
            lifecycle_service.rename_season(5, "x", db_session)

    def test_add_game_pushes_onto_season(self, db_session, test_user):
        season = lifecycle_service.create_season(test_user.id, "2024", db_session)
        game = lifecycle_service.add_game(season.id, "Week 1", db_session)

        assert game.season_id == season.id
        assert season.games == [game.id]

    def test_add_game_to_missing_season(self, db_session):
        with pytest.raises(NotFound):
            lifecycle_service.add_game(31337, "Week 1", db_session)
        assert db_session.query(Game).count() == 0

    def test_move_game_between_seasons(self, db_session, test_user, season_with_videos):
        season, games = season_with_videos
        target = lifecycle_service.create_season(test_user.id, "2025", db_session)

        moved = lifecycle_service.move_game(games[0].id, target.id, db_session)

        assert moved.season_id == target.id
        assert target.games == [games[0].id]
        assert games[0].id not in season.games

    def test_move_video_between_games(self, db_session, season_with_videos):
        _, games = season_with_videos
        week1, week2 = games
        video_id = week1.videos[0]

        lifecycle_service.move_video(video_id, week2.id, db_session)

        assert video_id not in week1.videos
        assert video_id in week2.videos
        assert db_helpers.find_game_containing_video(video_id, db_session).id == week2.id

    def test_list_seasons_only_returns_own(self, db_session, test_user, test_user_2):
        lifecycle_service.create_season(test_user.id, "Mine", db_session)
        lifecycle_service.create_season(test_user_2.id, "Theirs", db_session)

        listed = lifecycle_service.list_seasons(test_user.id, db_session)
        assert [entry["season"].name for entry in listed] == ["Mine"]

    def test_game_owner_resolves_through_season(self, db_session, test_user, season_with_videos):
        _, games = season_with_videos
        assert lifecycle_service.get_game_owner_id(games[0].id, db_session) == test_user.id
        assert lifecycle_service.get_game_owner_id(999, db_session) is None


@pytest.mark.high
class TestVideoDetails:
    """Proxy to PeerTube"""

    def test_returns_local_and_remote(self, db_session, mock_peertube, season_with_videos):
        _, games = season_with_videos
        video_id = games[0].videos[0]

        details = lifecycle_service.get_video_details(video_id, db_session, mock_peertube)

        assert details["video"].id == video_id
        assert details["remote"]["streamingPlaylists"] == []
        mock_peertube.get_video_details.assert_called_once_with(201)

    def test_missing_video(self, db_session, mock_peertube):
        with pytest.raises(NotFound):
            lifecycle_service.get_video_details(1, db_session, mock_peertube)
