"""
Tests for the home run detail resolver.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from details import (
    DetailResolver,
    EventDetail,
    detail_from_game_log,
    distance_from_feet,
    distance_from_foot_adjective,
    distance_from_hit_data,
    distance_from_parentheses,
    distance_from_traveled,
    first_match,
    DISTANCE_EXTRACTORS,
    RBI_EXTRACTORS,
    is_home_run_by,
    rbi_from_keywords,
    rbi_from_result,
    rbi_from_runners,
    rbi_from_scoring_verbs,
    rbi_label,
)
from mlb_api import GameSummary, MLBStatsAPI, PlayEvent
from statcast import StatcastClient

JUDGE = 592450


def make_play(**kwargs) -> PlayEvent:
    defaults = {"batter_id": JUDGE, "event": "Home Run", "event_type": "home_run"}
    defaults.update(kwargs)
    return PlayEvent(**defaults)


@pytest.fixture
def mock_api():
    """Create a mock stats client."""
    api = MagicMock(spec=MLBStatsAPI)
    api.fetch_recent_game_log = AsyncMock(return_value=[])
    api.fetch_play_by_play = AsyncMock(return_value=None)
    return api


@pytest.fixture
def mock_statcast():
    """Create a mock statcast client that knows nothing."""
    statcast = MagicMock(spec=StatcastClient)
    statcast.fetch_home_run_distance = AsyncMock(return_value=None)
    return statcast


class TestRbiLabel:
    """Tests for rbi_label."""

    @pytest.mark.parametrize("rbi,label", [
        (1, "solo"),
        (2, "2-run"),
        (3, "3-run"),
        (4, "grand slam"),
    ])
    def test_known_counts(self, rbi, label):
        assert rbi_label(rbi) == label

    def test_zero_and_large_counts(self):
        assert rbi_label(0) == "0-run"
        assert rbi_label(5) == "5-run"
        assert rbi_label(12) == "12-run"


class TestDistanceExtractors:
    """Tests for the distance extractors."""

    def test_hit_data_preferred(self):
        play = make_play(total_distance=431.0, description="Judge homers on a 400-foot drive")
        assert first_match(DISTANCE_EXTRACTORS, play) == 431

    def test_hit_data_zero_is_unknown(self):
        assert distance_from_hit_data(make_play(total_distance=0)) is None

    def test_feet(self):
        assert distance_from_feet(make_play(description="A 412 ft blast to left")) == 412
        assert distance_from_feet(make_play(description="It went 398 feet")) == 398

    def test_parentheses(self):
        play = make_play(description="Aaron Judge homers (35) on a fly ball to center field (445 ft)")
        assert distance_from_parentheses(play) == 445

    def test_parentheses_ignores_home_run_number(self):
        play = make_play(description="Aaron Judge homers (35) on a fly ball to center field.")
        assert distance_from_parentheses(play) is None

    def test_foot_adjective(self):
        play = make_play(description="Judge crushes a 467-foot home run")
        assert distance_from_foot_adjective(play) == 467

    def test_traveled(self):
        play = make_play(description="The ball traveled 420 into the second deck")
        assert distance_from_traveled(play) == 420

    def test_unknown_when_nothing_matches(self):
        play = make_play(description="Aaron Judge homers (35) on a line drive to left field.")
        assert first_match(DISTANCE_EXTRACTORS, play) is None

    def test_missing_description(self):
        assert first_match(DISTANCE_EXTRACTORS, make_play(description=None)) is None


class TestRbiExtractors:
    """Tests for the RBI extractors."""

    def test_structured_rbi(self):
        assert rbi_from_result(make_play(rbi=3)) == 3

    def test_structured_zero_rbi_ignored(self):
        assert rbi_from_result(make_play(rbi=0)) is None

    def test_runner_movements(self):
        runners = [
            {"movement": {"start": "2B", "end": "score"}},
            {"movement": {"start": None, "end": "score"}},
            {"movement": {"start": "1B", "end": "2B"}},
        ]
        assert rbi_from_runners(make_play(runners=runners)) == 2

    def test_runner_scoring_event_flag(self):
        runners = [{"movement": {"end": None}, "details": {"isScoringEvent": True}}]
        assert rbi_from_runners(make_play(runners=runners)) == 1

    def test_no_runners(self):
        assert rbi_from_runners(make_play()) is None

    @pytest.mark.parametrize("text,rbi", [
        ("Judge hits a grand slam to right", 4),
        ("Judge hits a 3-run homer", 3),
        ("Judge hits a three-run homer", 3),
        ("Judge hits a 2-run shot", 2),
        ("Judge hits a solo home run", 1),
    ])
    def test_keywords(self, text, rbi):
        assert rbi_from_keywords(make_play(description=text)) == rbi

    def test_scoring_verbs_count_batter(self):
        play = make_play(description="Aaron Judge homers (36). Juan Soto scores. Gleyber Torres scores.")
        assert rbi_from_scoring_verbs(play) == 3

    def test_defaults_to_solo(self):
        play = make_play(description="Aaron Judge homers (36) on a fly ball to left field.")
        assert first_match(RBI_EXTRACTORS, play) is None


class TestIsHomeRunBy:
    """Tests for matching a home run play to a player."""

    def test_event_type(self):
        assert is_home_run_by(make_play(), JUDGE)

    def test_other_batter(self):
        assert not is_home_run_by(make_play(batter_id=123), JUDGE)

    def test_description_only(self):
        play = make_play(event=None, event_type=None, description="Aaron Judge homers (12) on a fly ball")
        assert is_home_run_by(play, JUDGE)

    def test_not_a_home_run(self):
        play = make_play(event="Single", event_type="single", description="Aaron Judge singles to left")
        assert not is_home_run_by(play, JUDGE)


class TestDetailFromGameLog:
    """Tests for building detail from a game log line."""

    def test_single_homer_rbi_capped(self):
        detail = detail_from_game_log(GameSummary(game_pk=1, date="2025-06-01", home_runs=1, rbi=6))
        assert detail.rbi == 4
        assert detail.distance is None

    def test_zero_rbi_is_solo(self):
        detail = detail_from_game_log(GameSummary(game_pk=1, date="2025-06-01", home_runs=1, rbi=0))
        assert detail.rbi == 1
        assert detail.category == "solo"


class TestEventDetail:
    """Tests for EventDetail."""

    def test_unknown_fields(self):
        detail = EventDetail()
        assert detail.category is None
        assert detail.distance_text == "Not available"

    def test_known_fields(self):
        detail = EventDetail(distance=415, rbi=2)
        assert detail.category == "2-run"
        assert detail.distance_text == "415 ft"


class TestDetailResolver:
    """Tests for the DetailResolver cascade."""

    async def test_play_by_play_most_recent_play_wins(self, mock_api, mock_statcast):
        mock_api.fetch_recent_game_log.return_value = [
            GameSummary(game_pk=200, date="2025-06-02", home_runs=0),
            GameSummary(game_pk=100, date="2025-06-01", home_runs=2, rbi=3),
        ]
        mock_api.fetch_play_by_play.return_value = [
            make_play(rbi=1, total_distance=401.0),
            make_play(batter_id=999, rbi=4),
            make_play(rbi=2, total_distance=433.0),
            make_play(event="Strikeout", event_type="strikeout"),
        ]
        resolver = DetailResolver(mock_api, mock_statcast)

        detail = await resolver.resolve(JUDGE, 2025)

        assert detail.distance == 433
        assert detail.rbi == 2
        assert detail.category == "2-run"
        assert detail.game_pk == 100
        assert detail.source == "play_by_play"
        mock_api.fetch_play_by_play.assert_awaited_once_with(100)
        mock_statcast.fetch_home_run_distance.assert_not_awaited()

    async def test_scans_next_game_when_feed_unavailable(self, mock_api):
        mock_api.fetch_recent_game_log.return_value = [
            GameSummary(game_pk=300, date="2025-06-03", home_runs=1),
            GameSummary(game_pk=100, date="2025-06-01", home_runs=1),
        ]
        mock_api.fetch_play_by_play.side_effect = [None, [make_play(rbi=3)]]
        resolver = DetailResolver(mock_api)

        detail = await resolver.resolve(JUDGE, 2025)

        assert detail.game_pk == 100
        assert detail.category == "3-run"

    async def test_scan_is_bounded(self, mock_api):
        mock_api.fetch_recent_game_log.side_effect = [
            [GameSummary(game_pk=i, date=f"2025-06-{i:02d}", home_runs=1) for i in range(9, 0, -1)],
            [],
        ]
        mock_api.fetch_play_by_play.return_value = []
        resolver = DetailResolver(mock_api, max_games_scanned=3)

        await resolver.resolve(JUDGE, 2025)

        assert mock_api.fetch_play_by_play.await_count == 3

    async def test_game_log_error_falls_back_to_season_log(self, mock_api, mock_statcast):
        mock_api.fetch_recent_game_log.side_effect = [
            RuntimeError("boom"),
            [
                GameSummary(game_pk=100, date="2025-05-30", home_runs=1, rbi=1),
                GameSummary(game_pk=150, date="2025-06-01", home_runs=1, rbi=2),
                GameSummary(game_pk=160, date="2025-06-02", home_runs=0, rbi=1),
            ],
        ]
        mock_statcast.fetch_home_run_distance.return_value = 409
        resolver = DetailResolver(mock_api, mock_statcast)

        detail = await resolver.resolve(JUDGE, 2025)

        assert detail.source == "game_log"
        assert detail.game_pk == 150
        assert detail.rbi == 2
        assert detail.distance == 409
        mock_statcast.fetch_home_run_distance.assert_awaited_once_with(
            JUDGE, 2025, game_pk=150, game_date="2025-06-01"
        )

    async def test_every_source_fails(self, mock_api, mock_statcast):
        mock_api.fetch_recent_game_log.side_effect = RuntimeError("down")
        mock_statcast.fetch_home_run_distance.side_effect = RuntimeError("also down")
        resolver = DetailResolver(mock_api, mock_statcast)

        detail = await resolver.resolve(JUDGE, 2025)

        assert detail.rbi == 1
        assert detail.category == "solo"
        assert detail.distance is None

    async def test_default_detail_skips_statcast_without_game(self, mock_api, mock_statcast):
        mock_api.fetch_recent_game_log.side_effect = RuntimeError("down")
        # Savant would answer with some older homer's distance
        mock_statcast.fetch_home_run_distance.return_value = 402
        resolver = DetailResolver(mock_api, mock_statcast)

        detail = await resolver.resolve(JUDGE, 2025)

        assert detail.source == "default"
        assert detail.distance is None
        mock_statcast.fetch_home_run_distance.assert_not_awaited()

    async def test_statcast_backfills_play_without_distance(self, mock_api, mock_statcast):
        mock_api.fetch_recent_game_log.return_value = [
            GameSummary(game_pk=100, date="2025-06-01", home_runs=1, rbi=1),
        ]
        mock_api.fetch_play_by_play.return_value = [make_play(rbi=1)]
        mock_statcast.fetch_home_run_distance.return_value = 418
        resolver = DetailResolver(mock_api, mock_statcast)

        detail = await resolver.resolve(JUDGE, 2025)

        assert detail.distance == 418
        mock_statcast.fetch_home_run_distance.assert_awaited_once_with(
            JUDGE, 2025, game_pk=100, game_date="2025-06-01"
        )
