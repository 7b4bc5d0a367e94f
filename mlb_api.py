"""
MLB Stats API Wrapper
Handles all read-only queries against the official MLB Stats API.

Every public method degrades instead of raising: a failed request or a
response missing the expected fields comes back as None (or an empty list),
and the caller decides how to fall back.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional, Dict, List

import aiohttp

from config import MLB_API_BASE_URL, REQUEST_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


def _strip_leading_zero(value) -> str:
    """'.312' and '0.312' both render as '.312'."""
    return str(value).lstrip("0") or "0"


@dataclass
class SeasonSnapshot:
    """Current-season hitting line for one player."""
    home_runs: int
    rbi: int = 0
    avg: str = ".000"
    obp: str = ".000"
    slg: str = ".000"
    ops: str = ".000"
    hits: int = 0
    at_bats: int = 0
    runs: int = 0
    games_played: int = 0

    @property
    def slash_line(self) -> str:
        return f"{self.avg} / {self.obp} / {self.slg}"


@dataclass
class GameSummary:
    """One row of a player's game log."""
    game_pk: int
    date: str  # YYYY-MM-DD
    home_runs: int = 0
    rbi: int = 0
    opponent: Optional[str] = None


@dataclass
class PlayEvent:
    """A single plate appearance from a game's play-by-play feed."""
    batter_id: Optional[int] = None
    event: Optional[str] = None
    event_type: Optional[str] = None
    description: Optional[str] = None
    total_distance: Optional[float] = None
    rbi: Optional[int] = None
    runners: List[Dict] = field(default_factory=list)


class MLBStatsAPI:
    """Wrapper for MLB Stats API endpoints."""

    BASE_URL = MLB_API_BASE_URL

    def __init__(self):
        self.session = None

    async def _get_session(self):
        """Get or create aiohttp session."""
        if self.session is None or self.session.closed:
            timeout = aiohttp.ClientTimeout(total=REQUEST_TIMEOUT_SECONDS)
            self.session = aiohttp.ClientSession(timeout=timeout)
        return self.session

    async def _request(self, endpoint: str, params: Optional[Dict] = None) -> Dict:
        """Make async request to MLB API. Returns {} on failure."""
        session = await self._get_session()
        url = f"{self.BASE_URL}{endpoint}"

        try:
            async with session.get(url, params=params) as response:
                response.raise_for_status()
                return await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.warning(f"API request failed: {url} - {e}")
            return {}

    async def _get_stat_splits(self, player_id: int, stat_type: str, season: int) -> Optional[List[Dict]]:
        """Return the hitting splits for a player, or None if the response is unusable."""
        endpoint = f"/people/{player_id}/stats"
        params = {
            "stats": stat_type,
            "season": season,
            "group": "hitting"
        }

        data = await self._request(endpoint, params)
        stats = data.get("stats")
        if not stats or not isinstance(stats, list):
            return None
        return stats[0].get("splits")

    async def fetch_season_snapshot(self, player_id: int, season: int) -> Optional[SeasonSnapshot]:
        """
        Get a player's season batting line.
        Returns None if the stats are unavailable for any reason.
        """
        splits = await self._get_stat_splits(player_id, "season", season)
        if not splits:
            return None

        stats = splits[0].get("stat", {})
        if "homeRuns" not in stats:
            logger.warning(f"Season stats for {player_id} missing homeRuns")
            return None

        try:
            return SeasonSnapshot(
                home_runs=int(stats["homeRuns"]),
                rbi=int(stats.get("rbi", 0)),
                avg=_strip_leading_zero(stats.get("avg", ".000")),
                obp=_strip_leading_zero(stats.get("obp", ".000")),
                slg=_strip_leading_zero(stats.get("slg", ".000")),
                ops=_strip_leading_zero(stats.get("ops", ".000")),
                hits=int(stats.get("hits", 0)),
                at_bats=int(stats.get("atBats", 0)),
                runs=int(stats.get("runs", 0)),
                games_played=int(stats.get("gamesPlayed", 0)),
            )
        except (TypeError, ValueError) as e:
            logger.warning(f"Could not parse season stats for {player_id}: {e}")
            return None

    async def fetch_home_run_count(self, player_id: int, season: int, previous: int) -> int:
        """
        Get a player's season home run total.
        Falls back to `previous` when the API is unavailable so a failed
        request never reads as the count dropping to zero.
        """
        snapshot = await self.fetch_season_snapshot(player_id, season)
        if snapshot is None:
            return previous
        return snapshot.home_runs

    async def fetch_recent_game_log(self, player_id: int, season: int, limit: Optional[int] = None) -> List[GameSummary]:
        """
        Get a player's game log, most recent game first.
        Returns an empty list if the log can't be fetched.
        """
        splits = await self._get_stat_splits(player_id, "gameLog", season) or []

        games = []
        for split in splits:
            game_pk = split.get("game", {}).get("gamePk")
            date = split.get("date")
            if not game_pk or not date:
                continue
            stat = split.get("stat", {})
            try:
                games.append(GameSummary(
                    game_pk=int(game_pk),
                    date=date,
                    home_runs=int(stat.get("homeRuns", 0)),
                    rbi=int(stat.get("rbi", 0)),
                    opponent=split.get("opponent", {}).get("name"),
                ))
            except (TypeError, ValueError):
                logger.debug(f"Skipping malformed game log row for {player_id}: {split}")

        # Doubleheaders share a date; the API lists them in order so a stable sort keeps game 2 first
        games.reverse()
        games.sort(key=lambda g: g.date, reverse=True)

        if limit is not None:
            games = games[:limit]
        return games

    async def fetch_play_by_play(self, game_pk: int) -> Optional[List[PlayEvent]]:
        """
        Get every play from a game in chronological order.
        Returns None if the feed is unavailable.
        """
        data = await self._request(f"/game/{game_pk}/playByPlay")
        all_plays = data.get("allPlays")
        if all_plays is None:
            return None

        return [self._format_play(play) for play in all_plays]

    def _format_play(self, play_data: Dict) -> PlayEvent:
        """Format a raw play into a PlayEvent."""
        result = play_data.get("result", {})
        batter = play_data.get("matchup", {}).get("batter", {})

        # Batted-ball data lives on the pitch that ended the at-bat
        total_distance = None
        for event in reversed(play_data.get("playEvents", [])):
            distance = event.get("hitData", {}).get("totalDistance")
            if distance is not None:
                total_distance = distance
                break

        return PlayEvent(
            batter_id=batter.get("id"),
            event=result.get("event"),
            event_type=result.get("eventType"),
            description=result.get("description"),
            total_distance=total_distance,
            rbi=result.get("rbi"),
            runners=play_data.get("runners", []),
        )

    async def fetch_home_run_leaders(self, season: int, limit: int = 10) -> List[Dict]:
        """Get the MLB home run leaderboard for a season."""
        params = {
            "leaderCategories": "homeRuns",
            "season": season,
            "sportId": 1,
            "statGroup": "hitting",
            "limit": limit
        }

        data = await self._request("/stats/leaders", params)
        categories = data.get("leagueLeaders", [])
        if not categories:
            return []

        return [
            {
                "rank": leader.get("rank"),
                "name": leader.get("person", {}).get("fullName", "Unknown"),
                "team": leader.get("team", {}).get("name", ""),
                "value": leader.get("value", "0"),
            }
            for leader in categories[0].get("leaders", [])[:limit]
        ]

    async def close(self):
        """Close the aiohttp session."""
        if self.session and not self.session.closed:
            await self.session.close()
