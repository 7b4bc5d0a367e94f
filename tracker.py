"""
Home Run Change Detector

Keeps the last known home run total for each tracked player, re-checks them
on every tick, and alerts when a total goes up.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Dict, Iterable, List, Optional

from config import HEADSHOT_URL, SEASON_START_MONTH, SEASON_END_MONTH
from details import DetailResolver
from mlb_api import MLBStatsAPI, SeasonSnapshot
from notifier import Notifier

logger = logging.getLogger(__name__)


def is_in_season(
    today: Optional[date] = None,
    start_month: int = SEASON_START_MONTH,
    end_month: int = SEASON_END_MONTH
) -> bool:
    """Check whether `today` falls inside the season's month range (inclusive)."""
    month = (today or date.today()).month
    if start_month <= end_month:
        return start_month <= month <= end_month
    # Range wraps past December, e.g. winter ball
    return month >= start_month or month <= end_month


@dataclass
class TrackedPlayer:
    """A player being watched for home runs."""
    player_id: int
    name: str
    team: str
    number: str
    headshot_url: Optional[str] = None
    last_observed_count: int = 0
    baselined: bool = False  # True once a real total has been read

    def __post_init__(self):
        if self.headshot_url is None:
            self.headshot_url = HEADSHOT_URL.format(player_id=self.player_id)

    @classmethod
    def from_roster_entry(cls, entry: Dict) -> "TrackedPlayer":
        """Build a player from a roster dict ({"id", "name", "team", "primaryNumber"})."""
        return cls(
            player_id=int(entry["id"]),
            name=entry["name"],
            team=entry.get("team", ""),
            number=str(entry.get("primaryNumber", "N/A")),
            headshot_url=entry.get("headshot"),
        )


class HomeRunTracker:
    """Polls home run totals and fires alerts on increases."""

    def __init__(
        self,
        api: MLBStatsAPI,
        resolver: DetailResolver,
        notifier: Notifier,
        players: Iterable[TrackedPlayer],
        season: Optional[int] = None
    ):
        self.api = api
        self.resolver = resolver
        self.notifier = notifier
        self.players: Dict[int, TrackedPlayer] = {p.player_id: p for p in players}
        self.season = season
        self.initialized = False
        self.last_check_time: Optional[datetime] = None
        self._lock: Optional[asyncio.Lock] = None

    def _cycle_lock(self) -> asyncio.Lock:
        # Created on first use so it belongs to the loop the bot runs on
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    @property
    def current_season(self) -> int:
        return self.season or datetime.now().year

    async def initialize(self) -> None:
        """Record each player's current total as the starting baseline."""
        async with self._cycle_lock():
            for player in self.players.values():
                try:
                    await self._seed_baseline(player)
                except Exception:
                    logger.exception(f"Error setting baseline for {player.name} ({player.player_id})")
            self.initialized = True

    async def _seed_baseline(self, player: TrackedPlayer) -> bool:
        """Take the player's current total as the baseline. False if it was unavailable."""
        snapshot = await self.api.fetch_season_snapshot(player.player_id, self.current_season)
        if snapshot is None:
            logger.warning(f"No baseline for {player.name} yet, will retry on the next check")
            return False

        player.last_observed_count = snapshot.home_runs
        player.baselined = True
        logger.info(f"Baseline for {player.name}: {player.last_observed_count} HR")
        return True

    async def run_check_cycle(self) -> int:
        """
        Check every tracked player once. Returns the number of alerts sent.

        Scheduled and manual checks both come through here and are
        serialized, so two ticks never race on the same baseline.
        """
        async with self._cycle_lock():
            logger.info(f"Checking {len(self.players)} player(s) for new home runs...")
            alerts = 0

            for player in self.players.values():
                try:
                    if await self.check_player(player):
                        alerts += 1
                except Exception:
                    logger.exception(f"Error checking {player.name} ({player.player_id})")

            self.last_check_time = datetime.now(timezone.utc)
            return alerts

    async def check_player(self, player: TrackedPlayer) -> bool:
        """Check one player. Returns True if an alert was sent."""
        # Without a real baseline the whole season total would read as new
        if not player.baselined:
            await self._seed_baseline(player)
            return False

        previous = player.last_observed_count
        current = await self.api.fetch_home_run_count(player.player_id, self.current_season, previous)

        if current == previous:
            logger.debug(f"{player.name}: no change ({current} HR)")
            return False

        if current < previous:
            logger.warning(
                f"{player.name}: home run total went from {previous} to {current}, "
                f"ignoring until the next check"
            )
            return False

        delta = current - previous
        logger.info(f"{player.name}: {previous} -> {current} HR (+{delta})")

        detail = await self.resolver.resolve(player.player_id, self.current_season)
        report = await self.notifier.notify(player, current, delta, detail)
        if report.failure_count:
            logger.warning(f"{player.name} alert failed for channel(s) {report.failed}")

        # Only move the baseline once the alert has gone out
        player.last_observed_count = current
        return True

    def find_player(self, query: Optional[str] = None) -> Optional[TrackedPlayer]:
        """Find a tracked player by name fragment, or the first player if no query."""
        if not self.players:
            return None
        if not query:
            return next(iter(self.players.values()))

        query = query.lower()
        for player in self.players.values():
            if query in player.name.lower():
                return player
        return None

    def list_players(self) -> List[TrackedPlayer]:
        return list(self.players.values())

    async def get_current_count(self, player_id: int) -> int:
        player = self.players[player_id]
        return await self.api.fetch_home_run_count(player_id, self.current_season, player.last_observed_count)

    async def get_season_snapshot(self, player_id: int) -> Optional[SeasonSnapshot]:
        return await self.api.fetch_season_snapshot(player_id, self.current_season)
