"""
Baseball Savant Statcast lookup
Best-effort backfill for home run distance when the MLB play-by-play feed has none.
"""

import asyncio
import csv
import io
import logging
from typing import Optional, Dict, List

import aiohttp

from config import STATCAST_SEARCH_URL, REQUEST_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


def parse_home_run_distance(csv_text: str, game_pk: Optional[int] = None) -> Optional[int]:
    """
    Pull the distance of the latest home run out of a Statcast search CSV.
    Rows are filtered to `game_pk` when given. Returns None when no row has a distance.
    """
    reader = csv.DictReader(io.StringIO(csv_text.lstrip("\ufeff")))

    rows: List[Dict] = []
    for row in reader:
        if row.get("events") != "home_run":
            continue
        if game_pk is not None and str(row.get("game_pk", "")).strip() != str(game_pk):
            continue
        rows.append(row)

    def order(row):
        try:
            at_bat = int(row.get("at_bat_number") or 0)
        except ValueError:
            at_bat = 0
        return (row.get("game_date", ""), at_bat)

    for row in sorted(rows, key=order, reverse=True):
        raw = (row.get("hit_distance_sc") or "").strip()
        try:
            distance = int(float(raw))
        except ValueError:
            continue
        if distance > 0:
            return distance

    return None


class StatcastClient:
    """Wrapper for the Baseball Savant statcast search CSV export."""

    def __init__(self):
        self.session = None

    async def _get_session(self):
        """Get or create aiohttp session."""
        if self.session is None or self.session.closed:
            timeout = aiohttp.ClientTimeout(total=REQUEST_TIMEOUT_SECONDS)
            self.session = aiohttp.ClientSession(timeout=timeout)
        return self.session

    async def fetch_home_run_distance(
        self,
        player_id: int,
        season: int,
        game_pk: Optional[int] = None,
        game_date: Optional[str] = None
    ) -> Optional[int]:
        """
        Look up how far a player's most recent home run travelled.
        Returns None on any failure.
        """
        params = {
            "all": "true",
            "type": "details",
            "player_type": "batter",
            "hfAB": "home_run|",
            "hfGT": "R|",
            "hfSea": f"{season}|",
            "batters_lookup[]": player_id,
        }
        if game_date:
            params["game_date_gt"] = game_date
            params["game_date_lt"] = game_date

        session = await self._get_session()
        try:
            async with session.get(STATCAST_SEARCH_URL, params=params) as response:
                response.raise_for_status()
                text = await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Statcast lookup failed for {player_id}: {e}")
            return None

        distance = parse_home_run_distance(text, game_pk)
        if distance is None:
            logger.info(f"Statcast had no distance for {player_id} (game {game_pk})")
        return distance

    async def close(self):
        """Close the aiohttp session."""
        if self.session and not self.session.closed:
            await self.session.close()
