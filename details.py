"""
Home Run Detail Resolver

Finds how far a player's latest home run went and how many runs it drove in.
Several sources are tried in priority order; each may fail or know only part
of the answer, so every field of EventDetail can be unknown (None).
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, List, Optional

from config import GAME_LOG_WINDOW, MAX_GAMES_SCANNED
from mlb_api import GameSummary, MLBStatsAPI, PlayEvent
from statcast import StatcastClient

logger = logging.getLogger(__name__)


def rbi_label(rbi: int) -> str:
    """Human label for a home run that drove in `rbi` runs."""
    labels = {
        1: "solo",
        2: "2-run",
        3: "3-run",
        4: "grand slam",
    }
    return labels.get(rbi, f"{rbi}-run")


@dataclass
class EventDetail:
    """What we know about one home run. None means unknown, not zero."""
    distance: Optional[int] = None
    rbi: Optional[int] = None
    game_pk: Optional[int] = None
    game_date: Optional[str] = None
    source: str = "default"

    @property
    def category(self) -> Optional[str]:
        if self.rbi is None:
            return None
        return rbi_label(self.rbi)

    @property
    def distance_text(self) -> str:
        if self.distance is None:
            return "Not available"
        return f"{self.distance} ft"


# Distance extractors, highest priority first

_FEET = re.compile(r"(\d{3})\s*(?:ft\b|feet\b)", re.IGNORECASE)
_PARENTHESES = re.compile(r"\((\d{3})(?:\s*(?:ft\.?|feet))?\)", re.IGNORECASE)
_FOOT_ADJECTIVE = re.compile(r"(\d{3})-(?:foot|ft)\b", re.IGNORECASE)
_TRAVELED = re.compile(r"travell?ed\s+(\d{3})", re.IGNORECASE)


def distance_from_hit_data(play: PlayEvent) -> Optional[int]:
    if play.total_distance is None:
        return None
    try:
        distance = int(round(float(play.total_distance)))
    except (TypeError, ValueError):
        return None
    return distance if distance > 0 else None


def _distance_pattern(pattern: re.Pattern) -> Callable[[PlayEvent], Optional[int]]:
    def extract(play: PlayEvent) -> Optional[int]:
        match = pattern.search(play.description or "")
        if match:
            return int(match.group(1))
        return None
    return extract


distance_from_feet = _distance_pattern(_FEET)
distance_from_parentheses = _distance_pattern(_PARENTHESES)
distance_from_foot_adjective = _distance_pattern(_FOOT_ADJECTIVE)
distance_from_traveled = _distance_pattern(_TRAVELED)

DISTANCE_EXTRACTORS: List[Callable[[PlayEvent], Optional[int]]] = [
    distance_from_hit_data,
    distance_from_feet,
    distance_from_parentheses,
    distance_from_foot_adjective,
    distance_from_traveled,
]


# RBI extractors, highest priority first

_RBI_KEYWORDS = [
    (re.compile(r"grand\s+slam", re.IGNORECASE), 4),
    (re.compile(r"\b(?:3|three)-run\b", re.IGNORECASE), 3),
    (re.compile(r"\b(?:2|two)-run\b", re.IGNORECASE), 2),
    (re.compile(r"\bsolo\b", re.IGNORECASE), 1),
]
_SCORES = re.compile(r"\bscores\b", re.IGNORECASE)


def rbi_from_result(play: PlayEvent) -> Optional[int]:
    if isinstance(play.rbi, int) and play.rbi > 0:
        return play.rbi
    return None


def rbi_from_runners(play: PlayEvent) -> Optional[int]:
    scored = 0
    for runner in play.runners:
        movement = runner.get("movement", {})
        details = runner.get("details", {})
        if movement.get("end") == "score" or details.get("isScoringEvent"):
            scored += 1
    return scored or None


def rbi_from_keywords(play: PlayEvent) -> Optional[int]:
    text = play.description or ""
    for pattern, rbi in _RBI_KEYWORDS:
        if pattern.search(text):
            return rbi
    return None


def rbi_from_scoring_verbs(play: PlayEvent) -> Optional[int]:
    # "Juan Soto scores." is written for each runner; the batter is never listed
    runners_scored = len(_SCORES.findall(play.description or ""))
    if runners_scored:
        return runners_scored + 1
    return None


RBI_EXTRACTORS: List[Callable[[PlayEvent], Optional[int]]] = [
    rbi_from_result,
    rbi_from_runners,
    rbi_from_keywords,
    rbi_from_scoring_verbs,
]


def first_match(extractors, play: PlayEvent):
    """Run extractors in order and return the first non-None value."""
    for extract in extractors:
        value = extract(play)
        if value is not None:
            return value
    return None


def is_home_run_by(play: PlayEvent, player_id: int) -> bool:
    """True if the play is a home run hit by `player_id`."""
    if play.batter_id != player_id:
        return False
    if play.event_type == "home_run":
        return True
    event = (play.event or "").lower()
    description = (play.description or "").lower()
    return "home run" in event or "home run" in description or "homers" in description


def detail_from_play(play: PlayEvent, game: Optional[GameSummary] = None) -> EventDetail:
    """Build an EventDetail from a single home run play."""
    return EventDetail(
        distance=first_match(DISTANCE_EXTRACTORS, play),
        rbi=first_match(RBI_EXTRACTORS, play) or 1,
        game_pk=game.game_pk if game else None,
        game_date=game.date if game else None,
        source="play_by_play",
    )


def detail_from_game_log(game: GameSummary) -> EventDetail:
    """Build an EventDetail from a game log line; the log has no distances."""
    rbi = max(game.rbi, 1)
    if game.home_runs == 1:
        rbi = min(rbi, 4)
    return EventDetail(
        distance=None,
        rbi=rbi,
        game_pk=game.game_pk,
        game_date=game.date,
        source="game_log",
    )


class DetailResolver:
    """Resolves the details of a player's most recent home run."""

    def __init__(
        self,
        api: MLBStatsAPI,
        statcast: Optional[StatcastClient] = None,
        game_log_window: int = GAME_LOG_WINDOW,
        max_games_scanned: int = MAX_GAMES_SCANNED
    ):
        self.api = api
        self.statcast = statcast
        self.game_log_window = game_log_window
        self.max_games_scanned = max_games_scanned

    async def resolve(self, player_id: int, season: int) -> EventDetail:
        """
        Find the best available detail for the player's latest home run.

        Never raises. If every source fails the result is a solo home run
        of unknown distance.
        """
        detail = None

        try:
            detail = await self._from_play_by_play(player_id, season)
        except Exception as e:
            logger.warning(f"Play-by-play lookup failed for {player_id}: {e}")

        if detail is None:
            try:
                detail = await self._from_season_game_log(player_id, season)
            except Exception as e:
                logger.warning(f"Game log fallback failed for {player_id}: {e}")

        if detail is None:
            logger.info(f"No home run detail found for {player_id}, using defaults")
            detail = EventDetail(rbi=1)

        # Without a game key Statcast would answer with whichever homer it saw last
        if detail.distance is None and detail.game_pk is not None and self.statcast is not None:
            try:
                detail.distance = await self.statcast.fetch_home_run_distance(
                    player_id, season, game_pk=detail.game_pk, game_date=detail.game_date
                )
            except Exception as e:
                logger.warning(f"Statcast distance lookup failed for {player_id}: {e}")

        logger.info(
            f"Resolved home run for {player_id}: {detail.category}, "
            f"{detail.distance_text} (source={detail.source})"
        )
        return detail

    async def _from_play_by_play(self, player_id: int, season: int) -> Optional[EventDetail]:
        games = await self.api.fetch_recent_game_log(player_id, season, limit=self.game_log_window)
        hr_games = [g for g in games if g.home_runs > 0]
        if not hr_games:
            logger.debug(f"No recent games with a home run for {player_id}")
            return None

        hr_games.sort(key=lambda g: g.date, reverse=True)
        for game in hr_games[:self.max_games_scanned]:
            try:
                plays = await self.api.fetch_play_by_play(game.game_pk)
            except Exception as e:
                logger.warning(f"Play-by-play fetch failed for game {game.game_pk}: {e}")
                continue
            if plays is None:
                continue

            for play in reversed(plays):
                if is_home_run_by(play, player_id):
                    return detail_from_play(play, game)

            logger.debug(f"No home run play for {player_id} in game {game.game_pk}")

        return None

    async def _from_season_game_log(self, player_id: int, season: int) -> Optional[EventDetail]:
        games = await self.api.fetch_recent_game_log(player_id, season)
        for game in sorted(games, key=lambda g: g.date, reverse=True):
            if game.home_runs > 0:
                return detail_from_game_log(game)
        return None
