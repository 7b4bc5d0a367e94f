"""
Configuration file for the MLB Home Run Alert Bot
"""

import logging
import os
import sys

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class ConfigError(Exception):
    """Raised when a required startup setting is missing."""


def parse_channel_ids(raw: str) -> tuple:
    """Parse a comma separated list of Discord channel IDs, skipping blanks."""
    ids = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            ids.append(int(part))
        except ValueError:
            raise ConfigError(f"Invalid Discord channel ID: {part!r}") from None
    return tuple(ids)


# Bot Settings
BOT_TOKEN = os.getenv('DISCORD_BOT_TOKEN')
COMMAND_PREFIX = "!"
POLL_INTERVAL_MINUTES = int(os.getenv('POLL_INTERVAL_MINUTES', '5'))  # How often to check for new home runs

# Only poll April through October
SEASON_START_MONTH = int(os.getenv('SEASON_START_MONTH', '4'))
SEASON_END_MONTH = int(os.getenv('SEASON_END_MONTH', '10'))

# Channel Configuration
# Right-click a channel in Discord (with Developer Mode enabled) and click "Copy ID"
# DISCORD_CHANNEL_IDS takes a comma separated list; DISCORD_CHANNEL_ID still works for one channel
CHANNEL_IDS = parse_channel_ids(
    os.getenv('DISCORD_CHANNEL_IDS') or os.getenv('DISCORD_CHANNEL_ID', '')
)

# Players tracked when no roster file is present
TRACKED_PLAYERS = [
    {"id": 592450, "name": "Aaron Judge", "team": "NYY", "primaryNumber": "99"},
    {"id": 660271, "name": "Shohei Ohtani", "team": "LAD", "primaryNumber": "17"},
    {"id": 663728, "name": "Cal Raleigh", "team": "SEA", "primaryNumber": "29"},
    {"id": 656941, "name": "Kyle Schwarber", "team": "PHI", "primaryNumber": "12"},
]

# File Paths
PLAYER_ROSTER_FILE = os.getenv('PLAYER_ROSTER_FILE', "players.json")  # Optional, overrides TRACKED_PLAYERS

# MLB API Settings
MLB_API_BASE_URL = "https://statsapi.mlb.com/api/v1"
STATCAST_SEARCH_URL = "https://baseballsavant.mlb.com/statcast_search/csv"
HEADSHOT_URL = (
    "https://img.mlbstatic.com/mlb-photos/image/upload/"
    "d_people:generic:headshot:67:current.png/w_213,q_auto:best/v1/people/{player_id}/headshot/67/current"
)
REQUEST_TIMEOUT_SECONDS = 20

# Home run detail lookup
GAME_LOG_WINDOW = int(os.getenv('GAME_LOG_WINDOW', '10'))  # Recent games searched for the latest homer
MAX_GAMES_SCANNED = int(os.getenv('MAX_GAMES_SCANNED', '3'))  # Play-by-play feeds fetched per alert

# Embed colors keyed by team abbreviation
TEAM_COLORS = {
    "NYY": 0x132448,
    "LAD": 0x005A9C,
    "SEA": 0x005C5C,
    "PHI": 0xE81828,
}
DEFAULT_COLOR = 0x1D428A

# Logging
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')


def setup_logging(level: str = LOG_LEVEL) -> None:
    """Configure root logging and quiet the discord library."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    logging.getLogger("discord").setLevel(logging.WARNING)
    logging.getLogger("discord.gateway").setLevel(logging.WARNING)
    logging.getLogger("discord.http").setLevel(logging.WARNING)


def validate_config() -> None:
    """Fail fast when the bot cannot possibly run."""
    if not BOT_TOKEN:
        raise ConfigError(
            "DISCORD_BOT_TOKEN not found in environment variables. "
            "Please set up your .env file with the bot token."
        )
    if not CHANNEL_IDS:
        raise ConfigError(
            "No destination channels configured. "
            "Set DISCORD_CHANNEL_IDS (comma separated) or DISCORD_CHANNEL_ID."
        )
