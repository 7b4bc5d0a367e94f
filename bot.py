"""
MLB Home Run Alert Bot
Watches tracked players' season home run totals and posts an alert to Discord
whenever one of them goes up.
"""

import json
import logging
import sys
from datetime import datetime, timezone

import discord
from discord.ext import commands, tasks

from config import (
    BOT_TOKEN,
    CHANNEL_IDS,
    COMMAND_PREFIX,
    DEFAULT_COLOR,
    PLAYER_ROSTER_FILE,
    POLL_INTERVAL_MINUTES,
    TEAM_COLORS,
    TRACKED_PLAYERS,
    ConfigError,
    setup_logging,
    validate_config,
)
from details import DetailResolver
from mlb_api import MLBStatsAPI
from notifier import Notifier
from statcast import StatcastClient
from tracker import HomeRunTracker, TrackedPlayer, is_in_season

logger = logging.getLogger(__name__)

APOLOGY = "Sorry, I had trouble getting the stats right now!"


def load_json(filepath, default=None):
    """Load JSON file, return default if not exists."""
    if default is None:
        default = {}
    try:
        with open(filepath, 'r') as f:
            return json.load(f)
    except FileNotFoundError:
        return default


def load_roster():
    """Tracked players from the roster file, or the built-in list."""
    entries = load_json(PLAYER_ROSTER_FILE, default=TRACKED_PLAYERS)
    return [TrackedPlayer.from_roster_entry(entry) for entry in entries]


class HomeRunBot(commands.Bot):
    """Bot that closes the API sessions on shutdown."""

    async def close(self):
        await mlb_api.close()
        await statcast.close()
        await super().close()


# Bot setup
intents = discord.Intents.default()
intents.message_content = True
intents.guilds = True
bot = HomeRunBot(command_prefix=COMMAND_PREFIX, intents=intents)

# Data sources and the home run tracker
mlb_api = MLBStatsAPI()
statcast = StatcastClient()
tracker = HomeRunTracker(
    api=mlb_api,
    resolver=DetailResolver(mlb_api, statcast),
    notifier=Notifier(bot, CHANNEL_IDS),
    players=load_roster(),
)


@bot.event
async def on_ready():
    """Bot startup event."""
    logger.info(f'{bot.user} has connected to Discord!')
    logger.info(f'Bot is in {len(bot.guilds)} server(s)')

    # Baselines must exist before the first tick compares against them
    if not tracker.initialized:
        await tracker.initialize()

    if not check_home_runs.is_running():
        check_home_runs.start()
        logger.info(f'Started monitoring {len(tracker.players)} player(s) for home runs')


@tasks.loop(minutes=POLL_INTERVAL_MINUTES)
async def check_home_runs():
    """Main loop to check for new home runs."""
    if not is_in_season():
        logger.debug("Out of season, skipping check")
        return

    await tracker.run_check_cycle()


@bot.event
async def on_command_error(ctx, error):
    """Log command failures and give the user a generic reply."""
    if isinstance(error, commands.CommandNotFound):
        return

    logger.error(f"Command {ctx.command} failed: {error}", exc_info=error)
    await ctx.reply(APOLOGY)


@bot.command(name="stats", aliases=["hr"])
async def stats(ctx, *, player_name: str = None):
    """Show a tracked player's season stats."""
    player = tracker.find_player(player_name)
    if player is None:
        await ctx.reply(f"I'm not tracking anyone matching '{player_name}'. Try `{COMMAND_PREFIX}players`.")
        return

    snapshot = await tracker.get_season_snapshot(player.player_id)
    if snapshot is None:
        await ctx.reply(APOLOGY)
        return

    embed = discord.Embed(
        title=f"{player.name} {tracker.current_season} Stats",
        color=TEAM_COLORS.get(player.team, DEFAULT_COLOR),
        timestamp=datetime.now(timezone.utc)
    )
    embed.add_field(name="Home Runs", value=str(snapshot.home_runs), inline=True)
    embed.add_field(name="RBI", value=str(snapshot.rbi), inline=True)
    embed.add_field(name="Games", value=str(snapshot.games_played), inline=True)
    embed.add_field(name="Slash Line", value=snapshot.slash_line, inline=False)
    embed.add_field(name="OPS", value=snapshot.ops, inline=True)
    embed.add_field(name="Hits", value=f"{snapshot.hits}-for-{snapshot.at_bats}", inline=True)
    embed.set_thumbnail(url=player.headshot_url)
    embed.set_footer(text=f"{player.team} #{player.number}")

    await ctx.reply(embed=embed)


@bot.command(name="players")
async def players(ctx):
    """List all tracked players."""
    roster = tracker.list_players()

    if not roster:
        await ctx.reply("No players are currently being tracked.")
        return

    embed = discord.Embed(
        title="🎯 Tracked Players",
        color=discord.Color.blue(),
        timestamp=datetime.now(timezone.utc)
    )

    for player in roster:
        embed.add_field(
            name=f"{player.name} (#{player.number})",
            value=f"{player.team} - {player.last_observed_count} HR",
            inline=False
        )

    await ctx.reply(embed=embed)


@bot.command(name="leaders")
async def leaders(ctx):
    """Show the MLB home run leaderboard."""
    rows = await mlb_api.fetch_home_run_leaders(tracker.current_season)
    if not rows:
        await ctx.reply(APOLOGY)
        return

    tracked_names = {p.name for p in tracker.list_players()}
    lines = []
    for row in rows:
        name = f"**{row['name']}**" if row['name'] in tracked_names else row['name']
        lines.append(f"{row['rank']}. {name} ({row['team']}) - {row['value']}")

    embed = discord.Embed(
        title=f"🏆 {tracker.current_season} Home Run Leaders",
        description="\n".join(lines),
        color=discord.Color.gold(),
        timestamp=datetime.now(timezone.utc)
    )

    await ctx.reply(embed=embed)


@bot.command(name="check")
async def check(ctx):
    """Run a home run check right now."""
    await ctx.reply("Checking for new home runs...")
    alerts = await tracker.run_check_cycle()

    if alerts:
        await ctx.reply(f"✅ Sent {alerts} home run alert(s).")
    else:
        await ctx.reply("No new home runs.")


@bot.command(name="status")
async def status(ctx):
    """Show what the tracker is doing."""
    last_check = tracker.last_check_time
    last_check_text = last_check.strftime("%Y-%m-%d %H:%M:%S UTC") if last_check else "Never"

    embed = discord.Embed(
        title="🔧 Bot Status",
        color=discord.Color.dark_grey(),
        timestamp=datetime.now(timezone.utc)
    )
    embed.add_field(name="Last Check", value=last_check_text, inline=True)
    embed.add_field(name="In Season", value="Yes" if is_in_season() else "No", inline=True)
    embed.add_field(name="Poll Interval", value=f"{POLL_INTERVAL_MINUTES} min", inline=True)
    embed.add_field(name="Channels", value=str(len(CHANNEL_IDS)), inline=True)
    embed.add_field(name="Loop Running", value="Yes" if check_home_runs.is_running() else "No", inline=True)
    embed.add_field(
        name="Baselines",
        value="\n".join(f"{p.name}: {p.last_observed_count} HR" for p in tracker.list_players()) or "None",
        inline=False
    )

    await ctx.reply(embed=embed)


def main():
    """Main entry point."""
    setup_logging()

    try:
        validate_config()
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    bot.run(BOT_TOKEN, log_handler=None)


if __name__ == "__main__":
    main()
