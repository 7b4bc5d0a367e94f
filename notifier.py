"""
Home Run Discord Notifier

Builds one alert embed per home run and sends it to every configured channel.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, List, Optional, Sequence

import discord

from config import TEAM_COLORS, DEFAULT_COLOR
from details import EventDetail

if TYPE_CHECKING:
    from tracker import TrackedPlayer

logger = logging.getLogger(__name__)


@dataclass
class AlertPayload:
    """Everything needed to render one home run alert."""
    player: "TrackedPlayer"
    total: int
    delta: int
    detail: EventDetail

    @property
    def title(self) -> str:
        return f"⚾ {self.player.name.upper()} HOME RUN! ⚾"

    @property
    def description(self) -> str:
        if self.delta > 1:
            return f"{self.player.name} just hit {self.delta} home runs!"
        category = self.detail.category
        if category == "grand slam":
            return f"{self.player.name} just hit a grand slam!"
        if category:
            return f"{self.player.name} just hit a {category} home run!"
        return f"{self.player.name} just hit a home run!"


@dataclass
class DeliveryReport:
    """Per-channel outcome of one alert."""
    succeeded: List[int] = field(default_factory=list)
    failed: List[int] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return len(self.succeeded)

    @property
    def failure_count(self) -> int:
        return len(self.failed)

    @property
    def total(self) -> int:
        return self.success_count + self.failure_count


def build_embed(payload: AlertPayload) -> discord.Embed:
    """Build the Discord embed for a home run alert."""
    player = payload.player
    detail = payload.detail

    embed = discord.Embed(
        title=payload.title,
        description=payload.description,
        color=TEAM_COLORS.get(player.team, DEFAULT_COLOR),
        timestamp=datetime.now(timezone.utc)
    )

    embed.add_field(name="Season Total", value=f"{payload.total} HR", inline=True)
    embed.add_field(name="Player", value=f"{player.name} (#{player.number})", inline=True)
    embed.add_field(name="Distance", value=detail.distance_text, inline=True)

    # Multi-homer alerts only know about the latest one
    if detail.rbi is not None:
        label = "Latest" if payload.delta > 1 else "Type"
        embed.add_field(
            name=label,
            value=f"{detail.category.title()} ({detail.rbi} RBI)",
            inline=True
        )

    if player.headshot_url:
        embed.set_thumbnail(url=player.headshot_url)

    embed.set_footer(text=f"{player.team}")
    return embed


class Notifier:
    """Sends home run alerts to a fixed set of Discord channels."""

    def __init__(self, client: discord.Client, destinations: Sequence[int]):
        self.client = client
        self.destinations = tuple(destinations)

    async def _resolve_channel(self, channel_id: int):
        channel = self.client.get_channel(channel_id)
        if channel is None:
            channel = await self.client.fetch_channel(channel_id)
        return channel

    async def notify(
        self,
        player: "TrackedPlayer",
        total: int,
        delta: int,
        detail: EventDetail,
        destinations: Optional[Sequence[int]] = None
    ) -> DeliveryReport:
        """
        Send one alert to every destination.

        A failure on one channel is logged and counted; it never stops the
        remaining channels and never propagates to the caller.
        """
        if destinations is None:
            destinations = self.destinations

        embed = build_embed(AlertPayload(player=player, total=total, delta=delta, detail=detail))
        report = DeliveryReport()

        for channel_id in destinations:
            try:
                channel = await self._resolve_channel(channel_id)
                await channel.send(embed=embed)
                report.succeeded.append(channel_id)
            except Exception as e:
                logger.error(f"Failed to send alert for {player.name} to channel {channel_id}: {e}")
                report.failed.append(channel_id)

        logger.info(
            f"Notified {report.success_count}/{len(destinations)} channel(s) "
            f"of {player.name} home run #{total}"
        )
        return report
