"""Keeps the bot presence and the top.gg server count in line with guild membership."""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from typing import TYPE_CHECKING, Any, Dict, Optional

import discord

from unobot.configs.schema import BotConfig

if TYPE_CHECKING:
    from unobot.services.topgg_service import TopGGHandle


def shard_guild_counts(client: Any) -> Dict[int, int]:
    """Return ``{shard_id: guild_count}`` for every shard the client manages."""
    per_shard = Counter(getattr(guild, "shard_id", 0) for guild in getattr(client, "guilds", []))
    counts = {shard_id: 0 for shard_id in sorted(getattr(client, "shards", None) or {})}
    counts.update(per_shard)
    return counts


class StatusAggregator:
    """Recompute the total guild count from live shard state and publish it.

    No aggregate is kept between calls, so concurrent ``recompute`` calls from
    several shards need no lock; the presence update is last-write-wins.
    """

    def __init__(self, client: Any, config: BotConfig, *, presence_timeout: float = 10.0):
        self.client = client
        self.config = config
        self.presence_timeout = presence_timeout
        self.reporter: Optional[TopGGHandle] = None
        self.logger = logging.getLogger("UnoBot.Status")

    def attach_reporter(self, reporter: Optional[TopGGHandle]) -> None:
        self.reporter = reporter

    def total_guilds(self) -> int:
        return sum(shard_guild_counts(self.client).values())

    def presence_text(self, total: int) -> str:
        return self.config.presence_template.format(guilds=total)

    async def recompute(self, *_: Any) -> int:
        """Publish the current total to the presence and, outside debug, to top.gg."""
        total = self.total_guilds()
        self.logger.info("Updating guild count (%s servers)...", total)
        await self._update_presence(total)
        if self.reporter is not None and not self.config.debug:
            await self._report(total)
        return total

    async def _update_presence(self, total: int) -> None:
        activity = discord.Game(name=self.presence_text(total))
        try:
            await asyncio.wait_for(self.client.change_presence(activity=activity), timeout=self.presence_timeout)
        except asyncio.TimeoutError:
            self.logger.warning("Presence update timed out after %ss", self.presence_timeout)
        except Exception:
            self.logger.exception("Presence update failed")

    async def _report(self, total: int) -> None:
        try:
            await self.reporter.update_server_count(total)
        except Exception as exc:
            self.logger.warning("top.gg server count update failed: %s", exc)
