"""Diagnostic slash commands used to monitor the bot at runtime."""

from __future__ import annotations

import math

from unobot.services.command_router import CommandRouter
from unobot.services.context import ExecutionContext
from unobot.services.status_service import shard_guild_counts


def _latency_ms(ctx: ExecutionContext) -> str:
    latency = getattr(ctx.shard, "latency", None)
    if latency is None:
        latency = getattr(ctx.services.client, "latency", None)
    if latency is None or math.isinf(latency) or math.isnan(latency):
        return "n/a"
    return f"{latency * 1000:.0f} ms"


async def ping(ctx: ExecutionContext) -> None:
    await ctx.reply(f"Pong! Shard {ctx.shard_id if ctx.shard_id is not None else 0}: {_latency_ms(ctx)}", ephemeral=True)


async def stats(ctx: ExecutionContext) -> None:
    services = ctx.services
    counts = shard_guild_counts(services.client)
    lines = [
        f"Servers: {sum(counts.values())}",
        f"Shards: {len(counts) or 1}",
        f"Open UNO lobbies: {services.games.active_count}",
    ]
    lines.extend(f"Shard {shard_id}: {count} servers" for shard_id, count in counts.items())
    await ctx.reply("\n".join(lines), ephemeral=True)


def setup(router: CommandRouter) -> None:
    router.add_command("ping", ping, description="Show the gateway latency of this shard.")
    router.add_command("stats", stats, description="Show server, shard and lobby counts.")
