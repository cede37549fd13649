"""``/uno`` lobby commands backed by the game manager."""

from __future__ import annotations

from typing import Optional, Tuple

from unobot.services.command_router import CommandRouter
from unobot.services.context import ExecutionContext
from unobot.utils.exceptions import LobbyError


def _ids(ctx: ExecutionContext) -> Tuple[Optional[int], Optional[int]]:
    interaction = ctx.interaction
    return getattr(interaction, "channel_id", None), getattr(getattr(interaction, "user", None), "id", None)


def _mentions(players) -> str:
    return ", ".join(f"<@{player}>" for player in players)


async def create(ctx: ExecutionContext) -> None:
    channel_id, user_id = _ids(ctx)
    try:
        await ctx.services.games.create(channel_id, user_id)
    except LobbyError as exc:
        await ctx.reply(exc.message, ephemeral=True)
        return
    await ctx.reply(f"<@{user_id}> opened an UNO lobby. Join with `/uno join`!")


async def join(ctx: ExecutionContext) -> None:
    channel_id, user_id = _ids(ctx)
    try:
        lobby = await ctx.services.games.join(channel_id, user_id)
    except LobbyError as exc:
        await ctx.reply(exc.message, ephemeral=True)
        return
    await ctx.reply(f"<@{user_id}> joined ({lobby.size} players): {_mentions(lobby.players)}")


async def leave(ctx: ExecutionContext) -> None:
    channel_id, user_id = _ids(ctx)
    games = ctx.services.games
    try:
        lobby = await games.leave(channel_id, user_id)
    except LobbyError as exc:
        await ctx.reply(exc.message, ephemeral=True)
        return
    if user_id == lobby.host_id or not lobby.players:
        await ctx.reply(f"<@{user_id}> left and the lobby was closed.")
    else:
        await ctx.reply(f"<@{user_id}> left the lobby ({lobby.size} players remaining).")


async def end(ctx: ExecutionContext) -> None:
    channel_id, user_id = _ids(ctx)
    try:
        await ctx.services.games.end(channel_id, user_id)
    except LobbyError as exc:
        await ctx.reply(exc.message, ephemeral=True)
        return
    await ctx.reply("The UNO lobby was closed by its host.")


def setup(router: CommandRouter) -> None:
    router.add_group("uno", "Play UNO with the people in this channel.")
    router.add_command("uno create", create, description="Open an UNO lobby in this channel.")
    router.add_command("uno join", join, description="Join the lobby in this channel.")
    router.add_command("uno leave", leave, description="Leave the lobby in this channel.")
    router.add_command("uno end", end, description="Close the lobby (host only).")
