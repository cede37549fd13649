"""Dependency container and the per-interaction execution context."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional

import discord

from unobot.configs.schema import AppConfig

if TYPE_CHECKING:
    from unobot.services.game_manager import GameManager
    from unobot.services.status_service import StatusAggregator

SUBCOMMAND_TYPES = {
    discord.AppCommandOptionType.subcommand.value,
    discord.AppCommandOptionType.subcommand_group.value,
}


def normalize_path(path: str) -> str:
    """Collapse whitespace and lower-case a command path so registry and lookup agree."""
    return " ".join(path.split()).lower()


@dataclass(frozen=True)
class ServiceContainer:
    """Services shared by the router and every command handler.

    Built once by the lifecycle and passed by reference; nothing in the
    container is replaced after startup.
    """

    config: AppConfig
    client: discord.AutoShardedClient
    status: StatusAggregator
    games: GameManager


@dataclass(frozen=True)
class ExecutionContext:
    """Binds one inbound interaction to the shard it arrived on.

    A context lives for exactly one ``CommandRouter.dispatch`` call.
    """

    shard: Optional[discord.ShardInfo]
    interaction: discord.Interaction
    services: ServiceContainer

    @property
    def shard_id(self) -> Optional[int]:
        return getattr(self.shard, "id", None)

    @property
    def data(self) -> Dict[str, Any]:
        return getattr(self.interaction, "data", None) or {}

    @property
    def command_path(self) -> str:
        """Return ``"name sub"`` for slash commands or the custom id for components."""
        data = self.data
        name = data.get("name")
        if not name:
            return normalize_path(str(data.get("custom_id") or ""))
        parts = [name]
        options: List[Dict[str, Any]] = data.get("options") or []
        while options and options[0].get("type") in SUBCOMMAND_TYPES:
            parts.append(options[0]["name"])
            options = options[0].get("options") or []
        return normalize_path(" ".join(parts))

    def _leaf_options(self) -> Iterator[Dict[str, Any]]:
        options: List[Dict[str, Any]] = self.data.get("options") or []
        while options and options[0].get("type") in SUBCOMMAND_TYPES:
            options = options[0].get("options") or []
        return iter(options)

    def option(self, name: str, default: Any = None) -> Any:
        """Return the raw value of option ``name`` on the resolved (sub)command."""
        for option in self._leaf_options():
            if option.get("name") == name:
                return option.get("value", default)
        return default

    async def reply(self, content: str, *, ephemeral: bool = False) -> None:
        """Answer the interaction, falling back to a followup once it was answered."""
        if not self.interaction.response.is_done():
            await self.interaction.response.send_message(content, ephemeral=ephemeral)
        else:
            await self.interaction.followup.send(content, ephemeral=ephemeral)
