"""Publishes the router's command set to Discord once per process start."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from unobot.configs.schema import BotConfig
from unobot.services.command_router import CommandRouter


class CommandRegistrar:
    """Bulk-overwrite application commands globally, plus the debug guild in debug mode.

    ``on_shard_ready`` fires once per shard (and again after reconnects), but the
    registration RPCs are only issued the first time.
    """

    def __init__(self, client: Any, router: CommandRouter, config: BotConfig):
        self.client = client
        self.router = router
        self.config = config
        self.logger = logging.getLogger("UnoBot.Registrar")
        self._lock = asyncio.Lock()
        self._registered = False

    @property
    def registered(self) -> bool:
        return self._registered

    def _application_id(self) -> Optional[int]:
        return getattr(self.client, "application_id", None) or self.config.client_id

    async def on_shard_ready(self, *_: Any) -> None:
        if not self.config.register_commands_on_ready:
            return
        async with self._lock:
            if self._registered:
                return
            self._registered = True
            try:
                await self.register_globally()
                if self.config.debug:
                    self.logger.warning("Running in debug mode; registering commands to guild %s.", self.config.debug_guild_id)
                    await self.register_to_guild(self.config.debug_guild_id)
            except Exception:
                self.logger.exception("Application command registration failed")

    async def register_globally(self) -> int:
        payload = self.router.payloads(self.client.tree)
        await self.client.http.bulk_upsert_global_commands(self._application_id(), payload=payload)
        self.logger.info("Registered %s global application commands.", len(payload))
        return len(payload)

    async def register_to_guild(self, guild_id: int) -> int:
        payload = self.router.payloads(self.client.tree)
        await self.client.http.bulk_upsert_guild_commands(self._application_id(), guild_id, payload=payload)
        self.logger.info("Registered %s application commands to guild %s.", len(payload), guild_id)
        return len(payload)
