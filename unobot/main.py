"""Application bootstrap for the UnoBot Discord bot.

This module wires together configuration, logging, command registration, the
sharded gateway connection and the plain-text web server so the bot can be
launched with ``python -m unobot.main``.  Importing it has no side effects; the
whole startup sequence lives in :meth:`LifecycleOrchestrator.run`.
"""

import asyncio
import importlib
import logging
import os
import signal
from typing import Any, Optional, Sequence

import discord

from unobot.configs.schema import AppConfig, BotConfig
from unobot.configs.settings import load_config, require_env
from unobot.events.gateway_events import EventTable, GatewayEvent
from unobot.services.command_registrar import CommandRegistrar
from unobot.services.command_router import CommandRouter, RegistryTree
from unobot.services.context import ServiceContainer
from unobot.services.game_manager import GameManager
from unobot.services.status_service import StatusAggregator
from unobot.services.topgg_service import TopGGClient, TopGGHandle
from unobot.services.web_server import RequestListener
from unobot.utils.exceptions import StartupError
from unobot.utils.logger import attach_log_sink, setup_logging

COMMAND_MODULES = (
    "unobot.commands.info_commands",
    "unobot.commands.uno_commands",
)
LOG_SOURCES = ("discord", "UnoBot")


class UnoBot(discord.AutoShardedClient):
    """Sharded gateway client that forwards the events we care about to an :class:`EventTable`.

    The attached :class:`RegistryTree` only renders command payloads; every
    interaction reaches ``on_interaction`` and is routed by :class:`CommandRouter`.
    """

    def __init__(self, config: BotConfig):
        intents = discord.Intents.none()
        intents.guilds = True
        super().__init__(intents=intents, shard_count=config.shard_count)
        self.tree = RegistryTree(self)
        self.logger = logging.getLogger("UnoBot.Gateway")
        self._events: Optional[EventTable] = None

    def bind_events(self, table: EventTable) -> None:
        self._events = table

    def shard_for(self, guild_id: Optional[int]) -> Optional[discord.ShardInfo]:
        """Return the shard owning ``guild_id``; DMs are delivered on shard 0."""
        shard_count = self.shard_count or 1
        shard_id = (guild_id >> 22) % shard_count if guild_id else 0
        return self.get_shard(shard_id)

    async def _publish(self, event: GatewayEvent, *args: Any) -> None:
        if self._events is None:
            self.logger.debug("Dropping %s received before the event table was bound.", event.value)
            return
        await self._events.publish(event, *args)

    async def on_interaction(self, interaction: discord.Interaction) -> None:
        await self._publish(GatewayEvent.INTERACTION_RECEIVED, self.shard_for(interaction.guild_id), interaction)

    async def on_shard_ready(self, shard_id: int) -> None:
        await self._publish(GatewayEvent.SHARD_READY, self.get_shard(shard_id))

    async def on_guild_join(self, guild: discord.Guild) -> None:
        await self._publish(GatewayEvent.GUILD_JOINED, guild)

    async def on_guild_remove(self, guild: discord.Guild) -> None:
        await self._publish(GatewayEvent.GUILD_LEFT, guild)


class LifecycleOrchestrator:
    """Own the startup order and the lifetime of every long-running component.

    The gateway client, the router, the status aggregator and the web server are
    constructed here once and shared through a :class:`ServiceContainer`.
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        client: Optional[Any] = None,
        listener: Optional[RequestListener] = None,
        reporter_client: Optional[TopGGClient] = None,
        log_sink: Optional[logging.Handler] = None,
        command_modules: Sequence[str] = COMMAND_MODULES,
    ):
        self.config = config
        self.logger = logging.getLogger("UnoBot")
        self.client = client if client is not None else UnoBot(config.bot)
        self.status = StatusAggregator(self.client, config.bot)
        self.games = GameManager()
        self.services = ServiceContainer(config=config, client=self.client, status=self.status, games=self.games)
        self.router = CommandRouter(self.services)
        self.registrar = CommandRegistrar(self.client, self.router, config.bot)
        self.listener = listener or RequestListener(config.web_server)
        self.reporter_client = reporter_client or TopGGClient(config.topgg)
        self.log_sink = log_sink
        self.command_modules = tuple(command_modules)
        self.events: Optional[EventTable] = None
        self.reporter: Optional[TopGGHandle] = None
        self._shutdown = asyncio.Event()
        self._gateway_task: Optional[asyncio.Task] = None
        self._listener_task: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------ startup
    async def run(self, token: str) -> None:
        """Start everything in order, then wait for shutdown or the end of the gateway connection."""
        self.logger.info(
            "Initializing UnoBot (shards=%s, debug=%s)...",
            self.config.bot.shard_count or "auto",
            self.config.bot.debug,
        )
        try:
            await self.authenticate_reporter()
            self.register_modules()
            self.subscribe_log_sinks()

            await self.client.login(token)
            self.logger.info("Logged in; connecting shards...")
            self._gateway_task = asyncio.create_task(self.client.connect(), name="unobot-gateway")

            # The gateway task only starts running at the next await, so no event can be missed here.
            self.events = self.build_event_table()
            self.client.bind_events(self.events)

            if self.config.web_server.enabled:
                self._listener_task = asyncio.create_task(self._run_listener(), name="unobot-web-server")

            await self._wait_for_shutdown()
        finally:
            await self.close()

    async def authenticate_reporter(self) -> None:
        if not self.config.topgg.enabled:
            return
        token = os.getenv(self.config.topgg.token_env, "")
        try:
            self.reporter = await self.reporter_client.authenticate(self.config.bot.client_id, token)
        except Exception as exc:
            self.logger.warning("top.gg reporting disabled for this session: %s", exc)
            return
        self.status.attach_reporter(self.reporter)

    def register_modules(self) -> None:
        for name in self.command_modules:
            try:
                module = importlib.import_module(name)
                module.setup(self.router)
            except Exception as exc:
                raise StartupError(f"Failed to register command module {name}: {exc}") from exc
            self.logger.info("Loaded command module: %s", name)
        if not self.router.command_paths:
            raise StartupError("No commands were registered")

    def subscribe_log_sinks(self) -> None:
        if self.log_sink is not None:
            attach_log_sink(self.log_sink, *LOG_SOURCES)

    def build_event_table(self) -> EventTable:
        table = EventTable()
        table.subscribe(GatewayEvent.INTERACTION_RECEIVED, self.router.dispatch)
        table.subscribe(GatewayEvent.SHARD_READY, self._log_shard_ready)
        table.subscribe(GatewayEvent.SHARD_READY, self.registrar.on_shard_ready)
        table.subscribe(GatewayEvent.SHARD_READY, self.status.recompute)
        table.subscribe(GatewayEvent.GUILD_JOINED, self.status.recompute)
        table.subscribe(GatewayEvent.GUILD_LEFT, self.status.recompute)
        return table.freeze()

    async def _log_shard_ready(self, shard: Optional[discord.ShardInfo]) -> None:
        self.logger.info("Shard %s is ready.", getattr(shard, "id", "?"))

    async def _run_listener(self) -> None:
        try:
            await self.listener.start()
        except Exception:
            self.logger.exception("Web server task failed; the bot keeps running without it.")

    # ------------------------------------------------------------------ shutdown
    def request_shutdown(self) -> None:
        self._shutdown.set()

    async def _wait_for_shutdown(self) -> None:
        waiter = asyncio.create_task(self._shutdown.wait())
        done, _ = await asyncio.wait({self._gateway_task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        if waiter not in done:
            waiter.cancel()
        if self._gateway_task in done and not self._gateway_task.cancelled():
            error = self._gateway_task.exception()
            if error is not None:
                raise error
            self.logger.warning("Gateway connection closed.")
        else:
            self.logger.info("Shutdown requested.")

    async def close(self) -> None:
        """Stop the web server, the reporter and the gateway connection."""
        if self._listener_task and not self._listener_task.done():
            self._listener_task.cancel()
            try:
                await self._listener_task
            except asyncio.CancelledError:
                pass
        self._listener_task = None
        try:
            await self.listener.stop()
        except Exception as e:
            self.logger.error("Error stopping web server: %s", e)

        if self.reporter is not None:
            try:
                await self.reporter.close()
            except Exception as e:
                self.logger.error("Error closing top.gg session: %s", e)
            self.reporter = None

        try:
            await self.client.close()
        except Exception as e:
            self.logger.error("Error closing gateway connection: %s", e)
        if self._gateway_task and not self._gateway_task.done():
            self._gateway_task.cancel()
            try:
                await self._gateway_task
            except asyncio.CancelledError:
                pass
        self.logger.info("UnoBot stopped.")


def _install_signal_handlers(loop: asyncio.AbstractEventLoop, orchestrator: LifecycleOrchestrator) -> None:
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, orchestrator.request_shutdown)
        except NotImplementedError:
            logging.getLogger("UnoBot").debug("Signal %s not supported on this platform", sig)


async def main() -> None:
    config = load_config()
    sink = setup_logging(config.logging.level)
    token = require_env()
    orchestrator = LifecycleOrchestrator(config, log_sink=sink)
    _install_signal_handlers(asyncio.get_running_loop(), orchestrator)
    await orchestrator.run(token)


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
