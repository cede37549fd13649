"""Routes inbound interactions to statically registered command handlers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

import discord
from discord import app_commands

from unobot.services.context import ExecutionContext, ServiceContainer, normalize_path
from unobot.utils.exceptions import UnknownCommandError

CommandHandler = Callable[..., Awaitable[None]]

_MISSING = object()


class RegistryTree(app_commands.CommandTree):
    """Command tree that only renders the router's commands for registration.

    Every interaction is executed by :class:`CommandRouter` through
    ``on_interaction``, so the tree declines them all.
    """

    async def interaction_check(self, interaction: discord.Interaction, /) -> bool:
        return False


@dataclass(frozen=True)
class RegisteredCommand:
    """Registry entry for a command path such as ``"ping"`` or ``"uno join"``."""

    path: str
    handler: CommandHandler
    app_command: app_commands.Command

    @property
    def description(self) -> str:
        return self.app_command.description

    @property
    def parameters(self) -> List[app_commands.Parameter]:
        return self.app_command.parameters


class CommandRouter:
    """Turn raw interactions into handler invocations with failure isolation.

    Handlers are plain ``async def handler(ctx, ...)`` functions registered up
    front by each command module's ``setup(router)``.  Annotated parameters after
    ``ctx`` become command options, the same way discord.py reads them, and are
    passed as keyword arguments with their raw payload values.  ``dispatch``
    never raises: an unknown command or a failing handler is logged and the call
    returns so that the gateway connection delivering the interaction is
    unaffected.
    """

    def __init__(self, services: ServiceContainer):
        self.services = services
        self.logger = logging.getLogger("UnoBot.Router")
        self._commands: Dict[str, RegisteredCommand] = {}
        self._roots: Dict[str, Union[app_commands.Command, app_commands.Group]] = {}
        self.dispatched = 0
        self.failed = 0

    # ------------------------------------------------------------------ registration
    def add_group(self, name: str, description: str) -> None:
        """Declare a top-level command whose subcommands are registered separately."""
        name = normalize_path(name)
        if name in self._roots:
            raise ValueError(f"'{name}' is already registered")
        self._roots[name] = app_commands.Group(name=name, description=description)

    def add_command(self, path: str, handler: CommandHandler, *, description: str) -> None:
        """Register ``handler`` for ``path`` (``"name"`` or ``"group sub"``)."""
        path = normalize_path(path)
        if not path:
            raise ValueError("command path must not be empty")
        if path in self._commands:
            raise ValueError(f"command '{path}' is already registered")
        parts = path.split(" ")
        if len(parts) > 2:
            raise ValueError(f"command '{path}' nests deeper than one subcommand")

        command = app_commands.Command(name=parts[-1], description=description, callback=handler)
        if len(parts) == 2:
            group = self._roots.get(parts[0])
            if not isinstance(group, app_commands.Group):
                raise ValueError(f"command '{path}' belongs to undeclared group '{parts[0]}'")
            group.add_command(command)
        elif path in self._roots:
            raise ValueError(f"'{path}' is already declared as a group")
        else:
            self._roots[path] = command
        self._commands[path] = RegisteredCommand(path, handler, command)

    def command(self, path: str, *, description: str) -> Callable[[CommandHandler], CommandHandler]:
        """Decorator form of :meth:`add_command`."""

        def decorator(handler: CommandHandler) -> CommandHandler:
            self.add_command(path, handler, description=description)
            return handler

        return decorator

    @property
    def command_paths(self) -> List[str]:
        return list(self._commands)

    def get(self, path: str) -> Optional[RegisteredCommand]:
        return self._commands.get(normalize_path(path))

    def payloads(self, tree: app_commands.CommandTree) -> List[Dict[str, Any]]:
        """Render the registry as application-command JSON for bulk registration."""
        return [root.to_dict(tree) for root in self._roots.values()]

    # ------------------------------------------------------------------ dispatch
    async def dispatch(self, shard: Optional[discord.ShardInfo], interaction: discord.Interaction) -> None:
        """Execute the handler matching ``interaction``; failures are logged, never raised."""
        ctx = ExecutionContext(shard=shard, interaction=interaction, services=self.services)
        path = ctx.command_path
        self.dispatched += 1
        try:
            command = self._commands.get(path)
            if command is None:
                raise UnknownCommandError(path)
            await command.handler(ctx, **self._arguments(ctx, command))
        except Exception:
            self.failed += 1
            self.logger.exception(
                "Command '%s' failed (shard=%s, guild=%s, user=%s)",
                path,
                ctx.shard_id,
                getattr(interaction, "guild_id", None),
                getattr(getattr(interaction, "user", None), "id", None),
            )

    @staticmethod
    def _arguments(ctx: ExecutionContext, command: RegisteredCommand) -> Dict[str, Any]:
        # Options the user left out fall back to the handler's own defaults.
        arguments: Dict[str, Any] = {}
        for parameter in command.parameters:
            value = ctx.option(parameter.display_name, _MISSING)
            if value is not _MISSING:
                arguments[parameter.name] = value
        return arguments
