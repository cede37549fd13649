"""Typed publish/subscribe table for the gateway events the lifecycle wires up."""

from __future__ import annotations

import enum
import logging
from typing import Any, Awaitable, Callable, Dict, List

Subscriber = Callable[..., Awaitable[Any]]

log = logging.getLogger("UnoBot.Events")


class GatewayEvent(enum.Enum):
    INTERACTION_RECEIVED = "interaction_received"
    SHARD_READY = "shard_ready"
    GUILD_JOINED = "guild_joined"
    GUILD_LEFT = "guild_left"


class EventTable:
    """Subscribers per :class:`GatewayEvent`, built at startup then frozen."""

    def __init__(self) -> None:
        self._subscribers: Dict[GatewayEvent, List[Subscriber]] = {event: [] for event in GatewayEvent}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def subscribe(self, event: GatewayEvent, subscriber: Subscriber) -> None:
        if self._frozen:
            raise RuntimeError("event table is frozen; subscribe before startup completes")
        self._subscribers[event].append(subscriber)

    def freeze(self) -> "EventTable":
        self._frozen = True
        return self

    def subscribers(self, event: GatewayEvent) -> List[Subscriber]:
        return list(self._subscribers[event])

    async def publish(self, event: GatewayEvent, *args: Any) -> None:
        """Await every subscriber in order; one failing subscriber does not skip the rest."""
        for subscriber in self._subscribers[event]:
            try:
                await subscriber(*args)
            except Exception:
                log.exception("Subscriber %r failed on %s", subscriber, event.value)
