"""Lobby bookkeeping for UNO games, one lobby per text channel."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Dict, List

from unobot.utils.exceptions import LobbyError

MAX_PLAYERS = 10


@dataclass
class Lobby:
    channel_id: int
    host_id: int
    players: List[int] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.players)


class GameManager:
    """Owns every open lobby. Card rules and turn order live elsewhere."""

    def __init__(self, max_players: int = MAX_PLAYERS):
        self.max_players = max_players
        self._lobbies: Dict[int, Lobby] = {}
        self._lock = asyncio.Lock()

    @property
    def active_count(self) -> int:
        return len(self._lobbies)

    def lobby(self, channel_id: int) -> Lobby:
        try:
            return self._lobbies[channel_id]
        except KeyError:
            raise LobbyError("There is no UNO lobby in this channel. Start one with `/uno create`.") from None

    async def create(self, channel_id: int, host_id: int) -> Lobby:
        async with self._lock:
            if channel_id in self._lobbies:
                raise LobbyError("A lobby is already open in this channel.")
            lobby = Lobby(channel_id=channel_id, host_id=host_id, players=[host_id])
            self._lobbies[channel_id] = lobby
            return lobby

    async def join(self, channel_id: int, user_id: int) -> Lobby:
        async with self._lock:
            lobby = self.lobby(channel_id)
            if user_id in lobby.players:
                raise LobbyError("You are already in this lobby.")
            if lobby.size >= self.max_players:
                raise LobbyError(f"This lobby is full ({self.max_players} players).")
            lobby.players.append(user_id)
            return lobby

    async def leave(self, channel_id: int, user_id: int) -> Lobby:
        """Remove ``user_id``; the lobby closes when its host leaves or it empties."""
        async with self._lock:
            lobby = self.lobby(channel_id)
            if user_id not in lobby.players:
                raise LobbyError("You are not in this lobby.")
            lobby.players.remove(user_id)
            if user_id == lobby.host_id or not lobby.players:
                self._lobbies.pop(channel_id, None)
            return lobby

    async def end(self, channel_id: int, user_id: int) -> Lobby:
        async with self._lock:
            lobby = self.lobby(channel_id)
            if user_id != lobby.host_id:
                raise LobbyError("Only the lobby host can end the game.")
            return self._lobbies.pop(channel_id)
