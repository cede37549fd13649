"""HTTP client for publishing the bot's server count to top.gg."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp

from unobot.configs.schema import TopGGConfig
from unobot.utils.exceptions import ReporterError


class TopGGHandle:
    """Authenticated handle for one bot listing."""

    def __init__(self, session: aiohttp.ClientSession, base_url: str, bot_id: int, token: str):
        self._session = session
        self._base_url = base_url
        self.bot_id = bot_id
        self._token = token
        self.logger = logging.getLogger("UnoBot.TopGG")

    @property
    def _headers(self) -> Dict[str, str]:
        return {"Authorization": self._token, "Content-Type": "application/json"}

    async def update_server_count(self, count: int) -> None:
        """POST the current server count; raises :class:`ReporterError` on rejection."""
        url = f"{self._base_url}/bots/{self.bot_id}/stats"
        try:
            async with self._session.post(url, json={"server_count": count}, headers=self._headers) as resp:
                if resp.status >= 400:
                    text = (await resp.text())[:200]
                    raise ReporterError(f"server count update rejected ({resp.status}): {text}")
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise ReporterError(f"server count transport error: {exc!r}") from exc
        self.logger.debug("Reported %s servers to top.gg.", count)

    async def close(self) -> None:
        if not self._session.closed:
            await self._session.close()


class TopGGClient:
    """Factory that authenticates against top.gg and returns a :class:`TopGGHandle`."""

    def __init__(self, config: TopGGConfig):
        self.config = config
        self.logger = logging.getLogger("UnoBot.TopGG")

    async def authenticate(self, bot_id: int, token: str) -> TopGGHandle:
        """Verify ``token`` can read the listing of ``bot_id``."""
        if not token:
            raise ReporterError("top.gg token is empty")
        timeout = aiohttp.ClientTimeout(total=self.config.timeout_seconds)
        session = aiohttp.ClientSession(timeout=timeout)
        handle = TopGGHandle(session, self.config.base_url, bot_id, token)
        try:
            async with session.get(f"{self.config.base_url}/bots/{bot_id}", headers=handle._headers) as resp:
                if resp.status >= 400:
                    text = (await resp.text())[:200]
                    raise ReporterError(f"authentication rejected ({resp.status}): {text}")
                listing: Optional[Dict[str, Any]] = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            await handle.close()
            raise ReporterError(f"authentication failed: {exc!r}") from exc
        except BaseException:
            await handle.close()
            raise
        name = (listing or {}).get("username", bot_id)
        self.logger.info("Authenticated with top.gg as %s.", name)
        return handle
