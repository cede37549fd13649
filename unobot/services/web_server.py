"""Plain-text HTTP responder running alongside the gateway connection."""

from __future__ import annotations

import enum
import logging
from typing import Awaitable, Callable, Optional

from aiohttp import web

from unobot.configs.schema import WebServerConfig

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


class ListenerState(enum.Enum):
    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"


class RequestListener:
    """Answer every request on one local endpoint with a fixed plain-text body.

    aiohttp runs the accept loop and gives each request its own task, so a slow
    client never holds up the next accept.  The listener reads configuration
    only and shares no state with the command dispatch path.
    """

    def __init__(self, config: WebServerConfig):
        self.config = config
        self.logger = logging.getLogger("UnoBot.WebServer")
        self.state = ListenerState.STOPPED
        self._body = config.body.encode("utf-8")
        self._runner: Optional[web.AppRunner] = None
        self._site: Optional[web.TCPSite] = None

    @property
    def is_running(self) -> bool:
        return self.state is ListenerState.RUNNING

    @property
    def bound_port(self) -> Optional[int]:
        """Actual listening port, useful when the configured port is ``0``."""
        if not self._runner or not self._runner.addresses:
            return None
        return self._runner.addresses[0][1]

    # ------------------------------------------------------------------ lifecycle
    async def start(self) -> bool:
        """Bind the endpoint; returns ``False`` (state ``STOPPED``) when binding fails."""
        if self.state is not ListenerState.STOPPED:
            return self.is_running
        self.state = ListenerState.STARTING

        app = web.Application(middlewares=[self._isolate_failures])
        app.router.add_route("*", "/{tail:.*}", self._handle_request)
        self._runner = web.AppRunner(app, access_log=None)
        try:
            await self._runner.setup()
            self._site = web.TCPSite(self._runner, host=self.config.host, port=self.config.port)
            await self._site.start()
        except Exception as exc:
            self.logger.error(
                "An error occurred while starting the web server on %s:%s: %s",
                self.config.host,
                self.config.port,
                exc,
            )
            await self._cleanup()
            return False

        self.state = ListenerState.RUNNING
        self.logger.info(
            "Web server started on %s:%s. Listening for incoming requests...",
            self.config.host,
            self.bound_port,
        )
        return True

    async def stop(self) -> None:
        if self.state is ListenerState.STOPPED:
            return
        await self._cleanup()
        self.logger.info("Web server stopped.")

    async def _cleanup(self) -> None:
        if self._site:
            await self._site.stop()
            self._site = None
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
        self.state = ListenerState.STOPPED

    # ------------------------------------------------------------------ request handling
    @web.middleware
    async def _isolate_failures(self, request: web.Request, handler: Handler) -> web.StreamResponse:
        try:
            return await handler(request)
        except web.HTTPException:
            raise
        except Exception as exc:
            self.logger.error(
                "An error occurred while processing a web request (%s %s): %s",
                request.method,
                request.path,
                exc,
            )
            return web.Response(status=500, body=b"Internal Server Error", content_type="text/plain")

    async def _handle_request(self, request: web.Request) -> web.Response:
        # Headers and body are not inspected; draining the body keeps keep-alive connections usable.
        await request.read()
        return web.Response(status=200, body=self._body, content_type="text/plain")
