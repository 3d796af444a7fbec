# Copyright (c) 2025 Preston Elder
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Sensor webhook listener.

Sensors report by requesting ``/garage/update`` with query parameters,
for example:

    curl "http://garage-host:8080/garage/update?closed=true"
    curl "http://garage-host:8080/garage/update?open=false&background=true"

Each accepted request is decoded into a flat dict and passed to the
handler once. Any other path answers 404.
"""
from __future__ import annotations

import logging
from typing import Callable, Mapping, Optional

from aiohttp import web

from .const import WEBHOOK_PATH

logger = logging.getLogger(__name__)

WebhookHandler = Callable[[Mapping[str, str]], object]


class WebhookServer:
    """HTTP listener feeding sensor reports to a controller.

    Example:
        server = WebhookServer(8080, controller.handle_webhook)
        await server.start()
        ...
        await server.stop()
    """

    def __init__(
        self,
        port: int,
        handler: WebhookHandler,
        host: str = "0.0.0.0",
        name: str = "",
    ):
        self.host = host
        self.port = port
        self.name = name
        self._handler = handler
        self._runner: Optional[web.AppRunner] = None
        self._site: Optional[web.TCPSite] = None

    @property
    def running(self) -> bool:
        return self._runner is not None

    @property
    def bound_port(self) -> Optional[int]:
        """Actual listening port (useful when started on port 0)."""
        if self._runner is None or not self._runner.addresses:
            return None
        return self._runner.addresses[0][1]

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_route("*", WEBHOOK_PATH, self._handle_update)
        return app

    async def start(self) -> None:
        """Start listening."""
        if self._runner is not None:
            return
        logger.debug(f"{self.name}: Starting webhook server on port {self.port}")
        runner = web.AppRunner(self.build_app(), access_log=None)
        await runner.setup()
        site = web.TCPSite(runner, self.host, self.port)
        try:
            await site.start()
        except OSError as e:
            logger.error(f"{self.name}: Failed to start webhook server on port {self.port}: {e}")
            await runner.cleanup()
            raise
        self._runner = runner
        self._site = site
        logger.info(f"{self.name}: Webhook server listening on {self.host}:{self.bound_port or self.port}")

    async def stop(self) -> None:
        """Stop listening."""
        if self._runner is None:
            return
        logger.debug(f"{self.name}: Stopping webhook server on port {self.port}")
        await self._runner.cleanup()
        self._runner = None
        self._site = None
        logger.info(f"{self.name}: Webhook server on port {self.port} stopped")

    async def _handle_update(self, request: web.Request) -> web.Response:
        logger.debug(f"{self.name}: Webhook request: {request.method} {request.path_qs}")
        params = {key: value for key, value in request.query.items()}
        try:
            self._handler(params)
        except Exception as e:
            logger.exception(f"{self.name}: Webhook handler error: {e}")
            return web.Response(status=500)
        return web.Response(text="OK")
