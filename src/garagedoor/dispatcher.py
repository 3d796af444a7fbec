# Copyright (c) 2025 Preston Elder
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""HTTP command dispatcher.

Fires the open/close requests at the relay endpoints. Any transport error,
timeout or non-2xx status is reported as a CommandError.
"""
from __future__ import annotations

import asyncio
import base64
import logging
from typing import Optional

import aiohttp

from .const import (
    DEFAULT_HTTP_METHOD,
    DEFAULT_TIMEOUT,
    SIMULATED_REQUEST_DELAY,
    SIMULATED_URL_PREFIX,
)
from .exceptions import CommandError

logger = logging.getLogger(__name__)


def basic_auth_header(username: str, password: str) -> str:
    """Build the value of a basic auth Authorization header."""
    token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


class HttpCommandDispatcher:
    """Sends door commands over HTTP.

    Example:
        dispatcher = HttpCommandDispatcher(timeout=3.0, auth=("user", "pass"))
        await dispatcher.send("http://relay.local/open")
        await dispatcher.close()
    """

    def __init__(
        self,
        *,
        method: str = DEFAULT_HTTP_METHOD,
        timeout: float = DEFAULT_TIMEOUT,
        auth: Optional[tuple[str, str]] = None,
        verify_ssl: bool = False,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """Initialize the dispatcher.

        Args:
            method: Default HTTP method for requests.
            timeout: Total request timeout in seconds.
            auth: Optional (username, password) for basic auth.
            verify_ssl: Whether to verify TLS certificates (relays commonly
                        use self-signed certificates).
            session: Optional shared session; one is created lazily otherwise.
        """
        self.method = method
        self.timeout = timeout
        self._headers = {"Authorization": basic_auth_header(*auth)} if auth else {}
        self._verify_ssl = verify_ssl
        self._session = session
        self._owns_session = session is None

    async def send(self, url: str, method: Optional[str] = None, body: str = "") -> None:
        """Send one command.

        Raises:
            CommandError: The request failed, timed out or was rejected.
        """
        req_method = method or self.method

        # Dry-run endpoints behave as a successful relay
        if url.startswith(SIMULATED_URL_PREFIX):
            logger.info(f"Simulating HTTP {req_method} request to {url}")
            await asyncio.sleep(SIMULATED_REQUEST_DELAY)
            return

        logger.debug(f"HTTP request -> method: {req_method}, url: {url}")
        session = self._get_session()
        try:
            async with session.request(
                req_method,
                url,
                data=body,
                headers=self._headers,
                ssl=None if self._verify_ssl else False,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as response:
                if response.status >= 400:
                    raise CommandError(f"HTTP {response.status} from {url}", url=url)
                await response.read()
        except asyncio.TimeoutError:
            raise CommandError(f"Request to {url} timed out after {self.timeout}s", url=url)
        except aiohttp.ClientError as e:
            raise CommandError(f"Request to {url} failed: {e}", url=url)

    async def close(self) -> None:
        """Close the underlying session if this dispatcher created it."""
        if self._session and self._owns_session and not self._session.closed:
            await self._session.close()
        if self._owns_session:
            self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session
