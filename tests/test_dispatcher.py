# Copyright (c) 2025 Preston Elder
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Tests for the HTTP command dispatcher."""

import asyncio
import socket

import aiohttp
import pytest
from aiohttp import web

from garagedoor import CommandError
from garagedoor import dispatcher as dispatcher_module
from garagedoor.dispatcher import HttpCommandDispatcher, basic_auth_header


class RelayStub:
    """Minimal HTTP relay recording the requests it receives."""

    def __init__(self):
        self.requests: list[dict] = []
        self.status = 200
        self.delay = 0.0
        self.port = None
        self._runner = None

    async def _handle(self, request: web.Request) -> web.Response:
        self.requests.append({
            "method": request.method,
            "path": request.path,
            "authorization": request.headers.get("Authorization"),
        })
        if self.delay:
            await asyncio.sleep(self.delay)
        return web.Response(status=self.status, text="relay")

    async def start(self) -> None:
        app = web.Application()
        app.router.add_route("*", "/{tail:.*}", self._handle)
        self._runner = web.AppRunner(app, access_log=None)
        await self._runner.setup()
        site = web.TCPSite(self._runner, "127.0.0.1", 0)
        await site.start()
        self.port = self._runner.addresses[0][1]

    async def stop(self) -> None:
        await self._runner.cleanup()

    def url(self, path: str) -> str:
        return f"http://127.0.0.1:{self.port}{path}"


@pytest.fixture
async def relay():
    stub = RelayStub()
    await stub.start()
    yield stub
    await stub.stop()


@pytest.fixture
async def http_dispatcher():
    dispatcher = HttpCommandDispatcher(timeout=1.0)
    yield dispatcher
    await dispatcher.close()


def unused_port() -> int:
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


class TestHttpCommandDispatcher:
    """Tests for HttpCommandDispatcher."""

    @pytest.mark.asyncio
    async def test_success(self, relay, http_dispatcher):
        await http_dispatcher.send(relay.url("/open"))

        assert relay.requests == [{"method": "GET", "path": "/open", "authorization": None}]

    @pytest.mark.asyncio
    async def test_method_override(self, relay, http_dispatcher):
        await http_dispatcher.send(relay.url("/close"), "POST")
        assert relay.requests[0]["method"] == "POST"

    @pytest.mark.asyncio
    async def test_default_method(self, relay):
        dispatcher = HttpCommandDispatcher(method="PUT")
        try:
            await dispatcher.send(relay.url("/open"))
        finally:
            await dispatcher.close()
        assert relay.requests[0]["method"] == "PUT"

    @pytest.mark.asyncio
    async def test_basic_auth(self, relay):
        dispatcher = HttpCommandDispatcher(auth=("admin", "secret"))
        try:
            await dispatcher.send(relay.url("/open"))
        finally:
            await dispatcher.close()

        assert relay.requests[0]["authorization"] == "Basic YWRtaW46c2VjcmV0"

    @pytest.mark.asyncio
    async def test_error_status_raises(self, relay, http_dispatcher):
        relay.status = 500
        with pytest.raises(CommandError, match="HTTP 500") as exc_info:
            await http_dispatcher.send(relay.url("/open"))
        assert exc_info.value.url == relay.url("/open")

    @pytest.mark.asyncio
    async def test_timeout_raises(self, relay):
        relay.delay = 0.5
        dispatcher = HttpCommandDispatcher(timeout=0.1)
        try:
            with pytest.raises(CommandError, match="timed out"):
                await dispatcher.send(relay.url("/open"))
        finally:
            await dispatcher.close()

    @pytest.mark.asyncio
    async def test_connection_refused_raises(self, http_dispatcher):
        with pytest.raises(CommandError, match="failed"):
            await http_dispatcher.send(f"http://127.0.0.1:{unused_port()}/open")

    @pytest.mark.asyncio
    async def test_simulated_url_skips_network(self, http_dispatcher, monkeypatch):
        monkeypatch.setattr(dispatcher_module, "SIMULATED_REQUEST_DELAY", 0)
        await http_dispatcher.send("http://test-donotcall/open")
        assert http_dispatcher._session is None

    @pytest.mark.asyncio
    async def test_shared_session_not_closed(self, relay):
        async with aiohttp.ClientSession() as session:
            dispatcher = HttpCommandDispatcher(session=session)
            await dispatcher.send(relay.url("/open"))
            await dispatcher.close()
            assert not session.closed

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, relay, http_dispatcher):
        await http_dispatcher.send(relay.url("/open"))
        await http_dispatcher.close()
        await http_dispatcher.close()

    @pytest.mark.asyncio
    async def test_basic_auth_sent_on_every_request(self, relay):
        dispatcher = HttpCommandDispatcher(auth=("admin", "secret"))
        try:
            await dispatcher.send(relay.url("/open"))
            await dispatcher.send(relay.url("/close"))
        finally:
            await dispatcher.close()

        assert [r["authorization"] for r in relay.requests] == ["Basic YWRtaW46c2VjcmV0"] * 2


def test_basic_auth_header():
    assert basic_auth_header("admin", "secret") == "Basic YWRtaW46c2VjcmV0"
    assert basic_auth_header("user", "") == "Basic dXNlcjo="
