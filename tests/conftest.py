# Copyright (c) 2025 Preston Elder
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Pytest configuration and fixtures for garage door tests."""
from __future__ import annotations

import asyncio
from typing import Any, Callable, Optional

import pytest

from garagedoor import (
    CommandError,
    DoorConfig,
    DoorState,
    GarageDoorController,
    JsonStateStore,
)

# Short movement times keep the timer-driven tests fast
OPEN_TIME = 0.05
CLOSE_TIME = 0.05


# ============================================================================
# Fake Collaborators
# ============================================================================

class FakeDispatcher:
    """Records door commands and completes them on demand.

    By default every command succeeds immediately. Set `error` to make
    commands fail, or `hold()` to keep them in flight until `release()`.
    """

    def __init__(self):
        self.calls: list[tuple[str, str, str]] = []
        self.error: Optional[Exception] = None
        self._gate: Optional[asyncio.Event] = None
        self.closed = False

    def hold(self) -> None:
        """Keep subsequent commands in flight until release()."""
        self._gate = asyncio.Event()

    def release(self) -> None:
        if self._gate:
            self._gate.set()

    @property
    def urls(self) -> list[str]:
        return [url for url, _, _ in self.calls]

    async def send(self, url: str, method: Optional[str] = None, body: str = "") -> None:
        self.calls.append((url, method, body))
        if self._gate:
            await self._gate.wait()
        if self.error:
            raise self.error

    async def close(self) -> None:
        self.closed = True


class MemoryStore:
    """In-memory stand-in for JsonStateStore."""

    def __init__(self, initial: Optional[dict[str, DoorState]] = None):
        self.states: dict[str, DoorState] = dict(initial or {})
        self.saves: list[tuple[str, DoorState]] = []

    def load(self, key: str) -> Optional[DoorState]:
        return self.states.get(key)

    def save(self, key: str, state: DoorState) -> bool:
        self.states[key] = state
        self.saves.append((key, state))
        return True


class ManualScheduler:
    """Single-slot scheduler whose action only runs when the test fires it."""

    def __init__(self):
        self.action: Optional[Callable[[], None]] = None
        self.delay: Optional[float] = None

    @property
    def pending(self) -> bool:
        return self.action is not None

    def schedule(self, delay: float, action: Callable[[], None]) -> None:
        self.delay = delay
        self.action = action

    def cancel(self) -> bool:
        pending = self.pending
        self.action = None
        self.delay = None
        return pending

    def fire(self) -> None:
        action, self.action = self.action, None
        assert action is not None, "no action pending"
        action()


class StateRecorder:
    """Collects (current, target) notifications from a controller."""

    def __init__(self):
        self.changes: list[tuple[DoorState, DoorState]] = []

    def __call__(self, current: DoorState, target: DoorState) -> None:
        self.changes.append((current, target))

    @property
    def currents(self) -> list[DoorState]:
        states = []
        for current, _ in self.changes:
            if not states or states[-1] is not current:
                states.append(current)
        return states


# ============================================================================
# Config Fixtures
# ============================================================================

@pytest.fixture
def make_config() -> Callable[..., DoorConfig]:
    """Factory for door configs with fast timings."""
    def factory(**overrides: Any) -> DoorConfig:
        values: dict[str, Any] = {
            "name": "Test Garage",
            "open_url": "http://relay.test/open",
            "close_url": "http://relay.test/close",
            "open_time": OPEN_TIME,
            "close_time": CLOSE_TIME,
            "has_closed_sensor": True,
        }
        values.update(overrides)
        return DoorConfig(**values)
    return factory


# ============================================================================
# Controller Fixtures
# ============================================================================

@pytest.fixture
def dispatcher() -> FakeDispatcher:
    """Create a fake dispatcher."""
    return FakeDispatcher()


@pytest.fixture
def store() -> MemoryStore:
    """Create an in-memory state store."""
    return MemoryStore()


@pytest.fixture
def json_store(tmp_path) -> JsonStateStore:
    """Create a JSON state store in a temporary directory."""
    return JsonStateStore(tmp_path)


@pytest.fixture
async def make_controller(make_config, dispatcher, store):
    """Factory for controllers wired to the fake dispatcher and memory store.

    Controllers are stopped after the test so no timer outlives it.
    """
    controllers: list[GarageDoorController] = []

    def factory(initial: DoorState = DoorState.CLOSED, **overrides: Any) -> GarageDoorController:
        config = make_config(**overrides)
        controller = GarageDoorController(config, dispatcher=dispatcher, store=store)
        store.states[controller.key] = initial
        controller.restore_state()
        store.saves.clear()
        controllers.append(controller)
        return controller

    yield factory

    for controller in controllers:
        await controller.stop()


@pytest.fixture
def manual_scheduler() -> ManualScheduler:
    """Create a scheduler driven by the test instead of the clock."""
    return ManualScheduler()


@pytest.fixture
def recorder() -> StateRecorder:
    """Create a state change recorder."""
    return StateRecorder()


@pytest.fixture
def command_error() -> CommandError:
    return CommandError("relay unreachable", url="http://relay.test/open")


@pytest.fixture
def make_store() -> Callable[..., MemoryStore]:
    """Factory for in-memory stores with preset states."""
    return MemoryStore
