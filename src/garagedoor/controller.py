# Copyright (c) 2025 Preston Elder
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Garage door state controller.

This module drives the logical state of one garage door: it fires the
open/close commands, simulates movement when no sensor can confirm it,
guards against sensors that never report, and persists the settled state
across restarts.

Example usage:
    from garagedoor import DoorConfig, GarageDoorController, DoorState

    async def main():
        config = DoorConfig(
            name="Garage",
            open_url="http://relay.local/open",
            close_url="http://relay.local/close",
            has_closed_sensor=True,
            webhook_port=8080,
        )
        door = GarageDoorController(config)
        door.restore_state()
        await door.start()

        await door.set_target(DoorState.OPEN)
        print(f"Door is {door.current.name}")

        await door.stop()
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional

from .const import SENSOR_GUARD_FACTOR
from .dispatcher import HttpCommandDispatcher
from .exceptions import CommandError
from .persistence import JsonStateStore, slug
from .reconciler import SensorReconcilerMixin
from .scheduler import DelayedActionScheduler
from .state import DoorConfig, DoorState
from .webhook import WebhookServer

logger = logging.getLogger(__name__)

StateCallback = Callable[[DoorState, DoorState], None]


class GarageDoorController(SensorReconcilerMixin):
    """State machine for one garage door.

    The only entry points that change state are set_target() (a requested
    direction change) and handle_webhook() (a sensor report). Both may arm
    the single delayed action slot, whose callbacks re-enter the state
    machine.
    """

    def __init__(
        self,
        config: DoorConfig,
        *,
        dispatcher: Optional[Any] = None,
        store: Optional[JsonStateStore] = None,
        scheduler: Optional[DelayedActionScheduler] = None,
        webhook_host: str = "0.0.0.0",
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        """Initialize the controller.

        Args:
            config: Validated door configuration.
            dispatcher: Object with ``async send(url, method, body)``; an
                        HttpCommandDispatcher built from config by default.
            store: Persistence for the settled state (None disables it).
            scheduler: Delayed action slot; a DelayedActionScheduler on the
                       running loop by default.
            webhook_host: Address for the sensor webhook listener.
            loop: Optional event loop for the delayed action timers.
        """
        self.config = config
        self.name = config.name
        self.key = slug(config.name)
        self._owns_dispatcher = dispatcher is None
        self._dispatcher = dispatcher or HttpCommandDispatcher(
            method=config.http_method,
            timeout=config.timeout,
            auth=config.auth,
        )
        self._store = store
        self._scheduler = scheduler or DelayedActionScheduler(config.name, loop=loop)
        self._webhook_host = webhook_host
        self._webhook: Optional[WebhookServer] = None

        self._current = DoorState.CLOSED
        self._target = DoorState.CLOSED
        self._commands_in_flight = 0

        self._state_callbacks: list[StateCallback] = []

    # =========================================================================
    # State
    # =========================================================================

    @property
    def current(self) -> DoorState:
        """Current door state."""
        return self._current

    @property
    def target(self) -> DoorState:
        """Target door state."""
        return self._target

    def get_current(self) -> DoorState:
        """Return the current door state."""
        return self._current

    def get_target(self) -> DoorState:
        """Return the target door state."""
        return self._target

    @property
    def in_flight_command(self) -> bool:
        """Whether a door command has been issued and not yet completed."""
        return self._commands_in_flight > 0

    @property
    def pending_action(self) -> bool:
        """Whether a simulated completion, guard or auto-close is armed."""
        return self._scheduler.pending

    @property
    def webhook(self) -> Optional[WebhookServer]:
        """The sensor webhook listener, once started."""
        return self._webhook

    def on_state_change(self, callback: StateCallback) -> None:
        """Register a callback receiving (current, target) after each change."""
        self._state_callbacks.append(callback)

    def remove_state_callback(self, callback: StateCallback) -> None:
        """Unregister a callback added with on_state_change()."""
        if callback in self._state_callbacks:
            self._state_callbacks.remove(callback)

    def restore_state(self) -> DoorState:
        """Initialize current and target from persisted state.

        Auto-close doors always start CLOSED. A door stored mid-movement
        starts STOPPED since the outcome of that movement is unknown.
        """
        if self.config.auto_close or self._store is None:
            state = DoorState.CLOSED
        else:
            state = self._store.load(self.key)
            if state is None:
                state = DoorState.CLOSED
            elif state.is_moving:
                logger.info(f"{self.name}: Door was {state.name} at shutdown, assuming STOPPED")
                state = DoorState.STOPPED

        self._current = state
        self._target = state
        logger.info(f"{self.name}: Initial door state is {state.name}")
        self._notify()
        return state

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        """Start the sensor webhook listener, if configured."""
        if self.config.webhook_enabled and self._webhook is None:
            self._webhook = WebhookServer(
                self.config.webhook_port,
                self.handle_webhook,
                host=self._webhook_host,
                name=self.name,
            )
            await self._webhook.start()

    async def stop(self) -> None:
        """Cancel pending actions and release the listener and HTTP session."""
        self._scheduler.cancel()
        if self._webhook:
            await self._webhook.stop()
            self._webhook = None
        if self._owns_dispatcher:
            await self._dispatcher.close()

    # =========================================================================
    # Door Control
    # =========================================================================

    async def set_target(self, value: DoorState | int | str) -> None:
        """Request the door to move to OPEN or CLOSED.

        Raises:
            ValueError: `value` is not a door state.
            CommandError: The door command failed; the state has been reverted.
        """
        state = DoorState.from_value(value)
        if state is None:
            raise ValueError(f"Invalid target door state: {value!r}")

        current = self._current
        logger.info(f"{self.name}: Setting target door state to {state.name}")

        if state is current:
            logger.info(f"{self.name}: Target state is the same as current state, no action needed")
            self._set_target(state)
            return

        if state is DoorState.CLOSED:
            if self.config.auto_close:
                logger.info(f"{self.name}: Auto-close door cannot be closed on request, ignoring")
                return
            if current is DoorState.CLOSING:
                logger.info(f"{self.name}: Door is already closing, no action needed")
                return
        elif state is DoorState.OPEN:
            if current is DoorState.OPENING:
                logger.info(f"{self.name}: Door is already opening, no action needed")
                return
        else:
            logger.warning(f"{self.name}: Unsupported target door state: {state.name}")
            return

        await self._start_movement(state)

    async def open(self) -> None:
        await self.set_target(DoorState.OPEN)

    async def close(self) -> None:
        await self.set_target(DoorState.CLOSED)

    async def _start_movement(self, final: DoorState) -> None:
        if final is DoorState.OPEN:
            moving, url, verb = DoorState.OPENING, self.config.open_url, "open"
        else:
            moving, url, verb = DoorState.CLOSING, self.config.close_url, "close"

        previous_current, previous_target = self._current, self._target

        logger.info(f"{self.name}: Starting to {verb} the door")
        self._scheduler.cancel()
        self._set_target(final)
        self._set_current(moving)

        self._commands_in_flight += 1
        try:
            await self._dispatcher.send(url, self.config.http_method, "")
        except asyncio.CancelledError:
            logger.warning(f"{self.name}: Door {verb} command cancelled")
            self._revert_movement(moving, previous_current, previous_target)
            raise
        except Exception as e:
            logger.warning(f"{self.name}: Error sending door {verb} command: {e}")
            self._revert_movement(moving, previous_current, previous_target)
            if isinstance(e, CommandError):
                raise
            raise CommandError(f"Door {verb} command failed: {e}", url=url) from e
        finally:
            self._commands_in_flight -= 1

        if self._current is moving:
            self._follow_movement(moving, "simulated")
        else:
            logger.debug(
                f"{self.name}: Door {verb} command completed after state changed to {self._current.name}"
            )

    def _revert_movement(
        self, moving: DoorState, previous_current: DoorState, previous_target: DoorState
    ) -> None:
        """Undo an unconfirmed movement, unless a sensor report already settled the door."""
        if self._current is not moving:
            return
        if previous_current.is_moving:
            previous_current = DoorState.STOPPED
        self._set_target(previous_target)
        self._set_current(previous_current)

    # =========================================================================
    # Delayed Actions
    # =========================================================================

    def _follow_movement(self, moving: DoorState, reason: str) -> None:
        """Arm simulated completion or the sensor guard for a movement in progress."""
        if moving is DoorState.OPENING:
            if self.config.has_open_sensor:
                self._arm_sensor_guard("Open", self.config.open_time)
            else:
                self._simulate_completion(
                    DoorState.OPEN, self.config.open_time, f"Door opened ({reason})"
                )
        else:
            if self.config.has_closed_sensor:
                self._arm_sensor_guard("Closed", self.config.close_time)
            else:
                self._simulate_completion(
                    DoorState.CLOSED, self.config.close_time, f"Door closed ({reason})"
                )

    def _simulate_completion(self, final: DoorState, delay: float, message: str) -> None:
        def complete():
            self._set_final_state(final)
            logger.info(f"{self.name}: {message}")
            if final is DoorState.OPEN and self.config.auto_close:
                self._arm_auto_close()

        self._scheduler.schedule(delay, complete)

    def _arm_sensor_guard(self, sensor: str, expected: float) -> None:
        # Cancelled by the sensor report when the door settles in time
        def guard():
            logger.warning(f"{self.name}: {sensor} sensor did not trigger, assuming door is stopped")
            self._set_current(DoorState.STOPPED)

        self._scheduler.schedule(expected * SENSOR_GUARD_FACTOR, guard)

    def _arm_auto_close(self) -> None:
        def start_auto_close():
            logger.info(f"{self.name}: Starting the auto close")
            self._set_target(DoorState.CLOSED)
            self._set_current(DoorState.CLOSING)
            # Auto-close doors have neither a close command nor a closed sensor
            self._simulate_completion(
                DoorState.CLOSED, self.config.close_time, "Door closed (auto-close simulated)"
            )

        self._scheduler.schedule(self.config.auto_close_delay, start_auto_close)

    # =========================================================================
    # Internal State Updates
    # =========================================================================

    def _set_current(self, state: DoorState) -> None:
        changed = state is not self._current
        self._current = state
        if state.is_stable and not self.config.auto_close and self._store is not None:
            self._store.save(self.key, state)
        if changed:
            self._notify()

    def _set_target(self, state: DoorState) -> None:
        if state is not self._target:
            self._target = state
            self._notify()

    def _set_final_state(self, state: DoorState) -> None:
        """Force both target and current, keeping the exposed target consistent."""
        self._set_target(state)
        self._set_current(state)

    def _notify(self) -> None:
        for callback in list(self._state_callbacks):
            try:
                callback(self._current, self._target)
            except Exception:
                logger.exception(f"{self.name}: Error in state callback")
