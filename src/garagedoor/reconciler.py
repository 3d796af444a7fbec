# Copyright (c) 2025 Preston Elder
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Sensor webhook reconciliation.

External open/closed sensors report through the webhook as a flat map of
query parameters, e.g. ``{"closed": "true"}`` or
``{"open": "false", "background": "true"}``. This mixin decides whether
and how such a report changes the door state.

Foreground reports are live events: ``true`` means the door has settled
at that sensor, ``false`` means the door has started moving away from it.
Background reports are periodic reconciliation pings and are only applied
while the door is completely idle.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Mapping

from .const import (
    WEBHOOK_BACKGROUND,
    WEBHOOK_CLOSED,
    WEBHOOK_FALSE,
    WEBHOOK_OPEN,
    WEBHOOK_TRUE,
)
from .state import DoorState

if TYPE_CHECKING:
    from .scheduler import DelayedActionScheduler
    from .state import DoorConfig

logger = logging.getLogger(__name__)

# sensor key -> (settled state, movement away from it, opposite sensor key)
_SENSORS = {
    WEBHOOK_OPEN: (DoorState.OPEN, DoorState.CLOSING, WEBHOOK_CLOSED),
    WEBHOOK_CLOSED: (DoorState.CLOSED, DoorState.OPENING, WEBHOOK_OPEN),
}


class SensorReconcilerMixin:
    """Mixin applying sensor webhook reports to the controller state."""

    name: str
    config: "DoorConfig"
    _scheduler: "DelayedActionScheduler"

    def _has_sensor(self, key: str) -> bool:
        if key == WEBHOOK_OPEN:
            return self.config.has_open_sensor
        return self.config.has_closed_sensor

    @property
    def idle(self) -> bool:
        """Whether no delayed action is armed and no command is in flight."""
        return not self._scheduler.pending and not self.in_flight_command

    def handle_webhook(self, params: Mapping[str, str]) -> bool:
        """Apply one decoded webhook request.

        Args:
            params: Query parameters of the request.

        Returns:
            True if the report was accepted (whether or not it changed
            anything), False if it was rejected or discarded.
        """
        logger.debug(
            f"{self.name}: Webhook received, current: {self.current.name}, "
            f"target: {self.target.name}, params: {dict(params)}"
        )

        present = [key for key in _SENSORS if key in params]
        if not present:
            logger.debug(f"{self.name}: Webhook has no sensor report, ignoring")
            return False

        for key in present:
            if not self._has_sensor(key):
                sensor_flag = "hasOpenSensor" if key == WEBHOOK_OPEN else "hasClosedSensor"
                logger.warning(
                    f"{self.name}: Received \"{key}\" in webhook but {sensor_flag} is not enabled"
                )
                return False

        if len(present) > 1:
            logger.warning(
                f"{self.name}: Received both \"open\" and \"closed\" in webhook, ignoring update"
            )
            return False

        key = present[0]
        value = str(params[key]).lower()
        if value not in (WEBHOOK_TRUE, WEBHOOK_FALSE):
            logger.warning(f"{self.name}: Invalid value for \"{key}\" in webhook: {params[key]!r}")
            return False
        active = value == WEBHOOK_TRUE

        if str(params.get(WEBHOOK_BACKGROUND, "")).lower() == WEBHOOK_TRUE:
            return self._apply_background_update(key, active)

        self._apply_sensor_event(key, active)
        return True

    def _apply_background_update(self, key: str, active: bool) -> bool:
        """Force a final state from a periodic report, only while idle."""
        if not self.idle:
            logger.debug(
                f"{self.name}: Ignoring background update because there is an outstanding operation"
            )
            return False

        settled, _, other_key = _SENSORS[key]
        if active:
            logger.debug(f"{self.name}: Updating state to {settled.name} from background update")
            self._set_final_state(settled)
        elif not self._has_sensor(other_key):
            complement = _SENSORS[other_key][0]
            logger.debug(f"{self.name}: Updating state to {complement.name} from background update")
            self._set_final_state(complement)
        # Otherwise the other sensor reports the final state itself
        return True

    def _apply_sensor_event(self, key: str, active: bool) -> None:
        settled, moving, _ = _SENSORS[key]

        if active:
            # Either a requested movement finished or the door was moved by hand
            logger.info(f"{self.name}: {key.capitalize()} sensor triggered - door is now {settled.name}")
            self._set_final_state(settled)
            self._scheduler.cancel()
            return

        if self.current is moving:
            logger.debug(
                f"{self.name}: Door is already {moving.name}, ignoring {key} sensor = false"
            )
            return

        # Movement that was not commanded from here
        final = DoorState.CLOSED if moving is DoorState.CLOSING else DoorState.OPEN
        logger.info(f"{self.name}: Door {moving.name.lower()} was manually started")
        self._set_target(final)
        self._set_current(moving)
        self._follow_movement(moving, f"manual request, reported by {key} sensor")
