# Copyright (c) 2025 Preston Elder
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Door operation commands."""

from typing import TYPE_CHECKING, Optional

from ..const import WEBHOOK_BACKGROUND, WEBHOOK_CLOSED, WEBHOOK_FALSE, WEBHOOK_OPEN, WEBHOOK_TRUE
from ..exceptions import CommandError
from ..state import DoorState
from .base import ArgSpec, CommandResult, command

if TYPE_CHECKING:
    from ..controller import GarageDoorController

_DOOR_ARG = ArgSpec(
    "door",
    "string",
    required=False,
    description="Door name (may be omitted when only one door is configured)",
)


class DoorCommandsMixin:
    """Mixin providing door operation commands."""

    async def _move(self, ref: Optional[str], target: DoorState) -> CommandResult:
        door = self.resolve_door(ref)
        try:
            await door.set_target(target)
        except CommandError as e:
            return CommandResult(False, f"{door.name}: {e}")
        return CommandResult(
            True, f"{door.name}: current {door.current.name}, target {door.target.name}"
        )

    @command("open", ["o"], "Open a door", category="door", args=[_DOOR_ARG])
    async def open(self, door: Optional[str] = None) -> CommandResult:
        """Request a door to open."""
        return await self._move(door, DoorState.OPEN)

    @command("close", ["c"], "Close a door", category="door", args=[_DOOR_ARG])
    async def close(self, door: Optional[str] = None) -> CommandResult:
        """Request a door to close."""
        return await self._move(door, DoorState.CLOSED)

    @command(
        "sensor",
        ["s"],
        "Inject a sensor report as if it came from the webhook",
        category="door",
        args=[
            ArgSpec("sensor", "choice", choices=[WEBHOOK_OPEN, WEBHOOK_CLOSED],
                    description="Which sensor reports"),
            ArgSpec("value", "bool_toggle", description="Sensor active (on) or released (off)"),
            ArgSpec("door", "string", required=False, description="Door name"),
            ArgSpec("background", "bool_toggle", required=False, default=False,
                    description="Report as a background update"),
        ],
    )
    def sensor(
        self,
        sensor: str,
        value: bool,
        door: Optional[str] = None,
        background: bool = False,
    ) -> CommandResult:
        """Feed a sensor report through the webhook reconciliation path."""
        controller = self.resolve_door(door)
        params = {sensor: WEBHOOK_TRUE if value else WEBHOOK_FALSE}
        if background:
            params[WEBHOOK_BACKGROUND] = WEBHOOK_TRUE
        accepted = controller.handle_webhook(params)
        state = f"current {controller.current.name}, target {controller.target.name}"
        if not accepted:
            return CommandResult(False, f"{controller.name}: report not applied ({state})")
        return CommandResult(True, f"{controller.name}: {state}")
