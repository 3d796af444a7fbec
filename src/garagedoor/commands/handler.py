# Copyright (c) 2025 Preston Elder
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Console command dispatch over a set of door controllers."""

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Callable, Optional

from ..persistence import slug
from .base import CommandInfo, CommandResult, get_command_registry, parse_arg
from .control import ControlCommandsMixin
from .door import DoorCommandsMixin
from .info import InfoCommandsMixin

if TYPE_CHECKING:
    from ..controller import GarageDoorController

logger = logging.getLogger(__name__)


class UnknownDoorError(LookupError):
    """A command referenced a door that is not configured."""


class UsageError(ValueError):
    """A command line did not match the command's arguments."""


class CommandHandler(
    DoorCommandsMixin,
    InfoCommandsMixin,
    ControlCommandsMixin,
):
    """Runs console commands against the configured doors.

    Commands are available both as text (``await handler.execute("open garage")``)
    and as methods (``await handler.open("garage")``).
    """

    def __init__(
        self,
        doors: dict[str, "GarageDoorController"],
        stop_callback: Callable[[], None],
    ):
        """
        Args:
            doors: Controllers keyed by door slug
            stop_callback: Called by the shutdown command
        """
        self.doors = doors
        self.stop_callback = stop_callback

    def resolve_door(self, ref: Optional[str]) -> "GarageDoorController":
        """Find a door by name or slug.

        The name may be omitted when exactly one door is configured.

        Raises:
            UnknownDoorError: No such door, or no name given with several doors.
        """
        if ref is None:
            if len(self.doors) == 1:
                return next(iter(self.doors.values()))
            raise UnknownDoorError(
                f"Specify a door: {', '.join(self.doors) or 'none configured'}"
            )
        door = self.doors.get(slug(ref))
        if door is None:
            raise UnknownDoorError(f"Unknown door: {ref}")
        return door

    async def execute(self, line: str) -> CommandResult:
        """Parse and run one console line.

        Errors are reported in the returned CommandResult, never raised.
        """
        words = line.split()
        if not words:
            return CommandResult(False, "Empty command")

        name, tokens = words[0].lower(), words[1:]
        info = get_command_registry().get(name)
        if info is None:
            return CommandResult(False, f"Unknown command: {name}. Type 'help' for commands.")

        try:
            args = self._bind_args(info, tokens)
        except UsageError as e:
            return CommandResult(False, f"{e}\nUsage: {info.name} {info.usage}".rstrip())

        try:
            result = getattr(self, info.handler.__name__)(*args)
            if asyncio.iscoroutine(result):
                result = await result
        except UnknownDoorError as e:
            return CommandResult(False, str(e))
        except Exception as e:
            logger.debug(f"Command '{line}' failed", exc_info=True)
            return CommandResult(False, f"Error: {e}")
        return result

    @staticmethod
    def _bind_args(info: CommandInfo, tokens: list[str]) -> list[Any]:
        """Map raw tokens onto the command's ArgSpecs, filling defaults."""
        if len(tokens) > len(info.args):
            raise UsageError("Too many arguments")

        values = []
        for position, spec in enumerate(info.args):
            if position >= len(tokens):
                if spec.required:
                    raise UsageError(f"Missing required argument: {spec.name}")
                values.append(spec.default)
                continue
            value, error = parse_arg(tokens[position], spec)
            if error:
                raise UsageError(error)
            values.append(value)
        return values
