# Copyright (c) 2025 Preston Elder
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Console command handler for the garage door controller.

The command handler is split into category-specific mixins:
- DoorCommandsMixin: Door operations (open, close, sensor)
- InfoCommandsMixin: Status and help
- ControlCommandsMixin: Process control (shutdown, debug)
"""

from .base import ArgSpec, CommandInfo, CommandResult, command, parse_arg
from .handler import CommandHandler, UnknownDoorError

__all__ = [
    "ArgSpec",
    "CommandHandler",
    "CommandInfo",
    "CommandResult",
    "UnknownDoorError",
    "command",
    "parse_arg",
]
