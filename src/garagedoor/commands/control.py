# Copyright (c) 2025 Preston Elder
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Process control commands."""

import logging
from typing import Callable, Optional

from .base import ArgSpec, CommandResult, command

# Only this package's loggers are toggled
_PACKAGE_LOGGER = logging.getLogger("garagedoor")


class ControlCommandsMixin:
    """Mixin providing shutdown and log level commands."""

    stop_callback: Callable[[], None]

    @command(
        "shutdown",
        ["stop", "exit", "q", "quit"],
        "Stop all doors and exit",
        category="control",
    )
    def shutdown(self) -> CommandResult:
        self.stop_callback()
        return CommandResult(True, "Shutting down...")

    @command(
        "debug",
        [],
        "Show or toggle debug logging",
        category="control",
        args=[ArgSpec("state", "bool_toggle", required=False,
                      description="on/off, omit to show the current setting")],
    )
    def debug(self, state: Optional[bool] = None) -> CommandResult:
        """Switch the controller's loggers between DEBUG and INFO."""
        if state is None:
            enabled = _PACKAGE_LOGGER.getEffectiveLevel() <= logging.DEBUG
            return CommandResult(True, f"Debug logging: {'on' if enabled else 'off'}")

        _PACKAGE_LOGGER.setLevel(logging.DEBUG if state else logging.INFO)
        return CommandResult(True, f"Debug logging {'enabled' if state else 'disabled'}")
