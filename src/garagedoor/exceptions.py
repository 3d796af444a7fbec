# Copyright (c) 2025 Preston Elder
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Exceptions raised by the garage door controller."""


class GarageDoorError(Exception):
    """Base class for garage door errors."""


class ConfigError(GarageDoorError, ValueError):
    """Invalid or contradictory door configuration."""


class CommandError(GarageDoorError):
    """A door command could not be delivered.

    Raised by the dispatcher for transport errors, timeouts and non-2xx
    responses, and re-raised by the controller after it has reverted the
    door state.
    """

    def __init__(self, message: str, url: str | None = None):
        super().__init__(message)
        self.url = url
