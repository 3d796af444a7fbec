# Copyright (c) 2025 Preston Elder
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Garage door controller.

Drives a garage door through HTTP relay commands and reconciles its state
from sensor webhooks, movement timing and persisted state.

The controller can:
- Open and close the door through configurable HTTP endpoints
- Simulate movement completion for doors without a confirming sensor
- Force STOPPED when an expected sensor report never arrives
- Close automatically after a delay (auto-close doors)
- Apply live and background sensor reports from a webhook listener
- Restore the last settled state after a restart

Example usage:
    # Run with a config file
    python -m garagedoor --config doors.yaml

    # Or use programmatically
    from garagedoor import DoorConfig, GarageDoorController
    door = GarageDoorController(DoorConfig(...))
    door.restore_state()
    await door.start()
"""

from .controller import GarageDoorController
from .dispatcher import HttpCommandDispatcher
from .exceptions import CommandError, ConfigError, GarageDoorError
from .persistence import JsonStateStore, slug
from .scheduler import DelayedActionScheduler
from .state import DoorConfig, DoorState
from .webhook import WebhookServer

__all__ = [
    # Main classes
    "GarageDoorController",
    "DoorConfig",
    "DoorState",
    # Collaborators
    "DelayedActionScheduler",
    "HttpCommandDispatcher",
    "JsonStateStore",
    "WebhookServer",
    "slug",
    # Errors
    "GarageDoorError",
    "ConfigError",
    "CommandError",
]
