# Copyright (c) 2025 Preston Elder
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Durable storage for the last known door state.

One small JSON file per door, keyed by a slug of the door name:

    <directory>/garage-door-state-<slug>.json  ->  {"current": 1}
"""
from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Optional, Union

from .const import FIELD_CURRENT, STATE_FILE_PREFIX
from .state import DoorState

logger = logging.getLogger(__name__)

_SLUG_RE = re.compile(r"[^a-z0-9]+")


def slug(name: str) -> str:
    """Normalize a door name into a stable storage key."""
    return _SLUG_RE.sub("-", str(name).lower())


class JsonStateStore:
    """Stores each door's current state in its own JSON file."""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory).expanduser()

    def path_for(self, key: str) -> Path:
        """Path of the state file for `key`."""
        return self.directory / f"{STATE_FILE_PREFIX}{key}.json"

    def load(self, key: str) -> Optional[DoorState]:
        """Load the stored state.

        Returns:
            The stored DoorState, or None if nothing usable is stored.
        """
        path = self.path_for(key)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug(f"No persisted state found at {path}")
            return None
        except OSError as e:
            logger.warning(f"Failed to read state from {path}: {e}")
            return None

        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Ignoring malformed state file {path}")
            return None

        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed state file {path}")
            return None

        state = DoorState.from_value(data.get(FIELD_CURRENT))
        if state is None:
            logger.warning(f"Ignoring invalid state value in {path}: {data.get(FIELD_CURRENT)!r}")
        return state

    def save(self, key: str, state: DoorState) -> bool:
        """Write the state, returning False if it could not be stored."""
        path = self.path_for(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps({FIELD_CURRENT: int(state)}), encoding="utf-8")
        except OSError as e:
            logger.warning(f"Failed to save state to {path}: {e}")
            return False
        return True
