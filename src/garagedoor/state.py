# Copyright (c) 2025 Preston Elder
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Door state enum and door configuration.

This module contains the value types shared by the controller, the
persistence layer and the command console.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from enum import IntEnum
from typing import Any, Optional

from .const import (
    CONF_AUTO_CLOSE,
    CONF_AUTO_CLOSE_DELAY,
    CONF_CLOSE_TIME,
    CONF_CLOSE_URL,
    CONF_FIRMWARE,
    CONF_HAS_CLOSED_SENSOR,
    CONF_HAS_OPEN_SENSOR,
    CONF_HTTP_METHOD,
    CONF_MANUFACTURER,
    CONF_MODEL,
    CONF_NAME,
    CONF_OPEN_TIME,
    CONF_OPEN_URL,
    CONF_PASSWORD,
    CONF_SERIAL,
    CONF_TIMEOUT,
    CONF_USERNAME,
    CONF_WEBHOOK_PORT,
    DEFAULT_AUTO_CLOSE_DELAY,
    DEFAULT_CLOSE_TIME,
    DEFAULT_HTTP_METHOD,
    DEFAULT_MANUFACTURER,
    DEFAULT_MODEL,
    DEFAULT_OPEN_TIME,
    DEFAULT_TIMEOUT,
    DEFAULT_VERSION,
    DOOR_STATE_CLOSED,
    DOOR_STATE_CLOSING,
    DOOR_STATE_OPEN,
    DOOR_STATE_OPENING,
    DOOR_STATE_STOPPED,
)
from .exceptions import ConfigError

logger = logging.getLogger(__name__)


class DoorState(IntEnum):
    """Door states, numbered as the exposure layer and state file expect."""

    OPEN = DOOR_STATE_OPEN
    CLOSED = DOOR_STATE_CLOSED
    OPENING = DOOR_STATE_OPENING
    CLOSING = DOOR_STATE_CLOSING
    STOPPED = DOOR_STATE_STOPPED

    @property
    def is_stable(self) -> bool:
        """Whether no movement is assumed to be in progress."""
        return self in (DoorState.OPEN, DoorState.CLOSED, DoorState.STOPPED)

    @property
    def is_moving(self) -> bool:
        """Whether the door is opening or closing."""
        return not self.is_stable

    @classmethod
    def from_value(cls, value: Any) -> Optional["DoorState"]:
        """Convert an int, numeric string or name to a state.

        Returns None for anything that does not name a valid state.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            return None
        if isinstance(value, str):
            text = value.strip()
            if text.upper() in cls.__members__:
                return cls[text.upper()]
            try:
                value = int(text)
            except ValueError:
                return None
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError:
                return None
        return None


# Maps config file keys to DoorConfig field names
_CONFIG_KEYS = {
    CONF_NAME: "name",
    CONF_OPEN_URL: "open_url",
    CONF_CLOSE_URL: "close_url",
    CONF_OPEN_TIME: "open_time",
    CONF_CLOSE_TIME: "close_time",
    CONF_HAS_OPEN_SENSOR: "has_open_sensor",
    CONF_HAS_CLOSED_SENSOR: "has_closed_sensor",
    CONF_AUTO_CLOSE: "auto_close",
    CONF_AUTO_CLOSE_DELAY: "auto_close_delay",
    CONF_WEBHOOK_PORT: "webhook_port",
    CONF_HTTP_METHOD: "http_method",
    CONF_USERNAME: "username",
    CONF_PASSWORD: "password",
    CONF_TIMEOUT: "timeout",
    CONF_MANUFACTURER: "manufacturer",
    CONF_MODEL: "model",
    CONF_SERIAL: "serial",
    CONF_FIRMWARE: "firmware",
}


@dataclass(frozen=True)
class DoorConfig:
    """Configuration for one physical door (all times in seconds).

    Validated once at construction; a contradictory configuration raises
    ConfigError rather than being silently coerced.
    """

    name: str
    open_url: str
    close_url: Optional[str] = None

    # Expected time for a full movement
    open_time: float = DEFAULT_OPEN_TIME
    close_time: float = DEFAULT_CLOSE_TIME

    # Which physical sensors report through the webhook
    has_open_sensor: bool = False
    has_closed_sensor: bool = False

    # Close automatically some time after opening (no close command exists)
    auto_close: bool = False
    auto_close_delay: float = DEFAULT_AUTO_CLOSE_DELAY

    # Webhook listener port (None or 0 disables it)
    webhook_port: Optional[int] = None

    # HTTP command settings
    http_method: str = DEFAULT_HTTP_METHOD
    username: Optional[str] = None
    password: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT

    # Accessory information
    manufacturer: str = DEFAULT_MANUFACTURER
    model: str = DEFAULT_MODEL
    serial: str = DEFAULT_VERSION
    firmware: str = DEFAULT_VERSION

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name.strip():
            raise ConfigError("name must be a non-empty string")

        if not isinstance(self.open_url, str) or not self.open_url:
            raise ConfigError("openURL must be a non-empty string")

        if not self.auto_close and (
            not isinstance(self.close_url, str) or not self.close_url
        ):
            raise ConfigError(
                "closeURL must be a non-empty string if autoClose is not used"
            )

        if self.auto_close and (self.has_open_sensor or self.has_closed_sensor):
            raise ConfigError(
                "autoClose cannot be used with hasClosedSensor or hasOpenSensor"
            )

        if self.auto_close and self.webhook_port:
            raise ConfigError(
                "autoClose cannot be used with webhook. Remove webhookPort or set to zero"
            )

        if not self.auto_close and not (self.has_open_sensor or self.has_closed_sensor):
            raise ConfigError(
                "hasClosedSensor or hasOpenSensor must be set if autoClose is not used"
            )

        for attr in ("open_time", "close_time", "auto_close_delay"):
            value = getattr(self, attr)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
                raise ConfigError(f"{attr} must be a non-negative number, got {value!r}")

        if isinstance(self.timeout, bool) or not isinstance(self.timeout, (int, float)) \
                or self.timeout <= 0:
            raise ConfigError(f"timeout must be a positive number, got {self.timeout!r}")

        if self.webhook_port is not None and (
            isinstance(self.webhook_port, bool)
            or not isinstance(self.webhook_port, int)
            or not 0 <= self.webhook_port <= 65535
        ):
            raise ConfigError(f"webhookPort must be a port number, got {self.webhook_port!r}")

        if not isinstance(self.http_method, str) or not self.http_method:
            raise ConfigError("http_method must be a non-empty string")

    @property
    def auth(self) -> Optional[tuple[str, str]]:
        """Basic auth credentials, only when both username and password are set."""
        if self.username and self.password:
            return (self.username, self.password)
        return None

    @property
    def webhook_enabled(self) -> bool:
        """Whether this door accepts sensor webhooks."""
        return bool(self.webhook_port)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DoorConfig":
        """Create from a config file mapping.

        Accepts the camelCase keys used in config files (``openURL``,
        ``hasOpenSensor``, ...) as well as the field names themselves.
        Unknown keys are ignored.
        """
        if not isinstance(data, dict):
            raise ConfigError(f"Door configuration must be a mapping, got {type(data).__name__}")

        field_names = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            attr = _CONFIG_KEYS.get(key, key)
            if attr not in field_names:
                logger.debug(f"Ignoring unknown door config key '{key}'")
                continue
            kwargs[attr] = value

        if "name" not in kwargs:
            raise ConfigError("name must be a non-empty string")
        if "open_url" not in kwargs:
            raise ConfigError("openURL must be a non-empty string")

        # Numeric values may arrive as strings from loosely typed config files
        for attr in ("open_time", "close_time", "auto_close_delay", "timeout"):
            if isinstance(kwargs.get(attr), str):
                try:
                    kwargs[attr] = float(kwargs[attr])
                except ValueError:
                    raise ConfigError(f"{attr} must be a number, got {kwargs[attr]!r}")
        if isinstance(kwargs.get("webhook_port"), str):
            try:
                kwargs["webhook_port"] = int(kwargs["webhook_port"])
            except ValueError:
                raise ConfigError(f"webhookPort must be a port number, got {kwargs['webhook_port']!r}")
        if "http_method" in kwargs and isinstance(kwargs["http_method"], str):
            kwargs["http_method"] = kwargs["http_method"].upper()

        return cls(**kwargs)
