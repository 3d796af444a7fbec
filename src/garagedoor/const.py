# Copyright (c) 2025 Preston Elder
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Constants for the garage door controller."""

# Door state values (shared with the persisted state record)
DOOR_STATE_OPEN = 0
DOOR_STATE_CLOSED = 1
DOOR_STATE_OPENING = 2
DOOR_STATE_CLOSING = 3
DOOR_STATE_STOPPED = 4

# Configuration keys
CONF_NAME = "name"
CONF_OPEN_URL = "openURL"
CONF_CLOSE_URL = "closeURL"
CONF_OPEN_TIME = "openTime"
CONF_CLOSE_TIME = "closeTime"
CONF_HAS_OPEN_SENSOR = "hasOpenSensor"
CONF_HAS_CLOSED_SENSOR = "hasClosedSensor"
CONF_AUTO_CLOSE = "autoClose"
CONF_AUTO_CLOSE_DELAY = "autoCloseDelay"
CONF_WEBHOOK_PORT = "webhookPort"
CONF_HTTP_METHOD = "http_method"
CONF_USERNAME = "username"
CONF_PASSWORD = "password"
CONF_TIMEOUT = "timeout"
CONF_MANUFACTURER = "manufacturer"
CONF_MODEL = "model"
CONF_SERIAL = "serial"
CONF_FIRMWARE = "firmware"

# Configuration defaults (times in seconds)
DEFAULT_OPEN_TIME = 10
DEFAULT_CLOSE_TIME = 10
DEFAULT_AUTO_CLOSE_DELAY = 20
DEFAULT_HTTP_METHOD = "GET"
DEFAULT_TIMEOUT = 3.0
DEFAULT_MANUFACTURER = "garagedoor"
DEFAULT_MODEL = "GarageDoorController"
DEFAULT_VERSION = "1.0.0"

# Guard action fires after this multiple of the expected movement time
SENSOR_GUARD_FACTOR = 1.5

# Webhook
WEBHOOK_PATH = "/garage/update"
WEBHOOK_OPEN = "open"
WEBHOOK_CLOSED = "closed"
WEBHOOK_BACKGROUND = "background"
WEBHOOK_TRUE = "true"
WEBHOOK_FALSE = "false"

# Command dispatch
SIMULATED_URL_PREFIX = "http://test-donotcall"
SIMULATED_REQUEST_DELAY = 0.5

# Persistence
STATE_FILE_PREFIX = "garage-door-state-"
FIELD_CURRENT = "current"
