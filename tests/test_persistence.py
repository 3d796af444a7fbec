# Copyright (c) 2025 Preston Elder
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Tests for the JSON state store."""

import json

import pytest

from garagedoor import DoorState, GarageDoorController, JsonStateStore
from garagedoor.persistence import slug


@pytest.mark.parametrize(
    "name,expected",
    [
        ("Garage", "garage"),
        ("Main Garage Door", "main-garage-door"),
        ("Left/Right #2", "left-right-2"),
    ],
)
def test_slug(name, expected):
    assert slug(name) == expected


class TestJsonStateStore:
    """Tests for JsonStateStore."""

    def test_path_for(self, tmp_path):
        store = JsonStateStore(tmp_path)
        assert store.path_for("garage") == tmp_path / "garage-door-state-garage.json"

    def test_save_and_load(self, json_store, tmp_path):
        assert json_store.save("garage", DoorState.OPEN) is True

        data = json.loads((tmp_path / "garage-door-state-garage.json").read_text())
        assert data == {"current": 0}
        assert json_store.load("garage") is DoorState.OPEN

    def test_keys_are_independent(self, json_store):
        json_store.save("left", DoorState.OPEN)
        json_store.save("right", DoorState.STOPPED)

        assert json_store.load("left") is DoorState.OPEN
        assert json_store.load("right") is DoorState.STOPPED

    def test_save_creates_directory(self, tmp_path):
        store = JsonStateStore(tmp_path / "nested" / "state")
        assert store.save("garage", DoorState.CLOSED)
        assert store.load("garage") is DoorState.CLOSED

    def test_load_missing(self, json_store):
        assert json_store.load("garage") is None

    @pytest.mark.parametrize(
        "content",
        ["not json", "[1]", '{"current": 9}', '{"current": "ajar"}', "{}"],
    )
    def test_load_unusable(self, json_store, content, caplog):
        json_store.path_for("garage").write_text(content)
        assert json_store.load("garage") is None
        assert "state" in caplog.text

    def test_load_read_error(self, json_store, caplog):
        json_store.path_for("garage").mkdir(parents=True)

        assert json_store.load("garage") is None
        assert "Failed to read state" in caplog.text

    def test_read_error_restores_closed(self, make_config, dispatcher, json_store):
        door = GarageDoorController(make_config(name="Garage"), dispatcher=dispatcher, store=json_store)
        json_store.path_for(door.key).mkdir(parents=True)

        assert door.restore_state() is DoorState.CLOSED
        assert door.target is DoorState.CLOSED

    def test_save_failure_returns_false(self, tmp_path, caplog):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        store = JsonStateStore(blocker / "state")

        assert store.save("garage", DoorState.OPEN) is False
        assert "Failed to save state" in caplog.text
