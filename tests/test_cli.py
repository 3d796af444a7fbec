# Copyright (c) 2025 Preston Elder
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Tests for config loading and the CLI entry point."""

import sys

import pytest

from garagedoor import ConfigError, DoorState, JsonStateStore
from garagedoor.cli import build_controllers, load_config, main, parse_config, run_controller

GARAGE = {
    "name": "Garage",
    "openURL": "http://test-donotcall/open",
    "closeURL": "http://test-donotcall/close",
    "hasClosedSensor": True,
}

GATE = {
    "name": "Front Gate",
    "openURL": "http://test-donotcall/gate",
    "autoClose": True,
}

CONFIG_YAML = """\
persist_dir: {persist_dir}
doors:
  - name: Garage
    openURL: http://test-donotcall/open
    closeURL: http://test-donotcall/close
    openTime: 12
    hasClosedSensor: true
  - name: Front Gate
    openURL: http://test-donotcall/gate
    autoClose: true
"""


# ============================================================================
# parse_config Tests
# ============================================================================

class TestParseConfig:
    """Tests for parse_config."""

    def test_mapping_with_doors(self):
        configs, options = parse_config({"doors": [GARAGE, GATE], "persist_dir": "/tmp/x"})

        assert [c.name for c in configs] == ["Garage", "Front Gate"]
        assert options == {"persist_dir": "/tmp/x"}

    def test_bare_list(self):
        configs, options = parse_config([GARAGE])
        assert len(configs) == 1
        assert options == {}

    @pytest.mark.parametrize("data", [None, "doors", {"doors": []}, {"doors": "Garage"}, {}])
    def test_no_doors(self, data):
        with pytest.raises(ConfigError):
            parse_config(data)

    def test_invalid_door_reports_index(self):
        with pytest.raises(ConfigError, match="Door #2: closeURL"):
            parse_config([GARAGE, {"name": "Shed", "openURL": "http://x", "hasClosedSensor": True}])

    def test_duplicate_names(self):
        with pytest.raises(ConfigError, match="duplicate door name"):
            parse_config([GARAGE, dict(GARAGE, name="garage")])

    def test_duplicate_webhook_ports(self):
        left = dict(GARAGE, name="Left", webhookPort=8080)
        right = dict(GARAGE, name="Right", webhookPort=8080)
        with pytest.raises(ConfigError, match="webhookPort"):
            parse_config([left, right])


# ============================================================================
# load_config Tests
# ============================================================================

class TestLoadConfig:
    """Tests for load_config."""

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "doors.yaml"
        path.write_text(CONFIG_YAML.format(persist_dir=tmp_path))

        configs, options = load_config(path)
        assert configs[0].open_time == 12
        assert configs[1].auto_close
        assert options["persist_dir"] == str(tmp_path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="Cannot read config file"):
            load_config(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "doors.yaml"
        path.write_text("doors: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(path)


# ============================================================================
# Controller Startup Tests
# ============================================================================

class TestBuildControllers:
    """Tests for build_controllers."""

    def test_keyed_by_slug_and_restored(self, tmp_path):
        store = JsonStateStore(tmp_path)
        store.save("garage", DoorState.OPEN)
        store.save("front-gate", DoorState.OPEN)

        configs, _ = parse_config([GARAGE, GATE])
        doors = build_controllers(configs, store)

        assert list(doors) == ["garage", "front-gate"]
        assert doors["garage"].current is DoorState.OPEN
        # Auto-close doors always start closed
        assert doors["front-gate"].current is DoorState.CLOSED


class TestRunController:
    """Tests for run_controller in daemon mode."""

    @pytest.mark.asyncio
    async def test_runs_until_timeout(self, tmp_path, capsys):
        configs, _ = parse_config([GARAGE])
        await run_controller(configs, persist_dir=tmp_path, daemon=True, run_for=0.05)

        assert "Controlling 1 door(s): Garage" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_without_persistence(self, capsys):
        configs, _ = parse_config([GARAGE, GATE])
        await run_controller(configs, persist_dir=None, daemon=True, run_for=0.05)

        assert "Garage, Front Gate" in capsys.readouterr().out


# ============================================================================
# main Tests
# ============================================================================

class TestMain:
    """Tests for the CLI entry point."""

    def test_main_daemon(self, tmp_path, monkeypatch, capsys):
        path = tmp_path / "doors.yaml"
        path.write_text(CONFIG_YAML.format(persist_dir=tmp_path))
        monkeypatch.setattr(
            sys, "argv", ["garagedoor", "-c", str(path), "--daemon", "--run-for", "0.05"]
        )

        main()
        assert "Controlling 2 door(s)" in capsys.readouterr().out

    def test_main_invalid_config(self, tmp_path, monkeypatch):
        path = tmp_path / "doors.yaml"
        path.write_text("doors: []\n")
        monkeypatch.setattr(sys, "argv", ["garagedoor", "--config", str(path)])

        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == 2

    def test_main_requires_config(self, monkeypatch):
        monkeypatch.setattr(sys, "argv", ["garagedoor"])
        with pytest.raises(SystemExit):
            main()
