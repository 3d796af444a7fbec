# Copyright (c) 2025 Preston Elder
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""CLI for the garage door controller.

Loads door definitions from a YAML file, starts one controller (and its
sensor webhook listener) per door, and offers an interactive console for
driving them.

Example config:

    persist_dir: ~/.garagedoor
    doors:
      - name: Garage
        openURL: http://relay.local/open
        closeURL: http://relay.local/close
        openTime: 12
        closeTime: 12
        hasClosedSensor: true
        webhookPort: 8080
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from .commands import CommandHandler
from .controller import GarageDoorController
from .exceptions import ConfigError
from .persistence import JsonStateStore, slug
from .state import DoorConfig

logger = logging.getLogger(__name__)

DEFAULT_PERSIST_DIR = Path.home() / ".garagedoor"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def parse_config(data: Any) -> tuple[list[DoorConfig], dict[str, Any]]:
    """Split a loaded config document into door configs and global options.

    Accepts either a mapping with a ``doors`` list or a bare list of doors.

    Raises:
        ConfigError: The document or any door entry is invalid.
    """
    if isinstance(data, list):
        entries, options = data, {}
    elif isinstance(data, dict):
        entries = data.get("doors")
        options = {k: v for k, v in data.items() if k != "doors"}
    else:
        raise ConfigError("Config must be a mapping with a 'doors' list")

    if not isinstance(entries, list) or not entries:
        raise ConfigError("Config must define at least one door under 'doors'")

    doors = []
    keys = set()
    for index, entry in enumerate(entries):
        try:
            config = DoorConfig.from_dict(entry)
        except ConfigError as e:
            raise ConfigError(f"Door #{index + 1}: {e}") from e
        key = slug(config.name)
        if key in keys:
            raise ConfigError(f"Door #{index + 1}: duplicate door name '{config.name}'")
        keys.add(key)
        doors.append(config)

    ports = [d.webhook_port for d in doors if d.webhook_enabled]
    if len(ports) != len(set(ports)):
        raise ConfigError("Each door needs its own webhookPort")

    return doors, options


def load_config(path: Union[str, Path]) -> tuple[list[DoorConfig], dict[str, Any]]:
    """Load and validate a YAML config file."""
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    return parse_config(data)


def build_controllers(
    configs: list[DoorConfig],
    store: Optional[JsonStateStore],
    host: str = "0.0.0.0",
) -> dict[str, GarageDoorController]:
    """Create one controller per door and restore its persisted state."""
    doors = {}
    for config in configs:
        controller = GarageDoorController(config, store=store, webhook_host=host)
        controller.restore_state()
        doors[controller.key] = controller
    return doors


def _route_logging_to_stderr() -> None:
    """Replace stream handlers so log lines do not corrupt the prompt."""
    root_logger = logging.getLogger()
    for handler in [h for h in root_logger.handlers if isinstance(h, logging.StreamHandler)]:
        root_logger.removeHandler(handler)
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(stderr_handler)


async def _console(cmd_handler: CommandHandler, session, stop_event: asyncio.Event) -> None:
    """Feed console lines to the command handler until EOF or shutdown."""
    try:
        async for line in session.input_loop(stop_check=stop_event.is_set):
            result = await cmd_handler.execute(line)
            if result.message:
                print(f">>> {result.message}")
    finally:
        stop_event.set()


async def run_controller(
    configs: list[DoorConfig],
    persist_dir: Optional[Union[str, Path]] = DEFAULT_PERSIST_DIR,
    host: str = "0.0.0.0",
    daemon: bool = False,
    run_for: Optional[float] = None,
    history_file: Optional[str] = None,
) -> None:
    """Run controllers until shutdown.

    Args:
        configs: Door configurations
        persist_dir: Directory for state files (None disables persistence)
        host: Address for the webhook listeners
        daemon: If True, run without interactive input
        run_for: Maximum run time in seconds
        history_file: Console history file path, or "none"
    """
    store = JsonStateStore(Path(persist_dir).expanduser()) if persist_dir else None
    doors = build_controllers(configs, store, host)

    stop_event = asyncio.Event()
    cmd_handler = CommandHandler(doors, stop_callback=stop_event.set)

    started: list[GarageDoorController] = []
    try:
        for door in doors.values():
            await door.start()
            started.append(door)
    except OSError:
        for door in started:
            await door.stop()
        raise

    print(f"Controlling {len(doors)} door(s): {', '.join(d.name for d in doors.values())}")

    console_task: Optional[asyncio.Task] = None
    stdout_ctx = None
    if not daemon and sys.stdin is not None and sys.stdin.isatty():
        from prompt_toolkit.patch_stdout import patch_stdout

        from .prompt_common import CLI_HISTORY_FILE, InteractiveSession

        print(cmd_handler.get_help())
        session = InteractiveSession(
            door_names=lambda: list(doors),
            history_file=history_file or str(CLI_HISTORY_FILE),
            is_busy=lambda: any(d.current.is_moving for d in doors.values()),
        )
        stdout_ctx = patch_stdout()
        stdout_ctx.__enter__()
        _route_logging_to_stderr()
        console_task = asyncio.create_task(_console(cmd_handler, session, stop_event))
    elif not daemon:
        logger.warning("stdin is not a terminal, running in daemon mode")

    try:
        await asyncio.wait_for(stop_event.wait(), timeout=run_for)
    except asyncio.TimeoutError:
        logger.info(f"Run time ({run_for}s) elapsed, shutting down")
    finally:
        if console_task:
            console_task.cancel()
            try:
                await console_task
            except asyncio.CancelledError:
                pass
        if stdout_ctx:
            stdout_ctx.__exit__(None, None, None)
        for door in doors.values():
            await door.stop()


def main():
    """CLI entry point."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Garage door controller - HTTP relay commands with sensor webhooks"
    )
    parser.add_argument(
        "--config", "-c",
        required=True,
        metavar="FILE",
        help="YAML file describing the doors"
    )
    parser.add_argument(
        "--persist-dir",
        metavar="DIR",
        help=f"Directory for persisted door state, or 'none' (default: {DEFAULT_PERSIST_DIR})"
    )
    parser.add_argument(
        "--host", "-H",
        default="0.0.0.0",
        help="Address for webhook listeners (default: 0.0.0.0)"
    )
    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Enable debug logging"
    )
    parser.add_argument(
        "--daemon", "-D",
        action="store_true",
        help="Run without the interactive console"
    )
    parser.add_argument(
        "--run-for", "-r",
        type=float,
        metavar="SECONDS",
        help="Maximum run time in seconds"
    )
    parser.add_argument(
        "--history",
        metavar="FILE",
        help="Console history file path, or 'none' to disable"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format=LOG_FORMAT,
    )

    try:
        configs, options = load_config(args.config)
    except ConfigError as e:
        parser.error(str(e))

    persist_dir = args.persist_dir or options.get("persist_dir") or DEFAULT_PERSIST_DIR
    if str(persist_dir).lower() == "none":
        persist_dir = None

    try:
        asyncio.run(run_controller(
            configs,
            persist_dir=persist_dir,
            host=args.host,
            daemon=args.daemon,
            run_for=args.run_for,
            history_file=args.history,
        ))
    except OSError as e:
        logger.error(f"Failed to start: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nController stopped.")


if __name__ == "__main__":
    main()
