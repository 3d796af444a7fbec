# Copyright (c) 2025 Preston Elder
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Info and status commands."""

from typing import TYPE_CHECKING, Optional

from .base import ArgSpec, CommandResult, command, get_command_registry

if TYPE_CHECKING:
    from ..controller import GarageDoorController


class InfoCommandsMixin:
    """Mixin providing info and status commands."""

    doors: dict[str, "GarageDoorController"]

    @staticmethod
    def _describe(door: "GarageDoorController") -> str:
        flags = []
        if door.in_flight_command:
            flags.append("command in flight")
        if door.pending_action:
            flags.append("action pending")
        extra = f" ({', '.join(flags)})" if flags else ""
        return f"{door.name}: current {door.current.name}, target {door.target.name}{extra}"

    @command(
        "status",
        ["state", "v"],
        "Show door state",
        category="info",
        args=[ArgSpec("door", "string", required=False, description="Door name")],
    )
    def status(self, door: Optional[str] = None) -> CommandResult:
        """Show the state of one door, or of all doors."""
        if door is None:
            lines = [self._describe(d) for d in self.doors.values()]
            return CommandResult(True, "\n".join(lines) or "No doors configured")
        return CommandResult(True, self._describe(self.resolve_door(door)))

    @command("doors", ["ls"], "List configured doors", category="info")
    def list_doors(self) -> CommandResult:
        """List configured doors with their sensor setup."""
        lines = []
        for key, door in self.doors.items():
            config = door.config
            sensors = [
                name for name, present in (
                    ("open", config.has_open_sensor),
                    ("closed", config.has_closed_sensor),
                ) if present
            ]
            mode = "auto-close" if config.auto_close else f"sensors: {', '.join(sensors)}"
            webhook = f", webhook port {config.webhook_port}" if config.webhook_enabled else ""
            lines.append(f"  {key} ({door.name}) - {mode}{webhook}")
        return CommandResult(True, "\n".join(lines) or "No doors configured")

    @command("help", ["?", "h"], "Show available commands", category="info")
    def help(self) -> CommandResult:
        """Show available commands."""
        return CommandResult(True, self.get_help())

    def get_help(self) -> str:
        """Build the help text from the command registry, grouped by category."""
        categories: dict[str, list[str]] = {}
        seen = set()
        for info in get_command_registry().values():
            if info.name in seen:
                continue
            seen.add(info.name)
            aliases = f" ({', '.join(info.aliases)})" if info.aliases else ""
            usage = f" {info.usage}" if info.usage else ""
            categories.setdefault(info.category, []).append(
                f"  {info.name}{aliases}{usage} - {info.description}"
            )

        lines = ["Commands:"]
        for category in sorted(categories):
            lines.append(f"{category.capitalize()}:")
            lines.extend(sorted(categories[category]))
        return "\n".join(lines)
