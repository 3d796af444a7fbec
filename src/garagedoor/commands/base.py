# Copyright (c) 2025 Preston Elder
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Command registration and argument parsing for the console.

Console commands are plain methods on the handler mixins, registered with
the @command decorator. Each declares its positional arguments as ArgSpecs,
which drive parsing, usage strings and tab completion.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Optional

# Accepted spellings for on/off arguments
_ON_WORDS = frozenset({"on", "true", "1", "yes"})
_OFF_WORDS = frozenset({"off", "false", "0", "no"})


@dataclass
class CommandResult:
    """Outcome of one console command."""

    success: bool
    message: str
    data: Optional[dict] = None


@dataclass
class ArgSpec:
    """One positional argument of a console command.

    Attributes:
        name: Shown in usage and error messages
        arg_type: "string", "bool_toggle" (on/off) or "choice"
        required: Whether the command fails without it
        default: Value passed when an optional argument is omitted
        choices: Allowed values for "choice"
        description: Help text, also shown beside completions
    """

    name: str
    arg_type: str = "string"
    required: bool = True
    default: Any = None
    choices: Optional[list[str]] = None
    description: str = ""

    def generate_usage(self) -> str:
        if self.arg_type == "bool_toggle":
            label = "on|off"
        elif self.arg_type == "choice" and self.choices:
            label = "|".join(self.choices)
        else:
            label = self.name
        return f"<{label}>" if self.required else f"[{label}]"


def parse_arg(value: str, spec: ArgSpec) -> tuple[Any, Optional[str]]:
    """Convert one raw token according to its ArgSpec.

    Returns:
        (value, None) on success, (None, error message) otherwise.
    """
    if spec.arg_type == "bool_toggle":
        word = value.lower()
        if word in _ON_WORDS:
            return True, None
        if word in _OFF_WORDS:
            return False, None
        return None, f"'{value}' is not valid. Use on/off"

    if spec.arg_type == "choice":
        allowed = spec.choices or []
        matches = [c for c in allowed if c.lower() == value.lower()]
        if matches:
            return matches[0], None
        return None, f"'{value}' is not valid. Choose from: {', '.join(allowed) or 'none'}"

    return value, None


@dataclass
class CommandInfo:
    """Registry entry describing a console command."""

    name: str
    handler: Callable
    aliases: list[str] = field(default_factory=list)
    description: str = ""
    category: str = "misc"
    args: list[ArgSpec] = field(default_factory=list)

    @property
    def usage(self) -> str:
        return " ".join(arg.generate_usage() for arg in self.args)


# Command name or alias -> CommandInfo, filled in at import time by @command
_command_registry: dict[str, CommandInfo] = {}


def get_command_registry() -> dict[str, CommandInfo]:
    """Return the registry of all commands, keyed by name and by alias."""
    return _command_registry


def command(
    name: str,
    aliases: Optional[list[str]] = None,
    description: str = "",
    category: str = "misc",
    args: Optional[list[ArgSpec]] = None,
):
    """Register a handler method as a console command.

    Args:
        name: Primary command name
        aliases: Shortcuts accepted in place of the name
        description: One-line help text
        category: Heading the command is listed under in help
        args: Positional arguments, in order
    """

    def decorator(func: Callable) -> Callable:
        info = CommandInfo(
            name=name,
            handler=func,
            aliases=list(aliases or []),
            description=description,
            category=category,
            args=list(args or []),
        )
        for key in [name, *info.aliases]:
            _command_registry[key] = info
        func._command_info = info
        return func

    return decorator
