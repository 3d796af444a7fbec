# Copyright (c) 2025 Preston Elder
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""prompt_toolkit components for the interactive console.

Provides tab completion of command names and door names, syntax styling
and the InteractiveSession input loop used by cli.py.
"""

from pathlib import Path
from typing import Callable, Iterable, Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.auto_suggest import AutoSuggestFromHistory
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.formatted_text import FormattedText
from prompt_toolkit.history import FileHistory, InMemoryHistory
from prompt_toolkit.styles import Style

from .commands.base import get_command_registry

CLI_HISTORY_FILE = Path.home() / ".garagedoor_history"

CONSOLE_STYLE = Style.from_dict(
    {
        "prompt": "#ffffff bold",
        "prompt.busy": "#ff8800 bold",
    }
)


class ConsoleCompleter(Completer):
    """Completes command names first, then argument choices and door names."""

    def __init__(self, door_names: Callable[[], Iterable[str]]):
        self._door_names = door_names

    def _get_commands(self) -> list[tuple[str, str]]:
        seen = set()
        commands = []
        for info in get_command_registry().values():
            if info.name in seen:
                continue
            seen.add(info.name)
            commands.append((info.name, info.description))
        return sorted(commands)

    def _get_arg_options(self, cmd: str) -> list[tuple[str, str]]:
        info = get_command_registry().get(cmd)
        if info is None:
            return []
        options = []
        for arg in info.args:
            if arg.choices:
                options.extend((c, arg.name) for c in arg.choices)
            elif arg.arg_type == "bool_toggle":
                options.extend([("on", arg.name), ("off", arg.name)])
            elif arg.name == "door":
                options.extend((name, "door") for name in self._door_names())
        return options

    def get_completions(self, document, complete_event):
        text = document.text_before_cursor
        words = text.split()
        word_before = document.get_word_before_cursor()

        if len(words) == 0 or (len(words) == 1 and not text.endswith(" ")):
            candidates = self._get_commands()
        else:
            candidates = self._get_arg_options(words[0].lower())

        seen = set()
        for name, meta in candidates:
            if name in seen:
                continue
            if name.startswith(word_before.lower()):
                seen.add(name)
                yield Completion(name, start_position=-len(word_before), display_meta=meta)


class InteractiveSession:
    """Interactive prompt session with history and completion.

    Usage:
        session = InteractiveSession(door_names=lambda: doors.keys())

        async for line in session.input_loop(stop_check=stop_event.is_set):
            result = await handler.execute(line)
            if result.message:
                print(f">>> {result.message}")
    """

    def __init__(
        self,
        door_names: Callable[[], Iterable[str]],
        history_file: Optional[str] = None,
        prompt_text: str = "garage> ",
        is_busy: Optional[Callable[[], bool]] = None,
    ):
        """Initialize the interactive session.

        Args:
            door_names: Callable returning door names for completion.
            history_file: Path to history file, "none" for in-memory history.
            prompt_text: Prompt string.
            is_busy: Optional callback; the prompt is highlighted while it
                     returns True (a door is moving).
        """
        self._prompt_text = prompt_text
        self._is_busy = is_busy

        if history_file and history_file.lower() != "none":
            history = FileHistory(history_file)
        else:
            history = InMemoryHistory()

        self._session = PromptSession(
            history=history,
            completer=ConsoleCompleter(door_names),
            complete_while_typing=False,
            style=CONSOLE_STYLE,
            auto_suggest=AutoSuggestFromHistory(),
            enable_history_search=True,
        )

    def _get_prompt(self) -> FormattedText:
        style = "class:prompt.busy" if self._is_busy and self._is_busy() else "class:prompt"
        return FormattedText([(style, self._prompt_text)])

    async def prompt_async(self) -> Optional[str]:
        """Get input from the user asynchronously.

        Returns:
            The input line stripped, or None on EOF.
        """
        try:
            line = await self._session.prompt_async(self._get_prompt)
            return line.strip() if line else ""
        except EOFError:
            return None
        except KeyboardInterrupt:
            return ""  # Return empty to continue loop

    async def input_loop(self, stop_check: Optional[Callable[[], bool]] = None):
        """Async generator yielding non-empty input lines until EOF or stop."""
        while True:
            if stop_check and stop_check():
                break
            line = await self.prompt_async()
            if line is None:
                break
            if not line:
                continue
            yield line
