"""Terminal UI for Krevetka."""

import atexit
from enum import Enum
import os
from pathlib import Path
import sys
from typing import Any

from krevetka.llm import (
    Chunk,
    DoneChunk,
    ErrorChunk,
    TextChunk,
    ToolCallArgs,
    ToolCallEnd,
    ToolCallStart,
)
from krevetka.logging import get_logger

log = get_logger(__name__)

RESULT_PREVIEW_CHARS = 200
RESULT_PREVIEW_LINES = 8


class SessionCommand(Enum):
    """Slash commands the REPL must act on."""

    CLEAR = "clear"
    CONFIG = "config"
    EXIT = "exit"


class TerminalUI:
    """Plain line-oriented terminal UI with optional ANSI accents."""

    def __init__(self, stream: Any = None):
        self._out = stream if stream is not None else sys.stdout
        self._special_commands = [
            "/help",
            "/clear",
            "/config",
            "/exit",
            "/quit",
        ]
        self._readline = None
        self._history_file = Path("~/.krevetka/history").expanduser()
        self._ansi_enabled = self._isatty() and not bool(os.environ.get("NO_COLOR"))
        self._assistant_output_active = False
        self._setup_readline()

    def _isatty(self) -> bool:
        try:
            return self._out.isatty()
        except (AttributeError, ValueError):
            return False

    def _setup_readline(self) -> None:
        """Set up line editing, history, and command completion."""
        try:
            import readline  # type: ignore
        except ImportError:
            return

        self._readline = readline

        try:
            self._history_file.parent.mkdir(parents=True, exist_ok=True)
            if self._history_file.exists():
                readline.read_history_file(str(self._history_file))
            readline.set_history_length(100)
            readline.parse_and_bind("tab: complete")
            readline.set_completer(self._complete_special_command)
            atexit.register(self._save_history)
        except OSError as e:
            log.debug("Readline setup failed", error=str(e))

    def _save_history(self) -> None:
        """Persist readline history to disk."""
        if self._readline is None:
            return
        try:
            self._readline.write_history_file(str(self._history_file))
        except OSError as e:
            log.debug("Failed to save history", error=str(e))

    def _complete_special_command(self, text: str, state: int) -> str | None:
        """Readline completer for slash commands."""
        if not text.startswith("/"):
            return None
        matches = [cmd for cmd in self._special_commands if cmd.startswith(text)]
        if state < len(matches):
            return matches[state]
        return None

    def _style(self, text: str, code: str) -> str:
        if not self._ansi_enabled:
            return text
        return f"\033[{code}m{text}\033[0m"

    def _write(self, text: str) -> None:
        self._out.write(text)
        self._out.flush()

    def print_welcome(self, model: str, base_url: str) -> None:
        """Print welcome banner."""
        self._write(f"{self._style('Krevetka', '1;36')} {self._style(f'- {model} @ {base_url}', '2')}\n")
        self._write("Type your message. /help for commands, /exit to quit.\n\n")

    def print_help(self) -> None:
        """Print help message."""
        self._write(
            "\nCommands:\n"
            "  /help           - Show this help message\n"
            "  /clear          - Clear conversation history\n"
            "  /config         - Show current configuration\n"
            "  /exit, /quit    - Exit Krevetka\n"
            "\nTips:\n"
            "  End a line with \\ to continue on the next line\n"
            "  Press Ctrl+D to exit\n\n"
        )

    def begin_assistant_stream(self) -> None:
        """Start assistant output on a fresh line."""
        if self._assistant_output_active:
            return
        self._assistant_output_active = True
        self._write(f"\n{self._style('[ASSISTANT]', '1;36')} ")

    def end_assistant_stream(self) -> None:
        """Finish assistant output."""
        if not self._assistant_output_active:
            return
        self._assistant_output_active = False
        self._write("\n")

    def handle_stream_chunk(self, chunk: Chunk) -> None:
        """Render one decoded stream chunk."""
        if isinstance(chunk, TextChunk):
            self.begin_assistant_stream()
            self._write(chunk.delta)
        elif isinstance(chunk, ToolCallStart):
            self.begin_assistant_stream()
            self._write(f"\n{self._style('[TOOL]', '1;33')} {chunk.name}(")
        elif isinstance(chunk, ToolCallArgs):
            self._write(self._style(chunk.delta, "2"))
        elif isinstance(chunk, ToolCallEnd):
            self._write(")")
        elif isinstance(chunk, (ErrorChunk, DoneChunk)):
            self.end_assistant_stream()

    def print_tool_result(self, tool_name: str, arguments: str, result: str) -> None:
        """Print a short preview of a tool result."""
        self.end_assistant_stream()
        preview = result
        if len(preview) > RESULT_PREVIEW_CHARS:
            preview = preview[:RESULT_PREVIEW_CHARS] + "..."
        preview = "\n".join(preview.split("\n")[:RESULT_PREVIEW_LINES])
        body = preview.replace("\n", "\n     ")
        self._write(self._style(f"  -> {tool_name}: {body}", "2") + "\n")

    def print_error(self, error: str) -> None:
        """Print an error message."""
        self.end_assistant_stream()
        self._write(f"\n{self._style('Error:', '31')} {error}\n")

    def print_info(self, message: str) -> None:
        """Print an informational message."""
        self._write(self._style(f"\n{message}", "2") + "\n")

    def print_config(self, values: dict[str, Any]) -> None:
        """Print configuration values."""
        self._write("\nCurrent configuration:\n")
        for key, value in values.items():
            self._write(f"  {key}: {value}\n")
        self._write("\n")

    def prompt(self, prompt_text: str = "> ") -> str:
        """Prompt for input; a trailing backslash continues on the next line.

        Raises:
            EOFError on Ctrl+D
        """
        parts: list[str] = []
        current_prompt = prompt_text
        while True:
            line = input(current_prompt)
            if line.endswith("\\"):
                parts.append(line[:-1])
                current_prompt = "  "
                continue
            parts.append(line)
            break
        return "\n".join(parts).strip()

    def handle_special_command(self, cmd: str) -> str | SessionCommand | None:
        """Handle special commands.

        Returns the input unchanged for normal messages, a `SessionCommand`
        for commands the caller must act on, or None when the command was
        fully handled here.
        """
        cmd = cmd.strip()

        if not cmd.startswith("/"):
            return cmd

        command = cmd.split(None, 1)[0].lower()

        if command in ("/help", "/h", "/?"):
            self.print_help()
            return None
        elif command == "/clear":
            return SessionCommand.CLEAR
        elif command == "/config":
            return SessionCommand.CONFIG
        elif command in ("/exit", "/quit", "/q"):
            return SessionCommand.EXIT
        else:
            self.print_error(f"Unknown command: {command}")
            return None
