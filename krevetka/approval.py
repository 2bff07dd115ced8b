"""Operator approval for shell commands."""

import asyncio
import os
import sys
import termios
import tty
from typing import TextIO

from krevetka.logging import get_logger

log = get_logger(__name__)


class ApprovalGate:
    """Ask the operator for a single-keypress yes/no before a command runs.

    Fails closed: without an attached terminal every request is rejected.
    The key is read in raw mode, so Ctrl+C arrives as an ordinary key and
    counts as a rejection instead of interrupting mid-prompt.
    """

    def __init__(
        self,
        bypass: bool = False,
        stdin: TextIO | None = None,
        stdout: TextIO | None = None,
    ):
        self.bypass = bypass
        self._stdin = stdin if stdin is not None else sys.stdin
        self._stdout = stdout if stdout is not None else sys.stdout

    def _write(self, text: str) -> None:
        self._stdout.write(text)
        self._stdout.flush()

    def is_interactive(self) -> bool:
        """Whether a terminal is attached to the input stream."""
        if os.name != "posix":
            return False
        try:
            return self._stdin.isatty()
        except (AttributeError, ValueError):
            return False

    async def request(self, command: str) -> bool:
        """Return True only if the operator approves running `command`."""
        if self.bypass:
            log.debug("Shell approval bypassed", command=command)
            return True

        self._write(f"\nShell command: {command}\nRun this command? [y/N] ")

        if not self.is_interactive():
            self._write("N (no terminal attached)\n")
            log.info("Shell command rejected: non-interactive input", command=command)
            return False

        try:
            key = await self.read_key()
        except (EOFError, OSError, termios.error) as e:
            log.warning("Approval prompt failed", error=str(e))
            key = ""
        except asyncio.CancelledError:
            self._write("N\n")
            raise

        approved = key in ("y", "Y")
        self._write("y\n" if approved else "N\n")
        log.info("Shell command approval", command=command, approved=approved)
        return approved

    async def read_key(self) -> str:
        """Wait asynchronously for one keypress on the input terminal."""
        fd = self._stdin.fileno()
        loop = asyncio.get_running_loop()
        old = termios.tcgetattr(fd)
        fut: asyncio.Future[str] = loop.create_future()

        def _on_stdin_ready() -> None:
            try:
                ch = os.read(fd, 1)
            except OSError:
                ch = b""
            if not fut.done():
                fut.set_result(ch.decode("utf-8", errors="replace"))

        try:
            tty.setraw(fd)
            loop.add_reader(fd, _on_stdin_ready)
            return await fut
        finally:
            try:
                loop.remove_reader(fd)
            finally:
                termios.tcsetattr(fd, termios.TCSADRAIN, old)
