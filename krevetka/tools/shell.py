"""Shell tool for executing operator-approved commands."""

import asyncio
import codecs
import sys
from pathlib import Path
from typing import Any, Callable

from krevetka.approval import ApprovalGate
from krevetka.logging import get_logger
from krevetka.tools.registry import Tool, ToolResult, resolve_path, runtime_cwd

log = get_logger(__name__)

REJECTED_TEXT = "Command was rejected by the user."

_READ_SIZE = 4096


def _echo_to_terminal(text: str, stream: str) -> None:
    target = sys.stderr if stream == "stderr" else sys.stdout
    target.write(text)
    target.flush()


class ShellTool(Tool):
    """Run a shell command after operator approval.

    Output is echoed live to the operator and buffered for the model. There
    is no timeout and no output cap.
    """

    name = "run_shell_command"
    description = (
        "Run a shell command in the current working directory. The user will be "
        "asked to approve the command before it runs (unless auto-approval is enabled)."
    )
    parameters = {
        "type": "object",
        "properties": {
            "command": {
                "type": "string",
                "description": "The shell command to run",
            },
            "working_directory": {
                "type": "string",
                "description": "Optional: working directory to run the command in. Defaults to current directory.",
            },
        },
        "required": ["command"],
    }

    def __init__(
        self,
        approval_gate: ApprovalGate,
        echo: Callable[[str, str], None] | None = None,
    ):
        self.approval_gate = approval_gate
        self.echo = echo or _echo_to_terminal

    async def execute(
        self,
        command: str,
        working_directory: str | None = None,
        **kwargs: Any,
    ) -> ToolResult:
        """Execute a shell command.

        Args:
            command: Shell command to execute
            working_directory: Optional cwd (relative paths resolve against the runtime base)

        Returns:
            ToolResult with `Exit code: <n>` followed by the combined output
        """
        command = str(command)
        if working_directory:
            cwd = resolve_path(working_directory, kwargs)
        else:
            cwd = runtime_cwd(kwargs)

        if not await self.approval_gate.request(command):
            return ToolResult(success=True, content=REJECTED_TEXT)

        try:
            returncode, output = await self._run(command, cwd)
        except OSError as e:
            log.error("Shell command failed to start", command=command, error=str(e))
            return ToolResult(success=False, error=f"Error running command: {e}")

        text = output.strip()
        content = f"Exit code: {returncode}\n{text}" if text else f"Exit code: {returncode}"
        return ToolResult(success=True, content=content)

    async def _run(self, command: str, cwd: Path) -> tuple[int, str]:
        log.info("Executing shell command", command=command, cwd=str(cwd))
        process = await asyncio.create_subprocess_exec(
            "sh",
            "-c",
            command,
            cwd=str(cwd),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        output: list[str] = []

        async def pump(reader: asyncio.StreamReader, stream: str) -> None:
            decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
            while True:
                data = await reader.read(_READ_SIZE)
                text = decoder.decode(data, final=not data)
                if text:
                    output.append(text)
                    self.echo(text, stream)
                if not data:
                    return

        try:
            await asyncio.gather(
                pump(process.stdout, "stdout"),
                pump(process.stderr, "stderr"),
            )
            returncode = await process.wait()
        except asyncio.CancelledError:
            process.kill()
            await process.wait()
            raise
        return returncode, "".join(output)
