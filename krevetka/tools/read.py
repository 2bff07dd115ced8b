"""Read tool for reading file contents."""

from typing import Any

from krevetka.logging import get_logger
from krevetka.tools.registry import Tool, ToolResult, resolve_path

log = get_logger(__name__)

MAX_FILE_SIZE = 1024 * 1024  # 1 MiB


class ReadFileTool(Tool):
    """Read file contents, optionally a line range."""

    name = "read_file"
    description = (
        "Read the contents of a file. Returns the file content as a string. "
        f"Files larger than {MAX_FILE_SIZE} bytes are refused."
    )
    parameters = {
        "type": "object",
        "properties": {
            "path": {
                "type": "string",
                "description": "Absolute or relative path to the file to read",
            },
            "start_line": {
                "type": "number",
                "description": "Optional: 1-indexed line to start reading from",
            },
            "end_line": {
                "type": "number",
                "description": "Optional: 1-indexed line to stop reading at (inclusive)",
            },
        },
        "required": ["path"],
    }

    async def execute(
        self,
        path: str,
        start_line: int | None = None,
        end_line: int | None = None,
        **kwargs: Any,
    ) -> ToolResult:
        """Read a file.

        Args:
            path: Path to file
            start_line: Optional first line (1-indexed)
            end_line: Optional last line (inclusive)

        Returns:
            ToolResult with file contents
        """
        try:
            file_path = resolve_path(path, kwargs)

            file_size = file_path.stat().st_size
            if file_size > MAX_FILE_SIZE:
                return ToolResult(
                    success=False,
                    error=f"Error: File is too large ({file_size} bytes). Max is {MAX_FILE_SIZE} bytes.",
                )

            with open(file_path, encoding="utf-8", errors="replace", newline="") as f:
                content = f.read()

            if start_line or end_line:
                lines = content.split("\n")
                start = int(start_line or 1) - 1
                end = int(end_line) if end_line else len(lines)
                content = "\n".join(lines[max(start, 0):end])

            return ToolResult(success=True, content=content)

        except Exception as e:
            log.error("Read failed", path=path, error=str(e))
            return ToolResult(
                success=False,
                error=f"Error reading file: {e}",
            )
