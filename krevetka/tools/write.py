"""Write tool for writing file contents."""

from typing import Any

from krevetka.logging import get_logger
from krevetka.tools.registry import Tool, ToolResult, resolve_path

log = get_logger(__name__)


class WriteFileTool(Tool):
    """Create or overwrite files."""

    name = "write_file"
    description = (
        "Write content to a file, creating it and any parent directories if they "
        "don't exist. Overwrites existing files."
    )
    parameters = {
        "type": "object",
        "properties": {
            "path": {
                "type": "string",
                "description": "Absolute or relative path to the file to write",
            },
            "content": {
                "type": "string",
                "description": "The content to write to the file",
            },
        },
        "required": ["path", "content"],
    }

    async def execute(self, path: str, content: str, **kwargs: Any) -> ToolResult:
        """Write content to a file.

        Args:
            path: Path to file
            content: Content to write

        Returns:
            ToolResult with status
        """
        try:
            file_path = resolve_path(path, kwargs)
            text = str(content)

            file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(file_path, "w", encoding="utf-8", newline="") as f:
                f.write(text)

            return ToolResult(
                success=True,
                content=f"Successfully wrote {len(text)} characters to {path}",
            )

        except Exception as e:
            log.error("Write failed", path=path, error=str(e))
            return ToolResult(
                success=False,
                error=f"Error writing file: {e}",
            )
