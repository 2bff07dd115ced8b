"""Delete tool for files and empty directories."""

import os
from typing import Any

from krevetka.logging import get_logger
from krevetka.tools.registry import Tool, ToolResult, resolve_path

log = get_logger(__name__)


class DeleteFileTool(Tool):
    """Delete a file or an empty directory."""

    name = "delete_file"
    description = "Delete a file or empty directory."
    parameters = {
        "type": "object",
        "properties": {
            "path": {
                "type": "string",
                "description": "Path to the file or directory to delete",
            },
        },
        "required": ["path"],
    }

    async def execute(self, path: str, **kwargs: Any) -> ToolResult:
        try:
            target = resolve_path(path, kwargs)
            if target.is_dir() and not target.is_symlink():
                # rmdir refuses non-empty directories.
                os.rmdir(target)
            else:
                os.unlink(target)
            log.info("Deleted path", path=str(target))
            return ToolResult(success=True, content=f"Successfully deleted {path}")
        except Exception as e:
            log.error("Delete failed", path=path, error=str(e))
            return ToolResult(
                success=False,
                error=f"Error deleting: {e}",
            )
