"""Directory listing tool."""

import os
from pathlib import Path
from typing import Any

from krevetka.logging import get_logger
from krevetka.tools.registry import Tool, ToolResult, resolve_path

log = get_logger(__name__)

MAX_DEPTH = 5
MAX_ENTRIES = 200
TRUNCATED_MARKER = "... (truncated)"

# Dependency caches and virtualenvs are listed but never descended into.
SKIP_DIRS = {"node_modules", "__pycache__", ".venv", "venv"}


def list_directory(root: Path, recursive: bool = False) -> str:
    """Render an indented listing of `root`.

    Directories end with `/`. Recursion stops at MAX_DEPTH levels and skips
    hidden and dependency-cache directories. After MAX_ENTRIES entries a
    single truncation marker is emitted and the walk stops.
    """
    entries: list[str] = []
    truncated = False

    def walk(directory: Path, depth: int) -> None:
        nonlocal truncated
        indent = "  " * depth
        with os.scandir(directory) as it:
            items = sorted(it, key=lambda item: item.name)
        for item in items:
            if truncated:
                return
            if len(entries) >= MAX_ENTRIES:
                entries.append(f"{indent}{TRUNCATED_MARKER}")
                truncated = True
                return
            is_dir = item.is_dir()
            entries.append(f"{indent}{item.name}/" if is_dir else f"{indent}{item.name}")
            if (
                is_dir
                and recursive
                and depth + 1 < MAX_DEPTH
                and not item.name.startswith(".")
                and item.name not in SKIP_DIRS
            ):
                walk(Path(item.path), depth + 1)

    walk(root, 0)
    return "\n".join(entries) if entries else "(empty directory)"


class ListDirectoryTool(Tool):
    """List files and subdirectories."""

    name = "list_directory"
    description = "List the contents of a directory, showing files and subdirectories."
    parameters = {
        "type": "object",
        "properties": {
            "path": {
                "type": "string",
                "description": "Path to the directory to list. Defaults to current directory.",
            },
            "recursive": {
                "type": "boolean",
                "description": "If true, list recursively. Defaults to false.",
            },
        },
        "required": [],
    }

    async def execute(self, path: str = ".", recursive: bool = False, **kwargs: Any) -> ToolResult:
        try:
            directory = resolve_path(path or ".", kwargs)
            return ToolResult(success=True, content=list_directory(directory, bool(recursive)))
        except Exception as e:
            log.error("List directory failed", path=path, error=str(e))
            return ToolResult(
                success=False,
                error=f"Error listing directory: {e}",
            )
