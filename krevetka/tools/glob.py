"""Filename search tool."""

import asyncio
import fnmatch
import os
from pathlib import Path
from typing import Any

from krevetka.logging import get_logger
from krevetka.tools.registry import Tool, ToolResult, resolve_path

log = get_logger(__name__)

MAX_DEPTH = 10
MAX_RESULTS = 500
EXCLUDED_DIRS = {"node_modules", ".git"}


def find_files(root: Path, pattern: str, display_root: str = ".") -> list[str]:
    """Return paths under `root` whose name matches `pattern`.

    Depth is counted like `find -maxdepth`: entries directly inside `root`
    are at depth 1. Excluded directories are neither matched nor entered.
    """
    matches: list[str] = []
    root_depth = len(root.parts)
    for dirpath, dirnames, filenames in os.walk(root):
        current = Path(dirpath)
        depth = len(current.parts) - root_depth
        dirnames[:] = sorted(d for d in dirnames if d not in EXCLUDED_DIRS)
        prefix = display_root if depth == 0 else os.path.join(display_root, current.relative_to(root))

        for name in [*dirnames, *sorted(filenames)]:
            if fnmatch.fnmatch(name, pattern):
                matches.append(os.path.join(prefix, name))
                if len(matches) >= MAX_RESULTS:
                    return matches

        if depth + 1 >= MAX_DEPTH:
            dirnames[:] = []
    return matches


class FindFilesTool(Tool):
    """Find files by name pattern."""

    name = "find_files"
    description = "Find files by name pattern in a directory."
    parameters = {
        "type": "object",
        "properties": {
            "pattern": {
                "type": "string",
                "description": "Filename pattern to search for, e.g. '*.py' or 'pyproject.toml'",
            },
            "path": {
                "type": "string",
                "description": "Directory to search in. Defaults to current directory.",
            },
        },
        "required": ["pattern"],
    }

    async def execute(self, pattern: str, path: str = ".", **kwargs: Any) -> ToolResult:
        try:
            root = resolve_path(path or ".", kwargs)
            if not root.is_dir():
                return ToolResult(success=True, content="(no files found)")

            # Walk in an executor so the event loop stays responsive.
            loop = asyncio.get_running_loop()
            matches = await loop.run_in_executor(
                None,
                lambda: find_files(root, str(pattern), path or "."),
            )

            if not matches:
                return ToolResult(success=True, content="(no files found)")
            output = "\n".join(matches)
            if len(matches) >= MAX_RESULTS:
                output += "\n... (truncated)"
            return ToolResult(success=True, content=output)

        except Exception as e:
            log.error("Find files failed", pattern=pattern, error=str(e))
            return ToolResult(success=True, content="(no files found)")
