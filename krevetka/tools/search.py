"""Content search tool (ripgrep with grep fallback)."""

import asyncio
from pathlib import Path
from typing import Any

from krevetka.logging import get_logger
from krevetka.tools.registry import Tool, ToolResult, resolve_path, runtime_cwd

log = get_logger(__name__)

MAX_MATCHES_PER_FILE = 50
MAX_FILE_SIZE = "1M"
MAX_FILE_SIZE_KIB = 1024
MAX_OUTPUT_BYTES = 512 * 1024
NO_MATCHES = "(no matches)"


def build_rg_command(pattern: str, path: str, case_insensitive: bool, include: str | None) -> list[str]:
    args = [
        "rg",
        "--line-number",
        "--with-filename",
        "--no-heading",
        f"--max-count={MAX_MATCHES_PER_FILE}",
        f"--max-filesize={MAX_FILE_SIZE}",
    ]
    if case_insensitive:
        args.append("--ignore-case")
    if include:
        args.extend(["--glob", include])
    args.extend(["-e", pattern, "--", path])
    return args


def build_grep_command(pattern: str, path: str, case_insensitive: bool, include: str | None) -> list[str]:
    """grep has no file-size filter, so `find` selects the files it reads."""
    # find rounds sizes up to whole KiB: `-size -1025k` keeps files of at most 1 MiB.
    args = ["find", path, "-type", "f", "-size", f"-{MAX_FILE_SIZE_KIB + 1}k"]
    if include:
        args.extend(["-name", include])
    args.extend(["-exec", "grep", "-Hn", f"--max-count={MAX_MATCHES_PER_FILE}"])
    if case_insensitive:
        args.append("-i")
    args.extend(["-e", pattern, "--", "{}", "+"])
    return args


async def _capture(args: list[str], cwd: Path) -> tuple[int, str]:
    """Run a search command; raises FileNotFoundError when the binary is missing."""
    process = await asyncio.create_subprocess_exec(
        *args,
        cwd=str(cwd),
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.DEVNULL,
    )
    stdout, _ = await process.communicate()
    truncated = len(stdout) > MAX_OUTPUT_BYTES
    text = stdout[:MAX_OUTPUT_BYTES].decode("utf-8", errors="replace").strip()
    if truncated:
        text += "\n... (output truncated)"
    return process.returncode or 0, text


class GrepSearchTool(Tool):
    """Search file contents for a pattern."""

    name = "grep_search"
    description = (
        "Search for a pattern in files using ripgrep (or grep as fallback). "
        "Returns matching lines with file names and line numbers."
    )
    parameters = {
        "type": "object",
        "properties": {
            "pattern": {
                "type": "string",
                "description": "The search pattern (regex supported)",
            },
            "path": {
                "type": "string",
                "description": "Directory or file to search in. Defaults to current directory.",
            },
            "case_insensitive": {
                "type": "boolean",
                "description": "If true, search is case-insensitive. Defaults to false.",
            },
            "include": {
                "type": "string",
                "description": "Glob pattern to filter files, e.g. '*.py' or '*.{ts,tsx}'",
            },
        },
        "required": ["pattern"],
    }

    # Engines in preference order; later ones are tried only if earlier binaries are missing.
    engines = (build_rg_command, build_grep_command)

    async def execute(
        self,
        pattern: str,
        path: str = ".",
        case_insensitive: bool = False,
        include: str | None = None,
        **kwargs: Any,
    ) -> ToolResult:
        cwd = runtime_cwd(kwargs)
        target = str(resolve_path(path or ".", kwargs))

        for build in self.engines:
            args = build(str(pattern), target, bool(case_insensitive), include or None)
            try:
                returncode, output = await _capture(args, cwd)
            except FileNotFoundError:
                log.debug("Search engine unavailable", engine=args[0])
                continue
            except OSError as e:
                log.warning("Search failed", engine=args[0], error=str(e))
                return ToolResult(success=True, content=NO_MATCHES)

            if returncode != 0 and not output:
                return ToolResult(success=True, content=NO_MATCHES)
            return ToolResult(success=True, content=output or NO_MATCHES)

        log.warning("No search engine available")
        return ToolResult(success=True, content=NO_MATCHES)
