"""Version control tools (thin pass-through to the git binary)."""

import asyncio
from pathlib import Path
from typing import Any

from krevetka.logging import get_logger
from krevetka.tools.registry import Tool, ToolResult, runtime_cwd

log = get_logger(__name__)


async def run_git(args: list[str], cwd: Path) -> ToolResult:
    """Run git with `args` and capture combined stdout/stderr.

    A non-zero exit status is reported in the result text; nothing is raised.
    """
    try:
        log.debug("Running git", args=args, cwd=str(cwd))
        process = await asyncio.create_subprocess_exec(
            "git",
            *args,
            cwd=str(cwd),
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
        stdout, _ = await process.communicate()
    except OSError as e:
        log.error("Git failed to start", args=args, error=str(e))
        return ToolResult(success=False, error=f"Error: Git error: {e}")

    output = stdout.decode("utf-8", errors="replace").strip()
    if process.returncode != 0:
        detail = output or "(no output)"
        return ToolResult(
            success=False,
            error=f"Error: Git error (exit {process.returncode}): {detail}",
        )
    return ToolResult(success=True, content=output or "(no output)")


class GitStatusTool(Tool):
    name = "git_status"
    description = "Show the working tree status (staged, unstaged, untracked files)."
    parameters = {"type": "object", "properties": {}, "required": []}

    async def execute(self, **kwargs: Any) -> ToolResult:
        return await run_git(["status", "--short", "--branch"], runtime_cwd(kwargs))


class GitDiffTool(Tool):
    name = "git_diff"
    description = "Show changes between commits, commit and working tree, etc."
    parameters = {
        "type": "object",
        "properties": {
            "staged": {
                "type": "boolean",
                "description": "If true, show staged (cached) diff. Defaults to false (unstaged).",
            },
            "path": {
                "type": "string",
                "description": "Optional: limit diff to a specific file or directory",
            },
        },
        "required": [],
    }

    async def execute(self, staged: bool = False, path: str | None = None, **kwargs: Any) -> ToolResult:
        args = ["diff"]
        if staged:
            args.append("--cached")
        if path:
            args.extend(["--", str(path)])
        result = await run_git(args, runtime_cwd(kwargs))
        if result.success and result.content == "(no output)":
            return ToolResult(success=True, content="(no changes)")
        return result


class GitAddTool(Tool):
    name = "git_add"
    description = "Stage files for commit."
    parameters = {
        "type": "object",
        "properties": {
            "paths": {
                "type": "array",
                "items": {"type": "string"},
                "description": "List of file paths to stage. Use ['.'] to stage all changes.",
            },
        },
        "required": ["paths"],
    }

    async def execute(self, paths: list[str] | str, **kwargs: Any) -> ToolResult:
        if isinstance(paths, str):
            paths = [paths]
        if not paths:
            return ToolResult(success=False, error="Error: No paths given to stage")
        return await run_git(["add", "--", *[str(p) for p in paths]], runtime_cwd(kwargs))


class GitCommitTool(Tool):
    name = "git_commit"
    description = (
        "Create a commit with the staged changes. "
        "Use conventional commit format: type(scope): description"
    )
    parameters = {
        "type": "object",
        "properties": {
            "message": {
                "type": "string",
                "description": (
                    "Commit message. Use conventional commits format: "
                    "feat|fix|chore|docs|refactor|test|style(scope): description"
                ),
            },
        },
        "required": ["message"],
    }

    async def execute(self, message: str, **kwargs: Any) -> ToolResult:
        return await run_git(["commit", "-m", str(message)], runtime_cwd(kwargs))


class GitLogTool(Tool):
    name = "git_log"
    description = "Show recent commit history."
    parameters = {
        "type": "object",
        "properties": {
            "n": {
                "type": "number",
                "description": "Number of commits to show. Defaults to 10.",
            },
        },
        "required": [],
    }

    async def execute(self, n: int = 10, **kwargs: Any) -> ToolResult:
        count = max(1, int(n or 10))
        return await run_git(["log", "--oneline", f"-{count}"], runtime_cwd(kwargs))


GIT_TOOLS: tuple[type[Tool], ...] = (
    GitStatusTool,
    GitDiffTool,
    GitAddTool,
    GitCommitTool,
    GitLogTool,
)
