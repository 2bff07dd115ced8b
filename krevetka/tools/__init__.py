"""Tools package for Krevetka."""

from pathlib import Path

from krevetka.approval import ApprovalGate
from krevetka.tools.registry import (
    Tool,
    ToolRegistry,
    ToolResult,
)
from krevetka.tools.read import ReadFileTool
from krevetka.tools.write import WriteFileTool
from krevetka.tools.edit import EditFileTool
from krevetka.tools.list_dir import ListDirectoryTool
from krevetka.tools.delete import DeleteFileTool
from krevetka.tools.git import (
    GIT_TOOLS,
    GitAddTool,
    GitCommitTool,
    GitDiffTool,
    GitLogTool,
    GitStatusTool,
)
from krevetka.tools.search import GrepSearchTool
from krevetka.tools.glob import FindFilesTool
from krevetka.tools.shell import ShellTool


def build_default_registry(
    approval_gate: ApprovalGate,
    base_path: Path | str | None = None,
) -> ToolRegistry:
    """Build the fixed tool catalog used by an agent session."""
    registry = ToolRegistry(base_path=base_path)
    for tool in (
        ReadFileTool(),
        WriteFileTool(),
        EditFileTool(),
        ListDirectoryTool(),
        DeleteFileTool(),
        *(tool_cls() for tool_cls in GIT_TOOLS),
        GrepSearchTool(),
        FindFilesTool(),
        ShellTool(approval_gate),
    ):
        registry.register(tool)
    return registry


__all__ = [
    "Tool",
    "ToolRegistry",
    "ToolResult",
    "build_default_registry",
    "ReadFileTool",
    "WriteFileTool",
    "EditFileTool",
    "ListDirectoryTool",
    "DeleteFileTool",
    "GitStatusTool",
    "GitDiffTool",
    "GitAddTool",
    "GitCommitTool",
    "GitLogTool",
    "GrepSearchTool",
    "FindFilesTool",
    "ShellTool",
]
