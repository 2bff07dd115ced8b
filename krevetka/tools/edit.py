"""Edit tool for exact-substring replacement."""

from typing import Any

from krevetka.logging import get_logger
from krevetka.tools.registry import Tool, ToolResult, resolve_path

log = get_logger(__name__)


class EditFileTool(Tool):
    """Replace one unique occurrence of a string in a file."""

    name = "edit_file"
    description = (
        "Replace a specific string in a file with new content. Use this for "
        "targeted edits instead of rewriting the whole file."
    )
    parameters = {
        "type": "object",
        "properties": {
            "path": {
                "type": "string",
                "description": "Path to the file to edit",
            },
            "old_string": {
                "type": "string",
                "description": "The exact string to find and replace (must be unique in the file)",
            },
            "new_string": {
                "type": "string",
                "description": "The replacement string",
            },
        },
        "required": ["path", "old_string", "new_string"],
    }

    async def execute(
        self,
        path: str,
        old_string: str,
        new_string: str,
        **kwargs: Any,
    ) -> ToolResult:
        try:
            file_path = resolve_path(path, kwargs)
            old_text = str(old_string)
            new_text = str(new_string)

            with open(file_path, encoding="utf-8", newline="") as f:
                content = f.read()

            # An empty needle would "match" between every character.
            count = content.count(old_text) if old_text else 0
            if count == 0:
                return ToolResult(
                    success=False,
                    error=f"Error: The string was not found in {path}",
                )
            if count > 1:
                return ToolResult(
                    success=False,
                    error=f"Error: The string appears {count} times in {path}. Make it more specific.",
                )

            with open(file_path, "w", encoding="utf-8", newline="") as f:
                f.write(content.replace(old_text, new_text, 1))

            return ToolResult(success=True, content=f"Successfully edited {path}")

        except Exception as e:
            log.error("Edit failed", path=path, error=str(e))
            return ToolResult(
                success=False,
                error=f"Error editing file: {e}",
            )
