"""Tool registry and base tool class."""

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from pydantic import BaseModel, model_validator

from krevetka.exceptions import ToolExecutionError, ToolNotFoundError
from krevetka.llm.types import ToolDefinition
from krevetka.logging import get_logger

log = get_logger(__name__)

ERROR_PREFIX = "Error"


class ToolResult(BaseModel):
    """Result from tool execution."""

    success: bool = True
    content: str = ""
    error: str | None = None

    @model_validator(mode="after")
    def _normalize_failure_error(self) -> "ToolResult":
        """Ensure failed results always provide an error message."""
        if not self.success and not (self.error or "").strip():
            fallback = (self.content or "").strip()
            self.error = fallback or "Tool execution failed"
        return self

    def to_text(self) -> str:
        """Render the result as the single text value handed to the model."""
        if self.success:
            return self.content
        error = (self.error or "").strip()
        if error.startswith(ERROR_PREFIX):
            return error
        return f"{ERROR_PREFIX}: {error}"


def resolve_path(path: str | Path, kwargs: dict[str, Any]) -> Path:
    """Resolve a tool path argument against the registry's runtime base path."""
    requested = Path(str(path)).expanduser()
    if requested.is_absolute():
        return requested
    base_raw = kwargs.get("_runtime_base_path")
    base = Path(base_raw) if base_raw is not None else Path.cwd()
    return base / requested


def runtime_cwd(kwargs: dict[str, Any]) -> Path:
    """Working directory for subprocess-backed tools."""
    base_raw = kwargs.get("_runtime_base_path")
    return Path(base_raw) if base_raw is not None else Path.cwd()


class Tool(ABC):
    """Base class for all tools."""

    name: str = ""
    description: str = ""
    parameters: dict[str, Any] = {}

    @abstractmethod
    async def execute(self, **kwargs: Any) -> ToolResult:
        """Execute the tool.

        Args:
            **kwargs: Tool-specific arguments plus registry-injected
                `_runtime_base_path`

        Returns:
            ToolResult with success status and content
        """
        pass

    def get_definition(self) -> ToolDefinition:
        """Get the tool definition for the LLM."""
        return ToolDefinition(
            name=self.name,
            description=self.description,
            parameters=self.parameters,
        )

    def validate_arguments(self, arguments: dict[str, Any]) -> None:
        """Validate that every required argument is present.

        Raises:
            ToolExecutionError if a required argument is missing
        """
        required = self.parameters.get("required", [])
        for field in required:
            if field not in arguments:
                raise ToolExecutionError(
                    self.name,
                    f"Missing required argument: {field}",
                )


class ToolRegistry:
    """Registry for managing available tools.

    `execute` never raises for domain failures: unknown tools, malformed
    arguments and handler exceptions all come back as `Error...` text so the
    model can observe and correct them.
    """

    def __init__(self, base_path: Path | str | None = None):
        self._tools: dict[str, Tool] = {}
        self._runtime_base_path = Path.cwd()
        self.set_runtime_base_path(base_path or Path.cwd())

    def set_runtime_base_path(self, base_path: Path | str) -> None:
        """Set the directory relative tool paths are resolved against."""
        self._runtime_base_path = Path(base_path).expanduser().resolve()

    @property
    def runtime_base_path(self) -> Path:
        return self._runtime_base_path

    def register(self, tool: Tool) -> None:
        """Register a tool.

        Args:
            tool: Tool instance to register
        """
        if not tool.name:
            raise ValueError("Tool must have a name")

        log.debug("Registering tool", tool=tool.name)
        self._tools[tool.name] = tool

    def get(self, name: str) -> Tool:
        """Get a tool by name.

        Raises:
            ToolNotFoundError if not found
        """
        if name not in self._tools:
            raise ToolNotFoundError(name)
        return self._tools[name]

    def get_definitions(self) -> list[ToolDefinition]:
        """Get all tool definitions for the LLM."""
        return [tool.get_definition() for tool in self._tools.values()]

    @staticmethod
    def parse_arguments(raw_arguments: str) -> dict[str, Any]:
        """Parse raw JSON arguments; blank input means no arguments.

        Raises:
            ValueError if the text is not a JSON object
        """
        if not (raw_arguments or "").strip():
            return {}
        try:
            parsed = json.loads(raw_arguments)
        except RecursionError as e:
            raise ValueError("arguments are nested too deeply") from e
        if not isinstance(parsed, dict):
            raise ValueError("arguments must be a JSON object")
        return parsed

    async def execute(self, name: str, raw_arguments: str) -> str:
        """Execute a tool by name and return its text result.

        Args:
            name: Tool name
            raw_arguments: Argument JSON exactly as produced by the model

        Returns:
            Tool output, or a descriptive `Error...` text
        """
        try:
            tool = self.get(name)
        except ToolNotFoundError:
            log.warning("Unknown tool requested", tool=name)
            return f'Error: Unknown tool "{name}"'

        try:
            arguments = self.parse_arguments(raw_arguments)
        except ValueError:
            log.warning("Invalid tool arguments", tool=name, arguments=raw_arguments)
            return f'Error: Invalid JSON arguments for tool "{name}": {raw_arguments}'

        try:
            tool.validate_arguments(arguments)
        except ToolExecutionError as e:
            return f"Error: {e}"

        try:
            log.info("Executing tool", tool=name, args=arguments)
            result = await tool.execute(
                **arguments,
                _runtime_base_path=self.runtime_base_path,
            )
        except Exception as e:
            log.error("Tool execution failed", tool=name, error=str(e))
            return f'Error executing tool "{name}": {e}'

        if not isinstance(result, ToolResult):
            log.error("Tool returned invalid result payload", tool=name)
            return f'Error executing tool "{name}": invalid result payload'

        log.info("Tool executed", tool=name, success=result.success)
        return result.to_text()
