"""Custom exceptions for Krevetka."""


class KrevetkaError(Exception):
    """Base exception for Krevetka."""

    pass


class ConfigurationError(KrevetkaError):
    """Configuration-related errors."""

    pass


class LLMError(KrevetkaError):
    """LLM-related errors (transport or stream protocol)."""

    pass


class LLMAPIError(LLMError):
    """LLM API errors (rate limit, auth, etc.)."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ToolError(KrevetkaError):
    """Tool execution errors."""

    pass


class ToolExecutionError(ToolError):
    """Tool execution failed."""

    def __init__(self, tool_name: str, message: str):
        super().__init__(f"Tool '{tool_name}' failed: {message}")
        self.tool_name = tool_name


class ToolNotFoundError(ToolError):
    """Tool not found in registry."""

    def __init__(self, tool_name: str):
        super().__init__(f"Tool not found: {tool_name}")
        self.tool_name = tool_name
