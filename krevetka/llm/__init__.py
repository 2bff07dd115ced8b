"""OpenAI-compatible provider - direct streaming HTTP calls to chat completions."""

import json
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator

import httpx

from krevetka.exceptions import LLMAPIError, LLMError
from krevetka.llm.stream import StreamDecoder, ToolCallAssembler
from krevetka.llm.types import (
    Chunk,
    DoneChunk,
    ErrorChunk,
    Message,
    TextChunk,
    ToolCall,
    ToolCallArgs,
    ToolCallEnd,
    ToolCallStart,
    ToolDefinition,
)
from krevetka.logging import get_logger

log = get_logger(__name__)


DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
REFERER_HEADER = "https://github.com/krevetka"
TITLE_HEADER = "Krevetka"

_SSE_DATA_PREFIX = "data:"
_SSE_DONE = "[DONE]"


class LLMProvider(ABC):
    """Abstract base class for streaming LLM providers."""

    model: str = ""
    base_url: str = ""

    @abstractmethod
    def stream_events(
        self,
        messages: list[Message],
        tools: list[ToolDefinition] | None = None,
        max_tokens: int | None = None,
    ) -> AsyncIterator[dict[str, Any]]:
        """Yield raw backend events for one completion request.

        Implementations raise `LLMError` (or a subclass) on transport or
        protocol failures.
        """

    def complete_stream(
        self,
        messages: list[Message],
        tools: list[ToolDefinition] | None = None,
        max_tokens: int | None = None,
    ) -> AsyncIterator[Chunk]:
        """Stream one round as normalized chunks."""
        decoder = StreamDecoder()
        return decoder.decode(self.stream_events(messages, tools, max_tokens))

    async def close(self) -> None:
        """Release any held resources."""
        return None


class OpenAICompatibleProvider(LLMProvider):
    """Chat-completions provider for OpenAI-compatible endpoints (OpenRouter, vLLM, Ollama...)."""

    def __init__(
        self,
        model: str,
        base_url: str = DEFAULT_BASE_URL,
        api_key: str | None = None,
        max_tokens: int = 8192,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the provider.

        Args:
            model: Model identifier sent with every request
            base_url: API base URL (the `/chat/completions` path is appended)
            api_key: Optional bearer token
            max_tokens: Default completion token cap
            transport: Optional httpx transport (used by tests)
        """
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.max_tokens = max_tokens

        # No read timeout: a stalled backend blocks the round.
        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(30.0, read=None),
            follow_redirects=True,
            transport=transport,
        )

    def _headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "text/event-stream",
            "HTTP-Referer": REFERER_HEADER,
            "X-Title": TITLE_HEADER,
        }
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def build_request_body(
        self,
        messages: list[Message],
        tools: list[ToolDefinition] | None = None,
        max_tokens: int | None = None,
    ) -> dict[str, Any]:
        """Build the JSON body of a streaming completion request."""
        body: dict[str, Any] = {
            "model": self.model,
            "max_tokens": max_tokens or self.max_tokens,
            "messages": [msg.to_dict() for msg in messages],
            "stream": True,
        }
        if tools:
            body["tools"] = [tool.to_dict() for tool in tools]
            body["tool_choice"] = "auto"
        return body

    @staticmethod
    def sse_payload(line: str) -> str | None:
        """Return the `data:` payload of an SSE line, or None for comments and blanks."""
        stripped = line.strip()
        if not stripped or stripped.startswith(":"):
            return None
        if not stripped.startswith(_SSE_DATA_PREFIX):
            return None
        return stripped[len(_SSE_DATA_PREFIX):].strip()

    @staticmethod
    def decode_payload(payload: str) -> dict[str, Any]:
        """Decode one event payload, raising on malformed data or in-stream API errors."""
        try:
            event = json.loads(payload)
        except json.JSONDecodeError as e:
            raise LLMError(f"Malformed stream event: {e}") from e
        if not isinstance(event, dict):
            raise LLMError("Malformed stream event: expected a JSON object")
        error = event.get("error")
        if error:
            message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            code = error.get("code") if isinstance(error, dict) else None
            raise LLMAPIError(
                f"API error in stream: {message}",
                status_code=code if isinstance(code, int) else None,
            )
        return event

    async def stream_events(
        self,
        messages: list[Message],
        tools: list[ToolDefinition] | None = None,
        max_tokens: int | None = None,
    ) -> AsyncIterator[dict[str, Any]]:
        """Stream raw chat-completion chunk events."""
        url = f"{self.base_url}/chat/completions"
        body = self.build_request_body(messages, tools, max_tokens)

        try:
            log.debug("Calling backend", model=self.model, url=url, msg_count=len(messages))
            async with self.client.stream("POST", url, json=body, headers=self._headers()) as response:
                log.debug("Backend response status", status=response.status_code)
                if not response.is_success:
                    error_text = (await response.aread()).decode("utf-8", errors="replace")
                    raise LLMAPIError(
                        f"API error {response.status_code}: {error_text.strip()}",
                        status_code=response.status_code,
                    )

                async for line in response.aiter_lines():
                    payload = self.sse_payload(line)
                    if payload is None:
                        continue
                    if payload == _SSE_DONE:
                        break
                    yield self.decode_payload(payload)

        except LLMError:
            raise
        except httpx.HTTPError as e:
            raise LLMAPIError(f"HTTP error: {e}")

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()


def create_provider(
    model: str,
    base_url: str | None = None,
    api_key: str | None = None,
    max_tokens: int = 8192,
) -> LLMProvider:
    """Create an LLM provider.

    Args:
        model: Model name
        base_url: Optional base URL
        api_key: Optional API key
        max_tokens: Default max tokens

    Returns:
        Configured LLMProvider instance
    """
    if not model:
        raise ValueError("A model identifier is required")
    return OpenAICompatibleProvider(
        model=model,
        base_url=base_url or DEFAULT_BASE_URL,
        api_key=api_key or None,
        max_tokens=max_tokens,
    )


__all__ = [
    "Chunk",
    "DoneChunk",
    "ErrorChunk",
    "LLMProvider",
    "Message",
    "OpenAICompatibleProvider",
    "StreamDecoder",
    "TextChunk",
    "ToolCall",
    "ToolCallArgs",
    "ToolCallAssembler",
    "ToolCallEnd",
    "ToolCallStart",
    "ToolDefinition",
    "create_provider",
]
