"""Streaming response decoding and tool-call assembly."""

from dataclasses import dataclass, field
from typing import Any, AsyncIterable, AsyncIterator

from krevetka.llm.types import (
    Chunk,
    DoneChunk,
    ErrorChunk,
    TextChunk,
    ToolCall,
    ToolCallArgs,
    ToolCallEnd,
    ToolCallStart,
)
from krevetka.logging import get_logger

log = get_logger(__name__)


class StreamDecoder:
    """Normalize chat-completion stream events into chunks.

    One decoder handles one round. Tool-call fragments are addressed by the
    backend's slot `index`; the first fragment of a slot carrying a function
    name opens the call, later fragments only carry argument text. When the
    backend finishes with `finish_reason == "tool_calls"` every open call is
    closed in the order it was first seen.
    """

    def __init__(self) -> None:
        self._open: dict[str, str] = {}
        self._slot_ids: dict[int, str] = {}

    @property
    def open_calls(self) -> list[str]:
        """Ids of calls started but not yet ended, in first-seen order."""
        return list(self._open)

    async def decode(self, events: AsyncIterable[dict[str, Any]]) -> AsyncIterator[Chunk]:
        """Yield chunks for `events`, ending with `done` or a single `error`."""
        try:
            async for event in events:
                for chunk in self.decode_event(event):
                    yield chunk
        except Exception as e:
            message = str(e) or e.__class__.__name__
            log.warning("Stream failed", error=message)
            yield ErrorChunk(message=message)
            return
        finally:
            aclose = getattr(events, "aclose", None)
            if aclose is not None:
                await aclose()

        if self._open:
            log.warning(
                "Stream ended with unfinished tool calls",
                tool_call_ids=list(self._open),
            )
        yield DoneChunk()

    def decode_event(self, event: dict[str, Any]) -> list[Chunk]:
        """Decode a single backend event into zero or more chunks."""
        choices = event.get("choices") or []
        if not choices:
            return []
        choice = choices[0]
        delta = choice.get("delta") or {}

        chunks: list[Chunk] = []
        content = delta.get("content")
        if content:
            chunks.append(TextChunk(delta=content))

        for fragment in delta.get("tool_calls") or []:
            chunks.extend(self._decode_tool_fragment(fragment))

        if choice.get("finish_reason") == "tool_calls":
            for call_id in self._open:
                chunks.append(ToolCallEnd(id=call_id))
            self._open.clear()

        return chunks

    def _decode_tool_fragment(self, fragment: dict[str, Any]) -> list[Chunk]:
        index = int(fragment.get("index", 0) or 0)
        call_id = fragment.get("id") or self._slot_ids.get(index) or f"tc_{index}"
        self._slot_ids[index] = call_id

        function = fragment.get("function") or {}
        name = function.get("name")
        arguments = function.get("arguments")

        chunks: list[Chunk] = []
        if name:
            if call_id in self._open:
                log.debug("Repeated tool call name ignored", tool_call_id=call_id, tool=name)
            else:
                self._open[call_id] = name
                chunks.append(ToolCallStart(id=call_id, name=name))

        if arguments:
            if call_id in self._open:
                chunks.append(ToolCallArgs(id=call_id, delta=arguments))
            else:
                log.debug("Argument fragment for unopened tool call dropped", tool_call_id=call_id)
        return chunks


@dataclass
class _PendingCall:
    name: str
    parts: list[str] = field(default_factory=list)


class ToolCallAssembler:
    """Rebuild complete tool calls from start/args/end chunks."""

    def __init__(self) -> None:
        self._pending: dict[str, _PendingCall] = {}
        self._finalized: list[ToolCall] = []

    @property
    def finalized(self) -> list[ToolCall]:
        """Finalized calls in the order their end chunks arrived."""
        return list(self._finalized)

    def feed(self, chunk: Chunk) -> ToolCall | None:
        """Consume one chunk; return the call it finalized, if any."""
        if isinstance(chunk, ToolCallStart):
            self._pending[chunk.id] = _PendingCall(name=chunk.name)
            return None

        if isinstance(chunk, ToolCallArgs):
            pending = self._pending.get(chunk.id)
            if pending is None:
                log.debug("Arguments for unknown tool call ignored", tool_call_id=chunk.id)
                return None
            pending.parts.append(chunk.delta)
            return None

        if isinstance(chunk, ToolCallEnd):
            pending = self._pending.pop(chunk.id, None)
            if pending is None:
                log.info("End of unknown tool call ignored", tool_call_id=chunk.id)
                return None
            call = ToolCall(id=chunk.id, name=pending.name, arguments="".join(pending.parts))
            self._finalized.append(call)
            return call

        return None
