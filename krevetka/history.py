"""Bounded conversation history with a pinned first entry."""

from typing import Sequence

from krevetka.llm.types import Message, ToolCall
from krevetka.logging import get_logger

log = get_logger(__name__)

MAX_MESSAGES = 100


class HistoryStore:
    """Ordered conversation buffer behind an immutable system preamble.

    When an append pushes the buffer past `capacity`, the first entry ever
    appended (since the last `clear`) is kept together with the most recent
    `capacity - 1` entries; everything in between is dropped.
    """

    def __init__(self, system_prompt: str, capacity: int = MAX_MESSAGES):
        if capacity < 2:
            raise ValueError("History capacity must be at least 2")
        self._system = Message(role="system", content=system_prompt)
        self._messages: list[Message] = []
        self.capacity = capacity

    @property
    def system_prompt(self) -> str:
        return self._system.content or ""

    def add_user(self, content: str) -> None:
        self._append(Message(role="user", content=content))

    def add_assistant(
        self,
        content: str | None,
        tool_calls: Sequence[ToolCall] | None = None,
    ) -> None:
        calls = tuple(tool_calls) if tool_calls else None
        self._append(Message(role="assistant", content=content, tool_calls=calls))

    def add_tool_result(self, tool_call_id: str, name: str, content: str) -> None:
        self._append(
            Message(role="tool", content=content, tool_call_id=tool_call_id, name=name)
        )

    def snapshot(self) -> list[Message]:
        """Return `[system, *history]` as a new list."""
        return [self._system, *self._messages]

    def clear(self) -> None:
        self._messages = []

    def size(self) -> int:
        return len(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def _append(self, message: Message) -> None:
        self._messages.append(message)
        self._trim()

    def _trim(self) -> None:
        if len(self._messages) <= self.capacity:
            return
        keep = self.capacity - 1
        dropped = len(self._messages) - self.capacity
        self._messages = [self._messages[0], *self._messages[-keep:]]
        log.debug("History trimmed", dropped=dropped, size=len(self._messages))
