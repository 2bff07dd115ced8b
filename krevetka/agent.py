"""Agent orchestration for Krevetka."""

from contextlib import aclosing
from dataclasses import dataclass, field
from typing import Callable, Literal

from krevetka.agent_tool_loop_mixin import AgentToolLoopMixin
from krevetka.approval import ApprovalGate
from krevetka.history import HistoryStore
from krevetka.llm import (
    Chunk,
    ErrorChunk,
    LLMProvider,
    TextChunk,
    ToolCall,
    ToolCallAssembler,
)
from krevetka.logging import get_logger
from krevetka.tools import ToolRegistry, build_default_registry

log = get_logger(__name__)

MAX_TOOL_ROUNDS = 20


@dataclass
class RunResult:
    """Outcome of one `Agent.run` call."""

    status: Literal["done", "aborted", "limit_reached"]
    text: str = ""
    rounds: int = 0
    error: str | None = None


@dataclass
class _RoundOutcome:
    text_parts: list[str] = field(default_factory=list)
    tool_calls: list[ToolCall] = field(default_factory=list)
    error: str | None = None


class Agent(AgentToolLoopMixin):
    """Main agent orchestrator.

    One agent owns one history, one tool registry and (through the shell
    tool) one approval gate for the whole session.
    """

    def __init__(
        self,
        provider: LLMProvider,
        system_prompt: str = "",
        tools: ToolRegistry | None = None,
        history: HistoryStore | None = None,
        skip_shell_approval: bool = False,
        max_tool_rounds: int = MAX_TOOL_ROUNDS,
        max_tokens: int | None = None,
        chunk_callback: Callable[[Chunk], None] | None = None,
        tool_output_callback: Callable[[str, str, str], None] | None = None,
        error_callback: Callable[[str], None] | None = None,
        status_callback: Callable[[str], None] | None = None,
    ):
        """Initialize the agent.

        Args:
            provider: Streaming LLM provider
            system_prompt: Preamble sent first with every request
            tools: Optional tool registry (defaults to the built-in catalog)
            history: Optional history store (defaults to a fresh one)
            skip_shell_approval: Run shell commands without asking
            max_tool_rounds: Safety cap on tool rounds per `run`
            max_tokens: Optional completion token cap override
            chunk_callback: Receives every decoded stream chunk
            tool_output_callback: Receives (tool name, raw arguments, result)
            error_callback: Receives aborted-round and limit messages
            status_callback: Receives runtime status updates
        """
        self.provider = provider
        self.history = history if history is not None else HistoryStore(system_prompt)
        if tools is None:
            tools = build_default_registry(ApprovalGate(bypass=skip_shell_approval))
        self.tools = tools
        self.max_tool_rounds = max_tool_rounds
        self.max_tokens = max_tokens
        self.chunk_callback = chunk_callback
        self.tool_output_callback = tool_output_callback
        self.error_callback = error_callback
        self.status_callback = status_callback

    @property
    def model(self) -> str:
        return self.provider.model

    @property
    def base_url(self) -> str:
        return self.provider.base_url

    def _set_runtime_status(self, status: str) -> None:
        """Forward runtime status updates when callback is configured."""
        if not self.status_callback:
            return
        try:
            self.status_callback(status)
        except Exception as e:
            log.debug("Status callback failed", status=status, error=str(e))

    def _emit_chunk(self, chunk: Chunk) -> None:
        if not self.chunk_callback:
            return
        try:
            self.chunk_callback(chunk)
        except Exception as e:
            log.debug("Chunk callback failed", chunk_type=chunk.type, error=str(e))

    def _emit_error(self, message: str) -> None:
        if not self.error_callback:
            return
        try:
            self.error_callback(message)
        except Exception as e:
            log.debug("Error callback failed", error=str(e))

    async def _stream_round(self) -> _RoundOutcome:
        """Send the current history and collect one streamed response."""
        assembler = ToolCallAssembler()
        text_parts: list[str] = []

        stream = self.provider.complete_stream(
            self.history.snapshot(),
            self.tools.get_definitions(),
            self.max_tokens,
        )
        async with aclosing(stream):
            async for chunk in stream:
                self._emit_chunk(chunk)
                if isinstance(chunk, ErrorChunk):
                    return _RoundOutcome(error=chunk.message)
                if isinstance(chunk, TextChunk):
                    text_parts.append(chunk.delta)
                else:
                    assembler.feed(chunk)

        return _RoundOutcome(text_parts=text_parts, tool_calls=assembler.finalized)

    async def run(self, user_message: str) -> RunResult:
        """Process one user message until a final answer or the round cap.

        A stream error aborts the run without committing the partial
        assistant turn; the session stays usable either way.
        """
        self.history.add_user(user_message)
        rounds = 0
        last_text = ""

        while rounds < self.max_tool_rounds:
            self._set_runtime_status("thinking")
            log.debug("Starting round", round=rounds + 1, history_size=self.history.size())
            outcome = await self._stream_round()

            if outcome.error is not None:
                log.warning("Round aborted", round=rounds + 1, error=outcome.error)
                self._set_runtime_status("waiting")
                self._emit_error(outcome.error)
                return RunResult(status="aborted", rounds=rounds, error=outcome.error)

            text = "".join(outcome.text_parts)
            self.history.add_assistant(text or None, outcome.tool_calls)
            last_text = text

            if not outcome.tool_calls:
                self._set_runtime_status("waiting")
                return RunResult(status="done", text=text, rounds=rounds)

            rounds += 1
            await self._handle_tool_calls(outcome.tool_calls)

        message = f"Reached maximum tool call rounds ({self.max_tool_rounds}). Stopping."
        log.warning("Tool round limit reached", rounds=rounds)
        self._set_runtime_status("waiting")
        self._emit_error(message)
        return RunResult(status="limit_reached", text=last_text, rounds=rounds, error=message)

    def clear_context(self) -> None:
        """Forget the conversation; the system preamble stays."""
        self.history.clear()

    async def close(self) -> None:
        await self.provider.close()
