"""Tool-call execution helpers for Agent."""

from krevetka.llm import ToolCall
from krevetka.logging import get_logger


log = get_logger(__name__)


class AgentToolLoopMixin:
    """Execute finalized tool calls in order and record their results."""

    def _emit_tool_output(self, tool_name: str, arguments: str, output: str) -> None:
        """Forward raw tool output to the UI callback when configured."""
        callback = getattr(self, "tool_output_callback", None)
        if not callback:
            return
        try:
            callback(tool_name, arguments, output)
        except Exception as e:
            log.debug("Tool output callback failed", tool=tool_name, error=str(e))

    async def _dispatch_tool_call(self, tc: ToolCall) -> str:
        """Run one call; every outcome, including a registry failure, becomes text."""
        try:
            return await self.tools.execute(tc.name, tc.arguments)
        except Exception as e:
            log.error("Tool dispatch failed", tool=tc.name, call_id=tc.id, error=str(e))
            return f'Error executing tool "{tc.name}": {e}'

    async def _handle_tool_calls(self, tool_calls: list[ToolCall]) -> None:
        """Run each call sequentially and commit its result before the next.

        Later calls may depend on side effects of earlier ones (a write
        followed by a read), so nothing here runs concurrently. Every call
        gets exactly one tool message, so the committed assistant turn never
        carries an unanswered call.
        """
        for tc in tool_calls:
            self._set_runtime_status("running tool")
            log.info("Dispatching tool call", tool=tc.name, call_id=tc.id)

            output = await self._dispatch_tool_call(tc)

            self.history.add_tool_result(tc.id, tc.name, output)
            self._emit_tool_output(tc.name, tc.arguments, output)

        self._set_runtime_status("thinking")
