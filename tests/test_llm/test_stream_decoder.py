import pytest

from krevetka.exceptions import LLMAPIError
from krevetka.llm import (
    DoneChunk,
    ErrorChunk,
    StreamDecoder,
    TextChunk,
    ToolCallArgs,
    ToolCallEnd,
    ToolCallStart,
)


async def _events(items, error: Exception | None = None):
    for item in items:
        yield item
    if error is not None:
        raise error


def _delta(content=None, tool_calls=None, finish_reason=None):
    delta = {}
    if content is not None:
        delta["content"] = content
    if tool_calls is not None:
        delta["tool_calls"] = tool_calls
    return {"choices": [{"delta": delta, "finish_reason": finish_reason}]}


async def _collect(decoder: StreamDecoder, events):
    return [chunk async for chunk in decoder.decode(events)]


@pytest.mark.asyncio
async def test_text_deltas_then_done():
    chunks = await _collect(
        StreamDecoder(),
        _events([_delta("Hel"), _delta(""), _delta("lo"), _delta(finish_reason="stop")]),
    )

    assert chunks == [TextChunk("Hel"), TextChunk("lo"), DoneChunk()]


@pytest.mark.asyncio
async def test_tool_call_lifecycle_in_first_seen_order():
    events = [
        _delta(tool_calls=[{"index": 0, "id": "call_a", "function": {"name": "read_file", "arguments": ""}}]),
        _delta(tool_calls=[{"index": 1, "id": "call_b", "function": {"name": "git_status"}}]),
        _delta(tool_calls=[{"index": 0, "function": {"arguments": '{"path":'}}]),
        _delta(tool_calls=[{"index": 0, "function": {"arguments": '"a.txt"}'}}]),
        _delta(finish_reason="tool_calls"),
    ]

    chunks = await _collect(StreamDecoder(), _events(events))

    assert chunks == [
        ToolCallStart(id="call_a", name="read_file"),
        ToolCallStart(id="call_b", name="git_status"),
        ToolCallArgs(id="call_a", delta='{"path":'),
        ToolCallArgs(id="call_a", delta='"a.txt"}'),
        ToolCallEnd(id="call_a"),
        ToolCallEnd(id="call_b"),
        DoneChunk(),
    ]


@pytest.mark.asyncio
async def test_missing_ids_fall_back_to_slot_index():
    events = [
        _delta(tool_calls=[{"index": 2, "function": {"name": "git_log", "arguments": "{}"}}]),
        _delta(finish_reason="tool_calls"),
    ]

    chunks = await _collect(StreamDecoder(), _events(events))

    assert chunks[0] == ToolCallStart(id="tc_2", name="git_log")
    assert chunks[1] == ToolCallArgs(id="tc_2", delta="{}")
    assert chunks[2] == ToolCallEnd(id="tc_2")


@pytest.mark.asyncio
async def test_source_error_yields_single_error_chunk_and_stops():
    events = _events([_delta("partial")], error=LLMAPIError("API error 500: boom", status_code=500))

    chunks = await _collect(StreamDecoder(), events)

    assert chunks == [TextChunk("partial"), ErrorChunk("API error 500: boom")]


@pytest.mark.asyncio
async def test_arguments_for_unopened_call_are_dropped():
    events = [
        _delta(tool_calls=[{"index": 0, "id": "ghost", "function": {"arguments": "{}"}}]),
        _delta("done"),
    ]

    chunks = await _collect(StreamDecoder(), _events(events))

    assert chunks == [TextChunk("done"), DoneChunk()]


@pytest.mark.asyncio
async def test_unfinished_calls_are_not_closed_without_finish_reason():
    decoder = StreamDecoder()
    events = [_delta(tool_calls=[{"index": 0, "id": "c1", "function": {"name": "git_status"}}])]

    chunks = await _collect(decoder, _events(events))

    assert chunks == [ToolCallStart(id="c1", name="git_status"), DoneChunk()]
    assert decoder.open_calls == ["c1"]


def test_events_without_choices_are_skipped():
    decoder = StreamDecoder()

    assert decoder.decode_event({"id": "gen-1", "choices": []}) == []
    assert decoder.decode_event({"usage": {"total_tokens": 3}}) == []
