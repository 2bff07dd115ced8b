import json

import httpx
import pytest

from krevetka.exceptions import LLMAPIError, LLMError
from krevetka.llm import (
    DoneChunk,
    ErrorChunk,
    Message,
    OpenAICompatibleProvider,
    TextChunk,
    ToolCallEnd,
    ToolCallStart,
    ToolDefinition,
    create_provider,
)


def _sse(*events) -> bytes:
    lines = [": keep-alive", ""]
    for event in events:
        payload = event if isinstance(event, str) else json.dumps(event)
        lines.append(f"data: {payload}")
        lines.append("")
    return ("\n".join(lines) + "\n").encode("utf-8")


def _provider(handler, **kwargs) -> OpenAICompatibleProvider:
    return OpenAICompatibleProvider(
        model="test/model",
        base_url="https://example.test/api/v1/",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


@pytest.mark.asyncio
async def test_streams_text_and_tool_calls_until_done_marker():
    captured: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["headers"] = request.headers
        captured["body"] = json.loads(request.content)
        body = _sse(
            {"choices": [{"delta": {"content": "Looking"}}]},
            {"choices": [{"delta": {"tool_calls": [
                {"index": 0, "id": "call_1", "function": {"name": "git_status", "arguments": "{}"}}
            ]}}]},
            {"choices": [{"delta": {}, "finish_reason": "tool_calls"}]},
            "[DONE]",
            {"choices": [{"delta": {"content": "after done"}}]},
        )
        return httpx.Response(200, content=body, headers={"content-type": "text/event-stream"})

    provider = _provider(handler, api_key="sk-test")
    tools = [ToolDefinition(name="git_status", description="status", parameters={"type": "object"})]
    chunks = [
        chunk
        async for chunk in provider.complete_stream([Message(role="user", content="hi")], tools)
    ]
    await provider.close()

    assert captured["url"] == "https://example.test/api/v1/chat/completions"
    assert captured["headers"]["authorization"] == "Bearer sk-test"
    assert captured["headers"]["x-title"] == "Krevetka"
    assert captured["body"]["stream"] is True
    assert captured["body"]["model"] == "test/model"
    assert captured["body"]["tool_choice"] == "auto"
    assert captured["body"]["tools"][0]["function"]["name"] == "git_status"
    assert captured["body"]["messages"] == [{"role": "user", "content": "hi"}]

    assert chunks == [
        TextChunk("Looking"),
        ToolCallStart(id="call_1", name="git_status"),
        ToolCallEnd(id="call_1"),
        DoneChunk(),
    ]


@pytest.mark.asyncio
async def test_http_error_status_becomes_error_chunk():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, content=b"Internal Server Error")

    provider = _provider(handler)
    chunks = [chunk async for chunk in provider.complete_stream([Message(role="user", content="hi")])]
    await provider.close()

    assert len(chunks) == 1
    assert isinstance(chunks[0], ErrorChunk)
    assert chunks[0].message == "API error 500: Internal Server Error"


@pytest.mark.asyncio
async def test_in_stream_error_object_becomes_error_chunk():
    def handler(request: httpx.Request) -> httpx.Response:
        body = _sse(
            {"choices": [{"delta": {"content": "par"}}]},
            {"error": {"message": "rate limited", "code": 429}},
        )
        return httpx.Response(200, content=body)

    provider = _provider(handler)
    chunks = [chunk async for chunk in provider.complete_stream([Message(role="user", content="hi")])]
    await provider.close()

    assert chunks == [TextChunk("par"), ErrorChunk("API error in stream: rate limited")]


@pytest.mark.asyncio
async def test_transport_failure_becomes_error_chunk():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    provider = _provider(handler)
    chunks = [chunk async for chunk in provider.complete_stream([Message(role="user", content="hi")])]
    await provider.close()

    assert len(chunks) == 1
    assert isinstance(chunks[0], ErrorChunk)
    assert chunks[0].message.startswith("HTTP error:")


def test_request_body_omits_tools_when_catalog_is_empty():
    provider = OpenAICompatibleProvider(model="m", max_tokens=256)

    body = provider.build_request_body([Message(role="user", content="x")], tools=[])

    assert "tools" not in body
    assert "tool_choice" not in body
    assert body["max_tokens"] == 256


def test_headers_skip_authorization_without_key():
    provider = OpenAICompatibleProvider(model="m", base_url="http://localhost:11434/v1")

    assert "Authorization" not in provider._headers()


def test_sse_payload_ignores_comments_and_blank_lines():
    assert OpenAICompatibleProvider.sse_payload("") is None
    assert OpenAICompatibleProvider.sse_payload(": OPENROUTER PROCESSING") is None
    assert OpenAICompatibleProvider.sse_payload("event: ping") is None
    assert OpenAICompatibleProvider.sse_payload("data: [DONE]") == "[DONE]"


def test_decode_payload_rejects_malformed_json():
    with pytest.raises(LLMError):
        OpenAICompatibleProvider.decode_payload("{not json")

    with pytest.raises(LLMAPIError) as exc_info:
        OpenAICompatibleProvider.decode_payload('{"error": {"message": "bad key", "code": 401}}')
    assert exc_info.value.status_code == 401


def test_create_provider_requires_model():
    with pytest.raises(ValueError):
        create_provider("")

    provider = create_provider("some/model", api_key="")
    assert provider.base_url == "https://openrouter.ai/api/v1"
    assert provider.api_key is None
