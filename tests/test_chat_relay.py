from __future__ import annotations

import asyncio
import json
from contextlib import asynccontextmanager

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from models.chat import DeltaFrame, DoneFrame, ErrorFrame
from services.chat_relay import INVALID_PAYLOAD_MESSAGE, ChatRelay
from services.chat_service import CANNED_RESPONSES, ChatService
from services.llm_service import LLMService, UpstreamUnavailable

PAYLOAD = {
    "workItemType": "story",
    "messages": [{"role": "user", "content": "Help me write a story", "timestamp": "09:00"}],
}


class FakeLLM:
    """Stands in for LLMService.stream_chat"""

    def __init__(self, chunks=(), unavailable=False, error=None):
        self.chunks = list(chunks)
        self.unavailable = unavailable
        self.error = error
        self.calls = []

    @asynccontextmanager
    async def stream_chat(self, work_item_type, history):
        self.calls.append((work_item_type, history))
        if self.unavailable:
            raise UpstreamUnavailable("OpenAI API key not configured")

        async def body():
            for chunk in self.chunks:
                yield chunk
            if self.error:
                raise self.error

        yield body()


def record(text: str) -> str:
    return "data: " + json.dumps({"choices": [{"delta": {"content": text}}]}, ensure_ascii=False) + "\n"


def split_bytes(data: bytes, size: int) -> list[bytes]:
    return [data[i : i + size] for i in range(0, len(data), size)]


async def collect(relay: ChatRelay, payload=PAYLOAD):
    return [frame async for frame in relay.frames(payload)]


@pytest.mark.asyncio
async def test_relays_deltas_in_order_then_single_done():
    body = (
        record("Hel")
        + record("lo")
        + "data: {not json\n"
        + record(" wörld")
        + "data: [DONE]\n"
        + record("after done")
    ).encode("utf-8")
    relay = ChatRelay(FakeLLM(split_bytes(body, 7)))

    frames = await collect(relay)

    assert frames == [
        DeltaFrame(delta="Hel"),
        DeltaFrame(delta="lo"),
        DeltaFrame(delta=" wörld"),
        DoneFrame(),
    ]
    assert relay.closed


@pytest.mark.asyncio
async def test_records_without_content_are_skipped():
    body = (
        ": keep-alive\n\n"
        + 'data: {"choices":[{"delta":{"role":"assistant"}}]}\n'
        + 'data: {"choices":[]}\n'
        + record("x")
        + "data: [DONE]\n"
    ).encode()
    frames = await collect(ChatRelay(FakeLLM([body])))
    assert frames == [DeltaFrame(delta="x"), DoneFrame()]


@pytest.mark.asyncio
async def test_stream_without_sentinel_still_terminates():
    frames = await collect(ChatRelay(FakeLLM([record("only").encode()])))
    assert frames == [DeltaFrame(delta="only"), DoneFrame()]


@pytest.mark.asyncio
async def test_transport_error_mid_stream_ends_with_done():
    llm = FakeLLM([record("partial").encode()], error=aiohttp.ClientPayloadError("reset"))
    frames = await collect(ChatRelay(llm))
    assert frames == [DeltaFrame(delta="partial"), DoneFrame()]


@pytest.mark.asyncio
async def test_history_is_forwarded_to_upstream():
    llm = FakeLLM([b"data: [DONE]\n"])
    await collect(ChatRelay(llm))
    work_item_type, history = llm.calls[0]
    assert work_item_type.value == "story"
    assert [m.content for m in history] == ["Help me write a story"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        None,
        {"messages": []},
        {"workItemType": "task", "messages": []},
        {"workItemType": "story", "messages": [{"role": "system", "content": "x", "timestamp": "t"}]},
        {"workItemType": "story", "messages": "hello"},
    ],
)
async def test_invalid_payload_yields_error_then_done(payload):
    llm = FakeLLM(unavailable=True)
    frames = await collect(ChatRelay(llm), payload)
    assert frames == [ErrorFrame(message=INVALID_PAYLOAD_MESSAGE), DoneFrame()]
    assert llm.calls == []


@pytest.mark.asyncio
async def test_fallback_streams_canned_reply_word_by_word():
    chat_service = ChatService(chooser=lambda options: options[0])
    relay = ChatRelay(FakeLLM(unavailable=True), chat_service=chat_service, interval=0)

    frames = await collect(relay)

    expected = f"[STORY] {CANNED_RESPONSES[0]}".split(" ")
    deltas = [f.delta for f in frames[:-1]]
    assert frames[-1] == DoneFrame()
    assert all(isinstance(f, DeltaFrame) for f in frames[:-1])
    assert len(deltas) == len(expected)
    assert deltas[0] == expected[0]
    assert deltas[1:] == [f" {word}" for word in expected[1:]]


@pytest.mark.asyncio
async def test_close_after_done_is_a_no_op():
    relay = ChatRelay(FakeLLM([b"data: [DONE]\n"]))
    frames = await collect(relay)

    assert frames == [DoneFrame()]
    assert relay.close() is False
    assert relay.close() is False


@pytest.mark.asyncio
async def test_disconnect_during_fallback_stops_timer():
    relay = ChatRelay(FakeLLM(unavailable=True), interval=0.05)
    frames = relay.frames(PAYLOAD)

    first = await frames.__anext__()
    assert isinstance(first, DeltaFrame)

    assert relay.close() is True
    remaining = [frame async for frame in frames]
    await asyncio.sleep(0.01)

    assert remaining == []
    assert relay._timer.done()


@pytest.mark.asyncio
async def test_closed_relay_emits_nothing():
    relay = ChatRelay(FakeLLM(unavailable=True), interval=0)
    relay.close()
    assert await collect(relay) == []


def upstream_app(status: int, body: str = "") -> web.Application:
    async def completions(request):
        return web.Response(status=status, text=body, content_type="text/event-stream")

    app = web.Application()
    app.router.add_post("/v1/chat/completions", completions)
    return app


def llm_config(server: TestServer) -> dict:
    return {
        "openai": {"apiKey": "sk-test", "baseUrl": str(server.make_url("/v1"))},
        "relay": {"connectTimeoutSeconds": 5, "readTimeoutSeconds": 5},
    }


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [500, 401])
async def test_upstream_error_status_falls_back_to_canned_reply(status):
    async with TestServer(upstream_app(status, "upstream exploded")) as server:
        chat_service = ChatService(chooser=lambda options: options[0])
        relay = ChatRelay(LLMService(llm_config(server)), chat_service=chat_service, interval=0)

        frames = await collect(relay)

    expected = f"[STORY] {CANNED_RESPONSES[0]}".split(" ")
    assert frames[-1] == DoneFrame()
    assert [f.delta for f in frames[:-1]] == [expected[0]] + [f" {word}" for word in expected[1:]]


@pytest.mark.asyncio
async def test_upstream_any_success_status_is_relayed():
    body = record("up") + "data: [DONE]\n"
    async with TestServer(upstream_app(201, body)) as server:
        relay = ChatRelay(LLMService(llm_config(server)), interval=0)

        frames = await collect(relay)

    assert frames == [DeltaFrame(delta="up"), DoneFrame()]
