"""
Chat Relay - Reframe a completion stream (or a canned fallback) as SSE frames
"""

from __future__ import annotations

import asyncio
import codecs
import logging
from contextlib import aclosing
from typing import Any, AsyncIterator

import aiohttp
from pydantic import ValidationError

from models.chat import (
    ChatRequest,
    ContentRecord,
    DeltaFrame,
    DoneFrame,
    EndRecord,
    ErrorFrame,
    StreamFrame,
)
from services.chat_service import ChatService
from services.llm_service import UpstreamUnavailable, parse_stream_line

logger = logging.getLogger(__name__)

INVALID_PAYLOAD_MESSAGE = "Invalid chat payload"


class ChatRelay:
    """Produce the frame sequence for a single relay request.

    Frames come out in generation order and the sequence always ends with
    exactly one DoneFrame. ``close`` is idempotent and may be called from the
    normal completion path and from a client-disconnect path; it cancels the
    fallback timer so nothing keeps ticking for a dead connection.
    """

    def __init__(self, llm_service, chat_service: ChatService | None = None, interval: float = 0.04):
        self.llm_service = llm_service
        self.chat_service = chat_service or ChatService()
        self.interval = interval
        self.closed = False
        self._timer: asyncio.Task | None = None
        self._queue: asyncio.Queue | None = None

    def close(self) -> bool:
        """Close the relay. Returns False if it was already closed."""
        if self.closed:
            return False
        self.closed = True
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        if self._queue is not None:
            self._queue.put_nowait(None)
        logger.debug("Relay closed")
        return True

    async def frames(self, payload: Any) -> AsyncIterator[StreamFrame]:
        """Yield frames for a raw (unvalidated) request payload"""
        try:
            async with aclosing(self._frames(payload)) as frames:
                async for frame in frames:
                    if self.closed:
                        return
                    yield frame
                    if isinstance(frame, DoneFrame):
                        return
        finally:
            self.close()

    async def _frames(self, payload: Any) -> AsyncIterator[StreamFrame]:
        try:
            request = ChatRequest.model_validate(payload)
        except ValidationError:
            yield ErrorFrame(message=INVALID_PAYLOAD_MESSAGE)
            yield DoneFrame()
            return

        try:
            async with self.llm_service.stream_chat(request.workItemType, request.messages) as chunks:
                async with aclosing(self._relay_upstream(chunks)) as frames:
                    async for frame in frames:
                        yield frame
            return
        except UpstreamUnavailable as e:
            logger.info("Upstream unavailable, streaming canned reply: %s", e)

        async with aclosing(self._fallback(request)) as frames:
            async for frame in frames:
                yield frame

    async def _relay_upstream(self, chunks: AsyncIterator[bytes]) -> AsyncIterator[StreamFrame]:
        # Incremental decode keeps multi-byte characters split across chunks intact
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        buffer = ""
        try:
            async for chunk in chunks:
                buffer += decoder.decode(chunk)
                lines = buffer.split("\n")
                buffer = lines.pop()
                for line in lines:
                    record = parse_stream_line(line)
                    if isinstance(record, EndRecord):
                        yield DoneFrame()
                        return
                    if isinstance(record, ContentRecord):
                        yield DeltaFrame(delta=record.text)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning("Upstream stream interrupted: %r", e)
        # Stream ended without the sentinel
        yield DoneFrame()

    async def _fallback(self, request: ChatRequest) -> AsyncIterator[StreamFrame]:
        if self.closed:
            return
        reply = self.chat_service.generate_reply(request)
        words = reply.content.split(" ")

        self._queue = asyncio.Queue()
        self._timer = asyncio.create_task(self._tick(words, self._queue))
        while True:
            frame = await self._queue.get()
            if frame is None:
                return
            yield frame
            if isinstance(frame, DoneFrame):
                return

    async def _tick(self, words: list[str], queue: asyncio.Queue):
        for index, word in enumerate(words):
            await asyncio.sleep(self.interval)
            queue.put_nowait(DeltaFrame(delta=word if index == 0 else f" {word}"))
        await asyncio.sleep(self.interval)
        queue.put_nowait(DoneFrame())
