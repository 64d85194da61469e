"""
Chat Client - Consume the relay's SSE stream into a live conversation
"""

from __future__ import annotations

import asyncio
import codecs
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

import aiohttp
from pydantic import ValidationError

from models.chat import (
    ChatMessage,
    ChatRequest,
    ChatRole,
    DeltaFrame,
    HistoryMessage,
    StreamFrame,
    WorkItemType,
    stream_frame_adapter,
)
from services.template_extractor import split_conversational
from services.work_item_draft import WorkItemDraft

logger = logging.getLogger(__name__)

APOLOGY_MESSAGE = "Something went wrong while replying. Try again in a few seconds."
RECORD_DELIMITER = "\n\n"


class SSERecordDecoder:
    """Turn arbitrary byte chunks into relay frames.

    Decoding is incremental, so a multi-byte character split across two
    chunks comes out whole. A trailing partial record is kept until the
    next chunk completes it.
    """

    def __init__(self):
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    def feed(self, chunk: bytes) -> list[StreamFrame]:
        self._buffer += self._decoder.decode(chunk)
        records = self._buffer.split(RECORD_DELIMITER)
        self._buffer = records.pop()
        return [frame for frame in map(self._parse_record, records) if frame is not None]

    def _parse_record(self, record: str) -> StreamFrame | None:
        if not record.startswith("data:"):
            # Keep-alive comments and anything else without a payload
            return None
        try:
            return stream_frame_adapter.validate_json(record[5:].strip())
        except ValidationError:
            logger.debug("Ignoring bad record: %.80s", record)
            return None


class ConversationSession:
    """Messages, draft and replying indicator for one conversation"""

    def __init__(
        self,
        work_item_type: WorkItemType | str = WorkItemType.STORY,
        on_update: Callable[[ChatMessage], None] | None = None,
        hide_template: bool = False,
    ):
        self.messages: list[ChatMessage] = []
        self.draft = WorkItemDraft(work_item_type)
        self.replying = False
        self.on_update = on_update
        self.hide_template = hide_template

    @property
    def work_item_type(self) -> WorkItemType:
        return self.draft.work_item_type

    def select_type(self, work_item_type: WorkItemType | str):
        self.draft.select_type(work_item_type)

    def _notify(self, message: ChatMessage):
        if self.on_update:
            self.on_update(message)


class ChatStreamClient:
    """Send prompts to the relay and stream replies into a ConversationSession"""

    def __init__(self, base_url: str, session: ConversationSession | None = None, timeout_seconds: int = 120):
        self.base_url = base_url.rstrip("/")
        self.session = session or ConversationSession()
        self.timeout_seconds = timeout_seconds

    @asynccontextmanager
    async def _open_stream(self, payload: dict) -> AsyncIterator[AsyncIterator[bytes]]:
        """Post to the relay and yield its body as raw chunks"""
        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
        async with aiohttp.ClientSession(timeout=timeout) as http:
            async with http.post(f"{self.base_url}/api/chat/stream", json=payload) as response:
                response.raise_for_status()
                yield response.content.iter_any()

    async def send(self, text: str) -> ChatMessage | None:
        """Submit a prompt and stream the assistant reply into the session"""
        text = text.strip()
        if not text:
            return None

        conversation = self.session
        user_message = ChatMessage.create(ChatRole.USER, text)
        conversation.messages.append(user_message)
        payload = ChatRequest(
            workItemType=conversation.work_item_type,
            messages=[HistoryMessage(**m.model_dump(exclude={"id"})) for m in conversation.messages],
        ).model_dump(mode="json")

        # Placeholder goes in before the first byte so the UI can show typing
        assistant = ChatMessage.create(ChatRole.ASSISTANT)
        conversation.messages.append(assistant)
        conversation.replying = True

        accumulated = ""
        try:
            async with self._open_stream(payload) as chunks:
                decoder = SSERecordDecoder()
                async for chunk in chunks:
                    for frame in decoder.feed(chunk):
                        if isinstance(frame, DeltaFrame):
                            accumulated += frame.delta
                            assistant.content = accumulated
                            conversation._notify(assistant)
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            logger.warning("Chat stream failed: %r", e)
            assistant.content = APOLOGY_MESSAGE
            conversation._notify(assistant)
        finally:
            conversation.replying = False
            conversation.draft.apply_reply(accumulated)

        if conversation.hide_template and assistant.content != APOLOGY_MESSAGE:
            chat_part, template = split_conversational(accumulated)
            if template is not None:
                assistant.content = chat_part
                conversation._notify(assistant)
        return assistant
