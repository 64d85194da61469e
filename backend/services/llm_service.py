"""
LLM Service - Streaming chat completions from an OpenAI-compatible provider
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import aiohttp
from pydantic import ValidationError

from models.chat import (
    ContentRecord,
    EndRecord,
    HistoryMessage,
    SkipRecord,
    UpstreamChunk,
    UpstreamRecord,
    WorkItemType,
)

logger = logging.getLogger(__name__)

DONE_SENTINEL = "[DONE]"


class UpstreamUnavailable(Exception):
    """The completion stream could not be opened (no key, refused, non-2xx, no body)"""


def build_system_prompt(work_item_type: WorkItemType) -> str:
    """System instruction placed in front of the caller's history"""
    is_story = work_item_type == WorkItemType.STORY
    list_label = "Acceptance Criteria" if is_story else "Steps"
    item_word = "criteria" if is_story else "step"

    return f"""You are an AI product assistant helping refine a work item for Jira (Epic/Feature/User Story/Bug/Issue).

TWO MODES:

MODE 1 - EXPLICIT COMMANDS (user says add/change/update/set):
When the user explicitly asks to add/change/update/set a field, respond ONLY with that field in structured format.
No questions, no explanations, no asking for more details.

Examples:
- User: "add to description will be ready soon" -> Respond: Description: will be ready soon
- User: "change title to Calculator App" -> Respond: Title: Calculator App
- User: "add new {item_word}: User can see results" -> Respond: {list_label}:
1. <existing>
2. <existing>
3. User can see results

MODE 2 - DISCUSSION/REFINEMENT (user is discussing or asking questions):
Ask clarifying questions, help refine requirements, suggest improvements. Continue the conversation naturally.

FULL COMPLETION:
Only switch to the full template (Title + Description + all {list_label}) when the user explicitly says
"ready", "done", "complete", or "ship it".

FORMAT FOR EXPLICIT COMMANDS (respond with ONLY the field being changed):

Title: <new title>

OR:

Description: <new description>

OR:

{list_label}:
1. <all {item_word} entries with new ones added>

FORMAT FOR FULL COMPLETION (only on explicit ready signal):

Title: <{"user story" if is_story else "task"} title>
Description: <{"user story" if is_story else "task"} description>
{list_label}:
1. <{item_word}>
2. <{item_word}>
3. <{item_word}>

CRITICAL:
- If the user uses words like "add", "change", "update", "set", "modify" -> execute immediately, no questions
- If the user is discussing or asking questions -> help refine, ask for details
- No explanations or chat text when in explicit command mode
- Each {item_word} must be numbered (1., 2., 3., etc.)
"""


def parse_stream_line(line: str) -> UpstreamRecord:
    """Classify one line of an OpenAI-compatible SSE stream"""
    line = line.strip()
    if not line.startswith("data:"):
        return SkipRecord(reason="not a data line")

    data = line[5:].strip()
    if data == DONE_SENTINEL:
        return EndRecord()

    try:
        chunk = UpstreamChunk.model_validate_json(data)
    except ValidationError:
        logger.debug("Skipping malformed upstream record: %.80s", data)
        return SkipRecord(reason="malformed")

    if not chunk.choices or not chunk.choices[0].delta.content:
        return SkipRecord(reason="no content")
    return ContentRecord(text=chunk.choices[0].delta.content)


class LLMService:
    """Service for streaming completions from the configured provider"""

    def __init__(self, config: dict[str, Any]):
        self.config = config

    # ========== Config Helpers ==========

    def _get_openai_config(self) -> tuple[str, str, dict[str, str]]:
        """Get OpenAI config: (model, url, headers). Raises if api_key missing."""
        cfg = self.config.get("openai", {})
        api_key = cfg.get("apiKey")
        if not api_key:
            raise UpstreamUnavailable("OpenAI API key not configured")
        model = cfg.get("model", "gpt-4o-mini")
        base_url = cfg.get("baseUrl", "https://api.openai.com/v1").rstrip("/")
        url = f"{base_url}/chat/completions"
        headers = {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}
        return model, url, headers

    def _get_timeout(self) -> aiohttp.ClientTimeout:
        """Bound connect and per-read waits; leave the total open for long generations"""
        cfg = self.config.get("relay", {})
        return aiohttp.ClientTimeout(
            total=None,
            sock_connect=cfg.get("connectTimeoutSeconds", 15),
            sock_read=cfg.get("readTimeoutSeconds", 60),
        )

    # ========== Message/Payload Builders ==========

    def _build_openai_messages(
        self, work_item_type: WorkItemType, history: list[HistoryMessage]
    ) -> list[dict[str, str]]:
        """Build OpenAI-style messages array with the system instruction first"""
        messages = [{"role": "system", "content": build_system_prompt(work_item_type)}]
        messages.extend({"role": m.role.value, "content": m.content} for m in history)
        return messages

    def _build_openai_payload(self, model: str, messages: list) -> dict[str, Any]:
        """Build OpenAI-compatible streaming request payload"""
        return {
            "model": model,
            "messages": messages,
            "temperature": self.config.get("openai", {}).get("temperature", 0.7),
            "stream": True,
        }

    # ========== Streaming ==========

    @asynccontextmanager
    async def stream_chat(
        self, work_item_type: WorkItemType, history: list[HistoryMessage]
    ) -> AsyncIterator[AsyncIterator[bytes]]:
        """Open a completion stream and yield its raw body chunks.

        Raises UpstreamUnavailable before yielding if the stream cannot be
        established, so callers can substitute another source.
        """
        model, url, headers = self._get_openai_config()
        payload = self._build_openai_payload(model, self._build_openai_messages(work_item_type, history))

        async with aiohttp.ClientSession(timeout=self._get_timeout()) as session:
            try:
                response = await session.post(url, json=payload, headers=headers)
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                raise UpstreamUnavailable(f"OpenAI connection failed: {e!r}") from e

            async with response:
                if not response.ok:
                    error_text = await response.text()
                    raise UpstreamUnavailable(f"OpenAI API error ({response.status}): {error_text[:200]}")
                if response.content is None:
                    raise UpstreamUnavailable("OpenAI response has no body")

                logger.info("Streaming completion from %s", model)
                yield response.content.iter_any()
