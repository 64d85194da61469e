"""Chat mode data models"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter


class WorkItemType(str, Enum):
    """Work item categories the assistant can refine"""

    STORY = "story"
    FEATURE = "feature"
    EPIC = "epic"
    BUG = "bug"
    ISSUE = "issue"


class ChatRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class HistoryMessage(BaseModel):
    """A message as carried in a relay request"""

    role: ChatRole
    content: str
    timestamp: str


class ChatMessage(HistoryMessage):
    """A message owned by a conversation session"""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))

    @classmethod
    def create(cls, role: ChatRole, content: str = "") -> "ChatMessage":
        return cls(
            role=role,
            content=content,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )


class ChatRequest(BaseModel):
    """Request for a chat reply (streaming or not)"""

    workItemType: WorkItemType
    messages: list[HistoryMessage]


# ========== SSE frames (relay -> browser) ==========


class DeltaFrame(BaseModel):
    type: Literal["delta"] = "delta"
    delta: str


class DoneFrame(BaseModel):
    type: Literal["done"] = "done"


class ErrorFrame(BaseModel):
    type: Literal["error"] = "error"
    message: str


StreamFrame = Annotated[Union[DeltaFrame, DoneFrame, ErrorFrame], Field(discriminator="type")]
stream_frame_adapter = TypeAdapter(StreamFrame)


# ========== Upstream records (chat completion -> relay) ==========


class UpstreamDelta(BaseModel):
    content: str | None = None


class UpstreamChoice(BaseModel):
    delta: UpstreamDelta = UpstreamDelta()


class UpstreamChunk(BaseModel):
    """One `data:` payload of an OpenAI-compatible completion stream"""

    choices: list[UpstreamChoice] = []


class ContentRecord(BaseModel):
    kind: Literal["content"] = "content"
    text: str


class EndRecord(BaseModel):
    kind: Literal["end"] = "end"


class SkipRecord(BaseModel):
    """A line that carries nothing to relay (blank, comment, malformed, empty delta)"""

    kind: Literal["skip"] = "skip"
    reason: str


UpstreamRecord = Annotated[Union[ContentRecord, EndRecord, SkipRecord], Field(discriminator="kind")]
