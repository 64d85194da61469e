"""Models module - Pydantic data models"""

from .chat import (
    ChatMessage,
    ChatRequest,
    ChatRole,
    ContentRecord,
    DeltaFrame,
    DoneFrame,
    EndRecord,
    ErrorFrame,
    HistoryMessage,
    SkipRecord,
    StreamFrame,
    UpstreamChunk,
    UpstreamRecord,
    WorkItemType,
    stream_frame_adapter,
)
from .workitem import (
    WORK_ITEM_CATALOG,
    ExtractionResult,
    ExtractRequest,
    ExtractResponse,
    HldRequest,
    JiraIssueRequest,
    JiraIssueResponse,
    WorkItemTemplate,
    default_template,
)

__all__ = [
    # Chat models
    "ChatMessage",
    "ChatRequest",
    "ChatRole",
    "HistoryMessage",
    "WorkItemType",
    # SSE frames
    "DeltaFrame",
    "DoneFrame",
    "ErrorFrame",
    "StreamFrame",
    "stream_frame_adapter",
    # Upstream records
    "ContentRecord",
    "EndRecord",
    "SkipRecord",
    "UpstreamChunk",
    "UpstreamRecord",
    # Work item models
    "WORK_ITEM_CATALOG",
    "ExtractionResult",
    "ExtractRequest",
    "ExtractResponse",
    "HldRequest",
    "JiraIssueRequest",
    "JiraIssueResponse",
    "WorkItemTemplate",
    "default_template",
]
