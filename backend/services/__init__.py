"""Services module - Business logic layer"""

from .config_manager import ConfigManager
from .llm_service import LLMService, UpstreamUnavailable, build_system_prompt, parse_stream_line
from .chat_service import ChatService
from .chat_relay import ChatRelay
from .template_extractor import extract_template, is_complete_template, split_conversational
from .work_item_draft import WorkItemDraft
from .chat_client import ChatStreamClient, ConversationSession, SSERecordDecoder
from .jira_service import JiraError, JiraNotConfigured, JiraService

__all__ = [
    "ConfigManager",
    "LLMService",
    "UpstreamUnavailable",
    "build_system_prompt",
    "parse_stream_line",
    "ChatService",
    "ChatRelay",
    "extract_template",
    "is_complete_template",
    "split_conversational",
    "WorkItemDraft",
    "ChatStreamClient",
    "ConversationSession",
    "SSERecordDecoder",
    "JiraError",
    "JiraNotConfigured",
    "JiraService",
]
