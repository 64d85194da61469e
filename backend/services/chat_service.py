"""Canned assistant replies used when no completion provider is reachable"""

from __future__ import annotations

import random
from typing import Callable, Sequence

from models.chat import ChatMessage, ChatRequest, ChatRole

CANNED_RESPONSES = [
    "Let's pin down success metrics before we push to Jira.",
    "I'd add a rollout guardrail. Want me to suggest one?",
    "Sounds good. Need any help writing acceptance tests?",
    "Consider dependencies with analytics or billing here.",
    "Happy to summarize this into a Jira-ready payload.",
]


class ChatService:
    def __init__(self, chooser: Callable[[Sequence[str]], str] = random.choice):
        self.chooser = chooser

    def generate_reply(self, request: ChatRequest) -> ChatMessage:
        response = self.chooser(CANNED_RESPONSES)
        return ChatMessage.create(
            ChatRole.ASSISTANT,
            f"[{request.workItemType.value.upper()}] {response}",
        )
