"""Routers module - FastAPI route handlers"""

from . import chat, config, jira, workitem

__all__ = ["chat", "config", "jira", "workitem"]
