"""
Jira Service - Create issues from a finalized work item draft
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp

from models.chat import WorkItemType
from models.workitem import JiraIssueRequest, JiraIssueResponse

logger = logging.getLogger(__name__)

ISSUE_TYPE_MAP: dict[WorkItemType, str] = {
    WorkItemType.STORY: "Story",
    WorkItemType.FEATURE: "Task",
    WorkItemType.EPIC: "Epic",
    WorkItemType.BUG: "Bug",
    WorkItemType.ISSUE: "Task",
}


class JiraNotConfigured(Exception):
    pass


class JiraError(Exception):
    pass


def compose_description(payload: JiraIssueRequest) -> dict[str, Any]:
    """Render the draft as an Atlassian document"""
    content: list[dict[str, Any]] = [
        {"type": "paragraph", "content": [{"type": "text", "text": payload.description}]},
    ]

    if payload.acceptance:
        content.append(
            {
                "type": "heading",
                "attrs": {"level": 3},
                "content": [{"type": "text", "text": "Acceptance Criteria"}],
            }
        )
        content.append(
            {
                "type": "bulletList",
                "content": [
                    {
                        "type": "listItem",
                        "content": [{"type": "paragraph", "content": [{"type": "text", "text": criterion}]}],
                    }
                    for criterion in payload.acceptance
                ],
            }
        )

    return {"type": "doc", "version": 1, "content": content}


class JiraService:
    """Thin client for the Jira issue-creation endpoint"""

    def __init__(self, config: dict[str, Any]):
        cfg = config.get("jira", {})
        self.base_url = (cfg.get("baseUrl") or "").rstrip("/")
        self.project_key = cfg.get("projectKey") or ""
        self.email = cfg.get("email") or ""
        self.api_token = cfg.get("apiToken") or ""

    @property
    def configured(self) -> bool:
        return all((self.base_url, self.project_key, self.email, self.api_token))

    def _build_issue_body(self, payload: JiraIssueRequest) -> dict[str, Any]:
        return {
            "fields": {
                "project": {"key": self.project_key},
                "summary": payload.title,
                "issuetype": {"name": ISSUE_TYPE_MAP[payload.workItemType]},
                "description": compose_description(payload),
            }
        }

    async def create_issue(self, payload: JiraIssueRequest) -> JiraIssueResponse:
        if not self.configured:
            raise JiraNotConfigured("Jira credentials are not configured")

        url = f"{self.base_url}/rest/api/3/issue"
        headers = {
            "Authorization": aiohttp.BasicAuth(self.email, self.api_token).encode(),
            "Accept": "application/json",
        }
        timeout = aiohttp.ClientTimeout(total=30)

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(
                    url,
                    json=self._build_issue_body(payload),
                    headers=headers,
                ) as response:
                    if not response.ok:
                        error_text = await response.text()
                        raise JiraError(f"Jira responded with {response.status}: {error_text[:200]}")
                    data = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise JiraError(f"Jira request failed: {e!r}") from e

        key = data.get("key") if isinstance(data, dict) else None
        if not key:
            raise JiraError("Jira response did not include an issue key")
        return JiraIssueResponse(key=key, url=f"{self.base_url}/browse/{key}")
