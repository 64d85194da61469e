"""Jira hand-off API endpoints"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException

from models.workitem import JiraIssueRequest, JiraIssueResponse
from services.config_manager import ConfigManager
from services.jira_service import JiraError, JiraNotConfigured, JiraService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/issues", response_model=JiraIssueResponse)
async def create_issue(request: JiraIssueRequest) -> JiraIssueResponse:
    """Create a Jira issue from the finalized draft"""
    jira_service = JiraService(ConfigManager.get_instance().get_config())

    try:
        return await jira_service.create_issue(request)
    except JiraNotConfigured:
        raise HTTPException(status_code=503, detail={"error": "JIRA_NOT_CONFIGURED"})
    except JiraError as e:
        logger.error("Jira issue creation failed: %s", e)
        raise HTTPException(
            status_code=502,
            detail={"error": "JIRA_CREATE_FAILED", "message": "Unable to create Jira issue."},
        )
