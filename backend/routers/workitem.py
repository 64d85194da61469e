"""Work item API endpoints"""

from __future__ import annotations

from fastapi import APIRouter

from models.workitem import WORK_ITEM_CATALOG, ExtractRequest, ExtractResponse, WorkItemTemplate
from services.template_extractor import extract_template, is_complete_template, split_conversational

router = APIRouter()


@router.get("/catalog", response_model=dict[str, WorkItemTemplate])
async def get_catalog() -> dict[str, WorkItemTemplate]:
    """Default template for every work item type"""
    return {work_item_type.value: template for work_item_type, template in WORK_ITEM_CATALOG.items()}


@router.post("/extract", response_model=ExtractResponse)
async def extract(request: ExtractRequest) -> ExtractResponse:
    """Recognize a template update in a finished assistant reply"""
    partial = extract_template(request.content, request.workItemType)
    conversational, _ = split_conversational(request.content)

    return ExtractResponse(
        update=partial.model_dump(exclude_none=True) if partial else {},
        complete=partial is not None and is_complete_template(request.content),
        conversational=conversational,
    )
