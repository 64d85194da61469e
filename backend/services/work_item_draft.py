"""Work Item Draft - single source of truth for the editable work item panel"""

from __future__ import annotations

from models.chat import WorkItemType
from models.workitem import (
    ExtractionResult,
    HldRequest,
    JiraIssueRequest,
    WorkItemTemplate,
    default_template,
)
from services.template_extractor import extract_template, is_complete_template

EDITABLE_FIELDS = ("title", "description", "acceptance")


class WorkItemDraft:
    """Current draft, its type, and the readiness flag"""

    def __init__(self, work_item_type: WorkItemType | str = WorkItemType.STORY):
        self.work_item_type = WorkItemType(work_item_type)
        self.template: WorkItemTemplate = default_template(self.work_item_type)
        self.ready = False

    def select_type(self, work_item_type: WorkItemType | str):
        """Replace the whole draft with the catalog default; discards edits"""
        self.work_item_type = WorkItemType(work_item_type)
        self.template = default_template(self.work_item_type)
        self.reset_ready()

    def edit_field(self, field: str, value: str, index: int | None = None):
        """Direct user overwrite of one field, or one acceptance entry by index"""
        if field not in EDITABLE_FIELDS:
            raise ValueError(f"Unknown work item field: {field}")

        if field == "acceptance":
            if index is None:
                raise ValueError("An index is required to edit an acceptance entry")
            if not 0 <= index < len(self.template.acceptance):
                raise ValueError(f"No acceptance entry at index {index}")
            self.template.acceptance[index] = value
        else:
            setattr(self.template, field, value)

    def merge_extraction(self, partial: ExtractionResult | None):
        """Apply present fields, last writer wins; a present list replaces the old one"""
        if partial is None:
            return
        for field, value in partial.model_dump(exclude_none=True).items():
            setattr(self.template, field, list(value) if field == "acceptance" else value)

    def mark_ready(self):
        self.ready = True

    def reset_ready(self):
        self.ready = False

    def apply_reply(self, content: str) -> ExtractionResult | None:
        """Merge whatever a finished assistant reply supplies and update readiness"""
        partial = extract_template(content, self.work_item_type)
        if partial is None:
            return None
        self.merge_extraction(partial)
        if is_complete_template(content):
            self.mark_ready()
        return partial

    # ========== Hand-off payloads ==========

    def to_jira_request(self) -> JiraIssueRequest:
        return JiraIssueRequest(
            workItemType=self.work_item_type,
            title=self.template.title,
            description=self.template.description,
            acceptance=list(self.template.acceptance),
        )

    def to_pr_description(self) -> str:
        """Task text handed to the coding agent that opens the pull request"""
        criteria = "\n".join(self.template.acceptance)
        return (
            f"{self.template.title}\n\n"
            f"{self.template.description}\n\n"
            f"**Acceptance Criteria:**\n{criteria}\n\n"
            "Please implement this feature following existing code patterns."
        )

    def to_hld_request(self, create_in_confluence: bool = True) -> HldRequest:
        """Body for the high-level design generator, optionally published to Confluence"""
        return HldRequest(
            workItemType=self.work_item_type,
            title=self.template.title,
            description=self.template.description,
            acceptance=list(self.template.acceptance),
            createInConfluence=create_in_confluence,
        )
