"""Work item data models and the default catalog"""

from __future__ import annotations

from pydantic import BaseModel, Field

from .chat import WorkItemType


class WorkItemTemplate(BaseModel):
    """Editable work item draft plus the labels the panel renders it with"""

    label: str
    titleLabel: str
    descriptionLabel: str
    listLabel: str
    title: str
    description: str
    acceptance: list[str] = []


class ExtractionResult(BaseModel):
    """Partial draft update recognized in an assistant reply.

    Only the fields the reply actually carried are set; use
    ``model_dump(exclude_none=True)`` to get the update.
    """

    title: str | None = None
    description: str | None = None
    acceptance: list[str] | None = None

    def is_empty(self) -> bool:
        return not self.model_dump(exclude_none=True)


class ExtractRequest(BaseModel):
    workItemType: WorkItemType
    content: str


class ExtractResponse(BaseModel):
    update: dict = {}
    complete: bool = False
    conversational: str = ""


class JiraIssueRequest(BaseModel):
    workItemType: WorkItemType
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    acceptance: list[str] = []


class JiraIssueResponse(BaseModel):
    key: str
    url: str


class HldRequest(BaseModel):
    workItemType: WorkItemType
    title: str
    description: str
    acceptance: list[str] = []
    createInConfluence: bool = True


WORK_ITEM_CATALOG: dict[WorkItemType, WorkItemTemplate] = {
    WorkItemType.STORY: WorkItemTemplate(
        label="User Story",
        titleLabel="Story Title",
        descriptionLabel="Description",
        listLabel="Acceptance Criteria:",
        title="Workflow AI refinement lane",
        description=(
            "As a squad lead, I want a chat-first workspace so we can evolve "
            "requirements with AI before pushing a Jira card."
        ),
        acceptance=[
            "Given a squad inputs an initiative, when the AI session finishes, then a structured "
            "story (title, description, AC) is generated.",
            "Given acceptance criteria are approved, when Create in Jira runs, then the issue is "
            "created with transcript links.",
            "Given the Jira issue exists, when the coding agent is triggered, then branch context "
            "references the generated acceptance criteria.",
        ],
    ),
    WorkItemType.FEATURE: WorkItemTemplate(
        label="Feature",
        titleLabel="Feature Title",
        descriptionLabel="Business Outcome",
        listLabel="Success Criteria:",
        title="AI-assisted Jira intake",
        description="Deliver a guided workflow where squads can author Jira-ready specs with AI moderation.",
        acceptance=[
            "Feature toggles can be rolled out per squad with audit logs.",
            "Exports link the AI transcript to the Jira issue for compliance.",
            "Agent branches inherit the generated specs automatically.",
        ],
    ),
    WorkItemType.EPIC: WorkItemTemplate(
        label="Epic",
        titleLabel="Epic Title",
        descriptionLabel="Epic Description",
        listLabel="Milestone Checks:",
        title="Workflow AI program rollout",
        description=(
            "As the platform team, we want every squad to plan AI-to-Jira-to-GitHub "
            "handoffs within a single workspace."
        ),
        acceptance=[
            "Week 1: 5 pilot squads use the workspace end-to-end.",
            "Week 3: Jira issues link to AI transcripts with metrics dashboards live.",
            "Week 4: Agent branches deployed with smoke tests passing.",
        ],
    ),
    WorkItemType.BUG: WorkItemTemplate(
        label="Bug",
        titleLabel="Bug Title",
        descriptionLabel="Reproduction / Impact",
        listLabel="Fix Verification:",
        title="[BUG] Jira sync fails for multi-project payloads",
        description=(
            "Steps: 1) Capture idea 2) Include multiple Jira projects 3) Click Create in Jira "
            "-> error 500. Impact: blocks cross-squad refinement."
        ),
        acceptance=[
            "Multi-project payload creates issues without error.",
            "Error states display actionable guidance.",
            "Regression tests cover multiple project IDs.",
        ],
    ),
    WorkItemType.ISSUE: WorkItemTemplate(
        label="Issue",
        titleLabel="Work Item Title",
        descriptionLabel="Details",
        listLabel="Steps:",
        title="Capture observability for AI sessions",
        description="Add logging + dashboards so we track AI session latency, quality, and Jira success rates.",
        acceptance=[
            "Implement logging for session ID, tool usage, and duration.",
            "Create dashboard to expose latency and success KPIs.",
            "Set up alerts for when Create in Jira fails twice consecutively.",
        ],
    ),
}


def default_template(work_item_type: WorkItemType | str) -> WorkItemTemplate:
    """Fresh copy of the catalog default for a type"""
    return WORK_ITEM_CATALOG[WorkItemType(work_item_type)].model_copy(deep=True)
