from __future__ import annotations

import pytest

from models.chat import WorkItemType
from models.workitem import WORK_ITEM_CATALOG, ExtractionResult
from services.work_item_draft import WorkItemDraft


def test_new_draft_starts_from_catalog_default():
    draft = WorkItemDraft()
    assert draft.work_item_type == WorkItemType.STORY
    assert draft.template == WORK_ITEM_CATALOG[WorkItemType.STORY]
    assert draft.ready is False


def test_draft_does_not_share_catalog_lists():
    draft = WorkItemDraft("bug")
    draft.edit_field("acceptance", "changed", index=0)
    assert WORK_ITEM_CATALOG[WorkItemType.BUG].acceptance[0] != "changed"


def test_select_type_discards_edits_and_readiness():
    draft = WorkItemDraft()
    draft.edit_field("title", "My edited title")
    draft.mark_ready()

    draft.select_type("epic")

    assert draft.work_item_type == WorkItemType.EPIC
    assert draft.template == WORK_ITEM_CATALOG[WorkItemType.EPIC]
    assert draft.ready is False


def test_edit_field_never_touches_readiness():
    draft = WorkItemDraft()
    draft.mark_ready()
    draft.edit_field("description", "new description")
    draft.edit_field("acceptance", "first", index=0)
    assert draft.ready is True
    assert draft.template.description == "new description"
    assert draft.template.acceptance[0] == "first"


def test_edit_field_rejects_unknown_fields_and_missing_index():
    draft = WorkItemDraft()
    with pytest.raises(ValueError):
        draft.edit_field("label", "nope")
    with pytest.raises(ValueError):
        draft.edit_field("acceptance", "nope")


@pytest.mark.parametrize("index", [-1, 3, 10])
def test_edit_field_rejects_out_of_range_acceptance_index(index):
    draft = WorkItemDraft()
    before = list(draft.template.acceptance)
    assert len(before) == 3
    with pytest.raises(ValueError):
        draft.edit_field("acceptance", "nope", index=index)
    assert draft.template.acceptance == before


def test_merge_keeps_absent_fields():
    draft = WorkItemDraft()
    original_description = draft.template.description
    original_acceptance = list(draft.template.acceptance)

    draft.merge_extraction(ExtractionResult(title="Foo"))

    assert draft.template.title == "Foo"
    assert draft.template.description == original_description
    assert draft.template.acceptance == original_acceptance


def test_merge_replaces_list_wholesale():
    draft = WorkItemDraft()
    draft.merge_extraction(ExtractionResult(acceptance=["1. Only one"]))
    assert draft.template.acceptance == ["1. Only one"]


def test_merge_none_is_a_no_op():
    draft = WorkItemDraft()
    before = draft.template.model_copy(deep=True)
    draft.merge_extraction(None)
    assert draft.template == before


def test_apply_reply_partial_does_not_mark_ready():
    draft = WorkItemDraft()
    draft.apply_reply("Title: Foo")
    assert draft.template.title == "Foo"
    assert draft.ready is False


def test_apply_reply_full_template_marks_ready():
    draft = WorkItemDraft()
    draft.apply_reply("Title: Foo\nDescription: Bar\nAcceptance Criteria:\n1. Baz")
    assert draft.template.title == "Foo"
    assert draft.template.description == "Bar"
    assert draft.template.acceptance == ["1. Baz"]
    assert draft.ready is True


def test_apply_reply_without_template_leaves_draft():
    draft = WorkItemDraft()
    before = draft.template.model_copy(deep=True)
    assert draft.apply_reply("What metrics matter most?") is None
    assert draft.template == before


def test_handoff_payloads():
    draft = WorkItemDraft("issue")
    draft.merge_extraction(ExtractionResult(title="T", description="D", acceptance=["1. A", "2. B"]))

    jira = draft.to_jira_request()
    assert jira.workItemType == WorkItemType.ISSUE
    assert jira.acceptance == ["1. A", "2. B"]

    assert draft.to_pr_description() == (
        "T\n\nD\n\n**Acceptance Criteria:**\n1. A\n2. B\n\n"
        "Please implement this feature following existing code patterns."
    )


def test_design_doc_request_carries_finalized_fields():
    draft = WorkItemDraft("epic")
    draft.merge_extraction(ExtractionResult(title="T", description="D", acceptance=["1. A"]))

    request = draft.to_hld_request()
    assert request.model_dump(mode="json") == {
        "workItemType": "epic",
        "title": "T",
        "description": "D",
        "acceptance": ["1. A"],
        "createInConfluence": True,
    }
    assert draft.to_hld_request(create_in_confluence=False).createInConfluence is False

    request.acceptance.append("2. B")
    assert draft.template.acceptance == ["1. A"]
