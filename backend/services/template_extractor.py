"""
Template Extractor - Recognize Title/Description/list blocks in assistant text

Pure functions, no I/O. Recognition is best-effort pattern matching: a reply
may carry any subset of the fields, and a miss simply means "no update".
"""

from __future__ import annotations

import re

from models.chat import WorkItemType
from models.workitem import ExtractionResult

# Only these types have a list marker in the reply grammar
LIST_MARKERS: dict[WorkItemType, str] = {
    WorkItemType.STORY: "Acceptance Criteria",
    WorkItemType.ISSUE: "Steps",
}

_FLAGS = re.IGNORECASE | re.DOTALL

TITLE_RE = re.compile(r"Title:\s*(.+?)(?=\s*(?:Description:|Acceptance Criteria:|Steps:)|\Z)", _FLAGS)
DESCRIPTION_RE = re.compile(r"Description:\s*(.+?)(?=\s*(?:Acceptance Criteria:|Steps:)|\Z)", _FLAGS)
NUMBERED_LINE_RE = re.compile(r"^[ \t]*(\d+\.[ \t]*\S[^\n]*)", re.MULTILINE)

COMPLETE_TEMPLATE_RE = re.compile(
    r"Title:\s*.+?Description:\s*.+?(?:Acceptance Criteria:|Steps:)\s*\d+\.",
    _FLAGS,
)

# Template start: after a "---" divider (optionally bolded), on a fresh line, or at the very start
TEMPLATE_START_RE = re.compile(
    r"(?:^|-{2,}\s*\*{0,2}|\n[ \t]*\*{0,2})(?=(?:Title|Description|Acceptance Criteria|Steps):)",
    re.IGNORECASE,
)


def _clean(value: str) -> str:
    # "**Title:** Foo" leaves markdown emphasis around the value
    return value.strip().strip("*").strip()


def _list_items(text: str) -> list[str]:
    numbered = [item.strip() for item in NUMBERED_LINE_RE.findall(text)]
    if numbered:
        return numbered
    return [text]


def extract_template(content: str, work_item_type: WorkItemType | str) -> ExtractionResult | None:
    """Return the fields the reply supplies, or None if it supplies none"""
    work_item_type = WorkItemType(work_item_type)
    result = ExtractionResult()

    title_match = TITLE_RE.search(content)
    if title_match and _clean(title_match.group(1)):
        result.title = _clean(title_match.group(1))

    description_match = DESCRIPTION_RE.search(content)
    if description_match and _clean(description_match.group(1)):
        result.description = _clean(description_match.group(1))

    marker = LIST_MARKERS.get(work_item_type)
    if marker:
        list_match = re.search(rf"{marker}:\s*(.+?)\Z", content, _FLAGS)
        if list_match and _clean(list_match.group(1)):
            result.acceptance = _list_items(_clean(list_match.group(1)))

    if result.is_empty():
        return None
    return result


def is_complete_template(content: str) -> bool:
    """Title, Description, then a list marker followed by at least one numbered line"""
    return COMPLETE_TEMPLATE_RE.search(content) is not None


def split_conversational(content: str) -> tuple[str, str | None]:
    """Split a reply into (conversational preamble, template body or None)"""
    match = TEMPLATE_START_RE.search(content)
    if not match:
        return content.strip(), None
    return content[: match.start()].strip(), content[match.end():].strip()
