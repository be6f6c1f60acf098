"""
plan_parser.py – Turn a markdown ATDD test plan into a ParsedDocument.

Expected shape of the input (everything is optional):

    **Test Plan ID**: TP-001
    **Work Item**: 182345 - Approved Supplier List

    ### Scenario 1: Create requisition line
    **Priority**: High
    **Given** an approved vendor exists
    **And** the vendor has an item
    **When** the user opens the worksheet
    **Then** the line is created

Parsing never fails: missing pieces fall back to defaults.
"""

from __future__ import annotations

import logging
import re

from models import AndStep, Metadata, ParsedDocument, Scenario

logger = logging.getLogger("atdd-kit")

# ── Patterns ────────────────────────────────────────────────────────────

_METADATA_LABELS = {
    "test_plan_id": "Test Plan ID",
    "work_item": "Work Item",
    "project": "Project",
    "feature": "Feature",
}

_METADATA_PATTERNS = {
    key: re.compile(
        rf"\*\*{re.escape(label)}(?:\*\*:|:\*\*)[ \t]*(?P<value>[^\n]*)",
        re.IGNORECASE,
    )
    for key, label in _METADATA_LABELS.items()
}

_SCENARIO_HEADING = re.compile(
    r"^[ \t]*(?P<level>#{3,6})[ \t]*\**[ \t]*Scenario\b"
    r"(?:[ \t]+(?P<ident>[A-Za-z]*-?\d+))?"
    r"[ \t]*[:\-–]?[ \t]*(?P<title>[^\n]*)$",
    re.IGNORECASE | re.MULTILINE,
)

# horizontal rule or any heading above the scenario's own level closes it
_BLOCK_END = {
    level: re.compile(rf"^[ \t]*(?:-{{3,}}[ \t]*$|#{{1,{level - 1}}}[ \t])", re.MULTILINE)
    for level in range(3, 7)
}

_PRIORITY = re.compile(r"\*\*Priority:?\*\*:?[ \t]*(?P<value>\w+)", re.IGNORECASE)


def _label(name: str) -> str:
    return rf"\*\*{name}:?\*\*:?"


_STEP_PATTERNS = {
    context: re.compile(_label(context.capitalize()) + r"[ \t]+(?P<text>\S[^\n]*)", re.IGNORECASE)
    for context in ("GIVEN", "WHEN", "THEN")
}

_CONTEXT_LABELS = {
    context: re.compile(_label(context.capitalize()), re.IGNORECASE)
    for context in ("GIVEN", "WHEN", "THEN")
}

_AND_LINE = re.compile(_label("And") + r"[ \t]*(?P<text>[^\n]*)", re.IGNORECASE)


# ── Extraction helpers ──────────────────────────────────────────────────

def extract_metadata(markdown: str) -> Metadata:
    """First ``**Label**: value`` line wins for each metadata key."""
    values: dict[str, str] = {}
    for key, pattern in _METADATA_PATTERNS.items():
        match = pattern.search(markdown)
        if match:
            values[key] = match.group("value").strip()
    return Metadata(**values)


def extract_priority(content: str) -> str:
    match = _PRIORITY.search(content)
    return match.group("value") if match else "Medium"


def extract_steps(content: str, context: str) -> tuple[str, ...]:
    """Every ``**Given**`` (or When / Then) line of *content*, in order."""
    pattern = _STEP_PATTERNS[context]
    return tuple(m.group("text").strip() for m in pattern.finditer(content))


class StepContextTracker:
    """Left-to-right state machine attributing **And** lines to a step group.

    States are GIVEN, WHEN and THEN.  The state changes only when a line
    carrying a Given / When / Then label is read; an **And** line emits a
    step in whatever state is current.  The machine starts in GIVEN.
    """

    def __init__(self) -> None:
        self.state = "GIVEN"
        self.steps: list[AndStep] = []

    def feed(self, line: str) -> None:
        for context, pattern in _CONTEXT_LABELS.items():
            if pattern.search(line):
                self.state = context
                return
        match = _AND_LINE.search(line)
        if match:
            self.steps.append(AndStep(self.state, match.group("text").strip()))


def extract_and_steps(content: str) -> tuple[AndStep, ...]:
    tracker = StepContextTracker()
    for line in content.split("\n"):
        tracker.feed(line)
    return tuple(tracker.steps)


def _resolve_id(ident: str | None, ordinal: int) -> int:
    """Leading digits of the heading token (``TC`` prefix allowed), else *ordinal*."""
    if ident:
        token = re.sub(r"^TC-?", "", ident, flags=re.IGNORECASE)
        digits = re.match(r"\d+", token)
        if digits and int(digits.group()) > 0:
            return int(digits.group())
    return ordinal


def _clean_title(raw: str) -> str:
    return raw.replace("*", "").strip()


# ── Public API ──────────────────────────────────────────────────────────

class PlanParser:
    """Splits a test plan into scenario blocks and extracts their steps."""

    def parse(self, markdown: str) -> ParsedDocument:
        markdown = markdown.replace("\r\n", "\n")
        metadata = extract_metadata(markdown)
        headings = list(_SCENARIO_HEADING.finditer(markdown))

        scenarios: list[Scenario] = []
        for idx, heading in enumerate(headings):
            limit = headings[idx + 1].start() if idx + 1 < len(headings) else len(markdown)
            level = len(heading.group("level"))
            end = _BLOCK_END[level].search(markdown, heading.end(), limit)
            content = markdown[heading.end():end.start() if end else limit]

            scenario = Scenario(
                id=_resolve_id(heading.group("ident"), len(scenarios) + 1),
                title=_clean_title(heading.group("title")),
                priority=extract_priority(content),
                given=extract_steps(content, "GIVEN"),
                when=extract_steps(content, "WHEN"),
                then=extract_steps(content, "THEN"),
                and_steps=extract_and_steps(content),
            )
            logger.debug(
                "Scenario %s '%s': %d given, %d when, %d then, %d and",
                scenario.id,
                scenario.title,
                len(scenario.given),
                len(scenario.when),
                len(scenario.then),
                len(scenario.and_steps),
            )
            scenarios.append(scenario)

        logger.info("Parsed %d scenarios from test plan", len(scenarios))
        return ParsedDocument(metadata=metadata, scenarios=tuple(scenarios))


def parse_test_plan(markdown: str) -> ParsedDocument:
    """Parse *markdown* into metadata plus an ordered list of scenarios."""
    return PlanParser().parse(markdown)
