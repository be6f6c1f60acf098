"""Shared test fixtures for the atdd-kit test suite."""
from __future__ import annotations

import pytest

from models import Metadata, ParsedDocument, Scenario
from plan_parser import parse_test_plan

SAMPLE_PLAN = """\
# Test Plan: Approved Supplier List

**Test Plan ID**: TP-182
**Work Item**: 182345 - Approved Supplier List Validation
**Project**: Purchasing
**Feature**: Requisition Worksheet

## Scenarios

### Scenario 1: Create requisition line for approved vendor
**Priority**: High
**Given** an approved vendor exists
**And** the vendor supplies an item
**When** the user calculates the plan
**Then** a requisition line is created

---

### Scenario 2: Block unapproved Vendor!
**Given** a vendor that is not approved
**When** the user runs the worksheet
**And** accepts the warning dialog
**Then** a warning message is shown
**And** no line is created
"""


def _five_scenario_plan() -> str:
    blocks = [
        f"### Scenario {n}: Check item number {n}\n"
        f"**Given** an item {n}\n"
        f"**When** the user opens the card\n"
        f"**Then** the item is shown\n"
        for n in range(1, 6)
    ]
    return "**Work Item**: 4711 - Item Card\n\n" + "\n".join(blocks)


@pytest.fixture
def sample_plan() -> str:
    """Two-scenario plan with metadata, And steps and a handler keyword."""
    return SAMPLE_PLAN


@pytest.fixture
def sample_doc() -> ParsedDocument:
    return parse_test_plan(SAMPLE_PLAN)


@pytest.fixture
def five_scenario_plan() -> str:
    return _five_scenario_plan()


@pytest.fixture
def vendor_doc() -> ParsedDocument:
    """Single clean vendor scenario built without the parser."""
    return ParsedDocument(
        metadata=Metadata(work_item="12345 - Vendor Setup"),
        scenarios=(
            Scenario(
                id=7,
                title="Create New Vendor!",
                given=("a vendor number",),
                when=("the user creates the vendor",),
                then=("the vendor exists",),
            ),
        ),
    )
