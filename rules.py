"""
rules.py – Catalogue of the ATDD conventions enforced on AL test codeunits.

Every rule id the validator can report lives here together with a short
description and a "do it like this" example.  The table is built once at
import time and exposed read-only.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

ERROR = "error"
WARNING = "warning"


@dataclass(frozen=True)
class Rule:
    id: str
    description: str
    example: str
    severity: str = ERROR


_RULES = (
    Rule(
        "TEST_NAMING_PREFIX",
        "Test procedures must use T####_ prefix format",
        "procedure T0001_ValidateCustomerCreation()",
    ),
    Rule(
        "TEST_NAMING_QUOTES",
        "Test procedure names must not contain quotation marks",
        'Use PascalCase: BOMVersionTests16FDW instead of "ATDD 330789 BOM Version Tests"',
    ),
    Rule(
        "TEST_NAMING_LENGTH",
        "Test procedure names should stay within 120 characters",
        "Shorten T0001_VerifyThat... to the essence of the scenario",
        WARNING,
    ),
    Rule(
        "MISSING_SCENARIO",
        "Every test must have // [SCENARIO X] comment",
        "// [SCENARIO 1] Customer creation with valid data",
    ),
    Rule(
        "MISSING_GIVEN",
        "Every test must have at least one // [GIVEN] comment",
        "// [GIVEN] Valid customer data is prepared",
    ),
    Rule(
        "MISSING_WHEN",
        "Every test must have at least one // [WHEN] comment with TestPage actions",
        "// [WHEN] User creates customer through the page",
    ),
    Rule(
        "MISSING_THEN",
        "Every test must have at least one // [THEN] comment",
        "// [THEN] Customer is successfully created",
    ),
    Rule(
        "FORBIDDEN_COMMENT",
        "Only [SCENARIO], [GIVEN], [WHEN], [THEN] comments allowed in tests",
        "Remove all explanatory comments, keep only structured test comments",
    ),
    Rule(
        "FORBIDDEN_TESTPERMISSIONS_DISABLED",
        "TestPermissions = Disabled is forbidden",
        "Use SetTestPermissions() procedure with LibraryLowerPermissions instead",
    ),
    Rule(
        "FORBIDDEN_COMMIT_IN_TEST",
        "Commit() is forbidden in test procedures",
        "Only use Commit() in Initialize() for one-time setup",
    ),
    Rule(
        "OBJECT_NAME_LENGTH",
        "AL object names must not exceed 30 characters",
        "Use FormulationMgmt199FDW instead of FormulationManagementAdministration199FDW",
    ),
    Rule(
        "SCENARIO_COUNT_MISMATCH",
        "Number of test procedures must match number of scenarios",
        "10 scenarios = exactly 10 test procedures (T0001 through T0010)",
    ),
    Rule(
        "SCENARIO_NUMBERING_GAP",
        "Scenario numbers should run 1..N without gaps",
        "[SCENARIO 1], [SCENARIO 2], [SCENARIO 3] rather than 1, 3, 4",
        WARNING,
    ),
    Rule(
        "LIBRARY_NO_COMMENTS",
        "Library functions should be self-documenting without comments",
        "Use clear naming like CreateCustomerWithLocationCode() instead of comments",
        WARNING,
    ),
    Rule(
        "VARIABLE_ORDER",
        "Variables should be ordered by type (Record, Report, Codeunit, etc.)",
        "Record variables first, then Report, then Codeunit, etc.",
        WARNING,
    ),
)

ATDD_RULES: Mapping[str, Rule] = MappingProxyType({r.id: r for r in _RULES})


def severity_of(rule_id: str) -> str:
    """Severity the catalogue assigns to *rule_id*."""
    return ATDD_RULES[rule_id].severity
