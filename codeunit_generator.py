"""
codeunit_generator.py – Render a parsed test plan as an AL test codeunit.

The output follows the ATDD conventions checked by atdd_validator.py, so a
freshly generated codeunit validates without errors as long as every
scenario has at least one Given step.

Layout of the generated codeunit:
  • header + OnRun trigger with the [FEATURE] line
  • global variables (library codeunits + IsInitialized)
  • Initialize() and SetTestPermissions()  – no comments allowed
  • one [Test] procedure per scenario
  • MessageHandler / ConfirmHandler when any scenario talks about dialogs
"""

from __future__ import annotations

import logging
import re

from models import (
    DEFAULT_OBJECT_SUFFIX,
    MAX_OBJECT_SUFFIX_LENGTH,
    GenerationOptions,
    Metadata,
    ParsedDocument,
    Scenario,
)

logger = logging.getLogger("atdd-kit")

MAX_TITLE_LENGTH = 80

HANDLER_TRIGGER = re.compile(r"warning|confirmation|dialog|message|prompt", re.IGNORECASE)
HANDLER_NAMES = ("MessageHandler", "ConfirmHandler")

# Applied in table order; every matching keyword contributes its declarations.
VARIABLE_TABLE: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("requisition", (
        'RequisitionLine: Record "Requisition Line";',
        'RequisitionWkshName: Record "Requisition Wksh. Name";',
    )),
    ("item", ("Item: Record Item;",)),
    ("vendor", ("Vendor: Record Vendor;",)),
    ("worksheet", ('RequisitionWorksheet: TestPage "Requisition Worksheet";',)),
)
FALLBACK_VARIABLES = ('TempBlob: Codeunit "Temp Blob";',)

WHEN_PLACEHOLDER = "// [WHEN] TODO: Implement action using TestPage"
THEN_PLACEHOLDER = "// [THEN] TODO: Implement assertions using TestPage"

APPLIED_RULES = (
    ("TEST_NAMING_PREFIX", "T####_ format used for all test procedures"),
    ("SCENARIO_COMMENT", "// [SCENARIO X] added to each test"),
    ("GIVEN_WHEN_THEN", "All tests have [GIVEN], [WHEN], [THEN] comments"),
    ("AND_CONTEXT_INHERITANCE", "**And** converted to inherit previous context"),
    ("NO_EXTRA_COMMENTS", "Only structured comments in test procedures"),
    ("NO_COMMENTS_IN_INITIALIZE", "Initialize() has no comments"),
    ("NO_COMMENTS_IN_SETTESTPERMISSIONS", "SetTestPermissions() has no comments"),
    ("TESTPAGE_IN_WHEN", "TODO markers added for TestPage implementation"),
    ("OBJECT_NAME_LENGTH", "Codeunit name kept under 30 characters"),
    ("SCENARIO_COUNT_MATCH", "One procedure per test plan scenario"),
)

_INDENT = "    "
_BODY = _INDENT * 2


# ── Naming ──────────────────────────────────────────────────────────────

def _pascal_words(text: str) -> list[str]:
    return [w.capitalize() for w in re.sub(r"[^a-zA-Z0-9\s]", "", text).split()]


def work_item_number(metadata: Metadata) -> str:
    match = re.search(r"\d+", metadata.work_item)
    return match.group() if match else "000000"


def procedure_name(scenario: Scenario) -> str:
    """``T`` + zero-padded id + ``_`` + PascalCase title, e.g. T0007_CreateNewVendor."""
    name = "".join(_pascal_words(scenario.title))[:MAX_TITLE_LENGTH]
    return f"T{scenario.id:04d}_{name}"


def codeunit_name(metadata: Metadata, suffix: str = DEFAULT_OBJECT_SUFFIX) -> str:
    """Derive ``<FirstThreeWords>Tests<suffix>`` from the work item, max 30 chars.

    The title part is cut to fit; a *suffix* longer than
    ``MAX_OBJECT_SUFFIX_LENGTH`` cannot fit and is rejected by config.py.
    """
    title = re.sub(r"^\d+\s*[-:]\s*", "", metadata.work_item)
    name = "".join(_pascal_words(title)[:3])
    budget = max(MAX_OBJECT_SUFFIX_LENGTH - len(suffix), 0)
    return f"{name[:budget]}Tests{suffix}"


def needs_handlers(scenario: Scenario) -> bool:
    return bool(HANDLER_TRIGGER.search(scenario.full_text))


def local_variables(scenario: Scenario) -> list[str]:
    text = scenario.step_text.lower()
    declarations = [
        decl
        for keyword, decls in VARIABLE_TABLE
        if keyword in text
        for decl in decls
    ]
    return declarations or list(FALLBACK_VARIABLES)


# ── Sections ────────────────────────────────────────────────────────────

def _header(codeunit_id: int, name: str, metadata: Metadata) -> str:
    return (
        f"codeunit {codeunit_id} {name}\n"
        "{\n"
        f"{_INDENT}Subtype = Test;\n"
        "\n"
        f"{_INDENT}trigger OnRun()\n"
        f"{_INDENT}begin\n"
        f"{_BODY}// [FEATURE] User Story {work_item_number(metadata)}: {metadata.work_item}\n"
        f"{_INDENT}end;\n"
        "\n"
    )


def _global_variables(library_codeunit: str) -> str:
    return (
        f"{_INDENT}var\n"
        f"{_BODY}{library_codeunit}: Codeunit {library_codeunit};\n"
        f'{_BODY}LibraryAssert: Codeunit "Library Assert";\n'
        f'{_BODY}LibraryVariableStorage: Codeunit "Library - Variable Storage";\n'
        f'{_BODY}LibraryLowerPermissions: Codeunit "Library - Lower Permissions";\n'
        f"{_BODY}IsInitialized: Boolean;\n"
        "\n"
    )


def _initialize() -> str:
    return (
        f"{_INDENT}local procedure Initialize()\n"
        f"{_INDENT}begin\n"
        f"{_BODY}SetTestPermissions();\n"
        f"{_BODY}LibraryVariableStorage.Clear();\n"
        "\n"
        f"{_BODY}if IsInitialized then\n"
        f"{_BODY}{_INDENT}exit;\n"
        "\n"
        f"{_BODY}Commit();\n"
        f"{_BODY}IsInitialized := true;\n"
        f"{_INDENT}end;\n"
        "\n"
    )


def _set_test_permissions() -> str:
    return (
        f"{_INDENT}local procedure SetTestPermissions()\n"
        f"{_INDENT}begin\n"
        f"{_BODY}LibraryLowerPermissions.AddO365BusinessPremium();\n"
        f"{_INDENT}end;\n"
        "\n"
    )


def _step_comments(tag: str, steps, and_steps) -> list[str]:
    return [f"{_BODY}// [{tag}] {text}" for text in (*steps, *and_steps)]


def _test_procedure(scenario: Scenario) -> str:
    lines = [f"{_INDENT}[Test]"]
    if needs_handlers(scenario):
        lines.append(f"{_INDENT}[HandlerFunctions('{','.join(HANDLER_NAMES)}')]")
    lines.append(f"{_INDENT}procedure {procedure_name(scenario)}()")
    lines.append(f"{_INDENT}var")
    lines.extend(f"{_BODY}{decl}" for decl in local_variables(scenario))
    lines.append(f"{_INDENT}begin")
    lines.append(f"{_BODY}// [SCENARIO {scenario.id}] {scenario.title}")

    lines.extend(_step_comments("GIVEN", scenario.given, scenario.and_for("GIVEN")))
    lines.append(f"{_BODY}Initialize();")
    lines.append("")

    lines.extend(_step_comments("WHEN", scenario.when, scenario.and_for("WHEN")))
    lines.append(f"{_BODY}{WHEN_PLACEHOLDER}")
    lines.append("")

    lines.extend(_step_comments("THEN", scenario.then, scenario.and_for("THEN")))
    lines.append(f"{_BODY}{THEN_PLACEHOLDER}")
    lines.append(f"{_INDENT}end;")
    return "\n".join(lines) + "\n\n"


def _handler_procedures() -> str:
    return (
        f"{_INDENT}[MessageHandler]\n"
        f"{_INDENT}procedure MessageHandler(Message: Text[1024])\n"
        f"{_INDENT}begin\n"
        f"{_BODY}LibraryVariableStorage.Enqueue(Message);\n"
        f"{_INDENT}end;\n"
        "\n"
        f"{_INDENT}[ConfirmHandler]\n"
        f"{_INDENT}procedure ConfirmHandler(Question: Text[1024]; var Reply: Boolean)\n"
        f"{_INDENT}begin\n"
        f"{_BODY}Reply := LibraryVariableStorage.DequeueBoolean();\n"
        f"{_INDENT}end;\n"
        "\n"
    )


# ── Public API ──────────────────────────────────────────────────────────

class CodeunitGenerator:
    """Builds the AL source for one test codeunit."""

    def __init__(self, options: GenerationOptions | None = None) -> None:
        self._options = options or GenerationOptions()

    def generate(self, doc: ParsedDocument) -> str:
        opts = self._options
        name = opts.codeunit_name or codeunit_name(doc.metadata, opts.object_suffix)
        logger.info(
            "Generating codeunit %s %s (%d scenarios)",
            opts.codeunit_id,
            name,
            len(doc.scenarios),
        )

        parts = [
            _header(opts.codeunit_id, name, doc.metadata),
            _global_variables(opts.library_codeunit),
            _initialize(),
            _set_test_permissions(),
        ]
        parts.extend(_test_procedure(s) for s in doc.scenarios)

        if any(needs_handlers(s) for s in doc.scenarios):
            logger.debug("Dialog keywords found – adding handler procedures")
            parts.append(_handler_procedures())

        parts.append("}\n")
        return "".join(parts)


def generate_test_codeunit(
    doc: ParsedDocument, options: GenerationOptions | None = None
) -> str:
    """Render *doc* as AL test codeunit source."""
    return CodeunitGenerator(options).generate(doc)


def applied_rules() -> list[str]:
    """Human-readable list of the conventions the generator applies."""
    return [f"{rule_id}: {text}" for rule_id, text in APPLIED_RULES]
