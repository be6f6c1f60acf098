"""
atdd_validator.py – Check AL test code against the ATDD conventions.

Each ``check_*`` function takes raw AL source and returns the list of
Issues it found, in source order.  ``validate_all`` runs every check and
``summarize`` rolls the result up into pass / fail.

Comments and string literals are treated as opaque while looking for code
structure, so a ``Commit()`` inside a comment or an ``end`` inside a
string never confuses the scanner.  Procedure bodies are delimited by
balanced begin / case … end keywords.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from itertools import chain
from typing import Callable, Mapping

from models import MAX_OBJECT_NAME_LENGTH, Issue, Summary
from rules import severity_of

logger = logging.getLogger("atdd-kit")

MAX_TEST_NAME_LENGTH = 120

TAG_OPENERS = ("[SCENARIO", "[GIVEN]", "[WHEN]", "[THEN]")
REQUIRED_TAGS = (
    ("[SCENARIO", "MISSING_SCENARIO", "// [SCENARIO X]"),
    ("[GIVEN]", "MISSING_GIVEN", "// [GIVEN]"),
    ("[WHEN]", "MISSING_WHEN", "// [WHEN]"),
    ("[THEN]", "MISSING_THEN", "// [THEN]"),
)

TYPE_ORDER = (
    "Record", "Report", "Codeunit", "XmlPort", "Page", "Query",
    "Notification", "BigText", "DateFormula", "RecordId", "RecordRef",
    "FieldRef", "FilterPageBuilder",
)
_TYPE_RANK = {name.lower(): idx for idx, name in enumerate(TYPE_ORDER)}

# ── Patterns ────────────────────────────────────────────────────────────

_TOKEN = re.compile(
    r"(?P<comment>//[^\n]*|/\*.*?\*/)"
    r"|(?P<string>'(?:[^'\n]|'')*')"
    r"|\"[^\"\n]*\""
    r"|\b(?P<kw>begin|case|end)\b",
    re.IGNORECASE | re.DOTALL,
)

_PROCEDURE = re.compile(
    r"(?P<attrs>(?:\[[^\[\]\n]*\]\s*)*)"
    r"\b(?P<kw>(?:(?:local|internal|protected)[ \t]+)?procedure)[ \t]+"
    r"(?P<name>\"[^\"\n]*\"|'[^'\n]*'|\w+)",
    re.IGNORECASE,
)
_TEST_ATTRIBUTE = re.compile(r"\[\s*Test\s*\]", re.IGNORECASE)

_TEST_NAME = re.compile(r"^T\d{4}_")
_SCENARIO_TAG = re.compile(r"^//\s*\[SCENARIO\s+(?P<num>\d+)\]")
_PERMISSIONS_DISABLED = re.compile(r"\bTestPermissions\s*=\s*Disabled\b", re.IGNORECASE)
_COMMIT_CALL = re.compile(r"\bCommit\s*\(\s*\)", re.IGNORECASE)
_LIBRARY_IDENTIFIER = re.compile(r"\bLibrary[A-Za-z0-9]+", re.IGNORECASE)

_OBJECT_DECLARATION = re.compile(
    r"^[ \t]*(?P<kind>codeunit|table|tableextension|page|pageextension|report|"
    r"reportextension|xmlport|query|enum|enumextension|permissionset)"
    r"[ \t]+\d+[ \t]+(?P<name>\"[^\"\n]*\"|\w+)",
    re.IGNORECASE | re.MULTILINE,
)

_VAR_KEYWORD = re.compile(r"^[ \t]*(?:protected[ \t]+)?var\b", re.IGNORECASE | re.MULTILINE)
_DECLARATION = re.compile(
    r"^[ \t]*(?:\w+|\"[^\"\n]*\")(?:[ \t]*,[ \t]*(?:\w+|\"[^\"\n]*\"))*"
    r"[ \t]*:[ \t]*(?P<type>\w+)"
)
_VAR_BLOCK_END = re.compile(
    r"^[ \t]*(?:\[|\}|(?:begin|procedure|local|internal|protected|trigger|var)\b)",
    re.IGNORECASE,
)


# ── Source scanning ─────────────────────────────────────────────────────

@dataclass
class _Procedure:
    name: str
    is_test: bool
    start: int            # first attribute, or the procedure keyword
    header: int           # the procedure keyword
    end: int


class _Source:
    """AL source with its comments, keywords and procedures located once."""

    def __init__(self, code: str) -> None:
        code = code.replace("\r\n", "\n")
        self.code = code
        self.comments: list[tuple[int, str]] = []
        self._keywords: list[tuple[int, int, str]] = []
        masked = list(code)

        for tok in _TOKEN.finditer(code):
            if tok.group("comment"):
                self.comments.append((tok.start(), tok.group()))
                self._blank(masked, tok.start(), tok.end())
            elif tok.group("string"):
                self._blank(masked, tok.start() + 1, tok.end() - 1)
            elif tok.group("kw"):
                self._keywords.append((tok.start(), tok.end(), tok.group("kw").lower()))

        self.masked = "".join(masked)
        self.procedures = self._find_procedures()

    @staticmethod
    def _blank(chars: list[str], start: int, end: int) -> None:
        for i in range(start, end):
            if chars[i] != "\n":
                chars[i] = " "

    def line_of(self, index: int) -> int:
        return self.code.count("\n", 0, index) + 1

    def comments_between(self, start: int, end: int) -> list[tuple[int, str]]:
        return [(pos, text) for pos, text in self.comments if start <= pos < end]

    def _find_procedures(self) -> list[_Procedure]:
        headers = list(_PROCEDURE.finditer(self.masked))
        procedures: list[_Procedure] = []
        for idx, m in enumerate(headers):
            limit = headers[idx + 1].start() if idx + 1 < len(headers) else len(self.code)
            procedures.append(
                _Procedure(
                    name=self.code[m.start("name"):m.end("name")],
                    is_test=bool(_TEST_ATTRIBUTE.search(m.group("attrs"))),
                    start=m.start(),
                    header=m.start("kw"),
                    end=self._body_end(m.end(), limit),
                )
            )
        return procedures

    def _body_end(self, after: int, limit: int) -> int:
        """Offset just past the ``end;`` closing the body that starts after *after*."""
        depth = 0
        for start, end, kw in self._keywords:
            if start < after:
                continue
            if depth == 0 and (kw != "begin" or start >= limit):
                break
            depth += 1 if kw in ("begin", "case") else -1
            if depth == 0:
                semicolon = re.compile(r"[ \t]*;").match(self.code, end)
                return semicolon.end() if semicolon else end
        return limit

    @property
    def tests(self) -> list[_Procedure]:
        return [p for p in self.procedures if p.is_test]


def _comment_content(text: str) -> str:
    if text.startswith("/*"):
        return text[2:-2].strip()
    return text[2:].strip()


def _issue(rule: str, message: str, line: int) -> Issue:
    return Issue(rule=rule, severity=severity_of(rule), message=message, line=line)


# ── Checks ──────────────────────────────────────────────────────────────

def check_test_naming(code: str) -> list[Issue]:
    """Test procedures: T####_ prefix, no quotes, at most 120 characters."""
    src = _Source(code)
    issues: list[Issue] = []
    for proc in src.tests:
        line = src.line_of(proc.start)
        if not _TEST_NAME.match(proc.name):
            issues.append(_issue(
                "TEST_NAMING_PREFIX",
                f'Test procedure "{proc.name}" must start with T#### prefix (e.g., T0001_)',
                line,
            ))
        if '"' in proc.name or "'" in proc.name:
            issues.append(_issue(
                "TEST_NAMING_QUOTES",
                f'Test procedure "{proc.name}" must not contain quotation marks',
                line,
            ))
        if len(proc.name) > MAX_TEST_NAME_LENGTH:
            issues.append(_issue(
                "TEST_NAMING_LENGTH",
                f'Test procedure "{proc.name}" exceeds {MAX_TEST_NAME_LENGTH} characters',
                line,
            ))
    return issues


def check_comment_structure(code: str) -> list[Issue]:
    """Only [SCENARIO] / [GIVEN] / [WHEN] / [THEN] comments inside tests, all four present."""
    src = _Source(code)
    issues: list[Issue] = []
    for proc in src.tests:
        line = src.line_of(proc.start)
        comments = [
            (pos, _comment_content(text))
            for pos, text in src.comments_between(proc.start, proc.end)
        ]

        for opener, rule, example in REQUIRED_TAGS:
            if not any(content.startswith(opener) for _, content in comments):
                issues.append(_issue(rule, f'Test "{proc.name}" missing {example} comment', line))

        for pos, content in comments:
            if content and not content.startswith(TAG_OPENERS):
                issues.append(_issue(
                    "FORBIDDEN_COMMENT",
                    f'Forbidden comment in test "{proc.name}": "{content[:50]}..."',
                    src.line_of(pos),
                ))
    return issues


def check_test_permissions(code: str) -> list[Issue]:
    src = _Source(code)
    return [
        _issue(
            "FORBIDDEN_TESTPERMISSIONS_DISABLED",
            "TestPermissions = Disabled is forbidden. Use SetTestPermissions() procedure instead.",
            src.line_of(m.start()),
        )
        for m in _PERMISSIONS_DISABLED.finditer(src.masked)
    ]


def check_commit_usage(code: str) -> list[Issue]:
    """Commit() may only appear outside test procedures (e.g. in Initialize)."""
    src = _Source(code)
    issues: list[Issue] = []
    for proc in src.tests:
        for m in _COMMIT_CALL.finditer(src.masked, proc.start, proc.end):
            issues.append(_issue(
                "FORBIDDEN_COMMIT_IN_TEST",
                f'Commit() is forbidden in test procedure "{proc.name}". '
                "Only allowed in Initialize().",
                src.line_of(m.start()),
            ))
    return issues


def check_object_name_length(code: str) -> list[Issue]:
    src = _Source(code)
    issues: list[Issue] = []
    for m in _OBJECT_DECLARATION.finditer(src.masked):
        name = m.group("name").strip('"').strip()
        if len(name) > MAX_OBJECT_NAME_LENGTH:
            issues.append(_issue(
                "OBJECT_NAME_LENGTH",
                f'Object name "{name}" exceeds {MAX_OBJECT_NAME_LENGTH} characters '
                f"({len(name)} chars)",
                src.line_of(m.start("kind")),
            ))
    return issues


def check_scenario_count(code: str) -> list[Issue]:
    """One [SCENARIO n] per test, numbered 1..N."""
    src = _Source(code)
    issues: list[Issue] = []

    tags: list[tuple[int, int]] = []
    for pos, text in src.comments:
        m = _SCENARIO_TAG.match(text)
        if m:
            tags.append((int(m.group("num")), pos))

    test_count = len(src.tests)
    if test_count != len(tags):
        issues.append(_issue(
            "SCENARIO_COUNT_MISMATCH",
            f"Scenario count mismatch: {test_count} test procedures but {len(tags)} scenarios",
            1,
        ))

    for expected, (found, pos) in enumerate(sorted(tags), start=1):
        if found != expected:
            issues.append(_issue(
                "SCENARIO_NUMBERING_GAP",
                f"Scenario numbering gap: expected {expected} but found {found}",
                src.line_of(pos),
            ))
            break
    return issues


def check_library_functions(code: str) -> list[Issue]:
    """Helper procedures of library codeunits should carry no comments."""
    src = _Source(code)
    if not _LIBRARY_IDENTIFIER.search(src.masked):
        return []

    issues: list[Issue] = []
    for proc in src.procedures:
        if proc.is_test:
            continue
        if src.comments_between(proc.header, proc.end):
            issues.append(_issue(
                "LIBRARY_NO_COMMENTS",
                f'Library function "{proc.name}" should not contain comments',
                src.line_of(proc.header),
            ))
    return issues


def check_variable_order(code: str) -> list[Issue]:
    """Inside each var block: Record, Report, Codeunit, XmlPort, Page, … in that order."""
    src = _Source(code)
    issues: list[Issue] = []

    for block in _VAR_KEYWORD.finditer(src.masked):
        pos = block.end()
        highest: tuple[int, str] | None = None

        while pos < len(src.masked):
            eol = src.masked.find("\n", pos)
            eol = len(src.masked) if eol == -1 else eol
            line = src.masked[pos:eol]
            line_start, pos = pos, eol + 1

            if not line.strip():
                continue
            if _VAR_BLOCK_END.match(line):
                break
            decl = _DECLARATION.match(line)
            if not decl:
                break

            type_name = decl.group("type")
            rank = _TYPE_RANK.get(type_name.lower())
            if rank is None:
                continue
            if highest and rank < highest[0]:
                issues.append(_issue(
                    "VARIABLE_ORDER",
                    f'Variable of type "{type_name}" should be declared before '
                    f'"{highest[1]}" variables',
                    src.line_of(line_start),
                ))
            elif not highest or rank > highest[0]:
                highest = (rank, type_name)
    return issues


# ── Public API ──────────────────────────────────────────────────────────

CHECKS: Mapping[str, Callable[[str], list[Issue]]] = {
    "naming": check_test_naming,
    "comments": check_comment_structure,
    "permissions": check_test_permissions,
    "commit": check_commit_usage,
    "object_length": check_object_name_length,
    "scenario_count": check_scenario_count,
    "library": check_library_functions,
    "variable_order": check_variable_order,
}


def validate_all(code: str) -> dict[str, list[Issue]]:
    """Run every check; keys follow the order of ``CHECKS``."""
    result = {name: check(code) for name, check in CHECKS.items()}
    logger.info(
        "Validated %d lines: %d issues",
        code.count("\n") + 1,
        sum(len(v) for v in result.values()),
    )
    return result


def summarize(result: Mapping[str, list[Issue]]) -> Summary:
    return Summary(issues=tuple(chain.from_iterable(result.values())))
