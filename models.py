"""
models.py – Plain data-classes shared across every module.
"""

from __future__ import annotations
from dataclasses import dataclass, field

STEP_CONTEXTS = ("GIVEN", "WHEN", "THEN")

DEFAULT_CODEUNIT_ID = 50100
DEFAULT_LIBRARY_CODEUNIT = "LibraryApprovedSupplier182FDW"
DEFAULT_OBJECT_SUFFIX = "182FDW"

MAX_OBJECT_NAME_LENGTH = 30
MAX_OBJECT_SUFFIX_LENGTH = MAX_OBJECT_NAME_LENGTH - len("Tests")


@dataclass(frozen=True)
class Metadata:
    """Header fields of a markdown test plan."""

    test_plan_id: str = ""
    work_item: str = ""
    project: str = ""
    feature: str = ""


@dataclass(frozen=True)
class AndStep:
    """An **And** line, attributed to the step group it extends."""

    context: str          # GIVEN | WHEN | THEN
    text: str


@dataclass(frozen=True)
class Scenario:
    """One GIVEN / WHEN / THEN behavioural case from the test plan."""

    id: int
    title: str
    priority: str = "Medium"
    given: tuple[str, ...] = ()
    when: tuple[str, ...] = ()
    then: tuple[str, ...] = ()
    and_steps: tuple[AndStep, ...] = ()

    def and_for(self, context: str) -> list[str]:
        return [step.text for step in self.and_steps if step.context == context]

    @property
    def step_text(self) -> str:
        """Given + When + Then text, used for keyword sniffing."""
        return " ".join((*self.given, *self.when, *self.then))

    @property
    def full_text(self) -> str:
        """Every step including the And extensions."""
        return " ".join((self.step_text, *(s.text for s in self.and_steps)))


@dataclass(frozen=True)
class ParsedDocument:
    """Result of parsing one test plan."""

    metadata: Metadata = field(default_factory=Metadata)
    scenarios: tuple[Scenario, ...] = ()


@dataclass(frozen=True)
class GenerationOptions:
    """Knobs for the generated test codeunit."""

    codeunit_id: int = DEFAULT_CODEUNIT_ID
    codeunit_name: str | None = None          # None → derived from the work item
    library_codeunit: str = DEFAULT_LIBRARY_CODEUNIT
    object_suffix: str = DEFAULT_OBJECT_SUFFIX


@dataclass(frozen=True)
class Issue:
    """A single rule violation reported by the validator."""

    rule: str
    severity: str          # error | warning
    message: str
    line: int = 1


@dataclass(frozen=True)
class Summary:
    """Roll-up of every issue from a validation run."""

    issues: tuple[Issue, ...] = ()

    @property
    def total_issues(self) -> int:
        return len(self.issues)

    @property
    def errors(self) -> int:
        return sum(1 for i in self.issues if i.severity == "error")

    @property
    def warnings(self) -> int:
        return sum(1 for i in self.issues if i.severity == "warning")

    @property
    def passed(self) -> bool:
        return self.errors == 0

    def as_dict(self) -> dict:
        return {
            "totalIssues": self.total_issues,
            "errors": self.errors,
            "warnings": self.warnings,
            "passed": self.passed,
            "issues": [
                {"rule": i.rule, "severity": i.severity, "message": i.message, "line": i.line}
                for i in self.issues
            ],
        }
