#!/usr/bin/env python3
"""
run.py – CLI entry-point for atdd-kit.

Usage:
    python run.py parse plan.md
    python run.py generate plan.md -o PurchReqTests182FDW.Codeunit.al --validate
    python run.py validate MyTests.Codeunit.al
    python run.py rules
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from atdd_validator import summarize, validate_all
from codeunit_generator import generate_test_codeunit
from config import Settings
from models import GenerationOptions, ParsedDocument, Summary
from plan_parser import parse_test_plan
from rules import ATDD_RULES

console = Console()
err_console = Console(stderr=True)

logger = logging.getLogger("atdd-kit")

# ── Logging ─────────────────────────────────────────────────────────────

def _configure_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, rich_tracebacks=True, markup=True)],
    )


# ── Pretty output helpers ──────────────────────────────────────────────

def _show_plan(doc: ParsedDocument, out: Console) -> None:
    meta = doc.metadata
    out.print(
        Panel(
            f"[dim]Test Plan:[/] {meta.test_plan_id or '—'}  |  "
            f"[dim]Project:[/] {meta.project or '—'}  |  "
            f"[dim]Feature:[/] {meta.feature or '—'}",
            title=f"Work Item: {meta.work_item or '—'}",
            border_style="blue",
        )
    )

    table = Table(title="Scenarios", show_lines=True)
    table.add_column("#", style="dim", width=4)
    table.add_column("Title", style="bold")
    table.add_column("Priority", width=8)
    table.add_column("Given", width=5, justify="center")
    table.add_column("When", width=5, justify="center")
    table.add_column("Then", width=5, justify="center")
    table.add_column("And", width=5, justify="center")

    for sc in doc.scenarios:
        table.add_row(
            str(sc.id),
            sc.title,
            sc.priority,
            str(len(sc.given)),
            str(len(sc.when)),
            str(len(sc.then)),
            str(len(sc.and_steps)),
        )
    out.print(table)


def _show_issues(summary: Summary, out: Console) -> None:
    if summary.issues:
        table = Table(title="Issues", show_lines=False)
        table.add_column("Line", style="dim", width=6, justify="right")
        table.add_column("Severity", width=8)
        table.add_column("Rule", style="bold")
        table.add_column("Message")
        for issue in sorted(summary.issues, key=lambda i: i.line):
            colour = "red" if issue.severity == "error" else "yellow"
            table.add_row(
                str(issue.line),
                f"[{colour}]{issue.severity}[/]",
                issue.rule,
                issue.message,
            )
        out.print(table)

    verdict = "[green bold]PASSED[/]" if summary.passed else "[red bold]FAILED[/]"
    out.print(
        Panel(
            f"{verdict}\n\n"
            f"[red bold]Errors:[/]    {summary.errors}\n"
            f"[yellow bold]Warnings:[/]  {summary.warnings}\n"
            f"[dim]Total:[/]     {summary.total_issues}",
            title="Validation Summary",
            border_style="green" if summary.passed else "red",
        )
    )


def _show_rules(out: Console) -> None:
    table = Table(title="ATDD Rules", show_lines=True)
    table.add_column("Rule", style="bold")
    table.add_column("Severity", width=8)
    table.add_column("Description")
    table.add_column("Example", style="dim")
    for rule in ATDD_RULES.values():
        table.add_row(rule.id, rule.severity, rule.description, rule.example)
    out.print(table)


# ── Commands ───────────────────────────────────────────────────────────

def _read(path: str) -> str:
    return Path(path).read_text(encoding="utf-8")


def cmd_parse(args: argparse.Namespace) -> int:
    doc = parse_test_plan(_read(args.plan))
    if args.json:
        sys.stdout.write(json.dumps(asdict(doc), indent=2) + "\n")
    else:
        _show_plan(doc, console)
    return 0


def cmd_generate(args: argparse.Namespace) -> int:
    doc = parse_test_plan(_read(args.plan))
    options = GenerationOptions(
        codeunit_id=args.codeunit_id if args.codeunit_id is not None else Settings.ATDD_CODEUNIT_ID,
        codeunit_name=args.codeunit_name,
        library_codeunit=args.library or Settings.ATDD_LIBRARY_CODEUNIT,
        object_suffix=Settings.ATDD_OBJECT_SUFFIX,
    )
    code = generate_test_codeunit(doc, options)

    if args.output:
        Path(args.output).write_text(code, encoding="utf-8")
        _show_plan(doc, err_console)
        err_console.print(f"  Wrote [cyan]{args.output}[/] ({len(doc.scenarios)} tests).")
    else:
        sys.stdout.write(code)

    if args.validate:
        summary = summarize(validate_all(code))
        _show_issues(summary, err_console)
        return 0 if summary.passed else 1
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    summary = summarize(validate_all(_read(args.file)))
    if args.json:
        sys.stdout.write(json.dumps(summary.as_dict(), indent=2) + "\n")
    else:
        _show_issues(summary, console)
    return 0 if summary.passed else 1


def cmd_rules(args: argparse.Namespace) -> int:
    _show_rules(console)
    return 0


# ── CLI ─────────────────────────────────────────────────────────────────

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="atdd-kit",
        description="Generate and validate ATDD-style AL test codeunits.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Enable debug-level logging.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_parse = sub.add_parser("parse", help="Show the scenarios found in a test plan.")
    p_parse.add_argument("plan", help="Markdown test plan.")
    p_parse.add_argument("--json", action="store_true", help="Dump the parsed plan as JSON.")
    p_parse.set_defaults(func=cmd_parse)

    p_gen = sub.add_parser("generate", help="Generate an AL test codeunit from a test plan.")
    p_gen.add_argument("plan", help="Markdown test plan.")
    p_gen.add_argument("-o", "--output", help="Write the codeunit here instead of stdout.")
    p_gen.add_argument("--codeunit-id", type=int, default=None, help="AL object id.")
    p_gen.add_argument("--codeunit-name", default=None, help="Override the derived name.")
    p_gen.add_argument("--library", default=None, help="Library codeunit to declare.")
    p_gen.add_argument(
        "--validate",
        action="store_true",
        default=False,
        help="Validate the generated code and fail on errors.",
    )
    p_gen.set_defaults(func=cmd_generate)

    p_val = sub.add_parser("validate", help="Check an AL file against the ATDD rules.")
    p_val.add_argument("file", help="AL source file.")
    p_val.add_argument("--json", action="store_true", help="Print the summary as JSON.")
    p_val.set_defaults(func=cmd_validate)

    p_rules = sub.add_parser("rules", help="List the ATDD rules.")
    p_rules.set_defaults(func=cmd_rules)

    return parser


def main(argv: list[str] | None = None) -> None:
    args = _build_parser().parse_args(argv)

    _configure_logging(args.verbose)
    Settings.validate()

    try:
        status = args.func(args)
    except KeyboardInterrupt:
        err_console.print("\n[red]Aborted by user.[/]")
        sys.exit(130)
    except Exception as exc:
        err_console.print(f"\n[red bold]Error:[/] {exc}")
        logger.debug("Traceback:", exc_info=True)
        sys.exit(1)

    if status:
        sys.exit(status)


if __name__ == "__main__":
    main()
