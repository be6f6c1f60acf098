"""Tests for the command-line front-end."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

import run
from tests.test_atdd_validator import BAD_CODEUNIT


@pytest.fixture
def plan_file(tmp_path: Path, sample_plan: str) -> Path:
    path = tmp_path / "plan.md"
    path.write_text(sample_plan, encoding="utf-8")
    return path


class TestParseCommand:
    def test_json_output(self, plan_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
        run.main(["parse", str(plan_file), "--json"])
        data = json.loads(capsys.readouterr().out)
        assert data["metadata"]["test_plan_id"] == "TP-182"
        assert [s["id"] for s in data["scenarios"]] == [1, 2]
        assert data["scenarios"][1]["and_steps"][0] == {
            "context": "WHEN",
            "text": "accepts the warning dialog",
        }

    def test_table_output(self, plan_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
        run.main(["parse", str(plan_file)])
        assert "Scenarios" in capsys.readouterr().out


class TestGenerateCommand:
    def test_stdout(self, plan_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
        run.main(["generate", str(plan_file), "--codeunit-id", "50200"])
        out = capsys.readouterr().out
        assert out.startswith("codeunit 50200 ApprovedSupplierLisTests182FDW\n")
        assert "procedure T0002_BlockUnapprovedVendor()" in out

    def test_output_file_and_validate(self, plan_file: Path, tmp_path: Path) -> None:
        target = tmp_path / "out.al"
        run.main([
            "generate", str(plan_file), "-o", str(target),
            "--codeunit-name", "AslTestsFDW", "--library", "LibraryAsl182FDW",
            "--validate",
        ])
        code = target.read_text(encoding="utf-8")
        assert code.startswith("codeunit 50100 AslTestsFDW\n")
        assert "LibraryAsl182FDW: Codeunit LibraryAsl182FDW;" in code

    def test_missing_plan(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            run.main(["generate", str(tmp_path / "missing.md")])
        assert exc_info.value.code == 1
        assert "Error:" in capsys.readouterr().err


class TestValidateCommand:
    def test_failing_file(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        path = tmp_path / "bad.al"
        path.write_text(BAD_CODEUNIT, encoding="utf-8")
        with pytest.raises(SystemExit) as exc_info:
            run.main(["validate", str(path), "--json"])
        assert exc_info.value.code == 1
        data = json.loads(capsys.readouterr().out)
        assert data["passed"] is False
        assert data["errors"] == 5

    def test_passing_file(self, tmp_path: Path, sample_doc, capsys: pytest.CaptureFixture[str]) -> None:
        from codeunit_generator import generate_test_codeunit

        path = tmp_path / "good.al"
        path.write_text(generate_test_codeunit(sample_doc), encoding="utf-8")
        run.main(["validate", str(path)])
        assert "PASSED" in capsys.readouterr().out


def test_rules_command(capsys: pytest.CaptureFixture[str]) -> None:
    run.main(["rules"])
    assert "ATDD Rules" in capsys.readouterr().out


@pytest.mark.parametrize("verbose, level", [(False, logging.INFO), (True, logging.DEBUG)])
def test_log_level(monkeypatch: pytest.MonkeyPatch, verbose: bool, level: int) -> None:
    captured: dict = {}
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: captured.update(kwargs))
    run._configure_logging(verbose)
    assert captured["level"] == level


def test_command_is_required() -> None:
    with pytest.raises(SystemExit) as exc_info:
        run.main([])
    assert exc_info.value.code == 2
