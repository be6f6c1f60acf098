"""Tests for Settings.validate."""

from __future__ import annotations

import pytest

from config import Settings
from models import MAX_OBJECT_SUFFIX_LENGTH


def test_defaults_are_valid() -> None:
    Settings.validate()


@pytest.mark.parametrize(
    "attr, value",
    [
        ("ATDD_CODEUNIT_ID", 0),
        ("ATDD_CODEUNIT_ID", -5),
        ("ATDD_LIBRARY_CODEUNIT", ""),
        ("ATDD_OBJECT_SUFFIX", ""),
        ("ATDD_OBJECT_SUFFIX", "X" * (MAX_OBJECT_SUFFIX_LENGTH + 1)),
    ],
)
def test_invalid_values_exit(monkeypatch: pytest.MonkeyPatch, attr: str, value) -> None:
    monkeypatch.setattr(Settings, attr, value)
    with pytest.raises(SystemExit) as exc_info:
        Settings.validate()
    assert attr in str(exc_info.value.code)


def test_longest_suffix_is_accepted(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(Settings, "ATDD_OBJECT_SUFFIX", "X" * MAX_OBJECT_SUFFIX_LENGTH)
    Settings.validate()
