"""
config.py – Centralised configuration loaded from environment variables.
"""

import os
import sys
from dotenv import load_dotenv

from models import (
    DEFAULT_CODEUNIT_ID,
    DEFAULT_LIBRARY_CODEUNIT,
    DEFAULT_OBJECT_SUFFIX,
    MAX_OBJECT_SUFFIX_LENGTH,
)

load_dotenv()

MAX_CODEUNIT_ID = 999_999_999


class Settings:
    """Validated, read-only application settings."""

    # ── Code generation ─────────────────────────────────────
    ATDD_CODEUNIT_ID: int = int(os.getenv("ATDD_CODEUNIT_ID", str(DEFAULT_CODEUNIT_ID)))
    ATDD_LIBRARY_CODEUNIT: str = os.getenv(
        "ATDD_LIBRARY_CODEUNIT", DEFAULT_LIBRARY_CODEUNIT
    ).strip()
    ATDD_OBJECT_SUFFIX: str = os.getenv("ATDD_OBJECT_SUFFIX", DEFAULT_OBJECT_SUFFIX).strip()

    @classmethod
    def validate(cls) -> None:
        """Halt early if a value cannot produce a valid codeunit."""
        problems: list[str] = []
        if not 0 < cls.ATDD_CODEUNIT_ID <= MAX_CODEUNIT_ID:
            problems.append(f"ATDD_CODEUNIT_ID={cls.ATDD_CODEUNIT_ID} is out of range")
        if not cls.ATDD_LIBRARY_CODEUNIT:
            problems.append("ATDD_LIBRARY_CODEUNIT is empty")
        if not cls.ATDD_OBJECT_SUFFIX:
            problems.append("ATDD_OBJECT_SUFFIX is empty")
        elif len(cls.ATDD_OBJECT_SUFFIX) > MAX_OBJECT_SUFFIX_LENGTH:
            problems.append(
                f"ATDD_OBJECT_SUFFIX={cls.ATDD_OBJECT_SUFFIX!r} is longer than "
                f"{MAX_OBJECT_SUFFIX_LENGTH} characters"
            )

        if problems:
            sys.exit(
                f"[ERROR] Invalid configuration: {'; '.join(problems)}\n"
                "  → Check your .env file or environment variables."
            )
