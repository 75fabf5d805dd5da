"""CLI wrapper: Format code."""

from __future__ import annotations

import sys

from cli._runner import run


def main() -> None:
    run(
        [
            sys.executable,
            "-m",
            "ruff",
            "format",
            "certlogic_engine",
            "cli",
            "tests",
            *sys.argv[1:],
        ]
    )
