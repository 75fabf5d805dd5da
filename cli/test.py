"""CLI wrapper: Run unit tests."""

from __future__ import annotations

import sys

from cli._runner import run


def main() -> None:
    run(
        [sys.executable, "-m", "pytest", "-q", *sys.argv[1:]],
        env={"APP_ENV": "test", "OBSERVABILITY_STRUCTURED_LOGS": "false"},
    )
