"""
Shared CLI runner helper.

Runs a subprocess in the current interpreter's environment and exits with its
return code, so the wrappers behave the same under uv, pip or a plain venv.
"""

from __future__ import annotations

import os
import subprocess
from collections.abc import Mapping, Sequence


def run(cmd: Sequence[str], env: Mapping[str, str] | None = None) -> None:
    """
    Run a command and propagate its exit code.

    Args:
        cmd: Command and arguments to execute
        env: Variables layered over the current environment

    Example:
        >>> run([sys.executable, "-m", "pytest", "-q"], env={"APP_ENV": "test"})
    """
    merged = {**os.environ, **env} if env else None
    result = subprocess.run(cmd, env=merged)
    raise SystemExit(result.returncode)
