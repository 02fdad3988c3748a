#!/usr/bin/env python3
"""Run the SpeakEasy test suite with pytest.

With no arguments the whole suite runs with a coverage report for the
``speakEasy`` package; any arguments are handed to pytest unchanged.
"""
from __future__ import annotations

import subprocess
import sys
from pathlib import Path

DEFAULT_ARGS = ["-v", "--cov=speakEasy", "--cov-report=term-missing"]


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    cmd = [sys.executable, "-m", "pytest", *(args or DEFAULT_ARGS)]
    print(f"Running: {' '.join(cmd)}")
    return subprocess.run(cmd, cwd=Path(__file__).parent).returncode


if __name__ == "__main__":
    sys.exit(main())
