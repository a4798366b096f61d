"""CLI wrapper: Run the test suite against the in-memory store."""

from __future__ import annotations

import os
import sys

from cli._runner import run


def main() -> None:
    os.environ.setdefault("APP_ENV", "test")
    run([sys.executable, "-m", "pytest", "-q", "tests", *sys.argv[1:]])
