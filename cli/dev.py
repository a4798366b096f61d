"""CLI wrapper: Serve the GraphQL API locally with auto-reload."""

from __future__ import annotations

import os
import sys

from cli._runner import run

DEFAULT_PORT = "4000"


def main() -> None:
    run(
        [
            sys.executable,
            "-m",
            "uvicorn",
            "app.main:app",
            "--reload",
            "--host",
            "127.0.0.1",
            "--port",
            os.environ.get("PORT", DEFAULT_PORT),
            *sys.argv[1:],
        ]
    )
