"""Built-in CLI sub-commands for sessionauth.

Each module defines either a Typer sub-application or a single command
function that is registered on the root app in :func:`sessionauth.app.main`:

- ``authenticate`` -- browser login that stores a session token.
- ``profile`` -- create, list, inspect, and select profiles.
- ``config`` -- show the configuration file and set provider overrides.
"""

from __future__ import annotations

from typing import NoReturn

import typer

from sessionauth.exceptions import SessionAuthError
from sessionauth.output import error, suggest


def fail(exc: SessionAuthError) -> NoReturn:
    """Report *exc* (message and remediation) and exit with its exit code."""
    error(str(exc))
    if exc.remediation:
        suggest(exc.remediation)
    raise typer.Exit(code=exc.exit_code)
