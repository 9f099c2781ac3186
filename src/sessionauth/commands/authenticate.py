"""The ``sessionauth authenticate`` command.

Runs the browser login flow and stores the resulting session token on the
default profile::

    sessionauth authenticate
    sessionauth authenticate --no-browser --timeout 600
"""

from __future__ import annotations

from typing import Optional

import typer

from sessionauth.commands import fail
from sessionauth.exceptions import SessionAuthError
from sessionauth.output import debug, success, warning


def authenticate_command(
    ctx: typer.Context,
    no_browser: bool = typer.Option(
        False, "--no-browser", help="Print the login URL instead of opening a browser."
    ),
    timeout: Optional[int] = typer.Option(
        None,
        "--timeout",
        min=0,
        help="Seconds to wait for the browser login (0 waits forever).",
    ),
    auth_url: Optional[str] = typer.Option(
        None, "--auth-url", help="Base URL of the identity provider."
    ),
    client_id: Optional[str] = typer.Option(None, "--client-id", help="OAuth client ID."),
    audience: Optional[str] = typer.Option(None, "--audience", help="API audience."),
    port: Optional[int] = typer.Option(
        None, "--port", min=1, max=65535, help="Local callback port."
    ),
) -> None:
    """Authenticate in the browser and store a session token on the default profile.

    Opens the identity provider's login page, receives the redirect on a
    local server, verifies the returned tokens, and writes the session token
    carried in the ID token into the default profile.

    Raises:
        typer.Exit: With the failing error's exit code.

    Example::

        sessionauth authenticate
    """
    from sessionauth.auth import AuthenticateFlow
    from sessionauth.config import (
        get_config_path,
        load_config,
        resolve_provider,
        resolve_timeout,
    )

    cli_config = ctx.obj.get("config") if ctx.obj else None

    try:
        config_path = get_config_path(cli_config)
        app_config = load_config(config_path)
        provider = resolve_provider(
            app_config,
            cli_auth_url=auth_url,
            cli_client_id=client_id,
            cli_audience=audience,
            cli_port=port,
        )
        wait = resolve_timeout(app_config, timeout)
        debug(f"Identity provider: {provider.base_url} (client {provider.client_id})")

        flow = AuthenticateFlow(provider, launch_browser=not no_browser, timeout=wait)
        result = flow.authorize()
    except SessionAuthError as exc:
        fail(exc)

    session_token = result.session_token
    try:
        profile_name = flow.persist(app_config, config_path, session_token)
    except SessionAuthError as exc:
        # warning() is not silenced by --quiet.
        warning(f"Session token (not persisted): {session_token}")
        fail(exc)

    success(f"Session token (persisted to your local configuration): {session_token}")
    debug(f"Stored on profile {profile_name}")
