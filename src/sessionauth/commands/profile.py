"""Profile commands -- manage the named profiles in the config file.

Provides the ``sessionauth profile`` sub-command group. ``authenticate``
writes its session token into whichever profile is marked as the default,
so at least one profile must exist before logging in.

Typical workflow::

    sessionauth profile create work --default --email me@example.com
    sessionauth authenticate
    sessionauth profile show work
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from sessionauth.commands import fail
from sessionauth.exceptions import ConfigError, SessionAuthError
from sessionauth.models import AppConfig, Profile
from sessionauth.output import format_response, get_output, info, success, suggest


profile_app = typer.Typer(no_args_is_help=True)


def _load(ctx: typer.Context) -> tuple[AppConfig, Path]:
    from sessionauth.config import get_config_path, load_config

    cli_config = ctx.obj.get("config") if ctx.obj else None
    path = get_config_path(cli_config)
    return load_config(path), path


def _mask(token: Optional[str]) -> str:
    if not token:
        return "-"
    return token[:8] + "..." if len(token) > 8 else token


@profile_app.command("create")
def profile_create(
    ctx: typer.Context,
    name: str = typer.Argument(help="Profile name."),
    email: Optional[str] = typer.Option(None, "--email", help="Account email for reference."),
    make_default: bool = typer.Option(
        False, "--default", help="Make this the default profile."
    ),
) -> None:
    """Create a new profile.

    The first profile created is always made the default.

    Example::

        sessionauth profile create work --default
    """
    from sessionauth.config import save_config, set_default_profile

    try:
        config, path = _load(ctx)
        if name in config.profiles:
            raise ConfigError(f"Profile '{name}' already exists")

        profiles = dict(config.profiles)
        profiles[name] = Profile(email=email)
        if make_default or len(profiles) == 1:
            profiles = set_default_profile(name, profiles)
        save_config(config.model_copy(update={"profiles": profiles}), path)
    except SessionAuthError as exc:
        fail(exc)

    success(f'Profile "{name}" created.')
    if profiles[name].default:
        suggest("Log in: sessionauth authenticate")


@profile_app.command("list")
def profile_list(ctx: typer.Context) -> None:
    """List all profiles, marking the default.

    Example::

        sessionauth profile list
        sessionauth --json profile list
    """
    try:
        config, _ = _load(ctx)
    except SessionAuthError as exc:
        fail(exc)

    if not config.profiles:
        info("No profiles configured.")
        suggest("Create one: sessionauth profile create <name> --default")
        return

    headers = ["Profile", "Default", "Email", "Token"]
    rows: list[list[str]] = []
    for name in sorted(config.profiles):
        profile = config.profiles[name]
        rows.append([
            name,
            "yes" if profile.default else "",
            profile.email or "-",
            _mask(profile.token),
        ])
    get_output().print_table(headers, rows, title="Profiles")


@profile_app.command("show")
def profile_show(
    ctx: typer.Context,
    name: str = typer.Argument(help="Profile name."),
    reveal: bool = typer.Option(False, "--reveal", help="Print the full token."),
) -> None:
    """Show a single profile. The token is masked unless ``--reveal`` is given."""
    try:
        config, _ = _load(ctx)
        profile = config.profiles.get(name)
        if profile is None:
            raise ConfigError(f"Profile '{name}' not found")
    except SessionAuthError as exc:
        fail(exc)

    data = profile.model_dump(mode="json")
    if not reveal:
        data["token"] = _mask(profile.token)
    format_response({"name": name, **data})


@profile_app.command("default")
def profile_default(
    ctx: typer.Context,
    name: str = typer.Argument(help="Profile to make the default."),
) -> None:
    """Make *name* the default profile used by ``authenticate``."""
    from sessionauth.config import save_config, set_default_profile

    try:
        config, path = _load(ctx)
        profiles = set_default_profile(name, config.profiles)
        save_config(config.model_copy(update={"profiles": profiles}), path)
    except SessionAuthError as exc:
        fail(exc)

    success(f'Default profile is now "{name}".')


@profile_app.command("set-token")
def profile_set_token(
    ctx: typer.Context,
    name: str = typer.Argument(help="Profile name."),
    token: Optional[str] = typer.Option(
        None, "--token", help="Session token. Prompted for (hidden) when omitted."
    ),
) -> None:
    """Store a session token on a profile by hand.

    Use this when ``authenticate`` obtained a token but could not save it.
    """
    from sessionauth.config import edit_profile, save_config

    try:
        config, path = _load(ctx)
        if name not in config.profiles:
            raise ConfigError(f"Profile '{name}' not found")
    except SessionAuthError as exc:
        fail(exc)

    if token is None:
        no_input = ctx.obj.get("no_input", False) if ctx.obj else False
        if no_input:
            fail(ConfigError("No token given and prompts are disabled (--no-input)"))
        token = typer.prompt("Session token", hide_input=True)

    value = token.strip()
    if not value:
        fail(ConfigError("Session token must not be empty"))

    def _set(profile: Profile) -> None:
        profile.token = value

    try:
        profiles, ok = edit_profile(name, config.profiles, _set)
        if not ok:
            raise ConfigError(f"Failed to update profile '{name}'")
        save_config(config.model_copy(update={"profiles": profiles}), path)
    except SessionAuthError as exc:
        fail(exc)

    success(f'Token stored on profile "{name}".')


@profile_app.command("delete")
def profile_delete(
    ctx: typer.Context,
    name: str = typer.Argument(help="Profile to delete."),
) -> None:
    """Delete a profile. Asks for confirmation unless ``--force`` is active."""
    from sessionauth.config import save_config

    try:
        config, path = _load(ctx)
        if name not in config.profiles:
            raise ConfigError(f"Profile '{name}' not found")
    except SessionAuthError as exc:
        fail(exc)

    force = ctx.obj.get("force", False) if ctx.obj else False
    if not force:
        confirmed = typer.confirm(f'Delete profile "{name}"?')
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    was_default = config.profiles[name].default
    profiles = {k: v for k, v in config.profiles.items() if k != name}
    try:
        save_config(config.model_copy(update={"profiles": profiles}), path)
    except SessionAuthError as exc:
        fail(exc)

    success(f'Profile "{name}" deleted.')
    if was_default and profiles:
        suggest("Pick a new default: sessionauth profile default <name>")
