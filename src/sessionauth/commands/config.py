"""Config commands -- inspect the configuration file.

Provides the ``sessionauth config`` sub-command group. Profiles are managed
with ``sessionauth profile``; provider overrides and the login timeout are
edited with ``sessionauth config set``.
"""

from __future__ import annotations

import typer

from sessionauth.commands import fail
from sessionauth.exceptions import InvalidUsageError, SessionAuthError
from sessionauth.output import format_response, info, print_data, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("path")
def config_path(ctx: typer.Context) -> None:
    """Print the path of the configuration file."""
    from sessionauth.config import get_config_path

    cli_config = ctx.obj.get("config") if ctx.obj else None
    print_data(str(get_config_path(cli_config)))


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show the configuration with session tokens redacted.

    Example::

        sessionauth config show
        sessionauth --json config show
    """
    from sessionauth.config import get_config_path, load_config

    cli_config = ctx.obj.get("config") if ctx.obj else None
    try:
        path = get_config_path(cli_config)
        config = load_config(path)
    except SessionAuthError as exc:
        fail(exc)

    data = config.model_dump(mode="json")
    for profile in data["profiles"].values():
        if profile.get("token"):
            profile["token"] = "<redacted>"
    info(f"Config file: {path}")
    format_response(data)


@config_app.command("set")
def config_set(
    ctx: typer.Context,
    key: str = typer.Argument(
        help="Config key (dot notation, e.g., 'provider.client_id' or 'auth_timeout')."
    ),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a provider override or the login timeout.

    Only ``provider.*`` keys and ``auth_timeout`` are settable here. The
    updated config is validated before it is saved.

    Example::

        sessionauth config set provider.auth_base_url https://idp.example.com
        sessionauth config set auth_timeout 600
    """
    from sessionauth.config import get_config_path, load_config, save_config
    from sessionauth.models import AppConfig

    cli_config = ctx.obj.get("config") if ctx.obj else None
    try:
        path = get_config_path(cli_config)
        config = load_config(path)
        data = config.model_dump(mode="json")

        keys = key.split(".")
        if keys[0] not in ("provider", "auth_timeout"):
            raise InvalidUsageError(f"Unknown config key: {key}")
        target = data
        for k in keys[:-1]:
            if k not in target or not isinstance(target[k], dict):
                raise InvalidUsageError(f"Invalid config key: {key}")
            target = target[k]
        if keys[-1] not in target:
            raise InvalidUsageError(f"Unknown config key: {key}")

        target[keys[-1]] = value
        try:
            new_config = AppConfig.model_validate(data)
        except ValueError as exc:
            raise InvalidUsageError(f"Validation error: {exc}") from None

        save_config(new_config, path)
    except SessionAuthError as exc:
        fail(exc)

    success(f"Set {key} = {value}")
