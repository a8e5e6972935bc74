"""Config commands -- view and modify persisted user settings.

Provides the ``deploy-gateway config`` sub-command group for reading and
updating :class:`~deploy_gateway.models.UserSettings`. Only non-secret
defaults are stored; the access token is never written to disk.
"""

from __future__ import annotations

from typing import Any

import typer
from pydantic import ValidationError

from deploy_gateway.exit_codes import EXIT_INVALID_USAGE
from deploy_gateway.output import error, format_response, info, success


config_app = typer.Typer(no_args_is_help=True)

_NULL_VALUES = {"", "none", "null"}


@config_app.command("show")
def config_show() -> None:
    """Show the persisted settings.

    Example::

        deploy-gateway config show
        deploy-gateway --json config show
    """
    from deploy_gateway.config import get_config_dir, load_user_settings
    from deploy_gateway.commands import handle_errors

    with handle_errors():
        settings = load_user_settings()
    info(f"Config directory: {get_config_dir()}")
    format_response(settings.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Setting name, e.g. 'server_url' or 'timeout'."),
    value: str = typer.Argument(help="Value to set ('none' clears it)."),
) -> None:
    """Set one setting.

    The value is validated against
    :class:`~deploy_gateway.models.UserSettings` before saving; pydantic
    coerces booleans and numbers from their string form.

    Raises:
        typer.Exit: With code 2 for an unknown key or an invalid value.

    Example::

        deploy-gateway config set server_url https://deploy.example.com/deploy
        deploy-gateway config set verify_ssl false
    """
    from deploy_gateway.commands import handle_errors
    from deploy_gateway.config import load_user_settings, save_user_settings
    from deploy_gateway.models import UserSettings

    if key not in UserSettings.model_fields:
        error(f"Unknown config key: {key}")
        info(f"Known keys: {', '.join(UserSettings.model_fields)}")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    with handle_errors():
        settings = load_user_settings()
    data: dict[str, Any] = settings.model_dump()
    data[key] = None if value.strip().lower() in _NULL_VALUES else value

    try:
        updated = UserSettings.model_validate(data)
    except ValidationError as exc:
        error(f"Invalid value for {key}: {exc.errors()[0]['msg']}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    path = save_user_settings(updated)
    success(f"Set {key} = {getattr(updated, key)}")
    info(f"Saved to {path}")
