"""Typer application and CLI entry point for deploy-gateway.

This module wires together the top-level Typer application and registers
the built-in sub-commands (``auth``, ``config``, ``apps``, ``envs``,
``snapshots``, ``inventory``, ``deploy``, ``triggers``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs a signal handler and invokes the Typer app.
Unhandled exceptions are written to a crash log under the data directory.

See Also:
    :mod:`deploy_gateway.config`: Configuration resolution.
    :mod:`deploy_gateway.output`: Output formatting initialised in
    :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from deploy_gateway import __version__
from deploy_gateway.commands.auth import auth_app
from deploy_gateway.commands.config import config_app
from deploy_gateway.commands.deploy import deploy_app, triggers_app
from deploy_gateway.commands.inventory import apps_app, envs_app, inventory_app, snapshots_app
from deploy_gateway.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="deploy-gateway",
    help="Authenticated gateway to a deployment orchestration server.",
    no_args_is_help=True,
    add_completion=True,
    rich_markup_mode="rich",
)

app.add_typer(auth_app, name="auth", help="Credential negotiation.")
app.add_typer(config_app, name="config", help="Persisted settings.")
app.add_typer(apps_app, name="apps", help="Applications.")
app.add_typer(envs_app, name="envs", help="Environments of an application.")
app.add_typer(snapshots_app, name="snapshots", help="Snapshots of an application.")
app.add_typer(inventory_app, name="inventory", help="Deployed versions and comparisons.")
app.add_typer(deploy_app, name="deploy", help="Deployments and their status.")
app.add_typer(triggers_app, name="triggers", help="Automated deployment triggers.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"deploy-gateway {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    server_url: Optional[str] = typer.Option(
        None, "--server-url", "-s", help="Deployment server root URL."
    ),
    token: Optional[str] = typer.Option(
        None, "--token", help="Access token (prefer DEPLOY_TOKEN or --token-source)."
    ),
    token_source: Optional[str] = typer.Option(
        None, "--token-source", help="Token source: env:VAR, file:PATH, or prompt."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~deploy_gateway.output.OutputManager`
    from CLI flags and stores the connection options in ``ctx.obj`` for
    :func:`~deploy_gateway.commands.open_client`. Keys already present in
    ``ctx.obj`` (such as an injected ``transport``) are left untouched.
    """
    from deploy_gateway.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(
        OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    )

    ctx.ensure_object(dict)
    ctx.obj["server_url"] = server_url
    ctx.obj["token"] = token
    ctx.obj["token_source"] = token_source
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log() -> str:
    """Write the current traceback to disk and return the log file path."""
    from deploy_gateway.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``deploy-gateway`` console script.

    Unhandled :class:`~deploy_gateway.exceptions.GatewayError` instances
    cause a clean exit with the error's ``exit_code``. All other exceptions
    produce a crash log and a generic failure exit.
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from deploy_gateway.exceptions import GatewayError
        from deploy_gateway.output import error

        if isinstance(exc, GatewayError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log()
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
