"""Built-in CLI sub-commands for deploy-gateway.

* :mod:`~deploy_gateway.commands.auth` -- check credential negotiation.
* :mod:`~deploy_gateway.commands.config` -- view and modify user settings.
* :mod:`~deploy_gateway.commands.inventory` -- applications, environments,
  snapshots, and inventories.
* :mod:`~deploy_gateway.commands.deploy` -- deployments, schedules, and
  triggers.

Every command opens its :class:`~deploy_gateway.client.ApiClient` through
:func:`open_client` and runs inside :func:`handle_errors`, which turns a
:class:`~deploy_gateway.exceptions.GatewayError` into a message on stderr
and the matching exit code.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

import typer

from deploy_gateway.auth.schemes import EmbeddedTokenBasicScheme
from deploy_gateway.client import ApiClient
from deploy_gateway.exceptions import ApiError, ApiErrorKind, AuthError, GatewayError
from deploy_gateway.output import error, mask, suggest


def open_client(ctx: typer.Context) -> ApiClient:
    """Resolve configuration from the root options and build a client."""
    from deploy_gateway.config import resolve_config

    obj = ctx.obj or {}
    config = resolve_config(
        cli_token=obj.get("token"),
        cli_server_url=obj.get("server_url"),
        cli_token_source=obj.get("token_source"),
    )
    token = config.token.get_secret_value()
    mask(token)
    mask(EmbeddedTokenBasicScheme(config.sentinel_username).authorization(token).split(" ", 1)[1])
    return ApiClient.from_config(config, transport=obj.get("transport"))


@contextmanager
def handle_errors() -> Iterator[None]:
    """Report a :class:`GatewayError` and exit with its code."""
    try:
        yield
    except AuthError as exc:
        error(f"Authentication failed: {exc}")
        suggest("Check the token, or run: deploy-gateway auth check --verbose")
        raise typer.Exit(code=exc.exit_code) from None
    except ApiError as exc:
        if exc.kind == ApiErrorKind.HTTP:
            error(f"Server returned {exc.status} {exc.status_text or ''}".rstrip())
        elif exc.kind == ApiErrorKind.NETWORK:
            error(f"Could not reach the server: {exc}")
        else:
            error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    except GatewayError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
