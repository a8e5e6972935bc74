"""Auth commands -- inspect credential negotiation.

Provides the ``deploy-gateway auth`` sub-command group. ``auth check`` runs
negotiation against the configured server, reports which scheme was
accepted, and makes one test call. Header values are always redacted.

Example::

    deploy-gateway auth check
    deploy-gateway --verbose auth check   # show each probe attempt
"""

from __future__ import annotations

import typer

from deploy_gateway.commands import handle_errors, open_client
from deploy_gateway.exceptions import ApiError
from deploy_gateway.output import format_response, info, success, warning


auth_app = typer.Typer(no_args_is_help=True)


@auth_app.command("check")
def auth_check(ctx: typer.Context) -> None:
    """Negotiate a session and report the auth method in use.

    Exits with code 3 when no scheme accepts the token or the token exchange
    fails. A failing test call after successful negotiation is reported as a
    warning, not an error.
    """
    from deploy_gateway import operations

    with handle_errors(), open_client(ctx) as client:
        session = client.authenticator.ensure_session()
        success(f"Auth method in use: {session.scheme.value}")
        if session.expiry is not None:
            info(f"Session expires at {session.expiry.isoformat()}")

        report = client.describe_auth()
        try:
            apps = operations.list_applications(client)
        except ApiError as exc:
            warning(f"Test API call failed: {exc}")
            report["test_call"] = f"failed ({exc.kind.value})"
        else:
            visible = len(apps) if isinstance(apps, list) else "n/a"
            info(f"Test API call succeeded. Applications visible: {visible}")
            report["test_call"] = "ok"
            report["applications_visible"] = visible

        format_response(report)
