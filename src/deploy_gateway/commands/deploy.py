"""Deployment commands -- deploy, schedule, status, and triggers.

Provides the ``deploy`` and ``triggers`` sub-command groups. Component
versions are passed as repeated ``--version COMPONENT_ID=VERSION_ID``
options.

Example::

    deploy-gateway deploy snapshot APP SNAP ENV PROCESS
    deploy-gateway deploy versions APP ENV PROCESS -V web=1.4.2 -V api=2.0.1
    deploy-gateway deploy status REQUEST_ID
"""

from __future__ import annotations

from typing import Any, Optional

import typer

from deploy_gateway import operations
from deploy_gateway.commands import handle_errors, open_client
from deploy_gateway.exceptions import InvalidUsageError
from deploy_gateway.models import ComponentVersion
from deploy_gateway.output import format_response, info, success, suggest


deploy_app = typer.Typer(no_args_is_help=True)
triggers_app = typer.Typer(no_args_is_help=True)


def parse_versions(values: Optional[list[str]]) -> list[ComponentVersion]:
    """Parse ``COMPONENT=VERSION`` pairs.

    Raises:
        InvalidUsageError: If a value has no ``=`` or an empty side.
    """
    versions: list[ComponentVersion] = []
    for raw in values or []:
        component, sep, version = raw.partition("=")
        if not sep or not component.strip() or not version.strip():
            raise InvalidUsageError(
                f"Invalid version '{raw}': expected COMPONENT_ID=VERSION_ID"
            )
        versions.append(ComponentVersion(component=component.strip(), version=version.strip()))
    return versions


def _request_id(result: Any) -> str:
    if isinstance(result, dict) and result.get("requestId"):
        return str(result["requestId"])
    return "N/A"


def _report_started(result: Any) -> None:
    request_id = _request_id(result)
    success(f"Deployment request accepted (Request ID: {request_id}).")
    if request_id != "N/A":
        suggest(f"Monitor it: deploy-gateway deploy status {request_id}")


@deploy_app.command("snapshot")
def deploy_snapshot(
    ctx: typer.Context,
    application: str = typer.Argument(help="Application ID."),
    snapshot: str = typer.Argument(help="Snapshot ID."),
    environment: str = typer.Argument(help="Environment ID."),
    application_process: str = typer.Argument(help="Application process ID."),
    description: Optional[str] = typer.Option(None, "--description", "-d"),
    only_changed: bool = typer.Option(
        True, "--only-changed/--all", help="Deploy only changed versions."
    ),
) -> None:
    """Deploy a snapshot to an environment."""
    with handle_errors(), open_client(ctx) as client:
        result = operations.deploy_snapshot(
            client,
            application,
            snapshot,
            environment,
            application_process,
            description=description,
            only_changed=only_changed,
        )
    _report_started(result)


@deploy_app.command("versions")
def deploy_versions(
    ctx: typer.Context,
    application: str = typer.Argument(help="Application ID."),
    environment: str = typer.Argument(help="Environment ID."),
    application_process: str = typer.Argument(help="Application process ID."),
    version: list[str] = typer.Option(
        ..., "--version", "-V", help="COMPONENT_ID=VERSION_ID (repeatable)."
    ),
    description: Optional[str] = typer.Option(None, "--description", "-d"),
    only_changed: bool = typer.Option(
        True, "--only-changed/--all", help="Deploy only changed versions."
    ),
) -> None:
    """Deploy specific component versions to an environment."""
    with handle_errors():
        versions = parse_versions(version)
        with open_client(ctx) as client:
            result = operations.deploy_versions(
                client,
                application,
                environment,
                application_process,
                versions,
                description=description,
                only_changed=only_changed,
            )
    _report_started(result)


@deploy_app.command("schedule")
def deploy_schedule(
    ctx: typer.Context,
    application: str = typer.Argument(help="Application ID."),
    environment: str = typer.Argument(help="Environment ID."),
    application_process: str = typer.Argument(help="Application process ID."),
    date: str = typer.Option(
        ..., "--date", help="When to run: 'yyyy-mm-dd HH:mm' or a unix timestamp."
    ),
    snapshot: Optional[str] = typer.Option(None, "--snapshot", help="Snapshot ID."),
    version: Optional[list[str]] = typer.Option(
        None, "--version", "-V", help="COMPONENT_ID=VERSION_ID (repeatable)."
    ),
    description: Optional[str] = typer.Option(None, "--description", "-d"),
    recurrence: Optional[str] = typer.Option(
        None, "--recurrence", help="D (daily), W (weekly) or M (monthly)."
    ),
) -> None:
    """Schedule a deployment for later execution."""
    with handle_errors():
        versions = parse_versions(version)
        with open_client(ctx) as client:
            result = operations.schedule_deployment(
                client,
                application,
                environment,
                application_process,
                date,
                snapshot=snapshot,
                versions=versions or None,
                description=description,
                recurrence_pattern=recurrence,
            )
    _report_started(result)
    info(f"Scheduled for {date}" + (f" (recurrence: {recurrence})" if recurrence else ""))


@deploy_app.command("status")
def deploy_status(
    ctx: typer.Context,
    request_id: str = typer.Argument(help="Request ID returned by a deployment."),
) -> None:
    """Show the status of a deployment request."""
    with handle_errors(), open_client(ctx) as client:
        result = operations.deployment_status(client, request_id)
    if isinstance(result, dict):
        info(f"Status: {result.get('status') or 'Unknown'}  Result: {result.get('result') or 'Unknown'}")
    format_response(result)


@triggers_app.command("create")
def triggers_create(
    ctx: typer.Context,
    environment: str = typer.Argument(help="Environment ID."),
    name: str = typer.Argument(help="Trigger name."),
    application_process: str = typer.Argument(help="Application process ID."),
    trigger_type: str = typer.Option(
        ..., "--type", "-t", help="VERSION_CHANGE or SCHEDULE."
    ),
    schedule: Optional[str] = typer.Option(
        None, "--schedule", help="Cron pattern (SCHEDULE triggers only)."
    ),
    description: Optional[str] = typer.Option(None, "--description", "-d"),
) -> None:
    """Create an automated deployment trigger."""
    with handle_errors(), open_client(ctx) as client:
        result = operations.create_trigger(
            client,
            environment,
            name,
            application_process,
            trigger_type.upper(),
            description=description,
            schedule_pattern=schedule,
        )
    trigger_id = result.get("id") if isinstance(result, dict) else None
    success(f'Trigger "{name}" created (ID: {trigger_id or "N/A"}).')
