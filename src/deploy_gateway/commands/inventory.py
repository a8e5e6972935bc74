"""Read-only commands -- applications, environments, snapshots, inventories.

Provides four sub-command groups:

* ``apps list``
* ``envs list APP``
* ``snapshots list APP`` / ``snapshots versions SNAP`` /
  ``snapshots create APP ENV NAME``
* ``inventory show APP ENV`` / ``inventory compare APP SOURCE_ENV``

Listings are rendered as tables (Rich, plain TSV, or JSON records depending
on the output flags). IDs are shown alongside names because every other
command takes IDs.
"""

from __future__ import annotations

from typing import Any, Optional

import typer

from deploy_gateway import operations
from deploy_gateway.commands import handle_errors, open_client
from deploy_gateway.exceptions import InvalidUsageError
from deploy_gateway.output import format_response, info, print_table, success, suggest


apps_app = typer.Typer(no_args_is_help=True)
envs_app = typer.Typer(no_args_is_help=True)
snapshots_app = typer.Typer(no_args_is_help=True)
inventory_app = typer.Typer(no_args_is_help=True)

NOT_DEPLOYED = "NOT DEPLOYED"


def _cell(item: dict[str, Any], key: str, default: str = "N/A") -> str:
    value = item.get(key)
    return default if value is None or value == "" else str(value)


def _records(payload: Any) -> list[dict[str, Any]]:
    if isinstance(payload, list):
        return [item for item in payload if isinstance(item, dict)]
    return []


@apps_app.command("list")
def apps_list(ctx: typer.Context) -> None:
    """List all applications. Start here to find application IDs."""
    with handle_errors(), open_client(ctx) as client:
        apps = _records(operations.list_applications(client))
    if not apps:
        info("No applications found.")
        return
    print_table(
        ["Name", "ID", "Description"],
        [[_cell(a, "name"), _cell(a, "id"), _cell(a, "description", "")] for a in apps],
        title=f"{len(apps)} applications",
    )
    suggest("List environments: deploy-gateway envs list <APP_ID>")


@envs_app.command("list")
def envs_list(
    ctx: typer.Context,
    application: str = typer.Argument(help="Application ID."),
) -> None:
    """List the environments of an application."""
    with handle_errors(), open_client(ctx) as client:
        envs = _records(operations.list_environments(client, application))
    if not envs:
        info(f'No environments found for application "{application}".')
        return
    print_table(
        ["Name", "ID", "State"],
        [[_cell(e, "name"), _cell(e, "id"), _cell(e, "state", "Unknown")] for e in envs],
        title=f"{len(envs)} environments",
    )


@snapshots_app.command("list")
def snapshots_list(
    ctx: typer.Context,
    application: str = typer.Argument(help="Application ID."),
) -> None:
    """List the snapshots of an application."""
    with handle_errors(), open_client(ctx) as client:
        snapshots = _records(operations.list_snapshots(client, application))
    if not snapshots:
        info(f'No snapshots found for application "{application}".')
        return
    print_table(
        ["Name", "ID", "Created"],
        [[_cell(s, "name"), _cell(s, "id"), _cell(s, "created")] for s in snapshots],
        title=f"{len(snapshots)} snapshots",
    )


@snapshots_app.command("create")
def snapshots_create(
    ctx: typer.Context,
    application: str = typer.Argument(help="Application ID."),
    environment: str = typer.Argument(help="Environment ID to snapshot."),
    name: str = typer.Argument(help="Name for the new snapshot."),
    description: Optional[str] = typer.Option(None, "--description", "-d"),
) -> None:
    """Create a snapshot from an environment's current state."""
    with handle_errors(), open_client(ctx) as client:
        result = operations.create_snapshot(client, application, environment, name, description)
    snapshot_id = result.get("id") if isinstance(result, dict) else None
    success(f'Snapshot "{name}" created (ID: {snapshot_id or "N/A"}).')
    format_response(result)


@snapshots_app.command("versions")
def snapshots_versions(
    ctx: typer.Context,
    snapshot: str = typer.Argument(help="Snapshot ID."),
) -> None:
    """Show the component versions captured in a snapshot."""
    with handle_errors(), open_client(ctx) as client:
        result = operations.snapshot_versions(client, snapshot)
    components = _records(result.get("components") if isinstance(result, dict) else result)
    if not components:
        info(f'Snapshot "{snapshot}" has no component versions.')
        return
    print_table(
        ["Component", "Version"],
        [
            [_cell(c, "name"), operations.version_label(c.get("version")) or "N/A"]
            for c in components
        ],
        title=f"Versions in {snapshot}",
    )


@inventory_app.command("show")
def inventory_show(
    ctx: typer.Context,
    application: str = typer.Argument(help="Application ID."),
    environment: str = typer.Argument(help="Environment ID."),
) -> None:
    """Show the versions currently deployed to an environment."""
    with handle_errors(), open_client(ctx) as client:
        result = operations.environment_inventory(client, application, environment)
    components = _records(result.get("components") if isinstance(result, dict) else None)
    if not components:
        info(f'No inventory found for environment "{environment}".')
        return
    print_table(
        ["Component", "Version", "Status"],
        [
            [
                _cell(c, "name"),
                operations.version_label(c.get("version")) or "No version deployed",
                _cell(c, "status", "Unknown"),
            ]
            for c in components
        ],
        title=f"Inventory of {environment}",
    )


@inventory_app.command("compare")
def inventory_compare(
    ctx: typer.Context,
    application: str = typer.Argument(help="Application ID."),
    source_environment: str = typer.Argument(help="Source environment ID."),
    target_environment: Optional[str] = typer.Option(
        None, "--target-env", help="Target environment ID."
    ),
    target_snapshot: Optional[str] = typer.Option(
        None, "--target-snapshot", help="Target snapshot ID."
    ),
) -> None:
    """Compare an environment with another environment or a snapshot."""
    with handle_errors():
        if bool(target_environment) == bool(target_snapshot):
            raise InvalidUsageError("Use exactly one of --target-env or --target-snapshot")
        with open_client(ctx) as client:
            differences = operations.compare_inventories(
                client,
                application,
                source_environment,
                target_environment=target_environment,
                target_snapshot=target_snapshot,
            )
    if not differences:
        success("No differences found - inventories are identical.")
        return
    print_table(
        ["Component", "Source", "Target"],
        [[d.component, d.source or NOT_DEPLOYED, d.target or NOT_DEPLOYED] for d in differences],
        title=f"{len(differences)} differences",
    )
