"""Named deployment operations -- a lookup table of endpoints.

Every operation is exactly one :meth:`~deploy_gateway.client.ApiClient.call`
(``compare_inventories`` is two). The functions here only build the path,
query string and request body; authentication and error mapping belong to
the client.

All identifiers (application, environment, snapshot, process, component,
version) are server-side IDs, not display names.
"""

from __future__ import annotations

from typing import Any, NamedTuple, Optional, Sequence
from urllib.parse import quote, urlencode

from deploy_gateway.client import ApiClient
from deploy_gateway.exceptions import InvalidUsageError
from deploy_gateway.models import ComponentDifference, ComponentVersion


class Operation(NamedTuple):
    """Static description of one endpoint."""

    name: str
    method: str
    path: str
    description: str


LIST_APPLICATIONS = Operation(
    "list_applications", "GET", "/application",
    "List all applications on the server.",
)
LIST_ENVIRONMENTS = Operation(
    "list_environments", "GET", "/application/environmentsInApplication",
    "List the environments configured for an application.",
)
LIST_SNAPSHOTS = Operation(
    "list_snapshots", "GET", "/application/snapshots",
    "List the snapshots of an application.",
)
ENVIRONMENT_INVENTORY = Operation(
    "environment_inventory", "GET", "/environment/{environment}/latestDesiredInventory/",
    "Show the versions currently deployed to an environment.",
)
SNAPSHOT_VERSIONS = Operation(
    "snapshot_versions", "GET", "/snapshot/getSnapshotVersions",
    "Show the component versions captured in a snapshot.",
)
CREATE_SNAPSHOT = Operation(
    "create_snapshot", "POST", "/snapshot/createSnapshotOfEnvironment",
    "Create a snapshot from an environment's current state.",
)
DEPLOY_SNAPSHOT = Operation(
    "deploy_snapshot", "POST", "/applicationProcessRequest",
    "Deploy a snapshot to an environment.",
)
DEPLOY_VERSIONS = Operation(
    "deploy_versions", "POST", "/applicationProcessRequest",
    "Deploy specific component versions to an environment.",
)
SCHEDULE_DEPLOYMENT = Operation(
    "schedule_deployment", "POST", "/applicationProcessRequest",
    "Schedule a deployment for later, optionally recurring.",
)
DEPLOYMENT_STATUS = Operation(
    "deployment_status", "GET", "/applicationProcessRequest/requestStatus",
    "Check the status of a deployment request.",
)
CREATE_TRIGGER = Operation(
    "create_trigger", "POST", "/deploymentTrigger",
    "Create an automated deployment trigger.",
)

OPERATIONS: dict[str, Operation] = {
    op.name: op
    for op in (
        LIST_APPLICATIONS,
        LIST_ENVIRONMENTS,
        LIST_SNAPSHOTS,
        ENVIRONMENT_INVENTORY,
        SNAPSHOT_VERSIONS,
        CREATE_SNAPSHOT,
        DEPLOY_SNAPSHOT,
        DEPLOY_VERSIONS,
        SCHEDULE_DEPLOYMENT,
        DEPLOYMENT_STATUS,
        CREATE_TRIGGER,
    )
}

RECURRENCE_PATTERNS = ("D", "W", "M")
TRIGGER_TYPES = ("VERSION_CHANGE", "SCHEDULE")


def _with_query(path: str, **params: str) -> str:
    return f"{path}?{urlencode(params, quote_via=quote)}"


def _call(client: ApiClient, op: Operation, path: Optional[str] = None, body: Any = None) -> Any:
    return client.call(path or op.path, op.method, body)


# --- Read operations ---


def list_applications(client: ApiClient) -> Any:
    return _call(client, LIST_APPLICATIONS)


def list_environments(client: ApiClient, application: str) -> Any:
    path = _with_query(LIST_ENVIRONMENTS.path, application=application)
    return _call(client, LIST_ENVIRONMENTS, path)


def list_snapshots(client: ApiClient, application: str) -> Any:
    path = _with_query(LIST_SNAPSHOTS.path, application=application)
    return _call(client, LIST_SNAPSHOTS, path)


def environment_inventory(client: ApiClient, application: str, environment: str) -> Any:
    path = ENVIRONMENT_INVENTORY.path.format(environment=quote(environment, safe=""))
    return _call(client, ENVIRONMENT_INVENTORY, _with_query(path, application=application))


def snapshot_versions(client: ApiClient, snapshot: str) -> Any:
    path = _with_query(SNAPSHOT_VERSIONS.path, snapshot=snapshot)
    return _call(client, SNAPSHOT_VERSIONS, path)


def deployment_status(client: ApiClient, request_id: str) -> Any:
    path = _with_query(DEPLOYMENT_STATUS.path, request=request_id)
    return _call(client, DEPLOYMENT_STATUS, path)


# --- Write operations ---


def create_snapshot(
    client: ApiClient,
    application: str,
    environment: str,
    name: str,
    description: Optional[str] = None,
) -> Any:
    body: dict[str, Any] = {
        "application": application,
        "environment": environment,
        "name": name,
    }
    if description:
        body["description"] = description
    return _call(client, CREATE_SNAPSHOT, body=body)


def deploy_snapshot(
    client: ApiClient,
    application: str,
    snapshot: str,
    environment: str,
    application_process: str,
    description: Optional[str] = None,
    only_changed: bool = True,
) -> Any:
    body: dict[str, Any] = {
        "application": application,
        "snapshot": snapshot,
        "environment": environment,
        "applicationProcess": application_process,
        "onlyChanged": only_changed,
    }
    if description:
        body["description"] = description
    return _call(client, DEPLOY_SNAPSHOT, body=body)


def deploy_versions(
    client: ApiClient,
    application: str,
    environment: str,
    application_process: str,
    versions: Sequence[ComponentVersion],
    description: Optional[str] = None,
    only_changed: bool = True,
) -> Any:
    if not versions:
        raise InvalidUsageError("At least one component version is required")
    body: dict[str, Any] = {
        "application": application,
        "environment": environment,
        "applicationProcess": application_process,
        "versions": [v.model_dump() for v in versions],
        "onlyChanged": only_changed,
    }
    if description:
        body["description"] = description
    return _call(client, DEPLOY_VERSIONS, body=body)


def schedule_deployment(
    client: ApiClient,
    application: str,
    environment: str,
    application_process: str,
    date: str,
    snapshot: Optional[str] = None,
    versions: Optional[Sequence[ComponentVersion]] = None,
    description: Optional[str] = None,
    recurrence_pattern: Optional[str] = None,
) -> Any:
    """Schedule a deployment.

    Args:
        date: ``yyyy-mm-dd HH:mm`` or a unix timestamp, passed through as-is.
        recurrence_pattern: ``D`` (daily), ``W`` (weekly) or ``M`` (monthly).
    """
    if recurrence_pattern is not None and recurrence_pattern not in RECURRENCE_PATTERNS:
        raise InvalidUsageError(
            f"Recurrence pattern must be one of {', '.join(RECURRENCE_PATTERNS)}, "
            f"got '{recurrence_pattern}'"
        )
    body: dict[str, Any] = {
        "application": application,
        "environment": environment,
        "applicationProcess": application_process,
        "date": date,
    }
    if snapshot:
        body["snapshot"] = snapshot
    if versions:
        body["versions"] = [v.model_dump() for v in versions]
    if description:
        body["description"] = description
    if recurrence_pattern:
        body["recurrencePattern"] = recurrence_pattern
    return _call(client, SCHEDULE_DEPLOYMENT, body=body)


def create_trigger(
    client: ApiClient,
    environment: str,
    name: str,
    application_process: str,
    trigger_type: str,
    description: Optional[str] = None,
    schedule_pattern: Optional[str] = None,
) -> Any:
    """Create a deployment trigger.

    ``schedule_pattern`` (cron format) is sent only for ``SCHEDULE`` triggers.
    """
    if trigger_type not in TRIGGER_TYPES:
        raise InvalidUsageError(
            f"Trigger type must be one of {', '.join(TRIGGER_TYPES)}, got '{trigger_type}'"
        )
    body: dict[str, Any] = {
        "environment": environment,
        "name": name,
        "applicationProcess": application_process,
        "triggerType": trigger_type,
    }
    if description:
        body["description"] = description
    if schedule_pattern and trigger_type == "SCHEDULE":
        body["schedulePattern"] = schedule_pattern
    return _call(client, CREATE_TRIGGER, body=body)


# --- Comparison ---


def compare_inventories(
    client: ApiClient,
    application: str,
    source_environment: str,
    target_environment: Optional[str] = None,
    target_snapshot: Optional[str] = None,
) -> list[ComponentDifference]:
    """Compare an environment's inventory with another environment or a snapshot.

    Exactly one of *target_environment* and *target_snapshot* must be given.

    Returns:
        One :class:`~deploy_gateway.models.ComponentDifference` per component
        whose version differs; an empty list when the inventories match.

    Raises:
        InvalidUsageError: If neither or both targets are given.
    """
    if bool(target_environment) == bool(target_snapshot):
        raise InvalidUsageError(
            "Exactly one of target environment or target snapshot must be provided"
        )

    source = environment_inventory(client, application, source_environment)
    if target_environment:
        target = environment_inventory(client, application, target_environment)
    else:
        assert target_snapshot is not None
        target = snapshot_versions(client, target_snapshot)

    return diff_inventories(_components(source), _components(target))


def diff_inventories(
    source: Sequence[dict[str, Any]],
    target: Sequence[dict[str, Any]],
) -> list[ComponentDifference]:
    """Return per-component version differences between two component lists.

    Components present only in *source* come first (in source order),
    followed by components present only in *target*.
    """
    source_map = {c["name"]: version_label(c.get("version")) for c in source if "name" in c}
    target_map = {c["name"]: version_label(c.get("version")) for c in target if "name" in c}

    differences: list[ComponentDifference] = []
    for component, source_version in source_map.items():
        if component not in target_map:
            differences.append(ComponentDifference(component=component, source=source_version))
        elif target_map[component] != source_version:
            differences.append(
                ComponentDifference(
                    component=component,
                    source=source_version,
                    target=target_map[component],
                )
            )
    for component, target_version in target_map.items():
        if component not in source_map:
            differences.append(ComponentDifference(component=component, target=target_version))
    return differences


def _components(payload: Any) -> list[dict[str, Any]]:
    if isinstance(payload, dict):
        components = payload.get("components") or []
    elif isinstance(payload, list):
        components = payload
    else:
        components = []
    return [c for c in components if isinstance(c, dict)]


def version_label(version: Any) -> Optional[str]:
    """Return a display label for an inventory version entry (name, then id)."""
    if version is None:
        return None
    if isinstance(version, dict):
        label = version.get("name") or version.get("id")
        return str(label) if label is not None else None
    return str(version)
