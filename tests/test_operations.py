"""Tests for the named deployment operations and inventory comparison."""

from __future__ import annotations

import json
from urllib.parse import parse_qs

import httpx
import pytest
from pydantic import SecretStr

from deploy_gateway import operations
from deploy_gateway.client import ApiClient
from deploy_gateway.exceptions import InvalidUsageError
from deploy_gateway.models import ComponentDifference, ComponentVersion, GatewayConfig


API_ROOT = "/deploy/cli"


@pytest.fixture(autouse=True)
def _quiet(quiet_output):
    yield


@pytest.fixture
def server(fake_server_factory):
    return fake_server_factory()


@pytest.fixture
def client(server):
    config = GatewayConfig(
        server_url="https://deploy.example.com/deploy",
        token=SecretStr("c25b1edd-5ab9-4d2c-9a37-0f9b2e1f3a44"),
    )
    with ApiClient.from_config(config, transport=server.transport) as api:
        yield api


def _last(server) -> httpx.Request:
    return server.requests[-1]


def _query(request: httpx.Request) -> dict[str, list[str]]:
    return parse_qs(request.url.query.decode())


# ---------------------------------------------------------------------------
# Operation table
# ---------------------------------------------------------------------------


class TestOperationTable:
    def test_every_operation_registered(self) -> None:
        assert set(operations.OPERATIONS) == {
            "list_applications",
            "list_environments",
            "list_snapshots",
            "environment_inventory",
            "snapshot_versions",
            "create_snapshot",
            "deploy_snapshot",
            "deploy_versions",
            "schedule_deployment",
            "deployment_status",
            "create_trigger",
        }

    def test_each_name_has_a_function(self) -> None:
        for name in operations.OPERATIONS:
            assert callable(getattr(operations, name))


# ---------------------------------------------------------------------------
# Read operations
# ---------------------------------------------------------------------------


class TestReadOperations:
    def test_list_applications(self, client, server) -> None:
        operations.list_applications(client)
        request = _last(server)
        assert request.method == "GET"
        assert request.url.path == f"{API_ROOT}/application"

    def test_list_environments(self, client, server) -> None:
        operations.list_environments(client, "app 1")
        request = _last(server)
        assert request.url.path == f"{API_ROOT}/application/environmentsInApplication"
        assert _query(request) == {"application": ["app 1"]}

    def test_list_snapshots(self, client, server) -> None:
        operations.list_snapshots(client, "app-1")
        request = _last(server)
        assert request.url.path == f"{API_ROOT}/application/snapshots"
        assert _query(request) == {"application": ["app-1"]}

    def test_environment_inventory_encodes_path(self, client, server) -> None:
        operations.environment_inventory(client, "app-1", "env/qa")
        request = _last(server)
        assert request.url.raw_path.decode().startswith(
            f"{API_ROOT}/environment/env%2Fqa/latestDesiredInventory/"
        )
        assert _query(request) == {"application": ["app-1"]}

    def test_snapshot_versions(self, client, server) -> None:
        operations.snapshot_versions(client, "snap-1")
        request = _last(server)
        assert request.url.path == f"{API_ROOT}/snapshot/getSnapshotVersions"
        assert _query(request) == {"snapshot": ["snap-1"]}

    def test_deployment_status(self, client, server) -> None:
        operations.deployment_status(client, "req-9")
        request = _last(server)
        assert request.url.path == f"{API_ROOT}/applicationProcessRequest/requestStatus"
        assert _query(request) == {"request": ["req-9"]}

    def test_reads_send_no_body(self, client, server) -> None:
        operations.list_snapshots(client, "app-1")
        assert _last(server).content == b""


# ---------------------------------------------------------------------------
# Write operations
# ---------------------------------------------------------------------------


class TestWriteOperations:
    def test_create_snapshot(self, client, server) -> None:
        operations.create_snapshot(client, "app-1", "env-1", "rc-1", "release candidate")
        request = _last(server)
        assert request.method == "POST"
        assert request.url.path == f"{API_ROOT}/snapshot/createSnapshotOfEnvironment"
        assert json.loads(request.content) == {
            "application": "app-1",
            "environment": "env-1",
            "name": "rc-1",
            "description": "release candidate",
        }

    def test_create_snapshot_omits_empty_description(self, client, server) -> None:
        operations.create_snapshot(client, "app-1", "env-1", "rc-1")
        assert "description" not in json.loads(_last(server).content)

    def test_deploy_snapshot(self, client, server) -> None:
        operations.deploy_snapshot(client, "app-1", "snap-1", "env-1", "proc-1")
        request = _last(server)
        assert request.url.path == f"{API_ROOT}/applicationProcessRequest"
        assert json.loads(request.content) == {
            "application": "app-1",
            "snapshot": "snap-1",
            "environment": "env-1",
            "applicationProcess": "proc-1",
            "onlyChanged": True,
        }

    def test_deploy_snapshot_all_versions(self, client, server) -> None:
        operations.deploy_snapshot(
            client, "app-1", "snap-1", "env-1", "proc-1", description="d", only_changed=False
        )
        body = json.loads(_last(server).content)
        assert body["onlyChanged"] is False
        assert body["description"] == "d"

    def test_deploy_versions(self, client, server) -> None:
        operations.deploy_versions(
            client,
            "app-1",
            "env-1",
            "proc-1",
            [ComponentVersion(component="web", version="v1"), ComponentVersion(component="api", version="v2")],
        )
        body = json.loads(_last(server).content)
        assert body["versions"] == [
            {"component": "web", "version": "v1"},
            {"component": "api", "version": "v2"},
        ]
        assert body["onlyChanged"] is True

    def test_deploy_versions_requires_versions(self, client, server) -> None:
        with pytest.raises(InvalidUsageError):
            operations.deploy_versions(client, "app-1", "env-1", "proc-1", [])
        assert server.requests == []

    def test_schedule_deployment(self, client, server) -> None:
        operations.schedule_deployment(
            client,
            "app-1",
            "env-1",
            "proc-1",
            "2026-03-01 02:00",
            snapshot="snap-1",
            recurrence_pattern="W",
        )
        body = json.loads(_last(server).content)
        assert body == {
            "application": "app-1",
            "environment": "env-1",
            "applicationProcess": "proc-1",
            "date": "2026-03-01 02:00",
            "snapshot": "snap-1",
            "recurrencePattern": "W",
        }

    def test_schedule_rejects_bad_recurrence(self, client, server) -> None:
        with pytest.raises(InvalidUsageError, match="D, W, M"):
            operations.schedule_deployment(
                client, "app-1", "env-1", "proc-1", "2026-03-01 02:00", recurrence_pattern="Y"
            )
        assert server.requests == []

    def test_create_schedule_trigger(self, client, server) -> None:
        operations.create_trigger(
            client, "env-1", "nightly", "proc-1", "SCHEDULE", schedule_pattern="0 2 * * *"
        )
        request = _last(server)
        assert request.url.path == f"{API_ROOT}/deploymentTrigger"
        assert json.loads(request.content) == {
            "environment": "env-1",
            "name": "nightly",
            "applicationProcess": "proc-1",
            "triggerType": "SCHEDULE",
            "schedulePattern": "0 2 * * *",
        }

    def test_version_change_trigger_drops_schedule(self, client, server) -> None:
        operations.create_trigger(
            client, "env-1", "on-change", "proc-1", "VERSION_CHANGE", schedule_pattern="0 2 * * *"
        )
        assert "schedulePattern" not in json.loads(_last(server).content)

    def test_unknown_trigger_type(self, client, server) -> None:
        with pytest.raises(InvalidUsageError, match="VERSION_CHANGE"):
            operations.create_trigger(client, "env-1", "x", "proc-1", "WEBHOOK")


# ---------------------------------------------------------------------------
# Inventory comparison
# ---------------------------------------------------------------------------


class TestDiffInventories:
    def test_identical(self) -> None:
        components = [{"name": "web", "version": {"name": "1.0"}}]
        assert operations.diff_inventories(components, components) == []

    def test_changed_missing_and_extra(self) -> None:
        source = [
            {"name": "web", "version": {"name": "1.1"}},
            {"name": "api", "version": "2.0"},
            {"name": "db", "version": {"name": "9"}},
        ]
        target = [
            {"name": "web", "version": {"name": "1.0"}},
            {"name": "db", "version": {"name": "9"}},
            {"name": "cache", "version": {"id": "c-7"}},
        ]

        assert operations.diff_inventories(source, target) == [
            ComponentDifference(component="web", source="1.1", target="1.0"),
            ComponentDifference(component="api", source="2.0", target=None),
            ComponentDifference(component="cache", source=None, target="c-7"),
        ]

    def test_undeployed_version_is_none(self) -> None:
        source = [{"name": "web", "version": None}]
        target = [{"name": "web", "version": {"name": "1.0"}}]
        assert operations.diff_inventories(source, target) == [
            ComponentDifference(component="web", source=None, target="1.0")
        ]


class TestCompareInventories:
    def test_requires_exactly_one_target(self, client, server) -> None:
        with pytest.raises(InvalidUsageError):
            operations.compare_inventories(client, "app-1", "env-1")
        with pytest.raises(InvalidUsageError):
            operations.compare_inventories(
                client, "app-1", "env-1", target_environment="env-2", target_snapshot="snap-1"
            )
        assert server.requests == []

    @pytest.mark.parametrize(
        "targets",
        [
            {"target_environment": ""},
            {"target_snapshot": ""},
            {"target_environment": "", "target_snapshot": ""},
        ],
    )
    def test_empty_target_is_rejected(self, client, server, targets) -> None:
        with pytest.raises(InvalidUsageError):
            operations.compare_inventories(client, "app-1", "env-1", **targets)
        assert server.requests == []

    def test_against_environment(self, client, server) -> None:
        server.routes["GET /environment/env-1/latestDesiredInventory/"] = {
            "components": [{"name": "web", "version": {"name": "1.1"}}]
        }
        server.routes["GET /environment/env-2/latestDesiredInventory/"] = {
            "components": [{"name": "web", "version": {"name": "1.0"}}]
        }

        diff = operations.compare_inventories(client, "app-1", "env-1", target_environment="env-2")

        assert diff == [ComponentDifference(component="web", source="1.1", target="1.0")]

    def test_against_snapshot(self, client, server) -> None:
        server.routes["GET /environment/env-1/latestDesiredInventory/"] = {
            "components": [{"name": "web", "version": {"name": "1.1"}}]
        }
        server.routes["GET /snapshot/getSnapshotVersions"] = [
            {"name": "web", "version": {"name": "1.1"}}
        ]

        diff = operations.compare_inventories(client, "app-1", "env-1", target_snapshot="snap-1")

        assert diff == []
        assert server.paths()[-1] == f"{API_ROOT}/snapshot/getSnapshotVersions"
