"""Shared test fixtures for deploy-gateway.

Provides isolated config environments, global output reset, an in-memory
deployment server built on :class:`httpx.MockTransport`, and a CLI runner.
These fixtures are automatically discovered by pytest and available to all
test modules without explicit imports.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Optional

import httpx
import pytest

from deploy_gateway.config import SERVER_URL_ENV_VARS, TOKEN_ENV_VARS
from deploy_gateway.output import OutputFormat, OutputManager, reset_output, set_output


TOKEN = "c25b1edd-5ab9-4d2c-9a37-0f9b2e1f3a44"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams and the
    test finishes, the cached references become stale. Resetting forces a
    fresh manager to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_DATA_HOME to subdirectories of tmp_path,
    clears every token, server URL and tuning variable the resolver reads,
    and changes the working directory to tmp_path so no stray ``.env`` is
    picked up.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in (
        *TOKEN_ENV_VARS,
        *SERVER_URL_ENV_VARS,
        "USE_SIMPLE_TOKEN_AUTH",
        "DEPLOY_EXCHANGE_URL",
        "DEPLOY_TIMEOUT",
        "DEPLOY_VERIFY_SSL",
    ):
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True, no_color=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# Fake deployment server
# ---------------------------------------------------------------------------


class FakeServer:
    """Callable MockTransport handler that records every request.

    Args:
        accept: Authorization header values the server accepts. Requests
            carrying any other value get a 401.
        routes: Maps ``"METHOD /path"`` (path without query string, relative
            to the API root) to a JSON payload or an :class:`httpx.Response`.
            Unrouted authorised requests get ``[]``.
    """

    API_ROOT = "/deploy/cli"

    def __init__(
        self,
        accept: Optional[set[str]] = None,
        routes: Optional[dict[str, Any]] = None,
    ) -> None:
        self.accept = accept if accept is not None else {f"Bearer {TOKEN}"}
        self.routes = routes or {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.headers.get("Authorization") not in self.accept:
            return httpx.Response(401, json={"error": "unauthorized"})
        path = request.url.path
        if path.startswith(self.API_ROOT):
            path = path[len(self.API_ROOT):]
        route = self.routes.get(f"{request.method} {path}", [])
        if isinstance(route, httpx.Response):
            return route
        if callable(route):
            return route(request)
        return httpx.Response(200, json=route)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def bodies(self) -> list[Any]:
        """Decoded JSON bodies of every request that carried one."""
        return [json.loads(r.content) for r in self.requests if r.content]

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]


@pytest.fixture
def fake_server_factory() -> Callable[..., FakeServer]:
    return FakeServer


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
