"""deploy-gateway -- authenticated gateway to a deployment orchestration server.

The package negotiates how an opaque access token should be presented to the
server (bearer, Basic with the token embedded under a sentinel username, or a
short-lived bearer obtained by token exchange), caches the winning session,
and exposes every server operation as a typed function on top of one
authenticated :class:`~deploy_gateway.client.ApiClient`.

Typical use::

    from deploy_gateway.client import ApiClient
    from deploy_gateway.config import resolve_config
    from deploy_gateway import operations

    with ApiClient.from_config(resolve_config()) as client:
        apps = operations.list_applications(client)

Modules:
    app: Typer application and CLI entry point.
    auth: Credential probe, token exchange, and the single-flight
        authenticator.
    client: The authenticated API client.
    operations: Named server operations and inventory comparison.
    models: Pydantic models shared across the package.
    config: Configuration resolution and persisted settings.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
