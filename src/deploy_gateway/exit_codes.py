"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~deploy_gateway.exceptions.GatewayError` subclass.
Agents and shell wrappers can inspect the exit code to tell an
authentication failure apart from a server-side rejection without parsing
stderr.

Example::

    $ deploy-gateway apps list
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- no scheme accepted the credential
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""Credential negotiation failed, or the server answered 401/403."""

EXIT_NOT_FOUND = 4
"""The requested resource was not found (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The server rejected the request or returned a body that could not be decoded."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""
