"""Exception hierarchy for deploy-gateway.

All exceptions inherit from :class:`GatewayError`, which carries an
``exit_code`` attribute mapped to a constant from
:mod:`deploy_gateway.exit_codes`. The top-level error handler in
:func:`deploy_gateway.app.main` catches ``GatewayError`` and exits with the
appropriate code.

Subclass hierarchy::

    GatewayError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- AuthError           (exit 3)
    +-- ApiError            (exit depends on kind / status)
    +-- ConfigError         (exit 1)

Every failure of the core is raised as exactly one of :class:`AuthError` or
:class:`ApiError`, so callers can present "authentication failed" and
"server returned 404" differently.
"""

from __future__ import annotations

import enum
from typing import Optional

from deploy_gateway.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)


class GatewayError(Exception):
    """Base exception for all deploy-gateway errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(GatewayError):
    """Raised for invalid CLI arguments or contradictory operation parameters."""

    exit_code = EXIT_INVALID_USAGE


class AuthError(GatewayError):
    """Raised when no scheme accepts the credential or the token exchange fails.

    Never carries credential material; the message names only the outcome
    (e.g. the exchange error text or "no scheme accepted").
    """

    exit_code = EXIT_AUTH_FAILURE


class ConfigError(GatewayError):
    """Raised for configuration problems (missing server URL or token, bad sources)."""

    exit_code = EXIT_GENERIC_FAILURE


class ApiErrorKind(str, enum.Enum):
    """Failure classes reported by :class:`ApiError`."""

    NETWORK = "network"
    HTTP = "http"
    DECODE = "decode"


class ApiError(GatewayError):
    """Raised by :meth:`~deploy_gateway.client.ApiClient.call` for any request failure.

    Args:
        kind: Which stage failed -- transport, HTTP status, or body decoding.
        message: Human-readable description.
        status: HTTP status code (``HTTP`` kind only).
        status_text: HTTP reason phrase (``HTTP`` kind only).
        cause: The underlying exception (``NETWORK`` and ``DECODE`` kinds).
    """

    def __init__(
        self,
        kind: ApiErrorKind,
        message: str,
        status: Optional[int] = None,
        status_text: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message, exit_code=_exit_code_for(kind, status))
        self.kind = kind
        self.status = status
        self.status_text = status_text
        self.cause = cause

    @classmethod
    def network(cls, endpoint: str, cause: BaseException) -> ApiError:
        return cls(
            ApiErrorKind.NETWORK,
            f"Request to {endpoint} failed: {cause}",
            cause=cause,
        )

    @classmethod
    def http(cls, endpoint: str, status: int, status_text: str) -> ApiError:
        return cls(
            ApiErrorKind.HTTP,
            f"Request to {endpoint} failed: HTTP {status} {status_text}".rstrip(),
            status=status,
            status_text=status_text,
        )

    @classmethod
    def decode(cls, endpoint: str, cause: BaseException) -> ApiError:
        return cls(
            ApiErrorKind.DECODE,
            f"Response from {endpoint} is not valid JSON: {cause}",
            cause=cause,
        )


def _exit_code_for(kind: ApiErrorKind, status: Optional[int]) -> int:
    if kind == ApiErrorKind.NETWORK:
        return EXIT_CONNECTION_ERROR
    if kind == ApiErrorKind.HTTP:
        if status in (401, 403):
            return EXIT_AUTH_FAILURE
        if status == 404:
            return EXIT_NOT_FOUND
    return EXIT_SERVER_ERROR
