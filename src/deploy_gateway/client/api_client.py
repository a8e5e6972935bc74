"""API client -- the single choke point every operation calls through.

:class:`ApiClient` wraps :class:`httpx.Client` and layers on:

- **Lazy authentication** -- :meth:`~deploy_gateway.auth.Authenticator.ensure_session`
  runs before every request; it only touches the network on first use or
  after an exchanged token expires.
- **Auth injection** -- the ``Authorization`` header is built from the
  active session's scheme.
- **Uniform error mapping** -- every failure becomes an
  :class:`~deploy_gateway.exceptions.ApiError` of kind ``network``,
  ``http``, or ``decode``; :class:`~deploy_gateway.exceptions.AuthError`
  from negotiation passes through unchanged.

There is no endpoint-specific logic, no retry, and no response caching:
every call is a fresh round trip.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Optional

import httpx

from deploy_gateway.auth.authenticator import Authenticator
from deploy_gateway.auth.exchange import PersonalAccessTokenExchanger, utc_now
from deploy_gateway.auth.probe import CredentialProbe
from deploy_gateway.auth.schemes import DEFAULT_SENTINEL_USERNAME, default_probe_order, strategy_for
from deploy_gateway.exceptions import ApiError
from deploy_gateway.models import GatewayConfig
from deploy_gateway.output import REDACTED, debug

PAYLOAD_METHODS = frozenset({"POST", "PUT", "PATCH"})
"""Methods whose ``body`` argument is serialised; it is dropped for all others."""


class ApiClient:
    """Authenticated JSON client for the deployment server's REST surface.

    Use :meth:`from_config` to build the whole stack (transport, probe,
    optional exchanger, authenticator) from a
    :class:`~deploy_gateway.models.GatewayConfig`. The client is a context
    manager and closes the transport it created on exit.

    Args:
        authenticator: Owner of the session; shared by every call.
        http: Transport. Its ``base_url`` is the API root.
        sentinel_username: Username used for the embedded-token Basic scheme.
        owns_http: Whether :meth:`close` should close *http*.

    Example::

        with ApiClient.from_config(config) as client:
            apps = client.call("/application")
    """

    def __init__(
        self,
        authenticator: Authenticator,
        http: httpx.Client,
        sentinel_username: str = DEFAULT_SENTINEL_USERNAME,
        owns_http: bool = False,
    ) -> None:
        self._authenticator = authenticator
        self._http = http
        self._sentinel_username = sentinel_username
        self._owns_http = owns_http

    @classmethod
    def from_config(
        cls,
        config: GatewayConfig,
        transport: Optional[httpx.BaseTransport] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> ApiClient:
        """Build a client, its transport, and its authenticator from *config*.

        Args:
            config: Resolved gateway configuration.
            transport: Optional httpx transport (e.g. ``httpx.MockTransport``
                in tests).
            clock: Clock shared by the authenticator and the exchanger.
        """
        http = httpx.Client(
            base_url=config.api_base_url,
            timeout=config.timeout,
            verify=config.verify_ssl,
            follow_redirects=True,
            transport=transport,
        )
        if config.use_token_exchange:
            exchanger = PersonalAccessTokenExchanger(
                http, config.token_exchange_url, config.token, clock=clock
            )
            authenticator = Authenticator(config.token, exchanger=exchanger, clock=clock)
        else:
            probe = CredentialProbe(
                http,
                config.probe_endpoint,
                default_probe_order(config.sentinel_username),
            )
            authenticator = Authenticator(config.token, probe=probe, clock=clock)
        return cls(
            authenticator,
            http,
            sentinel_username=config.sentinel_username,
            owns_http=True,
        )

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> ApiClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    @property
    def authenticator(self) -> Authenticator:
        return self._authenticator

    # ------------------------------------------------------------------ #
    # Public request method
    # ------------------------------------------------------------------ #

    def call(self, endpoint: str, method: str = "GET", body: Any = None) -> Any:
        """Issue one authenticated request and return the decoded JSON body.

        Args:
            endpoint: Path (with query string, if any) under the API root.
            method: HTTP method.
            body: JSON-serialisable payload. Sent only for POST, PUT and
                PATCH; ignored otherwise.

        Returns:
            The parsed JSON value, or ``None`` for an empty 2xx body.

        Raises:
            AuthError: If session negotiation fails.
            ApiError: ``network`` when no response arrived, ``http`` on a
                non-2xx status, ``decode`` when a 2xx body is not JSON.
        """
        session = self._authenticator.ensure_session()
        method = method.upper()

        headers = self._base_headers()
        headers.update(
            strategy_for(session.scheme, self._sentinel_username).headers(
                session.token.get_secret_value()
            )
        )

        kwargs: dict[str, Any] = {"method": method, "url": endpoint, "headers": headers}
        if body is not None and method in PAYLOAD_METHODS:
            kwargs["json"] = body

        debug(f"{method} {endpoint} ({session.scheme.value})")
        try:
            response = self._http.request(**kwargs)
        except httpx.RequestError as exc:
            raise ApiError.network(endpoint, exc) from exc

        debug(f"{method} {endpoint} -> HTTP {response.status_code}")
        if not response.is_success:
            raise ApiError.http(endpoint, response.status_code, response.reason_phrase)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ApiError.decode(endpoint, exc) from exc

    # ------------------------------------------------------------------ #
    # Diagnostics
    # ------------------------------------------------------------------ #

    def describe_auth(self) -> dict[str, Any]:
        """Summarise the authentication state without exposing credentials.

        Returns:
            A dict with ``state``, ``mode``, ``scheme``, ``expiry`` and the
            request headers with ``Authorization`` redacted.
        """
        session = self._authenticator.session
        headers = self._base_headers()
        if session is not None:
            headers["Authorization"] = REDACTED
        return {
            "state": self._authenticator.state.value,
            "mode": "token-exchange" if self._authenticator.uses_exchange else "direct-token",
            "scheme": session.scheme.value if session else None,
            "expiry": session.expiry.isoformat() if session and session.expiry else None,
            "headers": headers,
        }

    @staticmethod
    def _base_headers() -> dict[str, str]:
        return {"Accept": "application/json"}
