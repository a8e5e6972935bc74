"""Token exchange -- trade a long-lived identity token for a bearer token.

When the startup credential is a personal access token meant for exchange,
it is not valid in any other form: the
:class:`~deploy_gateway.auth.authenticator.Authenticator` skips probing and
asks a :class:`TokenExchanger` for a short-lived access token instead.

The exchanger reports failures as values
(:class:`~deploy_gateway.models.ExchangeResult` with ``success=False``)
rather than raising, so the authenticator decides how a failed exchange is
surfaced.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

import httpx
from pydantic import SecretStr

from deploy_gateway.models import ExchangeResult
from deploy_gateway.output import debug

TOKEN_EXCHANGE_GRANT = "urn:ietf:params:oauth:grant-type:token-exchange"
ACCESS_TOKEN_TYPE = "urn:ietf:params:oauth:token-type:access_token"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TokenExchanger(ABC):
    """Black-box source of exchanged access tokens."""

    @abstractmethod
    def get_access_token(self) -> ExchangeResult:
        """Obtain a fresh access token.

        Returns:
            A successful result carrying ``access_token`` (and ``expiry``
            when the issuer supplied one), or a failed result carrying
            ``error`` and optionally ``error_description``.
        """
        ...


class PersonalAccessTokenExchanger(TokenExchanger):
    """Exchange a personal access token via an :rfc:`8693` token-exchange grant.

    Posts ``grant_type=urn:ietf:params:oauth:grant-type:token-exchange`` with
    the personal access token as ``subject_token`` to *exchange_url*. An
    ``expires_in`` in the reply becomes an absolute expiry; without one the
    token is treated as non-expiring.

    Args:
        http: Transport for the exchange request.
        exchange_url: Absolute URL of the token endpoint.
        personal_access_token: The long-lived token to exchange.
        clock: Returns the current time; injectable for tests.
    """

    def __init__(
        self,
        http: httpx.Client,
        exchange_url: str,
        personal_access_token: SecretStr,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._http = http
        self._exchange_url = exchange_url
        self._token = personal_access_token
        self._clock = clock

    def get_access_token(self) -> ExchangeResult:
        data = {
            "grant_type": TOKEN_EXCHANGE_GRANT,
            "subject_token": self._token.get_secret_value(),
            "subject_token_type": ACCESS_TOKEN_TYPE,
        }
        try:
            response = self._http.post(
                self._exchange_url,
                data=data,
                headers={"Accept": "application/json"},
            )
        except httpx.RequestError as exc:
            debug(f"Token exchange: transport failure ({type(exc).__name__})")
            return ExchangeResult(
                success=False, error="request_failed", error_description=str(exc)
            )

        payload = _json_or_none(response)

        if not response.is_success:
            error = "http_error"
            description = f"HTTP {response.status_code} {response.reason_phrase}".rstrip()
            if isinstance(payload, dict):
                error = str(payload.get("error") or error)
                description = str(payload.get("error_description") or description)
            return ExchangeResult(success=False, error=error, error_description=description)

        if not isinstance(payload, dict) or not payload.get("access_token"):
            return ExchangeResult(
                success=False,
                error="invalid_response",
                error_description="Token response missing 'access_token' field",
            )

        expiry: Optional[datetime] = None
        expires_in = payload.get("expires_in")
        if expires_in is not None:
            try:
                expiry = self._clock() + timedelta(seconds=float(expires_in))
            except (TypeError, ValueError):
                return ExchangeResult(
                    success=False,
                    error="invalid_response",
                    error_description=f"Unusable 'expires_in' value: {expires_in!r}",
                )

        debug("Token exchange: access token acquired")
        return ExchangeResult(
            success=True,
            access_token=SecretStr(str(payload["access_token"])),
            expiry=expiry,
        )


def _json_or_none(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None
