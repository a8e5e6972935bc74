"""Built-in authorization schemes.

- :class:`BearerScheme` -- the token verbatim as ``Authorization: Bearer``.
- :class:`EmbeddedTokenBasicScheme` -- HTTP Basic (:rfc:`7617`) with the
  token as the password of a fixed, well-known username. Some deployment
  servers only accept access tokens in this form.
- :class:`ExchangedBearerScheme` -- bearer header for a token obtained from
  a :class:`~deploy_gateway.auth.exchange.TokenExchanger`. Never probed.

:func:`default_probe_order` fixes the order in which negotiation tries the
probeable schemes; Bearer always comes first.
"""

from __future__ import annotations

import base64

from deploy_gateway.auth.base import SchemeStrategy
from deploy_gateway.models import AuthScheme

DEFAULT_SENTINEL_USERNAME = "PasswordIsAuthToken"


class BearerScheme(SchemeStrategy):
    """Send the token as ``Authorization: Bearer <token>``."""

    @property
    def scheme(self) -> AuthScheme:
        return AuthScheme.BEARER

    def authorization(self, token: str) -> str:
        return f"Bearer {token}"


class EmbeddedTokenBasicScheme(SchemeStrategy):
    """Send ``Authorization: Basic base64(<sentinel>:<token>)``.

    Args:
        username: The sentinel username the server expects in front of the
            embedded token.
    """

    def __init__(self, username: str = DEFAULT_SENTINEL_USERNAME) -> None:
        self._username = username

    @property
    def scheme(self) -> AuthScheme:
        return AuthScheme.BASIC_EMBEDDED_TOKEN

    @property
    def username(self) -> str:
        return self._username

    def authorization(self, token: str) -> str:
        raw = f"{self._username}:{token}"
        encoded = base64.b64encode(raw.encode("utf-8")).decode("ascii")
        return f"Basic {encoded}"


class ExchangedBearerScheme(BearerScheme):
    """Bearer header for an exchanged access token."""

    @property
    def scheme(self) -> AuthScheme:
        return AuthScheme.EXCHANGED_BEARER


def default_probe_order(sentinel_username: str = DEFAULT_SENTINEL_USERNAME) -> list[SchemeStrategy]:
    """Return the probeable schemes in negotiation order: Bearer, then Basic."""
    return [BearerScheme(), EmbeddedTokenBasicScheme(sentinel_username)]


def strategy_for(
    scheme: AuthScheme,
    sentinel_username: str = DEFAULT_SENTINEL_USERNAME,
) -> SchemeStrategy:
    """Return the strategy that formats headers for *scheme*."""
    if scheme == AuthScheme.BEARER:
        return BearerScheme()
    if scheme == AuthScheme.BASIC_EMBEDDED_TOKEN:
        return EmbeddedTokenBasicScheme(sentinel_username)
    return ExchangedBearerScheme()
