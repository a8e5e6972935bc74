"""Credential negotiation for deploy-gateway.

This package decides, at first use, how the remote server wants a credential
presented, caches that decision for the life of the process, and renews it
when an exchanged token expires.

The main entry points are:

- :class:`SchemeStrategy` -- abstract base for a way of presenting a token.
- :class:`CredentialProbe` -- tries each scheme in a fixed order against a
  cheap read endpoint.
- :class:`TokenExchanger` / :class:`PersonalAccessTokenExchanger` -- trade
  an identity token for a short-lived bearer token.
- :class:`Authenticator` -- owns the session and the single-flight
  negotiation guard.

Typical usage::

    from deploy_gateway.auth import Authenticator, CredentialProbe

    authenticator = Authenticator(token, CredentialProbe(http))
    session = authenticator.ensure_session()
"""

from deploy_gateway.auth.authenticator import Authenticator
from deploy_gateway.auth.base import SchemeStrategy
from deploy_gateway.auth.exchange import PersonalAccessTokenExchanger, TokenExchanger
from deploy_gateway.auth.probe import CredentialProbe
from deploy_gateway.auth.schemes import (
    BearerScheme,
    EmbeddedTokenBasicScheme,
    ExchangedBearerScheme,
    default_probe_order,
    strategy_for,
)

__all__ = [
    "Authenticator",
    "BearerScheme",
    "CredentialProbe",
    "EmbeddedTokenBasicScheme",
    "ExchangedBearerScheme",
    "PersonalAccessTokenExchanger",
    "SchemeStrategy",
    "TokenExchanger",
    "default_probe_order",
    "strategy_for",
]
