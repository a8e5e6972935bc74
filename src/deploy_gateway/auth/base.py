"""Abstract base class for authorization schemes.

A :class:`SchemeStrategy` knows one way of presenting a token over HTTP and
nothing else: it turns a token into an ``Authorization`` header value. The
:class:`~deploy_gateway.auth.probe.CredentialProbe` iterates an ordered
list of strategies, and the :class:`~deploy_gateway.client.ApiClient` asks
the strategy for the active session's scheme to build every request's
header.

To support a new scheme, subclass :class:`SchemeStrategy`, set
:attr:`~SchemeStrategy.scheme`, implement
:meth:`~SchemeStrategy.authorization`, and add an instance to the probe's
scheme list.

See Also:
    :mod:`deploy_gateway.auth.schemes` for the built-in strategies.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from deploy_gateway.models import AuthScheme


class SchemeStrategy(ABC):
    """One way of presenting a token in the ``Authorization`` header."""

    @property
    @abstractmethod
    def scheme(self) -> AuthScheme:
        """The :class:`~deploy_gateway.models.AuthScheme` this strategy implements."""
        ...

    @abstractmethod
    def authorization(self, token: str) -> str:
        """Return the ``Authorization`` header value for *token*.

        Args:
            token: The raw token. Implementations must not log it.

        Returns:
            A complete header value such as ``"Bearer abc"``.
        """
        ...

    def headers(self, token: str) -> dict[str, str]:
        """Return the auth headers for *token* (just ``Authorization``)."""
        return {"Authorization": self.authorization(token)}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(scheme={self.scheme.value!r})"
