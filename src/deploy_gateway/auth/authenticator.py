"""Authenticator -- owns the session and negotiates it on demand.

State machine::

    UNAUTHENTICATED --ensure_session--> NEGOTIATING --success--> AUTHENTICATED
          ^                                  |                        |
          +-------------- failure -----------+        expiry reached  |
                                             ^------------------------+

Negotiation takes one of two paths:

- **Exchange** -- when a :class:`~deploy_gateway.auth.exchange.TokenExchanger`
  is configured, the credential is an identity token meant for exchange.
  The probe is never run, and a failed exchange is fatal: there is no
  fallback scheme.
- **Probe** -- otherwise the :class:`~deploy_gateway.auth.probe.CredentialProbe`
  picks the first accepted scheme, and the credential itself becomes the
  session token with no expiry.

A session without expiry is never re-validated. A session with one is
re-negotiated once the clock reaches it. Negotiation failures are not
retried; the calling request fails with :class:`~deploy_gateway.exceptions.AuthError`.

Concurrent callers that find no usable session share a single in-flight
negotiation and all observe its outcome (the same session, or the same
``AuthError`` instance).
"""

from __future__ import annotations

import threading
from datetime import datetime
from typing import Callable, Optional

from pydantic import SecretStr

from deploy_gateway.auth.exchange import TokenExchanger, utc_now
from deploy_gateway.auth.probe import CredentialProbe
from deploy_gateway.exceptions import AuthError
from deploy_gateway.models import AuthScheme, AuthState, Session
from deploy_gateway.output import debug


class _Negotiation:
    """One in-flight negotiation that late callers wait on."""

    def __init__(self) -> None:
        self.done = threading.Event()
        self.session: Optional[Session] = None
        self.error: Optional[BaseException] = None

    def result(self) -> Session:
        self.done.wait()
        if self.error is not None:
            raise self.error
        assert self.session is not None
        return self.session


class Authenticator:
    """Negotiates, caches, and renews the process-wide :class:`~deploy_gateway.models.Session`.

    Args:
        credential: The opaque credential supplied at startup.
        probe: Probe used when no exchanger is configured.
        exchanger: Optional token-exchange collaborator. When set, the probe
            is never used.
        clock: Returns the current time as an aware ``datetime``; injectable
            for tests.

    Example::

        authenticator = Authenticator(config.token, CredentialProbe(http))
        session = authenticator.ensure_session()
    """

    def __init__(
        self,
        credential: SecretStr | str,
        probe: Optional[CredentialProbe] = None,
        exchanger: Optional[TokenExchanger] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        if probe is None and exchanger is None:
            raise ValueError("Authenticator needs a probe or a token exchanger")
        self._credential = credential if isinstance(credential, SecretStr) else SecretStr(credential)
        self._probe = probe
        self._exchanger = exchanger
        self._clock = clock

        self._lock = threading.Lock()
        self._state = AuthState.UNAUTHENTICATED
        self._session: Optional[Session] = None
        self._inflight: Optional[_Negotiation] = None

    # ------------------------------------------------------------------ #
    # Read-only views
    # ------------------------------------------------------------------ #

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def session(self) -> Optional[Session]:
        """The cached session, if any (possibly expired)."""
        return self._session

    @property
    def uses_exchange(self) -> bool:
        return self._exchanger is not None

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def ensure_session(self) -> Session:
        """Return a usable session, negotiating one if absent or expired.

        Returns:
            The active :class:`~deploy_gateway.models.Session`.

        Raises:
            AuthError: If no scheme accepts the credential or the token
                exchange fails.
        """
        with self._lock:
            if (
                self._state == AuthState.AUTHENTICATED
                and self._session is not None
                and self._session.is_valid(self._clock())
            ):
                return self._session

            flight = self._inflight
            leader = flight is None
            if flight is None:
                if self._session is not None:
                    debug(f"Auth: {self._session.scheme.value} session expired, renegotiating")
                flight = self._inflight = _Negotiation()
                self._state = AuthState.NEGOTIATING
                self._session = None

        if not leader:
            return flight.result()

        try:
            session = self._negotiate()
        except BaseException as exc:
            with self._lock:
                self._state = AuthState.UNAUTHENTICATED
                self._inflight = None
            flight.error = exc
            flight.done.set()
            raise

        with self._lock:
            self._session = session
            self._state = AuthState.AUTHENTICATED
            self._inflight = None
        flight.session = session
        flight.done.set()
        return session

    def invalidate(self) -> None:
        """Drop the cached session so that the next call re-negotiates.

        Has no effect while a negotiation is in flight.
        """
        with self._lock:
            if self._inflight is not None:
                return
            self._session = None
            self._state = AuthState.UNAUTHENTICATED

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _negotiate(self) -> Session:
        if self._exchanger is not None:
            return self._negotiate_exchange(self._exchanger)
        assert self._probe is not None
        return self._negotiate_probe(self._probe)

    def _negotiate_exchange(self, exchanger: TokenExchanger) -> Session:
        debug("Auth: exchanging credential for an access token")
        result = exchanger.get_access_token()
        if not result.success or result.access_token is None:
            reason = result.reason if not result.success else "no access token returned"
            debug("Auth: token exchange failed")
            raise AuthError(f"Token exchange failed: {reason}")
        debug(f"Auth: {AuthScheme.EXCHANGED_BEARER.value} session established")
        return Session(
            scheme=AuthScheme.EXCHANGED_BEARER,
            token=result.access_token,
            expiry=result.expiry,
        )

    def _negotiate_probe(self, probe: CredentialProbe) -> Session:
        debug("Auth: probing credential schemes")
        decision = probe.probe(self._credential.get_secret_value())
        if not decision.accepted or decision.scheme is None:
            tried = ", ".join(s.value for s in decision.attempts) or "none"
            raise AuthError(f"Token authentication failed: no scheme accepted (tried {tried})")
        debug(f"Auth: {decision.scheme.value} session established")
        return Session(scheme=decision.scheme, token=self._credential)
