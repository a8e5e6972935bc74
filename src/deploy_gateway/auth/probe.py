"""Credential probe -- find the scheme a server accepts for a credential.

The probe sends one cheap, side-effect-free GET per scheme against a
designated endpoint (``/application`` -- "list applications" -- by default)
and stops at the first 2xx. Testing against a read-only endpoint first keeps
wrong-format credentials away from state-mutating endpoints.

Each attempt is a single network call with no retry and no backoff. A
transport failure for one scheme counts as a rejection of that scheme only;
the next scheme is still tried.
"""

from __future__ import annotations

from typing import Optional, Sequence

import httpx

from deploy_gateway.auth.base import SchemeStrategy
from deploy_gateway.auth.schemes import default_probe_order
from deploy_gateway.models import AuthDecision
from deploy_gateway.output import debug


class CredentialProbe:
    """Try a credential against each scheme in order until one is accepted.

    Args:
        http: Transport used for probe requests. Its ``base_url`` must point
            at the API root so that *endpoint* resolves against it.
        endpoint: Path of the probe endpoint.
        schemes: Ordered strategies to try. Defaults to Bearer, then
            Basic-with-embedded-token.

    Example::

        probe = CredentialProbe(http, "/application")
        decision = probe.probe(token)
        if decision.accepted:
            print(decision.scheme)
    """

    def __init__(
        self,
        http: httpx.Client,
        endpoint: str = "/application",
        schemes: Optional[Sequence[SchemeStrategy]] = None,
    ) -> None:
        self._http = http
        self._endpoint = endpoint
        self._schemes: list[SchemeStrategy] = (
            list(schemes) if schemes is not None else default_probe_order()
        )

    @property
    def schemes(self) -> list[SchemeStrategy]:
        return list(self._schemes)

    def probe(self, credential: str) -> AuthDecision:
        """Return the first scheme that accepts *credential*, or a failed decision.

        Args:
            credential: The raw credential. Never logged.

        Returns:
            An :class:`~deploy_gateway.models.AuthDecision` listing every
            scheme attempted, in order.
        """
        attempts = []
        for strategy in self._schemes:
            attempts.append(strategy.scheme)
            if self._accepts(strategy, credential):
                debug(f"Probe: {strategy.scheme.value} accepted")
                return AuthDecision(accepted=True, scheme=strategy.scheme, attempts=attempts)
            debug(f"Probe: {strategy.scheme.value} rejected")
        return AuthDecision(accepted=False, attempts=attempts)

    def _accepts(self, strategy: SchemeStrategy, credential: str) -> bool:
        headers = {"Accept": "application/json"}
        headers.update(strategy.headers(credential))
        try:
            response = self._http.get(self._endpoint, headers=headers)
        except httpx.RequestError as exc:
            debug(f"Probe: {strategy.scheme.value} transport failure ({type(exc).__name__})")
            return False
        return response.is_success
