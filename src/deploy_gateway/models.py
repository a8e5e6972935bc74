"""Canonical Pydantic models shared across all deploy-gateway modules.

The models fall into three groups:

**Configuration** -- :class:`GatewayConfig` and :class:`UserSettings`,
resolved by :mod:`deploy_gateway.config`.

**Authentication state** -- :class:`AuthScheme`, :class:`AuthState`,
:class:`Session`, :class:`AuthDecision`, and :class:`ExchangeResult`,
produced and owned by :mod:`deploy_gateway.auth`.

**Operation payloads** -- :class:`ComponentVersion` and
:class:`ComponentDifference`, used by :mod:`deploy_gateway.operations`.

The credential is always held as a :class:`~pydantic.SecretStr` so that it
never appears in a ``repr`` or a log line.
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator


# --- Configuration ---


class GatewayConfig(BaseModel):
    """Effective runtime configuration for one gateway process.

    Example::

        GatewayConfig(
            server_url="https://deploy.example.com/deploy",
            token=SecretStr("c25b1edd-..."),
        )
    """

    server_url: str = Field(description="Root URL of the deployment server")
    token: SecretStr = Field(description="Opaque credential supplied at startup")
    use_token_exchange: bool = Field(
        default=False,
        description="Exchange the token for a short-lived bearer token instead "
        "of presenting it directly",
    )
    exchange_url: Optional[str] = Field(
        default=None, description="Token exchange endpoint (defaults under server_url)"
    )
    api_prefix: str = Field(default="/cli", description="REST root under server_url")
    probe_endpoint: str = Field(
        default="/application",
        description="Cheap, side-effect-free GET endpoint used to probe schemes",
    )
    sentinel_username: str = Field(
        default="PasswordIsAuthToken",
        description="Fixed username under which the token is embedded for Basic auth",
    )
    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify TLS certificates")

    @property
    def api_base_url(self) -> str:
        """``server_url`` joined with ``api_prefix`` (no trailing slash)."""
        return f"{self.server_url.rstrip('/')}{self.api_prefix}"

    @property
    def token_exchange_url(self) -> str:
        """The explicit ``exchange_url`` or ``<server_url>/oauth/token``."""
        if self.exchange_url:
            return self.exchange_url
        return f"{self.server_url.rstrip('/')}/oauth/token"


class UserSettings(BaseModel):
    """Non-secret defaults persisted at ``~/.config/deploy-gateway/config.json``.

    Credentials are deliberately absent: they are supplied per process via
    flags or the environment and never written to disk.
    """

    model_config = ConfigDict(extra="ignore")

    server_url: Optional[str] = None
    use_token_exchange: Optional[bool] = None
    exchange_url: Optional[str] = None
    timeout: Optional[float] = None
    verify_ssl: Optional[bool] = None


# --- Authentication state ---


class AuthScheme(str, enum.Enum):
    """Ways of presenting a credential over HTTP."""

    BEARER = "bearer"
    BASIC_EMBEDDED_TOKEN = "basic_embedded_token"
    EXCHANGED_BEARER = "exchanged_bearer"


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Read a naive expiry as UTC so it compares with the aware clock."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class AuthState(str, enum.Enum):
    """Lifecycle tag of the :class:`~deploy_gateway.auth.Authenticator`."""

    UNAUTHENTICATED = "unauthenticated"
    NEGOTIATING = "negotiating"
    AUTHENTICATED = "authenticated"


class Session(BaseModel):
    """The active scheme, the token to present, and its optional expiry.

    ``token`` equals the startup credential except for
    :attr:`AuthScheme.EXCHANGED_BEARER`, where it is the exchanged access
    token. ``expiry`` is ``None`` for schemes that never expire.
    """

    model_config = ConfigDict(frozen=True)

    scheme: AuthScheme
    token: SecretStr
    expiry: Optional[datetime] = None

    @field_validator("expiry")
    @classmethod
    def _expiry_as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v)

    def is_valid(self, now: datetime) -> bool:
        """Return ``True`` while *now* precedes the expiry (always, without one)."""
        return self.expiry is None or now < self.expiry


class AuthDecision(BaseModel):
    """Outcome of one probe run; transient, never persisted."""

    accepted: bool
    scheme: Optional[AuthScheme] = None
    attempts: list[AuthScheme] = Field(default_factory=list)


class ExchangeResult(BaseModel):
    """Result of a token exchange.

    On success ``access_token`` is set and ``expiry`` may be; on failure
    ``error`` (and possibly ``error_description``) explains why.
    """

    success: bool
    access_token: Optional[SecretStr] = None
    expiry: Optional[datetime] = None
    error: Optional[str] = None
    error_description: Optional[str] = None

    @field_validator("expiry")
    @classmethod
    def _expiry_as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v)

    @property
    def reason(self) -> str:
        """Best available human-readable failure reason."""
        return self.error_description or self.error or "unknown error"


# --- Operation payloads ---


class ComponentVersion(BaseModel):
    """A component/version pair to deploy. Both values are server IDs."""

    component: str
    version: str


class ComponentDifference(BaseModel):
    """One component whose version differs between two inventories.

    ``None`` on either side means the component is not deployed there.
    """

    component: str
    source: Optional[str] = None
    target: Optional[str] = None
