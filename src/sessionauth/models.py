"""Canonical Pydantic models shared across all sessionauth modules.

The models fall into two groups:

**Configuration models** -- serialised as JSON in the user's config
directory: :class:`Profile`, :class:`ProviderOverrides`, and
:class:`AppConfig`. :class:`ProviderConfig` is the resolved, immutable view
of the identity provider handed to every component of the login flow.

**Protocol models** -- decoded from the identity provider's responses:
:class:`TokenResponse`, :class:`UITokenClaim`, and :class:`SessionClaims`.

All models use Pydantic v2. Models that may carry fields written by other
tools use ``extra="allow"`` so unknown keys survive a rewrite of the file.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


DEFAULT_AUTH_BASE_URL = "https://auth.sessionauth.dev"
DEFAULT_CLIENT_ID = "sessionauth-cli"
DEFAULT_AUDIENCE = "https://api.sessionauth.dev/"
DEFAULT_CALLBACK_PORT = 8080
DEFAULT_AUTH_TIMEOUT = 300


# --- Identity provider ---


class ProviderConfig(BaseModel):
    """Immutable description of the identity provider used by the login flow.

    Every component of the flow receives this object at construction time
    instead of reading module-level constants, so tests can point the whole
    flow at a fake provider.

    Example::

        provider = ProviderConfig(
            auth_base_url="https://idp.example.com",
            client_id="abc",
            audience="https://api.example.com/",
        )
        provider.token_endpoint  # 'https://idp.example.com/oauth/token'
    """

    model_config = ConfigDict(frozen=True)

    auth_base_url: str = Field(
        default=DEFAULT_AUTH_BASE_URL, description="Base URL of the identity provider"
    )
    client_id: str = Field(default=DEFAULT_CLIENT_ID, description="Public OAuth client ID")
    audience: str = Field(
        default=DEFAULT_AUDIENCE, description="API identifier the tokens are issued for"
    )
    scope: str = Field(default="openid", description="Requested OAuth scope")
    callback_host: str = Field(
        default="localhost",
        description="Host named in the redirect URI; the callback server binds each of its addresses",
    )
    callback_port: int = Field(
        default=DEFAULT_CALLBACK_PORT, ge=1, le=65535, description="Local callback port"
    )
    jwt_algorithms: tuple[str, ...] = Field(
        default=("RS256",), description="Signature algorithms accepted for tokens"
    )

    @property
    def base_url(self) -> str:
        return self.auth_base_url.rstrip("/")

    @property
    def authorize_endpoint(self) -> str:
        return f"{self.base_url}/authorize"

    @property
    def token_endpoint(self) -> str:
        return f"{self.base_url}/oauth/token"

    @property
    def jwks_endpoint(self) -> str:
        return f"{self.base_url}/.well-known/jwks.json"

    @property
    def redirect_uri(self) -> str:
        """Where the provider sends the browser after the user logs in."""
        return f"http://{self.callback_host}:{self.callback_port}/callback"

    @property
    def token_redirect_uri(self) -> str:
        """Origin echoed to the token endpoint. Never redirected to, only compared."""
        return f"http://{self.callback_host}:{self.callback_port}"


class ProviderOverrides(BaseModel):
    """Optional per-field overrides for :class:`ProviderConfig` stored in the config file."""

    auth_base_url: Optional[str] = None
    client_id: Optional[str] = None
    audience: Optional[str] = None
    callback_port: Optional[int] = Field(default=None, ge=1, le=65535)


# --- Profiles and config file ---


class Profile(BaseModel):
    """A named set of credentials stored in the config file.

    Exactly one profile is expected to carry ``default=True``; the browser
    login flow writes its session token into that profile.
    """

    model_config = ConfigDict(extra="allow")

    default: bool = False
    email: Optional[str] = None
    token: Optional[str] = None


class AppConfig(BaseModel):
    """The whole configuration file persisted at ``~/.config/sessionauth/config.json``.

    Loaded and saved by :func:`~sessionauth.config.load_config` and
    :func:`~sessionauth.config.save_config`. The file is always rewritten
    in full.
    """

    model_config = ConfigDict(extra="allow")

    profiles: dict[str, Profile] = Field(default_factory=dict)
    provider: ProviderOverrides = Field(default_factory=ProviderOverrides)
    auth_timeout: int = Field(
        default=DEFAULT_AUTH_TIMEOUT,
        ge=0,
        description="Seconds to wait for the browser login (0 waits forever)",
    )


# --- Identity provider responses ---


class TokenResponse(BaseModel):
    """The token endpoint's answer to an authorization code exchange."""

    model_config = ConfigDict(frozen=True)

    # Can be exchanged for an API token.
    access_token: str = ""
    # Lifetime of the access token in seconds.
    expires_in: int = 0
    # Carries the user's claims, including the session token.
    id_token: str = ""
    token_type: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def _null_as_default(cls, value: Any, info: ValidationInfo) -> Any:
        # A JSON null decodes the same as an absent field.
        if value is None:
            return cls.model_fields[info.field_name].default
        return value


class UITokenClaim(BaseModel):
    """The ``ui_token`` custom claim nested inside the ID token."""

    access_token: str = Field(min_length=1, strict=True)


class SessionClaims(BaseModel):
    """The subset of verified ID token claims the login flow relies on."""

    ui_token: UITokenClaim
