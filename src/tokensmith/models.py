"""Canonical Pydantic models for tokensmith configuration.

Every process-wide setting the library consumes lives here, built once
and frozen afterwards. The models fall into four groups mirroring the
sections of a configuration mapping::

    {
        "client": {"id": "...", "secret": "..."},
        "auth": {"token_host": "https://example.org"},
        "options": {"authorization_method": "body", "body_format": "form"},
        "http": {"timeout": 10},
    }

Field names are accepted either in ``snake_case`` or in ``camelCase``
(``tokenHost``, ``idParamName``, ``authorizationMethod`` ...).
Use :meth:`Settings.from_mapping` to build settings from untrusted input:
it turns validation failures into
:class:`~tokensmith.exceptions.ConfigurationError`.
"""

from __future__ import annotations

import enum
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from tokensmith.exceptions import ConfigurationError


class AuthorizationMethod(str, enum.Enum):
    """Where client credentials travel on token and revoke requests."""

    HEADER = "header"
    BODY = "body"


class BodyFormat(str, enum.Enum):
    """Encoding of the request body."""

    FORM = "form"
    JSON = "json"


class MissingExpiryPolicy(str, enum.Enum):
    """How to treat a token response carrying neither ``expires_in`` nor ``expires_at``.

    ``NEVER`` makes the token never expire locally; ``EXPIRED`` makes it
    stale from the moment it is created.
    """

    NEVER = "never"
    EXPIRED = "expired"


_FROZEN = ConfigDict(
    frozen=True,
    alias_generator=to_camel,
    populate_by_name=True,
    extra="forbid",
)


class ClientCredentials(BaseModel):
    """Identity of the registered OAuth2 client."""

    model_config = _FROZEN

    id: str = Field(min_length=1, description="Client identifier")
    secret: str = Field(description="Client secret")
    id_param_name: str = Field(
        default="client_id",
        min_length=1,
        description="Body parameter name for the id in body authentication",
    )
    secret_param_name: str = Field(
        default="client_secret",
        min_length=1,
        description="Body parameter name for the secret in body authentication",
    )


class AuthHosts(BaseModel):
    """Authorization server location and endpoint paths.

    ``token_host`` is stored without a trailing slash so that
    ``token_host + token_path`` always yields a well-formed URL.
    """

    model_config = _FROZEN

    token_host: str = Field(min_length=1)
    token_path: str = "/oauth/token"
    revoke_path: str = "/oauth/revoke"
    authorize_host: Optional[str] = None
    authorize_path: str = "/oauth/authorize"

    @field_validator("token_host", "authorize_host")
    @classmethod
    def _strip_trailing_slash(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.rstrip("/")
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"host must be an http(s) URL, got {value!r}")
        return value

    @property
    def token_url(self) -> str:
        return f"{self.token_host}{self.token_path}"

    @property
    def revoke_url(self) -> str:
        return f"{self.token_host}{self.revoke_path}"

    @property
    def authorize_url(self) -> str:
        return f"{self.authorize_host or self.token_host}{self.authorize_path}"


class RequestOptions(BaseModel):
    """Request construction switches.

    Exactly one authentication method and one body format are active for
    every request the library sends.
    """

    model_config = _FROZEN

    authorization_method: AuthorizationMethod = AuthorizationMethod.HEADER
    body_format: BodyFormat = BodyFormat.FORM
    missing_expiry: MissingExpiryPolicy = MissingExpiryPolicy.NEVER


class HttpOptions(BaseModel):
    """Settings handed to the default :class:`httpx.AsyncClient` transport."""

    model_config = _FROZEN

    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")
    verify_ssl: bool = True
    headers: dict[str, str] = Field(
        default_factory=dict,
        description="Default headers sent underneath the per-request ones",
    )


class Settings(BaseModel):
    """Complete tokensmith configuration.

    Example::

        settings = Settings.from_mapping({
            "client": {"id": "client-id", "secret": "client-secret"},
            "auth": {"tokenHost": "https://example.org"},
            "options": {"authorizationMethod": "body"},
        })
    """

    model_config = _FROZEN

    client: ClientCredentials
    auth: AuthHosts
    options: RequestOptions = Field(default_factory=RequestOptions)
    http: HttpOptions = Field(default_factory=HttpOptions)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Settings:
        """Validate *data* into :class:`Settings`.

        Raises:
            ConfigurationError: If a section is missing, a value has the
                wrong type, or an enum option is not one of its choices.
        """
        try:
            return cls.model_validate(dict(data))
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                for err in exc.errors()
            )
            raise ConfigurationError(f"Invalid configuration: {problems}") from exc
