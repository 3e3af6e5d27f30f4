"""tokensmith -- OAuth2 client-side token handling.

Builds authenticated requests to an authorization server's token endpoint
and manages the lifecycle of the resulting access tokens: creation, expiry
inspection, refresh, and revocation. Tokens are immutable values; a
refresh returns a new token and a revocation returns a terminal
:class:`~tokensmith.token.RevokedToken`.

Typical usage::

    oauth2 = create_client({
        "client": {"id": "client-id", "secret": "client-secret"},
        "auth": {"tokenHost": "https://example.org"},
    })
    token = oauth2.access_token.create(await oauth2.client_credentials.get_token())

Modules:
    client: Request builder (client authentication and body encoding).
    token: Access-token lifecycle.
    grants: Grant front-ends assembling token-endpoint parameters.
    callbacks: Callback-style adapter over the coroutine API.
    models: Pydantic configuration models.
    config: Configuration loading from files and environment.
    exceptions: Exception hierarchy with exit-code mapping.
    app: Typer CLI entry point.
"""

__version__ = "0.1.0"

from tokensmith.callbacks import run_sync, with_callback
from tokensmith.client import RequestBuilder
from tokensmith.exceptions import (
    ConfigurationError,
    ConstructionError,
    RequestError,
    RevokeError,
    TokensmithError,
)
from tokensmith.models import (
    AuthHosts,
    AuthorizationMethod,
    BodyFormat,
    ClientCredentials,
    HttpOptions,
    MissingExpiryPolicy,
    RequestOptions,
    Settings,
)
from tokensmith.oauth2 import OAuth2, create_client
from tokensmith.token import AccessToken, AccessTokenFactory, RevokedToken

__all__ = [
    "AccessToken",
    "AccessTokenFactory",
    "AuthHosts",
    "AuthorizationMethod",
    "BodyFormat",
    "ClientCredentials",
    "ConfigurationError",
    "ConstructionError",
    "HttpOptions",
    "MissingExpiryPolicy",
    "OAuth2",
    "RequestBuilder",
    "RequestError",
    "RequestOptions",
    "RevokeError",
    "RevokedToken",
    "Settings",
    "TokensmithError",
    "create_client",
    "run_sync",
    "with_callback",
]
