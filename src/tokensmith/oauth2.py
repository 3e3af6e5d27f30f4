"""Entry point wiring settings, request builder, grants, and tokens together.

Example::

    from tokensmith import create_client

    oauth2 = create_client({
        "client": {"id": "client-id", "secret": "client-secret"},
        "auth": {"tokenHost": "https://example.org"},
        "options": {"authorizationMethod": "body"},
    })

    response = await oauth2.client_credentials.get_token(scope="read")
    token = oauth2.access_token.create(response)
    if token.expired(window_seconds=60):
        token = await token.refresh()
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Union

import httpx

from tokensmith.client import RequestBuilder
from tokensmith.encoding import HeaderEncoding, get_authorization_header_token
from tokensmith.grants import AuthorizationCode, ClientCredentialsGrant, PasswordGrant
from tokensmith.models import Settings
from tokensmith.token import AccessTokenFactory


class OAuth2:
    """Bundle of grant front-ends and the token factory sharing one :class:`Settings`.

    Args:
        settings: Validated configuration.
        header_encoding: Basic token encoder for ``header`` authentication.
        transport: Optional caller-owned :class:`httpx.AsyncClient`.
    """

    def __init__(
        self,
        settings: Settings,
        header_encoding: HeaderEncoding = get_authorization_header_token,
        transport: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.settings = settings
        self.requester = RequestBuilder(settings, header_encoding, transport)
        self.auth_code = AuthorizationCode(self.requester)
        self.client_credentials = ClientCredentialsGrant(self.requester)
        self.password = PasswordGrant(self.requester)
        self.access_token = AccessTokenFactory(self.requester)


def create_client(
    config: Union[Settings, Mapping[str, Any]],
    header_encoding: HeaderEncoding = get_authorization_header_token,
    transport: Optional[httpx.AsyncClient] = None,
) -> OAuth2:
    """Build an :class:`OAuth2` from :class:`Settings` or a raw configuration mapping.

    Raises:
        ConfigurationError: If *config* is a mapping that does not validate.
    """
    settings = config if isinstance(config, Settings) else Settings.from_mapping(config)
    return OAuth2(settings, header_encoding, transport)
