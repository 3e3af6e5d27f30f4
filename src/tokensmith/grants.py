"""Grant front-ends that assemble token-endpoint parameters.

Each grant only decides *which* parameters to send; client authentication,
body encoding, and error mapping are left to
:class:`~tokensmith.client.RequestBuilder`. Every ``get_token`` coroutine
returns the raw token response mapping, which callers wrap with
:meth:`tokensmith.token.AccessTokenFactory.create`.

Supported grants (:rfc:`6749`):

- :class:`AuthorizationCode` -- section 4.1 (URL building and code exchange
  only; redirect handling stays with the caller).
- :class:`PasswordGrant` -- section 4.3.
- :class:`ClientCredentialsGrant` -- section 4.4.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence, Union
from urllib.parse import urlencode

from tokensmith.client import RequestBuilder, reject_overrides
from tokensmith.exceptions import ConfigurationError

Scope = Union[str, Sequence[str], None]


def _scope_param(scope: Scope) -> dict[str, str]:
    if scope is None:
        return {}
    if isinstance(scope, str):
        return {"scope": scope}
    return {"scope": " ".join(scope)}


class _Grant:
    grant_type: str = ""

    def __init__(self, requester: RequestBuilder) -> None:
        self._requester = requester

    async def _get_token(self, params: dict[str, Any], extra: dict[str, Any]) -> Any:
        if "grant_type" in extra:
            raise ConfigurationError(
                f"grant_type is fixed to {self.grant_type!r} for this grant"
            )
        reject_overrides(extra, self._requester.client_params())
        payload = {**params, **extra, "grant_type": self.grant_type}
        return await self._requester.request(self._requester.settings.auth.token_path, payload)


class AuthorizationCode(_Grant):
    """Authorization Code grant: build the authorize URL, exchange the code."""

    grant_type = "authorization_code"

    def authorize_url(
        self,
        redirect_uri: str,
        scope: Scope = None,
        state: Optional[str] = None,
        **extra: Any,
    ) -> str:
        """Return the URL the resource owner should be sent to.

        Example::

            >>> grant.authorize_url("http://callback.com", scope=["read", "write"], state="xyz")
            'https://example.org/oauth/authorize?response_type=code&client_id=client-id&redirect_uri=http%3A%2F%2Fcallback.com&scope=read+write&state=xyz'
        """
        settings = self._requester.settings
        query: dict[str, Any] = {
            "response_type": "code",
            settings.client.id_param_name: settings.client.id,
            "redirect_uri": redirect_uri,
        }
        query.update(_scope_param(scope))
        if state is not None:
            query["state"] = state
        query.update({key: value for key, value in extra.items() if value is not None})
        return f"{settings.auth.authorize_url}?{urlencode(query)}"

    async def get_token(self, code: str, redirect_uri: str, **extra: Any) -> Any:
        """Exchange an authorization *code* for a token response."""
        return await self._get_token({"code": code, "redirect_uri": redirect_uri}, extra)


class ClientCredentialsGrant(_Grant):
    """Client Credentials grant for machine-to-machine access."""

    grant_type = "client_credentials"

    async def get_token(self, scope: Scope = None, **extra: Any) -> Any:
        return await self._get_token(_scope_param(scope), extra)


class PasswordGrant(_Grant):
    """Resource Owner Password Credentials grant."""

    grant_type = "password"

    async def get_token(
        self,
        username: str,
        password: str,
        scope: Scope = None,
        **extra: Any,
    ) -> Any:
        params = {"username": username, "password": password, **_scope_param(scope)}
        return await self._get_token(params, extra)
