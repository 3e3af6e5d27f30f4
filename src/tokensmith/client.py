"""Request builder for the authorization server's token endpoints.

This module provides :class:`RequestBuilder`, the single place where an
outgoing OAuth2 request is assembled. Given a server-relative path and a
parameter mapping it layers on:

- **Client authentication** -- either an ``Authorization: Basic`` header
  (``header`` mode) or the client id and secret appended to the parameters
  under their configured names (``body`` mode). Never both.
- **Body encoding** -- handed to httpx as ``data=`` for
  ``application/x-www-form-urlencoded`` (``form``) or as ``json=`` for
  ``application/json`` (``json``).
- **Error mapping** -- transport failures, non-2xx statuses, and
  undecodable bodies all surface as
  :class:`~tokensmith.exceptions.RequestError`.

Each :meth:`RequestBuilder.request` call sends exactly one POST; there is
no retry and no timeout policy beyond the transport's own.

See Also:
    :mod:`tokensmith.token` for the access-token lifecycle built on top.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

import httpx

from tokensmith.encoding import HeaderEncoding, get_authorization_header_token
from tokensmith.exceptions import ConfigurationError, RequestError
from tokensmith.models import AuthorizationMethod, BodyFormat, Settings
from tokensmith.output import debug

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
JSON_CONTENT_TYPE = "application/json"


class RequestBuilder:
    """Builds and sends authenticated POST requests to the authorization server.

    Can be used directly, in which case a short-lived
    :class:`httpx.AsyncClient` is opened for every call, or as an async
    context manager that keeps one client open across calls. A caller-owned
    client may also be injected; it is used as-is and never closed here.

    Args:
        settings: Frozen process-wide configuration.
        header_encoding: Function producing the Basic token from
            ``(client_id, client_secret)`` in ``header`` mode.
        transport: Optional caller-owned :class:`httpx.AsyncClient`.

    Example::

        async with RequestBuilder(settings) as requester:
            body = await requester.request("/oauth/token", {"grant_type": "client_credentials"})
    """

    def __init__(
        self,
        settings: Settings,
        header_encoding: HeaderEncoding = get_authorization_header_token,
        transport: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._settings = settings
        self._header_encoding = header_encoding
        self._client: Optional[httpx.AsyncClient] = transport
        self._owns_client = False

    @property
    def settings(self) -> Settings:
        return self._settings

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> RequestBuilder:
        if self._client is None:
            self._client = self._new_client()
            self._owns_client = True
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
            self._owns_client = False

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def client_params(self) -> set[str]:
        """Parameter names reserved for client credentials in ``body`` mode.

        Empty in ``header`` mode, where the credentials travel in the
        ``Authorization`` header instead.
        """
        if self._settings.options.authorization_method == AuthorizationMethod.BODY:
            client = self._settings.client
            return {client.id_param_name, client.secret_param_name}
        return set()

    def build_request(self, path: str, params: Mapping[str, Any]) -> httpx.Request:
        """Build the authenticated POST for *path* without sending it.

        ``None`` values in *params* are dropped. httpx encodes the body and
        sets ``Content-Type`` from the configured body format.

        Args:
            path: Server-relative endpoint, e.g. ``/oauth/token``.
            params: Grant- or revoke-specific parameters. Not modified.
        """
        options = self._settings.options
        client = self._settings.client

        headers: dict[str, str] = dict(self._settings.http.headers)
        headers["Accept"] = JSON_CONTENT_TYPE
        payload = {key: value for key, value in params.items() if value is not None}

        if options.authorization_method == AuthorizationMethod.HEADER:
            basic = self._header_encoding(client.id, client.secret)
            debug("Using header authentication")
            headers["Authorization"] = f"Basic {basic}"
        else:
            debug("Using body authentication")
            payload[client.id_param_name] = client.id
            payload[client.secret_param_name] = client.secret

        url = f"{self._settings.auth.token_host}{path}"
        if options.body_format == BodyFormat.FORM:
            debug("Using form request format")
            return httpx.Request("POST", url, headers=headers, data=payload)
        debug("Using json request format")
        return httpx.Request("POST", url, headers=headers, json=payload)

    def prepare(self, params: Mapping[str, Any]) -> tuple[httpx.Headers, bytes]:
        """Return the headers and encoded body a token request for *params* would carry."""
        request = self.build_request(self._settings.auth.token_path, params)
        return request.headers, request.content

    async def request(self, path: str, params: Mapping[str, Any]) -> Any:
        """POST *params* to ``token_host + path`` and return the decoded body.

        Args:
            path: Server-relative endpoint, e.g. ``/oauth/token``.
            params: Grant- or revoke-specific parameters.

        Returns:
            The JSON-decoded response body, or ``None`` when the server
            answered with an empty body.

        Raises:
            RequestError: On network errors, non-2xx responses, or a body
                that is not valid JSON.
        """
        request = self.build_request(path, params)

        debug(f"Creating request to: (POST) {request.url}")
        debug(f"Using headers: {_masked(request.headers)}")

        if self._client is not None:
            response = await self._send(self._client, request)
        else:
            async with self._new_client() as client:
                response = await self._send(client, request)

        return _decode(response)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _new_client(self) -> httpx.AsyncClient:
        http = self._settings.http
        return httpx.AsyncClient(timeout=http.timeout, verify=http.verify_ssl)

    async def _send(self, client: httpx.AsyncClient, request: httpx.Request) -> httpx.Response:
        url = request.url
        try:
            response = await client.send(request)
        except httpx.HTTPError as exc:
            raise RequestError(f"Request to {url} failed: {exc}") from exc

        debug(f"Response: HTTP {response.status_code}")
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise RequestError(
                f"Request to {url} failed with status {response.status_code}",
                status_code=response.status_code,
                body=_error_body(response),
            ) from exc
        return response


def _decode(response: httpx.Response) -> Any:
    """Return the JSON body of *response*, or ``None`` if it is empty."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError as exc:
        raise RequestError(
            f"Response from {response.request.url} is not valid JSON",
            status_code=response.status_code,
            body=response.text,
        ) from exc


def _error_body(response: httpx.Response) -> Any:
    """Best-effort body of an error response: JSON if possible, else text."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def reject_overrides(extra: Mapping[str, Any], protected: set[str]) -> None:
    """Raise :class:`ConfigurationError` if *extra* sets any *protected* parameter."""
    clashes = sorted(protected.intersection(extra))
    if clashes:
        raise ConfigurationError(
            f"Cannot override protocol parameters: {', '.join(clashes)}"
        )


def _masked(headers: httpx.Headers) -> dict[str, str]:
    return {
        key: "Basic ****" if key.lower() == "authorization" else value
        for key, value in headers.items()
    }
