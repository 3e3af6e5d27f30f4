"""Shared test fixtures for tokensmith.

Provides settings builders, a recording mock authorization server built
on :class:`httpx.MockTransport`, and output/CLI helpers. These fixtures
are automatically discovered by pytest and available to all test modules
without explicit imports.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Optional
from urllib.parse import parse_qsl

import httpx
import pytest

from tokensmith.client import RequestBuilder
from tokensmith.models import Settings
from tokensmith.output import OutputFormat, OutputManager, reset_output, set_output


TOKEN_RESPONSE: dict[str, Any] = {
    "access_token": "5683E74C-7514-4426-B64F-CF0C24223F69",
    "refresh_token": "ec1a59d298",
    "token_type": "bearer",
    "expires_in": 7200,
}


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


def make_settings(
    authorization_method: str = "body",
    body_format: str = "form",
    **sections: Any,
) -> Settings:
    """Build Settings for ``https://example.org`` with client-id/client-secret."""
    data: dict[str, Any] = {
        "client": {"id": "client-id", "secret": "client-secret"},
        "auth": {"token_host": "https://example.org"},
        "options": {
            "authorization_method": authorization_method,
            "body_format": body_format,
        },
    }
    for section, values in sections.items():
        data.setdefault(section, {}).update(values)
    return Settings.from_mapping(data)


@pytest.fixture
def settings_factory() -> Callable[..., Settings]:
    """Return :func:`make_settings` for tests that need non-default options."""
    return make_settings


@pytest.fixture
def token_response() -> dict[str, Any]:
    return dict(TOKEN_RESPONSE)


@pytest.fixture
def settings() -> Settings:
    """Body authentication, form encoding."""
    return make_settings()


# ---------------------------------------------------------------------------
# Mock authorization server
# ---------------------------------------------------------------------------


class RecordedRequest:
    """A request captured by :class:`MockAuthServer`, with its body pre-parsed."""

    def __init__(self, request: httpx.Request) -> None:
        self.method = request.method
        self.url = str(request.url)
        self.path = request.url.path
        self.headers = request.headers
        self.content = request.content.decode("utf-8")

    @property
    def form(self) -> dict[str, str]:
        return dict(parse_qsl(self.content, keep_blank_values=True))

    @property
    def json(self) -> Any:
        return json.loads(self.content)


class MockAuthServer:
    """Records every request and answers from a per-path response table.

    Responses are registered with :meth:`respond`; unknown paths get a 404.
    """

    def __init__(self) -> None:
        self.requests: list[RecordedRequest] = []
        self._routes: dict[str, Callable[[httpx.Request], httpx.Response]] = {}

    def respond(
        self,
        path: str,
        status_code: int = 200,
        json_body: Any = None,
        content: Optional[bytes] = None,
        error: Optional[Exception] = None,
    ) -> None:
        def _route(request: httpx.Request) -> httpx.Response:
            if error is not None:
                raise error
            if json_body is not None:
                return httpx.Response(status_code, json=json_body)
            return httpx.Response(status_code, content=content or b"")

        self._routes[path] = _route

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(RecordedRequest(request))
        route = self._routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"error": "not_found"})
        return route(request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    @property
    def last(self) -> RecordedRequest:
        return self.requests[-1]


@pytest.fixture
def server() -> MockAuthServer:
    """Mock authorization server answering the token endpoint with TOKEN_RESPONSE."""
    srv = MockAuthServer()
    srv.respond("/oauth/token", json_body=TOKEN_RESPONSE)
    srv.respond("/oauth/revoke")
    return srv


@pytest.fixture
def requester(settings: Settings, server: MockAuthServer) -> RequestBuilder:
    """Request builder wired to the mock server."""
    return RequestBuilder(settings, transport=server.client())


# ---------------------------------------------------------------------------
# Output / CLI
# ---------------------------------------------------------------------------


@pytest.fixture
def json_output() -> OutputManager:
    """Install a JSON-format OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.JSON, no_color=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
