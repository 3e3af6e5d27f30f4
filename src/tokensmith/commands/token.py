"""Token commands -- obtain, refresh, revoke, and inspect OAuth2 tokens.

Provides the ``tokensmith token`` sub-command group. Commands that talk to
the authorization server print the resulting token response as JSON on
stdout; diagnostics go to stderr. Saved token files are the JSON printed
by a previous command, which records the absolute ``expires_at`` instead
of the relative ``expires_in``.

Typical workflow::

    tokensmith token client-credentials --scope read > token.json
    tokensmith token inspect token.json
    tokensmith token refresh token.json > token.json.new
    tokensmith token revoke token.json --all
"""

from __future__ import annotations

import inspect
import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import typer

from tokensmith.callbacks import run_sync
from tokensmith.exceptions import ConstructionError, TokensmithError
from tokensmith.oauth2 import OAuth2, create_client
from tokensmith.output import debug, error, format_response, success
from tokensmith.token import AccessToken

token_app = typer.Typer(no_args_is_help=True)


# ------------------------------------------------------------------ #
# Helpers
# ------------------------------------------------------------------ #


def _client(ctx: typer.Context) -> OAuth2:
    """Build an :class:`OAuth2` from the settings selected by the root callback."""
    from tokensmith.config import load_settings

    settings = load_settings((ctx.obj or {}).get("config"))
    return create_client(settings)


def _run(ctx: typer.Context, work: Any) -> Any:
    """Run *work(client)* and turn library errors into a clean exit code."""
    try:
        client = _client(ctx)
        result = work(client)
        if inspect.isawaitable(result):
            result = run_sync(result)
        return result
    except TokensmithError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def _read_token_file(source: str) -> dict[str, Any]:
    """Load a token response from *source* (a path, or ``-`` for stdin)."""
    try:
        text = sys.stdin.read() if source == "-" else Path(source).read_text(encoding="utf-8")
    except OSError as exc:
        raise ConstructionError(f"Cannot read token file {source}: {exc}") from exc
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConstructionError(f"Token file {source} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ConstructionError(f"Token file {source} must contain a JSON object")
    return data


def _serializable(token: AccessToken) -> dict[str, Any]:
    """Token response with ``expires_at`` as ISO-8601 and ``expires_in`` dropped."""
    data = {k: v for k, v in token.token.items() if k != "expires_in"}
    if token.expires_at is not None:
        data["expires_at"] = token.expires_at.isoformat()
    else:
        data.pop("expires_at", None)
    return data


def _scope(scopes: Optional[list[str]]) -> Optional[str]:
    return " ".join(scopes) if scopes else None


# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #


@token_app.command("client-credentials")
def token_client_credentials(
    ctx: typer.Context,
    scope: Optional[list[str]] = typer.Option(None, "--scope", "-s", help="Scope to request (repeatable)."),
) -> None:
    """Obtain a token with the Client Credentials grant."""

    async def work(client: OAuth2) -> dict[str, Any]:
        response = await client.client_credentials.get_token(scope=_scope(scope))
        return _serializable(client.access_token.create(response))

    format_response(_run(ctx, work))


@token_app.command("password")
def token_password(
    ctx: typer.Context,
    username: str = typer.Option(..., "--username", "-u", help="Resource owner username."),
    password_source: str = typer.Option(
        "prompt",
        "--password-source",
        help="Password source: env:VAR, file:/path, or prompt.",
    ),
    scope: Optional[list[str]] = typer.Option(None, "--scope", "-s", help="Scope to request (repeatable)."),
) -> None:
    """Obtain a token with the Resource Owner Password Credentials grant."""
    from tokensmith.config import resolve_credential

    async def work(client: OAuth2) -> dict[str, Any]:
        password = resolve_credential(password_source)
        response = await client.password.get_token(username, password, scope=_scope(scope))
        return _serializable(client.access_token.create(response))

    format_response(_run(ctx, work))


@token_app.command("authorize-url")
def token_authorize_url(
    ctx: typer.Context,
    redirect_uri: str = typer.Option(..., "--redirect-uri", help="Registered redirect URI."),
    scope: Optional[list[str]] = typer.Option(None, "--scope", "-s", help="Scope to request (repeatable)."),
    state: Optional[str] = typer.Option(None, "--state", help="Opaque state value."),
) -> None:
    """Print the authorization URL for the Authorization Code grant."""
    url = _run(ctx, lambda client: client.auth_code.authorize_url(redirect_uri, scope=scope, state=state))
    typer.echo(url)


@token_app.command("refresh")
def token_refresh(
    ctx: typer.Context,
    token_file: str = typer.Argument(..., help="Saved token JSON, or - for stdin."),
    scope: Optional[list[str]] = typer.Option(None, "--scope", "-s", help="Narrower scope (repeatable)."),
) -> None:
    """Exchange a saved token's refresh token for a new token."""

    async def work(client: OAuth2) -> dict[str, Any]:
        token = client.access_token.create(_read_token_file(token_file))
        extra = {"scope": _scope(scope)} if scope else None
        return _serializable(await token.refresh(extra))

    format_response(_run(ctx, work))


@token_app.command("revoke")
def token_revoke(
    ctx: typer.Context,
    token_file: str = typer.Argument(..., help="Saved token JSON, or - for stdin."),
    token_type: str = typer.Option(
        "access_token", "--type", "-t", help="Token to revoke: access_token or refresh_token."
    ),
    revoke_all: bool = typer.Option(False, "--all", help="Revoke the refresh token, then the access token."),
) -> None:
    """Revoke a saved token at the authorization server."""

    async def work(client: OAuth2) -> tuple[str, ...]:
        token = client.access_token.create(_read_token_file(token_file))
        revoked = await token.revoke_all() if revoke_all else await token.revoke(token_type)
        return revoked.revoked

    revoked = _run(ctx, work)
    success(f"Revoked: {', '.join(revoked)}")


@token_app.command("inspect")
def token_inspect(
    ctx: typer.Context,
    token_file: str = typer.Argument("-", help="Saved token JSON, or - for stdin."),
    window: float = typer.Option(0, "--window", "-w", help="Treat the token as expired this many seconds early."),
) -> None:
    """Report a saved token's expiry without contacting the server."""

    def work(client: OAuth2) -> dict[str, Any]:
        token = client.access_token.create(_read_token_file(token_file))
        now = datetime.now(timezone.utc)
        debug(f"Evaluating expiry as of {now.isoformat()}")
        remaining = None
        if token.expires_at is not None:
            remaining = int((token.expires_at - now).total_seconds())
        return {
            "expires_at": token.expires_at.isoformat() if token.expires_at else None,
            "expired": token.expired(as_of=now, window_seconds=window),
            "seconds_remaining": remaining,
            "has_refresh_token": bool(token.token.get("refresh_token")),
        }

    format_response(_run(ctx, work))

