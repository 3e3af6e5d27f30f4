"""Access-token lifecycle: creation, expiry inspection, refresh, revocation.

Tokens are immutable values. The lifecycle is expressed by which value a
caller holds rather than by flags on a shared object:

- :class:`AccessToken` -- an active token. :meth:`AccessToken.expired` is
  pure; :meth:`AccessToken.refresh` returns a *new* :class:`AccessToken`
  and leaves the original untouched.
- :class:`RevokedToken` -- the terminal value returned by
  :meth:`AccessToken.revoke` and :meth:`AccessToken.revoke_all`. It has no
  operations that reach the network.

Concurrent refreshes of the same instance are not deduplicated. Each call
sends its own request and returns its own token; the caller keeps whichever
one it wants.

Use :class:`AccessTokenFactory` (or :attr:`tokensmith.oauth2.OAuth2.access_token`)
to wrap raw token responses.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from types import MappingProxyType
from typing import Any, Mapping, Optional

from tokensmith.client import RequestBuilder, reject_overrides
from tokensmith.exceptions import (
    ConfigurationError,
    ConstructionError,
    RequestError,
    RevokeError,
)
from tokensmith.models import MissingExpiryPolicy
from tokensmith.output import debug

TOKEN_TYPES = ("access_token", "refresh_token")


class _ImmutableToken:
    __slots__ = ()

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")


class AccessToken(_ImmutableToken):
    """An active OAuth2 access token.

    Wraps the raw token response and a normalized ``expires_at`` instant:

    * ``expires_in`` (seconds) is converted to ``created_at + expires_in``;
    * otherwise ``expires_at`` (datetime, epoch seconds, or ISO-8601
      string) is used as given;
    * otherwise the configured
      :class:`~tokensmith.models.MissingExpiryPolicy` decides.

    Args:
        token_response: Raw mapping returned by the token endpoint.
        requester: Request builder used for refresh and revocation.
        created_at: Instant the token was issued. Defaults to now.

    Raises:
        ConstructionError: If the response is not a mapping, has no
            ``access_token``, or carries an unparseable expiry.
    """

    __slots__ = ("_token", "_expires_at", "_created_at", "_requester")

    def __init__(
        self,
        token_response: Mapping[str, Any],
        requester: RequestBuilder,
        created_at: Optional[datetime] = None,
    ) -> None:
        if not isinstance(token_response, Mapping):
            raise ConstructionError(
                f"Token response must be a mapping, got {type(token_response).__name__}"
            )
        if not token_response.get("access_token"):
            raise ConstructionError("Token response is missing 'access_token'")

        created = _as_utc(created_at) if created_at else datetime.now(timezone.utc)
        policy = requester.settings.options.missing_expiry
        expires_at = _normalize_expiry(token_response, created, policy)

        raw = dict(token_response)
        raw["expires_at"] = expires_at
        object.__setattr__(self, "_token", MappingProxyType(raw))
        object.__setattr__(self, "_expires_at", expires_at)
        object.__setattr__(self, "_created_at", created)
        object.__setattr__(self, "_requester", requester)

    def __repr__(self) -> str:
        return f"AccessToken(expires_at={self._expires_at!r})"

    @property
    def token(self) -> Mapping[str, Any]:
        """Read-only view of the token response, with normalized ``expires_at``."""
        return self._token

    @property
    def expires_at(self) -> Optional[datetime]:
        """Absolute expiry in UTC, or ``None`` for a token that never expires."""
        return self._expires_at

    @property
    def created_at(self) -> datetime:
        return self._created_at

    def expired(self, as_of: Optional[datetime] = None, window_seconds: float = 0) -> bool:
        """Return ``True`` if the token is expired at *as_of*.

        The boundary is inclusive: a token whose expiry equals *as_of* is
        expired. No I/O is performed.

        Args:
            as_of: Instant to evaluate at. Defaults to now (UTC). Naive
                datetimes are taken as UTC.
            window_seconds: Treat the token as expired this many seconds
                early.
        """
        if self._expires_at is None:
            return False
        instant = _as_utc(as_of) if as_of else datetime.now(timezone.utc)
        return instant + timedelta(seconds=window_seconds) >= self._expires_at

    async def refresh(self, extra_params: Optional[Mapping[str, Any]] = None) -> AccessToken:
        """Exchange the stored refresh token for a new :class:`AccessToken`.

        Sends ``grant_type=refresh_token`` and the stored ``refresh_token``
        to the token endpoint, after any *extra_params* (e.g. a narrower
        ``scope``). This instance is not modified.

        Raises:
            ConfigurationError: If *extra_params* tries to set
                ``grant_type``, ``refresh_token``, or a client credential
                parameter in body authentication mode.
            ConstructionError: If this token has no ``refresh_token`` or
                the server's reply is not a valid token response.
            RequestError: If the request fails.
        """
        extra = dict(extra_params or {})
        reject_overrides(extra, {"grant_type", "refresh_token"} | self._requester.client_params())

        refresh_token = self._token.get("refresh_token")
        if not refresh_token:
            raise ConstructionError("Token has no 'refresh_token' to refresh with")

        params = {**extra, "grant_type": "refresh_token", "refresh_token": refresh_token}
        settings = self._requester.settings
        debug("Refreshing access token")
        response = await self._requester.request(settings.auth.token_path, params)
        return AccessToken(response, self._requester)

    async def revoke(self, token_type: str) -> RevokedToken:
        """Revoke the stored access or refresh token at the revoke endpoint.

        The returned :class:`RevokedToken` replaces this instance; callers
        must not use this :class:`AccessToken` for further requests.

        Args:
            token_type: ``"access_token"`` or ``"refresh_token"``.

        Raises:
            ConfigurationError: If *token_type* is not one of the above.
            ConstructionError: If this token has no value of that type.
            RequestError: If the request fails.
        """
        if token_type not in TOKEN_TYPES:
            raise ConfigurationError(
                f"token_type must be one of {', '.join(TOKEN_TYPES)}, got {token_type!r}"
            )
        value = self._token.get(token_type)
        if not value:
            raise ConstructionError(f"Token has no '{token_type}' to revoke")

        params = {"token": value, "token_type_hint": token_type}
        settings = self._requester.settings
        debug(f"Revoking {token_type}")
        await self._requester.request(settings.auth.revoke_path, params)
        return RevokedToken(self._token, (token_type,))

    async def revoke_all(self) -> RevokedToken:
        """Revoke the refresh token (when present), then the access token.

        Both steps are attempted even if the first one fails.

        Raises:
            RevokeError: If either revocation failed; ``failures`` names
                the failed steps.
        """
        steps = list(reversed(TOKEN_TYPES)) if self._token.get("refresh_token") else ["access_token"]
        revoked: list[str] = []
        failures: dict[str, RequestError] = {}

        for token_type in steps:
            try:
                await self.revoke(token_type)
            except RequestError as exc:
                debug(f"Revoking {token_type} failed: {exc}")
                failures[token_type] = exc
            else:
                revoked.append(token_type)

        if failures:
            raise RevokeError(failures) from next(iter(failures.values()))
        return RevokedToken(self._token, tuple(revoked))


class RevokedToken(_ImmutableToken):
    """Terminal state of a token after revocation.

    Keeps the token response for inspection and records which token types
    were revoked. It cannot be refreshed or revoked again.
    """

    __slots__ = ("_token", "_revoked")

    def __init__(self, token: Mapping[str, Any], revoked: tuple[str, ...]) -> None:
        object.__setattr__(self, "_token", MappingProxyType(dict(token)))
        object.__setattr__(self, "_revoked", revoked)

    def __repr__(self) -> str:
        return f"RevokedToken(revoked={self._revoked!r})"

    @property
    def token(self) -> Mapping[str, Any]:
        return self._token

    @property
    def revoked(self) -> tuple[str, ...]:
        return self._revoked

    def expired(self, as_of: Optional[datetime] = None, window_seconds: float = 0) -> bool:
        return True


class AccessTokenFactory:
    """Creates :class:`AccessToken` values bound to a :class:`RequestBuilder`."""

    def __init__(self, requester: RequestBuilder) -> None:
        self._requester = requester

    def create(self, token_response: Mapping[str, Any]) -> AccessToken:
        """Wrap a raw token response. Pure; raises :class:`ConstructionError` on bad input."""
        return AccessToken(token_response, self._requester)


# ------------------------------------------------------------------ #
# Helpers
# ------------------------------------------------------------------ #


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _normalize_expiry(
    token: Mapping[str, Any],
    created_at: datetime,
    policy: MissingExpiryPolicy,
) -> Optional[datetime]:
    if token.get("expires_in") is not None:
        seconds = _as_number(token["expires_in"], "expires_in")
        try:
            return created_at + timedelta(seconds=seconds)
        except (OverflowError, ValueError) as exc:
            raise ConstructionError(f"'expires_in' is out of range: {token['expires_in']!r}") from exc

    if token.get("expires_at") is not None:
        return _parse_instant(token["expires_at"])

    if policy == MissingExpiryPolicy.EXPIRED:
        return created_at
    return None


def _as_number(value: Any, field: str) -> float:
    if isinstance(value, bool):
        raise ConstructionError(f"'{field}' must be a number, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ConstructionError(f"'{field}' must be a number, got {value!r}") from exc
    if not math.isfinite(number):
        raise ConstructionError(f"'{field}' must be finite, got {value!r}")
    return number


def _parse_instant(value: Any) -> datetime:
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, str) and not _is_numeric(value):
        try:
            return _as_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
        except ValueError as exc:
            raise ConstructionError(f"'expires_at' is not a valid instant: {value!r}") from exc
    seconds = _as_number(value, "expires_at")
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as exc:
        raise ConstructionError(f"'expires_at' is out of range: {value!r}") from exc


def _is_numeric(value: str) -> bool:
    try:
        float(value)
    except ValueError:
        return False
    return True
