"""Exception hierarchy for tokensmith.

All exceptions inherit from :class:`TokensmithError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`tokensmith.exit_codes`.
The library never swallows or retries errors: every failure reaches the
caller, either raised from the awaited coroutine or passed as the first
argument of a callback (see :mod:`tokensmith.callbacks`).

Subclass hierarchy::

    TokensmithError (exit 1)
    +-- ConfigurationError  (exit 2)
    +-- ConstructionError   (exit 3)
    +-- RequestError        (exit 4)
        +-- RevokeError     (exit 4)
"""

from __future__ import annotations

from typing import Any, Optional

from tokensmith.exit_codes import (
    EXIT_CONFIGURATION_ERROR,
    EXIT_CONSTRUCTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_REQUEST_FAILURE,
)


class TokensmithError(Exception):
    """Base exception for all tokensmith errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`tokensmith.exit_codes`. The CLI entry point
    catches this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigurationError(TokensmithError):
    """Raised for missing or contradictory settings and for overrides of protocol fields."""

    exit_code = EXIT_CONFIGURATION_ERROR


class ConstructionError(TokensmithError):
    """Raised when a token response lacks the fields needed to build a token."""

    exit_code = EXIT_CONSTRUCTION_ERROR


class RequestError(TokensmithError):
    """Raised when a call to the authorization server fails.

    Wraps network errors, non-2xx responses and undecodable bodies. The
    original exception is chained as ``__cause__``.

    Args:
        message: Human-readable error description.
        status_code: HTTP status of the response, if one was received.
        body: Decoded JSON body, or raw text, of the error response.
    """

    exit_code = EXIT_REQUEST_FAILURE

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Any = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class RevokeError(RequestError):
    """Raised by ``revoke_all`` when revoking one or both tokens failed.

    Both revocations are always attempted. ``failures`` maps each failed
    token type (``"refresh_token"``, ``"access_token"``) to its
    :class:`RequestError`.
    """

    def __init__(self, failures: dict[str, RequestError]):
        steps = ", ".join(f"{step}: {exc}" for step, exc in failures.items())
        first = next(iter(failures.values()))
        super().__init__(
            f"Revocation failed for {steps}",
            status_code=first.status_code,
            body=first.body,
        )
        self.failures = failures

    @property
    def failed_steps(self) -> list[str]:
        """Token types whose revocation failed, in the order attempted."""
        return list(self.failures)
