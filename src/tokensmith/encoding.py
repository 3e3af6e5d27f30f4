"""Client credential encoding for HTTP Basic authentication.

RFC 6749 section 2.3.1 requires the client identifier and secret to be
``application/x-www-form-urlencoded`` before they are joined with a colon
and base64-encoded. Without that step a secret containing ``:`` would be
split in the wrong place by the server.
"""

from __future__ import annotations

import base64
from typing import Callable
from urllib.parse import quote_plus, unquote_plus

HeaderEncoding = Callable[[str, str], str]
"""Signature of a function turning ``(client_id, client_secret)`` into a Basic token."""

# Characters left untouched by JavaScript's encodeURIComponent, beyond the
# ones quote_plus always keeps.
_UNRESERVED_EXTRA = "!'()*"


def form_url_encode(value: str) -> str:
    """Form-URL-encode *value*, with spaces as ``+``."""
    return quote_plus(value, safe=_UNRESERVED_EXTRA)


def get_authorization_header_token(client_id: str, client_secret: str) -> str:
    """Return the base64 token for an ``Authorization: Basic`` header.

    Args:
        client_id: The registered client identifier.
        client_secret: The client secret.

    Returns:
        ``base64(form_url_encode(client_id) + ":" + form_url_encode(client_secret))``.

    Example::

        >>> get_authorization_header_token("client-id", "client-secret")
        'Y2xpZW50LWlkOmNsaWVudC1zZWNyZXQ='
    """
    credentials = f"{form_url_encode(client_id)}:{form_url_encode(client_secret)}"
    return base64.b64encode(credentials.encode("utf-8")).decode("ascii")


def decode_authorization_header_token(token: str) -> tuple[str, str]:
    """Reverse :func:`get_authorization_header_token`.

    Splits on the first colon, which is unambiguous because the encoded id
    never contains one.
    """
    decoded = base64.b64decode(token).decode("utf-8")
    encoded_id, _, encoded_secret = decoded.partition(":")
    return unquote_plus(encoded_id), unquote_plus(encoded_secret)
