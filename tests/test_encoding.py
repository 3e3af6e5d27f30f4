"""Tests for tokensmith.encoding -- Basic-auth credential encoding."""

from __future__ import annotations

import base64

import pytest

from tokensmith.encoding import (
    decode_authorization_header_token,
    form_url_encode,
    get_authorization_header_token,
)


class TestFormUrlEncode:
    def test_plain_value_unchanged(self) -> None:
        assert form_url_encode("client-id_1.x~") == "client-id_1.x~"

    def test_space_becomes_plus(self) -> None:
        assert form_url_encode("a b") == "a+b"

    def test_reserved_characters_escaped(self) -> None:
        assert form_url_encode("a:b/c?d&e=f") == "a%3Ab%2Fc%3Fd%26e%3Df"

    def test_encode_uri_component_safe_set_kept(self) -> None:
        assert form_url_encode("!'()*") == "!'()*"


class TestAuthorizationHeaderToken:
    def test_simple_credentials(self) -> None:
        token = get_authorization_header_token("client-id", "client-secret")
        assert token == "Y2xpZW50LWlkOmNsaWVudC1zZWNyZXQ="

    def test_colon_in_secret_is_escaped(self) -> None:
        token = get_authorization_header_token("client-id", "se:cret")
        assert base64.b64decode(token).decode() == "client-id:se%3Acret"

    @pytest.mark.parametrize(
        ("client_id", "client_secret"),
        [
            ("client:id", "client:secret"),
            ("user@example.com", "p@ss w0rd/+="),
            ("ünïcödé", "秘密"),
            ("id", ""),
        ],
    )
    def test_round_trip_with_special_characters(self, client_id: str, client_secret: str) -> None:
        token = get_authorization_header_token(client_id, client_secret)
        assert decode_authorization_header_token(token) == (client_id, client_secret)

    def test_decoded_token_has_exactly_one_separator(self) -> None:
        token = get_authorization_header_token("a:b", "c:d")
        assert base64.b64decode(token).decode().count(":") == 1
