"""Tests for the built-in authorization schemes."""

from __future__ import annotations

import base64

import pytest

from deploy_gateway.auth.base import SchemeStrategy
from deploy_gateway.auth.schemes import (
    DEFAULT_SENTINEL_USERNAME,
    BearerScheme,
    EmbeddedTokenBasicScheme,
    ExchangedBearerScheme,
    default_probe_order,
    strategy_for,
)
from deploy_gateway.models import AuthScheme


class TestBearerScheme:
    def test_header_value(self) -> None:
        assert BearerScheme().authorization("abc") == "Bearer abc"

    def test_headers_dict(self) -> None:
        assert BearerScheme().headers("abc") == {"Authorization": "Bearer abc"}

    def test_scheme_tag(self) -> None:
        assert BearerScheme().scheme == AuthScheme.BEARER


class TestEmbeddedTokenBasicScheme:
    def test_default_sentinel(self) -> None:
        assert DEFAULT_SENTINEL_USERNAME == "PasswordIsAuthToken"
        assert EmbeddedTokenBasicScheme().username == "PasswordIsAuthToken"

    def test_header_encodes_sentinel_and_token(self) -> None:
        value = EmbeddedTokenBasicScheme().authorization("tok-123")
        assert value.startswith("Basic ")
        decoded = base64.b64decode(value[len("Basic "):]).decode("utf-8")
        assert decoded == "PasswordIsAuthToken:tok-123"

    def test_custom_sentinel(self) -> None:
        value = EmbeddedTokenBasicScheme("svc").authorization("t")
        assert base64.b64decode(value.split(" ", 1)[1]) == b"svc:t"

    def test_scheme_tag(self) -> None:
        assert EmbeddedTokenBasicScheme().scheme == AuthScheme.BASIC_EMBEDDED_TOKEN


class TestExchangedBearerScheme:
    def test_formats_like_bearer(self) -> None:
        assert ExchangedBearerScheme().authorization("xyz") == "Bearer xyz"

    def test_distinct_scheme_tag(self) -> None:
        assert ExchangedBearerScheme().scheme == AuthScheme.EXCHANGED_BEARER


class TestProbeOrder:
    def test_bearer_first_then_basic(self) -> None:
        order = [s.scheme for s in default_probe_order()]
        assert order == [AuthScheme.BEARER, AuthScheme.BASIC_EMBEDDED_TOKEN]

    def test_exchanged_bearer_never_probed(self) -> None:
        assert AuthScheme.EXCHANGED_BEARER not in [s.scheme for s in default_probe_order()]

    def test_sentinel_passed_through(self) -> None:
        basic = default_probe_order("other")[1]
        assert isinstance(basic, EmbeddedTokenBasicScheme)
        assert basic.username == "other"


class TestStrategyFor:
    @pytest.mark.parametrize(
        "scheme,cls",
        [
            (AuthScheme.BEARER, BearerScheme),
            (AuthScheme.BASIC_EMBEDDED_TOKEN, EmbeddedTokenBasicScheme),
            (AuthScheme.EXCHANGED_BEARER, ExchangedBearerScheme),
        ],
    )
    def test_maps_scheme_to_strategy(self, scheme: AuthScheme, cls: type) -> None:
        strategy = strategy_for(scheme)
        assert type(strategy) is cls
        assert strategy.scheme == scheme


class TestCustomScheme:
    def test_subclass_only_needs_scheme_and_authorization(self) -> None:
        class TokenScheme(SchemeStrategy):
            @property
            def scheme(self) -> AuthScheme:
                return AuthScheme.BEARER

            def authorization(self, token: str) -> str:
                return f"Token {token}"

        strategy = TokenScheme()
        assert strategy.headers("t") == {"Authorization": "Token t"}
        assert "TokenScheme" in repr(strategy)
