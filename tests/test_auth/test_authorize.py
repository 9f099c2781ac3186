"""Tests for the authorization URL builder."""

from __future__ import annotations

from unittest.mock import PropertyMock, patch
from urllib.parse import parse_qsl, urlparse

import pytest

from sessionauth.auth.authorize import build_authorization_url
from sessionauth.auth.pkce import Verifier
from sessionauth.exceptions import AuthorizationURLError
from sessionauth.models import ProviderConfig


VERIFIER = Verifier("dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk")


@pytest.fixture
def fixed_provider() -> ProviderConfig:
    return ProviderConfig(
        auth_base_url="https://idp.example.com/",
        client_id="client-123",
        audience="https://api.example.com/",
        callback_port=8080,
    )


class TestBuildAuthorizationURL:
    def test_endpoint(self, fixed_provider: ProviderConfig) -> None:
        parsed = urlparse(build_authorization_url(fixed_provider, VERIFIER))
        assert parsed.scheme == "https"
        assert parsed.netloc == "idp.example.com"
        assert parsed.path == "/authorize"

    def test_parameters_in_order(self, fixed_provider: ProviderConfig) -> None:
        url = build_authorization_url(fixed_provider, VERIFIER)
        params = parse_qsl(urlparse(url).query)
        assert params == [
            ("audience", "https://api.example.com/"),
            ("scope", "openid"),
            ("response_type", "code"),
            ("client_id", "client-123"),
            ("code_challenge", "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"),
            ("code_challenge_method", "S256"),
            ("redirect_uri", "http://localhost:8080/callback"),
        ]

    def test_values_are_url_encoded(self, fixed_provider: ProviderConfig) -> None:
        url = build_authorization_url(fixed_provider, VERIFIER)
        assert "audience=https%3A%2F%2Fapi.example.com%2F" in url
        assert "redirect_uri=http%3A%2F%2Flocalhost%3A8080%2Fcallback" in url

    def test_same_verifier_gives_same_url(self, fixed_provider: ProviderConfig) -> None:
        assert build_authorization_url(fixed_provider, VERIFIER) == build_authorization_url(
            fixed_provider, VERIFIER
        )

    def test_raw_verifier_never_in_url(self, fixed_provider: ProviderConfig) -> None:
        url = build_authorization_url(fixed_provider, VERIFIER)
        assert VERIFIER.value not in url

    def test_challenge_failure_raises(self, fixed_provider: ProviderConfig) -> None:
        with patch.object(
            Verifier, "challenge", new_callable=PropertyMock, side_effect=ValueError("boom")
        ):
            with pytest.raises(AuthorizationURLError, match="failed to generate an authorization URL"):
                build_authorization_url(fixed_provider, VERIFIER)
