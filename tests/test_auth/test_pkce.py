"""Tests for PKCE verifier generation and the S256 challenge."""

from __future__ import annotations

import base64
import hashlib
import re
from unittest.mock import patch

import pytest

from sessionauth.auth.pkce import CHALLENGE_METHOD, Verifier, generate_verifier
from sessionauth.exceptions import ChallengeError


_UNRESERVED = re.compile(r"^[A-Za-z0-9\-._~]+$")


class TestGenerateVerifier:
    def test_length_within_rfc_bounds(self) -> None:
        verifier = generate_verifier()
        assert 43 <= len(verifier.value) <= 128

    def test_uses_unreserved_characters(self) -> None:
        assert _UNRESERVED.match(generate_verifier().value)

    def test_fresh_per_call(self) -> None:
        assert generate_verifier().value != generate_verifier().value

    def test_entropy_failure_raises_challenge_error(self) -> None:
        with patch("sessionauth.auth.pkce.secrets.token_urlsafe", side_effect=OSError("no entropy")):
            with pytest.raises(ChallengeError, match="failed to generate a code verifier"):
                generate_verifier()


class TestVerifier:
    def test_challenge_is_unpadded_base64url_sha256(self) -> None:
        value = "a" * 43
        expected = (
            base64.urlsafe_b64encode(hashlib.sha256(value.encode()).digest())
            .rstrip(b"=")
            .decode()
        )
        assert Verifier(value).challenge == expected
        assert "=" not in Verifier(value).challenge

    def test_rfc_7636_appendix_b_vector(self) -> None:
        verifier = Verifier("dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk")
        assert verifier.challenge == "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"

    def test_challenge_is_stable(self) -> None:
        verifier = generate_verifier()
        assert verifier.challenge == verifier.challenge

    @pytest.mark.parametrize("length", [0, 42, 129])
    def test_rejects_out_of_range_length(self, length: int) -> None:
        with pytest.raises(ValueError):
            Verifier("x" * length)

    def test_repr_does_not_leak_value(self) -> None:
        verifier = generate_verifier()
        assert verifier.value not in repr(verifier)

    def test_method_is_s256(self) -> None:
        assert CHALLENGE_METHOD == "S256"
