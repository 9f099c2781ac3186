"""PKCE code verifier and challenge generation (:rfc:`7636`, ``S256`` method).

A fresh :class:`Verifier` is generated for every login attempt and never
persisted. The raw value is sent to the token endpoint; only its SHA-256
challenge appears in the browser-facing authorization URL.
"""

from __future__ import annotations

import base64
import hashlib
import secrets

from sessionauth.exceptions import ChallengeError

CHALLENGE_METHOD = "S256"


class Verifier:
    """A PKCE code verifier and its derived ``S256`` challenge.

    Args:
        value: The raw verifier, 43-128 characters from the unreserved set.

    Example::

        verifier = generate_verifier()
        verifier.challenge  # base64url(sha256(verifier.value)), unpadded
    """

    __slots__ = ("_value",)

    def __init__(self, value: str) -> None:
        if not 43 <= len(value) <= 128:
            raise ValueError("code verifier must be between 43 and 128 characters")
        self._value = value

    @property
    def value(self) -> str:
        """The raw verifier sent to the token endpoint."""
        return self._value

    @property
    def challenge(self) -> str:
        """The SHA-256 challenge, base64url-encoded without padding."""
        digest = hashlib.sha256(self._value.encode("ascii")).digest()
        return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")

    def __repr__(self) -> str:
        return "Verifier(<redacted>)"


def generate_verifier() -> Verifier:
    """Generate a fresh PKCE verifier from the OS entropy source.

    Raises:
        ChallengeError: If the entropy source is unavailable.
    """
    try:
        # RFC 7636: 43-128 characters from unreserved character set
        value = secrets.token_urlsafe(64)[:128]
    except (OSError, NotImplementedError) as exc:
        raise ChallengeError(f"failed to generate a code verifier: {exc}") from exc
    return Verifier(value)
