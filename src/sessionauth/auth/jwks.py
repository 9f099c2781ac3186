"""Token signature verification against the provider's published JSON Web Key Set.

The key set is fetched from ``<auth-base>/.well-known/jwks.json`` on every
call. A login verifies exactly two tokens, so there is nothing worth
caching, and a stale key set can never be trusted by mistake.

Verification is fail-closed: an unreachable endpoint, an unknown ``kid``, a
bad signature, an expired token, or a malformed token all raise
:class:`~sessionauth.exceptions.SignatureError`.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
import jwt

from sessionauth.exceptions import SignatureError
from sessionauth.models import ProviderConfig

logger = logging.getLogger(__name__)


class SignatureVerifier:
    """Verify JWT signatures with keys from the provider's JWKS endpoint.

    Only the signature and the time-based claims (``exp``, ``nbf``, ``iat``)
    are checked. Audience and issuer are not, and the JWKS endpoint itself
    is trusted by virtue of being served over HTTPS from the provider.

    Args:
        provider: Identity provider settings (JWKS endpoint, accepted
            algorithms).
        timeout: Request timeout in seconds for the key set fetch.
    """

    def __init__(self, provider: ProviderConfig, timeout: float = 30.0) -> None:
        self._provider = provider
        self._timeout = timeout

    def verify(self, token: str, label: str = "token") -> dict[str, Any]:
        """Verify *token* and return its claims.

        Args:
            token: The compact-serialised JWT.
            label: Name used in error messages (``"access token"``,
                ``"ID token"``).

        Returns:
            The verified claims mapping.

        Raises:
            SignatureError: If the key set cannot be fetched or the token
                fails verification for any reason.
        """
        key_set = self._fetch_key_set(label)
        try:
            key = self._select_key(key_set, token)
            claims: dict[str, Any] = jwt.decode(
                token,
                key=key.key,
                algorithms=list(self._provider.jwt_algorithms),
                options={"verify_aud": False},
            )
        except (jwt.PyJWTError, KeyError) as exc:
            raise SignatureError(f"failed to verify signature of {label}: {exc}") from exc

        logger.debug("Verified signature of %s", label)
        return claims

    def _fetch_key_set(self, label: str) -> jwt.PyJWKSet:
        """Download and parse the provider's key set."""
        endpoint = self._provider.jwks_endpoint
        logger.debug("Fetching key set from %s", endpoint)
        try:
            response = httpx.get(endpoint, timeout=self._timeout)
            response.raise_for_status()
            data = response.json()
            if not isinstance(data, dict):
                raise SignatureError(
                    f"failed to verify signature of {label}: invalid key set: "
                    "response is not a JSON object"
                )
            return jwt.PyJWKSet.from_dict(data)
        except httpx.HTTPError as exc:
            raise SignatureError(
                f"failed to verify signature of {label}: cannot fetch key set: {exc}"
            ) from exc
        except (ValueError, jwt.PyJWTError) as exc:
            raise SignatureError(
                f"failed to verify signature of {label}: invalid key set: {exc}"
            ) from exc

    @staticmethod
    def _select_key(key_set: jwt.PyJWKSet, token: str) -> jwt.PyJWK:
        """Pick the key named by the token's ``kid`` header.

        Tokens without a ``kid`` are accepted only when the set holds exactly
        one signing key.
        """
        header = jwt.get_unverified_header(token)
        kid = header.get("kid")
        if kid:
            return key_set[kid]

        signing_keys = [k for k in key_set.keys if k.public_key_use in ("sig", None)]
        if len(signing_keys) != 1:
            raise jwt.InvalidTokenError(
                "token has no 'kid' header and the key set has "
                f"{len(signing_keys)} signing keys"
            )
        return signing_keys[0]
