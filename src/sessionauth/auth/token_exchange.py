"""Authorization code exchange against the provider's token endpoint."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from sessionauth.exceptions import (
    TokenExchangeError,
    TokenExchangeProtocolError,
    TokenExchangeTransportError,
)
from sessionauth.models import ProviderConfig, TokenResponse

logger = logging.getLogger(__name__)


class TokenExchanger:
    """Trade an authorization code and PKCE verifier for access and ID tokens.

    Performs a single synchronous ``POST`` to ``<auth-base>/oauth/token``.
    There are no retries: a code can only be redeemed once.

    Args:
        provider: Identity provider settings.
        timeout: Request timeout in seconds.
    """

    def __init__(self, provider: ProviderConfig, timeout: float = 30.0) -> None:
        self._provider = provider
        self._timeout = timeout

    def exchange(self, verifier: str, code: str) -> TokenResponse:
        """Exchange *code* for tokens, proving possession with the raw *verifier*.

        Args:
            verifier: The raw (undigested) PKCE code verifier.
            code: The authorization code from the callback.

        Returns:
            The decoded :class:`~sessionauth.models.TokenResponse`. Token
            fields absent from the body decode to empty strings; the caller
            decides whether that is acceptable.

        Raises:
            TokenExchangeError: If either input is empty.
            TokenExchangeTransportError: On network-level failures.
            TokenExchangeProtocolError: If the status is not 200 or the body
                is not a JSON object matching the token response shape.
        """
        if not verifier or not code:
            raise TokenExchangeError("code verifier and authorization code are required")

        data: dict[str, str] = {
            "grant_type": "authorization_code",
            "client_id": self._provider.client_id,
            "code_verifier": verifier,
            "code": code,
            # Compared by the provider, never redirected to.
            "redirect_uri": self._provider.token_redirect_uri,
        }

        logger.debug("Exchanging authorization code at %s", self._provider.token_endpoint)
        try:
            response = httpx.post(
                self._provider.token_endpoint,
                data=data,
                headers={"content-type": "application/x-www-form-urlencoded"},
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            raise TokenExchangeTransportError(f"Token exchange failed: {exc}") from exc

        if response.status_code != httpx.codes.OK:
            raise TokenExchangeProtocolError(
                f"failed to exchange code for jwt (status: {response.status_code})",
                status_code=response.status_code,
            )

        try:
            body: Any = response.json()
        except ValueError as exc:
            raise TokenExchangeProtocolError(
                f"Token response is not valid JSON: {exc}",
                status_code=response.status_code,
            ) from exc

        if not isinstance(body, dict):
            raise TokenExchangeProtocolError(
                "Token response is not a JSON object", status_code=response.status_code
            )

        try:
            return TokenResponse.model_validate(body)
        except ValidationError as exc:
            raise TokenExchangeProtocolError(
                f"Token response has an unexpected shape: {exc}",
                status_code=response.status_code,
            ) from exc
