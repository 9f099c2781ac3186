"""Authorization URL construction for the browser leg of the login flow."""

from __future__ import annotations

from urllib.parse import urlencode

from sessionauth.auth.pkce import CHALLENGE_METHOD, Verifier
from sessionauth.exceptions import AuthorizationURLError
from sessionauth.models import ProviderConfig


def build_authorization_url(provider: ProviderConfig, verifier: Verifier) -> str:
    """Compose the provider's ``/authorize`` URL for *verifier*.

    The result depends only on *provider* and *verifier*, so calling this
    twice with the same arguments yields the same string.

    Args:
        provider: Identity provider settings (endpoint, client ID, audience,
            redirect URI, scope).
        verifier: The PKCE verifier whose challenge is embedded in the URL.

    Returns:
        The fully-formed authorization URL to open in the browser.

    Raises:
        AuthorizationURLError: If the challenge cannot be derived.
    """
    try:
        challenge = verifier.challenge
    except (UnicodeEncodeError, ValueError) as exc:
        raise AuthorizationURLError(f"failed to generate an authorization URL: {exc}") from exc

    params: dict[str, str] = {
        "audience": provider.audience,
        "scope": provider.scope,
        "response_type": "code",
        "client_id": provider.client_id,
        "code_challenge": challenge,
        "code_challenge_method": CHALLENGE_METHOD,
        "redirect_uri": provider.redirect_uri,
    }
    return f"{provider.authorize_endpoint}?{urlencode(params)}"
