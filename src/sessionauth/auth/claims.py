"""Session token extraction from the verified ID token's custom claim."""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from sessionauth.exceptions import ClaimError
from sessionauth.models import SessionClaims


def extract_session_token(claims: dict[str, Any]) -> str:
    """Return ``claims["ui_token"]["access_token"]``.

    The claims are validated against :class:`~sessionauth.models.SessionClaims`;
    a missing key, a non-mapping ``ui_token``, a non-string or empty
    ``access_token`` all fail the same way. There is no fallback location.

    Raises:
        ClaimError: If the claim is absent or malformed.
    """
    try:
        parsed = SessionClaims.model_validate(claims)
    except ValidationError as exc:
        raise ClaimError("failed to extract session token from JWT custom claim") from exc
    return parsed.ui_token.access_token
