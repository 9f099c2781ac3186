"""Exit codes and remediation hints carried by the exception hierarchy."""

from __future__ import annotations

import pytest

from sessionauth.exceptions import (
    AUTH_REMEDIATION,
    PROFILE_REMEDIATION,
    TOKEN_PASTE_REMEDIATION,
    AuthorizationError,
    AuthTimeoutError,
    BrowserLaunchError,
    ChallengeError,
    ClaimError,
    ConfigError,
    ConfigWriteError,
    ListenerError,
    MissingCodeError,
    NoDefaultProfileError,
    ProfileUpdateError,
    SessionAuthError,
    SignatureError,
    TokenExchangeProtocolError,
    TokenExchangeTransportError,
)


@pytest.mark.parametrize(
    "cls, code",
    [
        (ChallengeError, 3),
        (ListenerError, 6),
        (BrowserLaunchError, 1),
        (MissingCodeError, 3),
        (TokenExchangeTransportError, 3),
        (TokenExchangeProtocolError, 3),
        (SignatureError, 3),
        (ClaimError, 3),
        (AuthorizationError, 3),
        (AuthTimeoutError, 3),
        (NoDefaultProfileError, 1),
        (ProfileUpdateError, 1),
        (ConfigWriteError, 1),
        (ConfigError, 1),
    ],
)
def test_exit_codes(cls: type[SessionAuthError], code: int) -> None:
    assert cls("x").exit_code == code


def test_remediations() -> None:
    assert SignatureError("x").remediation == AUTH_REMEDIATION
    assert NoDefaultProfileError("x").remediation == PROFILE_REMEDIATION
    assert ProfileUpdateError("x").remediation == TOKEN_PASTE_REMEDIATION
    assert ConfigError("x").remediation is None


def test_overrides_per_instance() -> None:
    err = ConfigError("bad key", exit_code=2, remediation="try again")
    assert err.exit_code == 2
    assert err.remediation == "try again"
    assert ConfigError("x").exit_code == 1
