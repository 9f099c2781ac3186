"""Exception hierarchy for sessionauth.

All exceptions inherit from :class:`SessionAuthError`, which carries an
``exit_code`` attribute mapped to a constant from
:mod:`sessionauth.exit_codes` and an optional ``remediation`` hint. The
top-level error handler in :func:`sessionauth.app.main` catches
``SessionAuthError``, prints the message and the remediation, and exits with
the appropriate code. Unexpected exceptions produce a crash log and exit
with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    SessionAuthError (exit 1)
    +-- InvalidUsageError              (exit 2)
    +-- ConfigError                    (exit 1)
    |   +-- ConfigWriteError
    +-- ProfileError                   (exit 1)
    |   +-- NoDefaultProfileError
    |   +-- ProfileUpdateError
    +-- BrowserLaunchError             (exit 1)
    +-- ListenerError                  (exit 6)
    +-- AuthError                      (exit 3)
        +-- ChallengeError
        +-- AuthorizationURLError
        +-- MissingCodeError
        +-- TokenExchangeError
        |   +-- TokenExchangeTransportError
        |   +-- TokenExchangeProtocolError
        +-- SignatureError
        +-- ClaimError
        +-- AuthorizationError
        +-- AuthTimeoutError
"""

from __future__ import annotations

from typing import Optional

from sessionauth.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
)

AUTH_REMEDIATION = (
    "Please re-run the command. If the problem persists, please file an issue: "
    "https://github.com/sessionauth/sessionauth/issues/new?labels=bug"
)
"""Generic remediation attached to every failure of the browser login flow."""

PROFILE_REMEDIATION = (
    "Create a default profile with `sessionauth profile create <name> --default`, "
    "or mark an existing one with `sessionauth profile default <name>`."
)
"""Remediation for a missing or unusable default profile."""

TOKEN_PASTE_REMEDIATION = (
    "Run `sessionauth profile set-token <name>` and manually paste in the session token."
)
"""Remediation when the session token could not be written into the profile."""


class SessionAuthError(Exception):
    """Base exception for all sessionauth errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`sessionauth.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
        remediation: Optional next step printed after the error.
    """

    exit_code: int = EXIT_GENERIC_FAILURE
    remediation: Optional[str] = None

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        remediation: str | None = None,
    ):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code
        if remediation is not None:
            self.remediation = remediation


class InvalidUsageError(SessionAuthError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(SessionAuthError):
    """Raised for configuration problems (invalid JSON, unknown profile, bad values)."""

    exit_code = EXIT_GENERIC_FAILURE


class ConfigWriteError(ConfigError):
    """Raised when the configuration file cannot be rewritten on disk."""


class ProfileError(SessionAuthError):
    """Base class for profile lookup and update failures."""

    exit_code = EXIT_GENERIC_FAILURE
    remediation = PROFILE_REMEDIATION


class NoDefaultProfileError(ProfileError):
    """Raised when no profile is marked as the default."""


class ProfileUpdateError(ProfileError):
    """Raised when the default profile cannot be updated with the new token."""

    remediation = TOKEN_PASTE_REMEDIATION


class BrowserLaunchError(SessionAuthError):
    """Raised when the default web browser cannot be opened."""

    exit_code = EXIT_GENERIC_FAILURE


class ListenerError(SessionAuthError):
    """Raised when the local callback server cannot bind its port."""

    exit_code = EXIT_CONNECTION_ERROR
    remediation = AUTH_REMEDIATION


class AuthError(SessionAuthError):
    """Raised when any stage of the browser login flow fails."""

    exit_code = EXIT_AUTH_FAILURE
    remediation = AUTH_REMEDIATION


class ChallengeError(AuthError):
    """Raised when the OS entropy source cannot produce a PKCE verifier."""


class AuthorizationURLError(AuthError):
    """Raised when the authorization URL cannot be composed."""


class MissingCodeError(AuthError):
    """Raised when the provider redirect carries no authorization code."""


class TokenExchangeError(AuthError):
    """Raised when the authorization code cannot be exchanged for tokens."""


class TokenExchangeTransportError(TokenExchangeError):
    """Raised on network-level failures talking to the token endpoint."""


class TokenExchangeProtocolError(TokenExchangeError):
    """Raised when the token endpoint answers with a non-200 status or an undecodable body.

    Args:
        message: Human-readable error description.
        status_code: HTTP status returned by the provider, if any.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class SignatureError(AuthError):
    """Raised when a token's signature cannot be verified against the provider's key set."""


class ClaimError(AuthError):
    """Raised when the session token cannot be read from the ID token's custom claim."""


class AuthorizationError(AuthError):
    """Terminal failure of a flow attempt, wrapping the error delivered by the callback."""


class AuthTimeoutError(AuthError):
    """Raised when the browser login is not completed within the configured timeout."""
