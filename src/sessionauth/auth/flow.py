"""Orchestration of the browser login flow.

:class:`AuthenticateFlow` sequences one login attempt:

1. Generate a fresh PKCE verifier.
2. Bind the local callback server and start serving on its own thread.
3. Build the authorization URL and open it in the default browser.
4. Block until the callback thread delivers the single
   :class:`~sessionauth.auth.result.FlowResult` (or the optional timeout
   elapses), then shut the callback server down.
5. On success, write the session token into the default profile and
   rewrite the config file.

Every failure surfaces as a :class:`~sessionauth.exceptions.SessionAuthError`
carrying a remediation hint. Nothing is written to disk unless every stage
succeeded.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

from sessionauth.auth.authorize import build_authorization_url
from sessionauth.auth.browser import open_in_browser
from sessionauth.auth.callback_server import CallbackServer
from sessionauth.auth.jwks import SignatureVerifier
from sessionauth.auth.pkce import generate_verifier
from sessionauth.auth.result import FlowResult, ResultSlot
from sessionauth.auth.token_exchange import TokenExchanger
from sessionauth.config import default_profile, edit_profile, save_config
from sessionauth.exceptions import (
    AuthorizationError,
    AuthTimeoutError,
    NoDefaultProfileError,
    ProfileUpdateError,
)
from sessionauth.models import AppConfig, Profile, ProviderConfig
from sessionauth.output import description, info

logger = logging.getLogger(__name__)


class AuthenticateFlow:
    """Run one browser login attempt against *provider*.

    Args:
        provider: Identity provider settings shared by every component.
        exchanger: Token exchanger; defaults to :class:`TokenExchanger`.
        signature_verifier: Token verifier; defaults to
            :class:`SignatureVerifier`.
        open_browser: Called with the authorization URL. Defaults to
            :func:`~sessionauth.auth.browser.open_in_browser`.
        launch_browser: When ``False`` the URL is only printed.
        timeout: Seconds to wait for the callback, or ``None`` to wait
            forever.

    Example::

        flow = AuthenticateFlow(provider, timeout=300)
        session_token = flow.run(app_config, config_path)
    """

    def __init__(
        self,
        provider: ProviderConfig,
        *,
        exchanger: Optional[TokenExchanger] = None,
        signature_verifier: Optional[SignatureVerifier] = None,
        open_browser: Optional[Callable[[str], None]] = None,
        launch_browser: bool = True,
        timeout: Optional[float] = None,
    ) -> None:
        self._provider = provider
        self._exchanger = exchanger or TokenExchanger(provider)
        self._signature_verifier = signature_verifier or SignatureVerifier(provider)
        self._open_browser = open_browser or open_in_browser
        self._launch_browser = launch_browser
        self._timeout = timeout

    def run(self, app_config: AppConfig, config_path: Path) -> str:
        """Authorize and persist the session token into the default profile.

        Returns:
            The session token.
        """
        result = self.authorize()
        assert result.session_token is not None  # authorize() guarantees this
        self.persist(app_config, config_path, result.session_token)
        return result.session_token

    def authorize(self) -> FlowResult:
        """Run the browser leg and wait for its single result.

        Returns:
            The successful :class:`FlowResult`.

        Raises:
            ChallengeError: If no verifier could be generated.
            ListenerError: If the callback port cannot be bound.
            AuthorizationURLError: If the authorization URL cannot be built.
            BrowserLaunchError: If the browser cannot be opened.
            AuthTimeoutError: If no callback arrived within the timeout.
            AuthorizationError: If the callback delivered an error.
        """
        verifier = generate_verifier()
        slot = ResultSlot()
        listener = CallbackServer(
            self._provider, verifier, slot, self._exchanger, self._signature_verifier
        )
        listener.start()
        try:
            info("Starting localhost server to handle the authentication flow.")
            authorization_url = build_authorization_url(self._provider, verifier)

            if self._launch_browser:
                description(
                    "We're opening the following URL in your default web browser "
                    "so you may authenticate",
                    authorization_url,
                )
                self._open_browser(authorization_url)
            else:
                description("Open the following URL in a web browser to authenticate", authorization_url)

            logger.debug("Waiting for callback (timeout=%s)", self._timeout)
            result = slot.wait(self._timeout)
        finally:
            listener.shutdown()

        if result is None:
            raise AuthTimeoutError(
                f"timed out after {self._timeout:g} seconds waiting for the browser login"
            )
        if result.error is not None:
            raise AuthorizationError(f"failed to authorize: {result.error}") from result.error
        return result

    def persist(self, app_config: AppConfig, config_path: Path, session_token: str) -> str:
        """Store *session_token* on the default profile and rewrite the config file.

        *app_config* itself is not modified.

        Returns:
            The name of the updated profile.

        Raises:
            NoDefaultProfileError: If no profile is marked as the default.
            ProfileUpdateError: If the profile could not be updated.
            ConfigWriteError: If the config file could not be written.
        """
        profile_name, _ = default_profile(app_config.profiles)
        if profile_name is None:
            raise NoDefaultProfileError("no default profile available")

        def _set_token(profile: Profile) -> None:
            profile.token = session_token

        profiles, ok = edit_profile(profile_name, app_config.profiles, _set_token)
        if not ok:
            raise ProfileUpdateError(
                f"failed to update default profile '{profile_name}' with new session token"
            )

        save_config(app_config.model_copy(update={"profiles": profiles}), config_path)
        logger.debug("Session token stored on profile %s", profile_name)
        return profile_name
