"""Browser-based login flow: PKCE authorization code exchange with a local callback server.

The main entry points are:

- :class:`AuthenticateFlow` -- runs one login attempt end to end.
- :func:`generate_verifier` / :func:`build_authorization_url` -- the PKCE
  challenge and the browser-facing URL.
- :class:`CallbackServer` -- the local listener that receives the redirect.
- :class:`TokenExchanger` and :class:`SignatureVerifier` -- the two
  back-channel calls to the identity provider.
- :func:`extract_session_token` -- reads the session token custom claim.
- :class:`ResultSlot` / :class:`FlowResult` -- the one-shot handoff between
  the callback thread and the waiting flow.

Typical usage::

    from sessionauth.auth import AuthenticateFlow

    flow = AuthenticateFlow(provider, timeout=300)
    session_token = flow.run(app_config, config_path)
"""

from sessionauth.auth.authorize import build_authorization_url
from sessionauth.auth.callback_server import CallbackServer, ListenerState
from sessionauth.auth.claims import extract_session_token
from sessionauth.auth.flow import AuthenticateFlow
from sessionauth.auth.jwks import SignatureVerifier
from sessionauth.auth.pkce import Verifier, generate_verifier
from sessionauth.auth.result import FlowResult, ResultSlot
from sessionauth.auth.token_exchange import TokenExchanger

__all__ = [
    "AuthenticateFlow",
    "CallbackServer",
    "FlowResult",
    "ListenerState",
    "ResultSlot",
    "SignatureVerifier",
    "TokenExchanger",
    "Verifier",
    "build_authorization_url",
    "extract_session_token",
    "generate_verifier",
]
