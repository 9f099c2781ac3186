"""Local HTTP server that receives the identity provider's redirect.

The server binds a fixed local port and serves a single route,
``GET /callback?code=<code>``. The whole exchange runs inside that request,
on the server's own thread:

1. read the authorization code,
2. exchange it (with the raw PKCE verifier) for an access token and an ID token,
3. verify the signature of both tokens against the provider's key set,
4. extract the session token from the ID token's custom claim,

then answer the browser with a plain-text line and hand exactly one
:class:`~sessionauth.auth.result.FlowResult` to the waiting flow through a
:class:`~sessionauth.auth.result.ResultSlot`. Once a result has been
delivered, further callbacks are answered with an error and never reach the
exchange.

The redirect URI names ``localhost``, which a browser may resolve to either
``127.0.0.1`` or ``::1``. The server therefore listens on every loopback
address the callback host resolves to, one socket per address family.
Callback requests are handled one at a time across all of them.
"""

from __future__ import annotations

import enum
import errno
import logging
import socket
import threading
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any, Optional
from urllib.parse import parse_qs, urlparse

from sessionauth.auth.claims import extract_session_token
from sessionauth.auth.jwks import SignatureVerifier
from sessionauth.auth.pkce import Verifier
from sessionauth.auth.result import FlowResult, ResultSlot
from sessionauth.auth.token_exchange import TokenExchanger
from sessionauth.exceptions import (
    AuthError,
    ListenerError,
    MissingCodeError,
    SessionAuthError,
    TokenExchangeError,
)
from sessionauth.models import ProviderConfig

logger = logging.getLogger(__name__)

CALLBACK_PATH = "/callback"

SUCCESS_MESSAGE = (
    "Authenticated successfully. Please close this page and return to the terminal."
)
NO_CODE_MESSAGE = "no authorization code returned"
EXCHANGE_FAILED_MESSAGE = "failed to exchange code for JWT"
ALREADY_COMPLETED_MESSAGE = "authentication already completed"

# Bind errors meaning the address family is unavailable on this host.
_UNAVAILABLE_ERRNOS = (errno.EADDRNOTAVAIL, errno.EAFNOSUPPORT)


class ListenerState(str, enum.Enum):
    """Lifecycle of a :class:`CallbackServer`."""

    CREATED = "created"
    LISTENING = "listening"
    AWAITING_CALLBACK = "awaiting_callback"
    HANDLING = "handling"
    TERMINATED = "terminated"


class _CallbackHTTPServer(HTTPServer):
    """:class:`HTTPServer` that carries a reference back to its :class:`CallbackServer`."""

    def __init__(
        self, address: tuple[str, int], family: socket.AddressFamily, callback: CallbackServer
    ) -> None:
        self.address_family = family
        self.callback = callback
        super().__init__(address, _CallbackRequestHandler)


class _CallbackRequestHandler(BaseHTTPRequestHandler):
    server: _CallbackHTTPServer

    def do_GET(self) -> None:
        parsed = urlparse(self.path)
        if parsed.path != CALLBACK_PATH:
            self._respond(404, "ERROR: not found\n")
            return

        params = parse_qs(parsed.query)
        code = params.get("code", [""])[0]
        self.server.callback.handle(code, self._respond)

    def _respond(self, status: int, body: str) -> None:
        payload = body.encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "text/plain; charset=utf-8")
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("callback server: " + format, *args)


class CallbackServer:
    """Receive the provider redirect and turn it into a :class:`FlowResult`.

    The port is bound at construction time on each address the callback
    host resolves to. An address whose family the host does not support is
    skipped, but at least one must bind. :meth:`start` begins serving on
    background daemon threads and :meth:`shutdown` stops them.

    Args:
        provider: Identity provider settings (callback host and port).
        verifier: The PKCE verifier of the current attempt. Only its raw
            value is read, to prove possession at the token endpoint.
        slot: Where the single result of the attempt is delivered.
        exchanger: Trades the authorization code for tokens.
        signature_verifier: Verifies both tokens against the provider's
            key set.

    Raises:
        ListenerError: If the port cannot be bound.
    """

    def __init__(
        self,
        provider: ProviderConfig,
        verifier: Verifier,
        slot: ResultSlot,
        exchanger: TokenExchanger,
        signature_verifier: SignatureVerifier,
    ) -> None:
        self._verifier = verifier
        self._slot = slot
        self._exchanger = exchanger
        self._signature_verifier = signature_verifier
        self._threads: list[threading.Thread] = []
        self._handle_lock = threading.Lock()
        self._state = ListenerState.CREATED
        self._servers = self._bind(provider.callback_host, provider.callback_port)
        self._state = ListenerState.LISTENING

    def _bind(self, host: str, port: int) -> list[_CallbackHTTPServer]:
        servers: list[_CallbackHTTPServer] = []
        try:
            for family, address in _resolve(host, port):
                # Port 0 binds an ephemeral port once; other families reuse it.
                if servers:
                    port = servers[0].server_address[1]
                try:
                    httpd = _CallbackHTTPServer((address, port), family, self)
                except OSError as exc:
                    if exc.errno in _UNAVAILABLE_ERRNOS:
                        logger.debug("Skipping callback address %s: %s", address, exc)
                        continue
                    raise
                servers.append(httpd)
                logger.debug("Callback server bound to %s port %d", *httpd.server_address[:2])
        except OSError as exc:
            for httpd in servers:
                httpd.server_close()
            raise ListenerError(f"failed to start local server: {exc}") from exc

        if not servers:
            raise ListenerError(
                f"failed to start local server: no usable address for {host}:{port}"
            )
        return servers

    @property
    def state(self) -> ListenerState:
        return self._state

    @property
    def port(self) -> int:
        """The TCP port actually bound."""
        return self._servers[0].server_address[1]

    @property
    def addresses(self) -> list[str]:
        """The addresses being listened on, IPv4 first."""
        return [httpd.server_address[0] for httpd in self._servers]

    def start(self) -> None:
        """Serve requests on background daemon threads, one per address."""
        if self._threads:
            return
        for httpd in self._servers:
            thread = threading.Thread(
                target=httpd.serve_forever,
                name=f"sessionauth-callback-{httpd.server_address[0]}",
                daemon=True,
            )
            self._threads.append(thread)
        self._state = ListenerState.AWAITING_CALLBACK
        for thread in self._threads:
            thread.start()

    def shutdown(self) -> None:
        """Stop serving and release the port. Safe to call more than once."""
        if self._threads:
            for httpd in self._servers:
                httpd.shutdown()
            for thread in self._threads:
                thread.join()
            self._threads = []
        for httpd in self._servers:
            httpd.server_close()
        self._state = ListenerState.TERMINATED
        logger.debug("Callback server shut down")

    def handle(self, code: str, respond: Any) -> None:
        """Process one callback and deliver its outcome.

        The response body is written before the result is delivered, so the
        browser has its answer by the time the flow wakes up. The result is
        delivered even if writing the response fails.

        Args:
            code: The ``code`` query parameter (empty when absent).
            respond: ``respond(status, body)`` writes the HTTP response.
        """
        with self._handle_lock:
            self._handle(code, respond)

    def _handle(self, code: str, respond: Any) -> None:
        if self._slot.delivered:
            respond(200, f"ERROR: {ALREADY_COMPLETED_MESSAGE}\n")
            return

        self._state = ListenerState.HANDLING
        try:
            result = self._process(code)
        except Exception as exc:
            logger.debug("Unexpected error handling callback", exc_info=True)
            result = FlowResult.failure(AuthError(f"unexpected error handling callback: {exc}"))
        try:
            if result.ok:
                respond(200, SUCCESS_MESSAGE)
            else:
                respond(200, f"ERROR: {result.error}\n")
        finally:
            self._slot.deliver(result)
            self._state = ListenerState.TERMINATED

    def _process(self, code: str) -> FlowResult:
        if not code:
            return FlowResult.failure(MissingCodeError(NO_CODE_MESSAGE))

        try:
            tokens = self._exchanger.exchange(self._verifier.value, code)
        except TokenExchangeError as exc:
            logger.debug("Token exchange failed: %s", exc)
            return FlowResult.failure(_exchange_failed(exc))
        if not tokens.access_token or not tokens.id_token:
            logger.debug("Token response is missing the access token or the ID token")
            return FlowResult.failure(_exchange_failed(None))

        try:
            # The access token's claims are unused, but its signature proves
            # the response came from the provider.
            self._signature_verifier.verify(tokens.access_token, label="access token")
            claims = self._signature_verifier.verify(tokens.id_token, label="ID token")
            session_token = extract_session_token(claims)
        except SessionAuthError as exc:
            return FlowResult.failure(exc)

        return FlowResult.success(tokens, session_token)


def _resolve(host: str, port: int) -> list[tuple[socket.AddressFamily, str]]:
    """Distinct ``(family, address)`` pairs for *host*, IPv4 first."""
    try:
        infos = socket.getaddrinfo(host, port, type=socket.SOCK_STREAM)
    except socket.gaierror as exc:
        raise ListenerError(f"failed to start local server: cannot resolve {host}: {exc}") from exc

    found: list[tuple[socket.AddressFamily, str]] = []
    for family, _, _, _, sockaddr in infos:
        if family not in (socket.AF_INET, socket.AF_INET6):
            continue
        entry = (family, sockaddr[0])
        if entry not in found:
            found.append(entry)
    return sorted(found, key=lambda entry: entry[0] != socket.AF_INET)


def _exchange_failed(cause: Optional[BaseException]) -> TokenExchangeError:
    error = TokenExchangeError(EXCHANGE_FAILED_MESSAGE)
    error.__cause__ = cause
    return error
