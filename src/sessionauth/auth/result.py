"""One-shot handoff of the login outcome from the callback thread to the waiting flow.

The local callback server runs the code exchange on its own thread. The
orchestrating thread blocks in :meth:`ResultSlot.wait` until that thread
calls :meth:`ResultSlot.deliver`. The slot accepts exactly one delivery:
later calls are refused and never reach the waiting side.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from sessionauth.exceptions import SessionAuthError
from sessionauth.models import TokenResponse

logger = logging.getLogger(__name__)


class FlowResult:
    """The terminal outcome of one login attempt. Immutable once created.

    Exactly one of *error* or *session_token* is set.

    Args:
        error: The failure that ended the attempt.
        tokens: The provider's token response (success only).
        session_token: The session token from the ID token's custom claim.

    Example::

        FlowResult.failure(MissingCodeError("no authorization code returned"))
        FlowResult.success(tokens, "SESSION-XYZ")
    """

    __slots__ = ("_error", "_tokens", "_session_token")

    def __init__(
        self,
        error: Optional[SessionAuthError] = None,
        tokens: Optional[TokenResponse] = None,
        session_token: Optional[str] = None,
    ) -> None:
        if (error is None) == (session_token is None):
            raise ValueError("FlowResult needs exactly one of error or session_token")
        object.__setattr__(self, "_error", error)
        object.__setattr__(self, "_tokens", tokens)
        object.__setattr__(self, "_session_token", session_token)

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError("FlowResult is immutable")

    @classmethod
    def failure(cls, error: SessionAuthError) -> FlowResult:
        return cls(error=error)

    @classmethod
    def success(cls, tokens: TokenResponse, session_token: str) -> FlowResult:
        return cls(tokens=tokens, session_token=session_token)

    @property
    def error(self) -> Optional[SessionAuthError]:
        return self._error

    @property
    def tokens(self) -> Optional[TokenResponse]:
        return self._tokens

    @property
    def session_token(self) -> Optional[str]:
        return self._session_token

    @property
    def ok(self) -> bool:
        return self._error is None

    def __repr__(self) -> str:
        if self._error is not None:
            return f"FlowResult(error={self._error!r})"
        return "FlowResult(session_token=<redacted>)"


class ResultSlot:
    """Single-producer, single-consumer slot that holds at most one :class:`FlowResult`.

    :meth:`deliver` publishes the result and wakes the waiter; the
    ``threading.Event`` gives the waiter a happens-before view of everything
    the producer wrote.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ready = threading.Event()
        self._result: Optional[FlowResult] = None

    @property
    def delivered(self) -> bool:
        """Whether a result has already been delivered."""
        return self._ready.is_set()

    def deliver(self, result: FlowResult) -> bool:
        """Publish *result* if the slot is still empty.

        Returns:
            ``True`` if *result* was accepted, ``False`` if a result had
            already been delivered (the new one is dropped).
        """
        with self._lock:
            if self._result is not None:
                logger.warning("Dropping a second login result; only the first is used")
                return False
            self._result = result
            self._ready.set()
        return True

    def wait(self, timeout: Optional[float] = None) -> Optional[FlowResult]:
        """Block until a result is delivered.

        Args:
            timeout: Seconds to wait, or ``None`` to wait forever.

        Returns:
            The delivered :class:`FlowResult`, or ``None`` if *timeout*
            elapsed first.
        """
        if not self._ready.wait(timeout):
            return None
        return self._result
