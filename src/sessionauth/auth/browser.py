"""Open a URL in the user's default web browser."""

from __future__ import annotations

import webbrowser

from sessionauth.exceptions import BrowserLaunchError


def open_in_browser(url: str) -> None:
    """Open *url* with :mod:`webbrowser`.

    Raises:
        BrowserLaunchError: If no browser could be launched.
    """
    try:
        opened = webbrowser.open(url)
    except webbrowser.Error as exc:
        raise BrowserLaunchError(f"failed to open your default browser: {exc}") from exc
    if not opened:
        raise BrowserLaunchError(
            "failed to open your default browser: no runnable browser found",
            remediation="Open the URL above manually, or re-run with --no-browser.",
        )
