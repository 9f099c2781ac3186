"""sessionauth -- obtain a session token through a browser-based PKCE login.

This package runs an OAuth2 Authorization Code grant with PKCE against an
identity provider, verifies the returned tokens against the provider's
published key set, and stores the session token carried in a custom claim of
the ID token on the user's default profile.

Typical workflow::

    sessionauth profile create work --default
    sessionauth authenticate

Modules:
    app: Typer application factory and CLI entry point.
    models: Pydantic models for provider settings, profiles, and tokens.
    config: XDG-aware configuration file and profile management.
    exceptions: Exception hierarchy with exit-code and remediation mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
    auth: The browser login flow itself.
"""

__version__ = "0.1.0"
