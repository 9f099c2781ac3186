"""Shared test fixtures for sessionauth.

Provides isolated config environments, output state management, a CLI
runner, an RSA signing key with its published key set, and a provider
pointed at a free local port. These fixtures are automatically discovered
by pytest and available to all test modules without explicit imports.
"""

from __future__ import annotations

import socket
import time
from pathlib import Path
from typing import Any, Callable

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from jwt.algorithms import RSAAlgorithm

from sessionauth.models import ProviderConfig
from sessionauth.output import OutputFormat, OutputManager, reset_output, set_output


TEST_KID = "test-key-1"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file").  Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_DATA_HOME to subdirectories of tmp_path
    so that tests never touch real user config, and clears all
    SESSIONAUTH_* environment variables.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setattr("sessionauth.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in [
        "SESSIONAUTH_CONFIG",
        "SESSIONAUTH_AUTH_URL",
        "SESSIONAUTH_CLIENT_ID",
        "SESSIONAUTH_AUDIENCE",
        "SESSIONAUTH_CALLBACK_PORT",
        "SESSIONAUTH_AUTH_TIMEOUT",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def config_file(isolated_config: Path) -> Path:
    """Path of the config file inside the isolated config directory."""
    return isolated_config / "config" / "sessionauth" / "config.json"


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager for the test."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()


# ---------------------------------------------------------------------------
# Identity provider fixtures
# ---------------------------------------------------------------------------


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def provider() -> ProviderConfig:
    """A provider whose callback server binds a free local port."""
    return ProviderConfig(
        auth_base_url="https://idp.example.com",
        client_id="client-123",
        audience="https://api.example.com/",
        callback_port=_free_port(),
    )


@pytest.fixture(scope="session")
def rsa_private_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def jwks(rsa_private_key: rsa.RSAPrivateKey) -> dict[str, Any]:
    """The key set published for :func:`rsa_private_key`."""
    public_jwk = RSAAlgorithm.to_jwk(rsa_private_key.public_key(), as_dict=True)
    public_jwk.update({"kid": TEST_KID, "use": "sig", "alg": "RS256"})
    return {"keys": [public_jwk]}


@pytest.fixture(scope="session")
def sign_token(rsa_private_key: rsa.RSAPrivateKey) -> Callable[..., str]:
    """Return ``sign(claims, kid=TEST_KID, key=None)`` producing an RS256 JWT.

    ``exp`` defaults to one hour from now unless given in *claims*.
    """

    def _sign(claims: dict[str, Any], kid: str | None = TEST_KID, key: Any = None) -> str:
        payload = {"exp": int(time.time()) + 3600, **claims}
        headers = {"kid": kid} if kid else None
        return jwt.encode(payload, key or rsa_private_key, algorithm="RS256", headers=headers)

    return _sign
