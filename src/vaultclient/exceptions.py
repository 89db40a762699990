"""Exception hierarchy for vaultclient.

All exceptions inherit from :class:`VaultClientError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`vaultclient.exit_codes`.
Library callers catch the specific subclasses; the CLI entry point in
:func:`vaultclient.app.main` catches ``VaultClientError`` and exits with the
matching code.

Subclass hierarchy::

    VaultClientError (exit 1)
    +-- InvalidUsageError        (exit 2)
    +-- AuthorizationError       (exit 3)
    +-- ServiceError             (exit 5)
    |   +-- SecretNotFoundError  (exit 4)
    +-- TransportError           (exit 6)
    +-- DecodeError              (exit 8)
    +-- ConfigError              (exit 1)
"""

from __future__ import annotations

from vaultclient.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_DECODE_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVICE_ERROR,
)


class VaultClientError(Exception):
    """Base exception for all vaultclient errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(VaultClientError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE


class AuthorizationError(VaultClientError):
    """Raised when the Azure AD token exchange fails.

    Covers network failures talking to the token endpoint, rejected client
    credentials, and token responses without an access token or expiry.
    """

    exit_code = EXIT_AUTH_FAILURE


class TransportError(VaultClientError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Distinct from :class:`ServiceError`, which means the vault answered with
    a well-formed error response.
    """

    exit_code = EXIT_CONNECTION_ERROR


class DecodeError(VaultClientError):
    """Raised when a response body does not parse into the expected shape."""

    exit_code = EXIT_DECODE_ERROR


class ServiceError(VaultClientError):
    """Raised when Key Vault returns an error response.

    Args:
        status_code: The HTTP status of the response.
        message: The service's error message (or a fallback built from the
            response text).
        code: The service's own error code, e.g. ``"SecretNotFound"`` or
            ``"Forbidden"``, when the body carried one.
    """

    exit_code = EXIT_SERVICE_ERROR

    def __init__(self, status_code: int, message: str, code: str | None = None):
        self.status_code = status_code
        self.code = code
        self.message = message
        label = f"HTTP {status_code}"
        if code:
            label = f"{label} ({code})"
        super().__init__(f"{label}: {message}" if message else label)


class SecretNotFoundError(ServiceError):
    """Raised when the requested secret or version does not exist (HTTP 404)."""

    exit_code = EXIT_NOT_FOUND


class ConfigError(VaultClientError):
    """Raised for configuration problems (missing profiles, invalid JSON, bad credential sources)."""

    exit_code = EXIT_GENERIC_FAILURE
