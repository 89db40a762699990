"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~vaultclient.exceptions.VaultClientError` subclass.
Shell wrappers can inspect the exit code to tell a missing secret apart from
rejected credentials without parsing stderr.

Example::

    $ vaultclient secret get db-password
    $ echo $?
    4   # EXIT_NOT_FOUND -- the vault has no secret with that name
"""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""The Azure AD token exchange failed."""

EXIT_NOT_FOUND = 4
"""The requested secret or secret version does not exist (HTTP 404)."""

EXIT_SERVICE_ERROR = 5
"""Key Vault returned an error response."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_DECODE_ERROR = 8
"""A response body did not have the expected shape."""
