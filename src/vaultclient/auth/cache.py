"""In-memory cache for the current bearer credential.

:class:`CredentialCache` holds at most one
:class:`~vaultclient.models.Credential`. A credential is usable only while
the current time is strictly before its expiry, so a token expiring exactly
now counts as stale and is refreshed rather than risking a 401.

The cache has no lock of its own; :class:`~vaultclient.client.transport.AuthenticatedTransport`
serialises check-and-refresh around it.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from vaultclient.models import Credential


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class CredentialCache:
    """Single-slot store for a bearer credential.

    Args:
        clock: Callable returning the current UTC time. Tests inject a fixed
            clock here.
        skew: Safety margin subtracted from the credential's lifetime.
            Defaults to zero, so a token is used right up to its expiry.

    Example::

        cache = CredentialCache()
        cache.is_valid()   # False, nothing stored yet
        cache.store(Credential(token="tok", expires_at=utc_now() + timedelta(hours=1)))
        cache.is_valid()   # True
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = utc_now,
        skew: timedelta = timedelta(0),
    ) -> None:
        self._clock = clock
        self._skew = skew
        self._credential: Optional[Credential] = None

    @property
    def current(self) -> Optional[Credential]:
        """The stored credential, valid or not, or ``None``."""
        return self._credential

    def is_valid(self) -> bool:
        """Return ``True`` iff a credential is stored and has not yet expired."""
        credential = self._credential
        if credential is None:
            return False
        return credential.is_usable(self._clock(), self._skew)

    def store(self, credential: Credential) -> None:
        """Replace the stored credential with *credential*."""
        self._credential = credential

    def clear(self) -> None:
        """Drop the stored credential so the next check reports invalid."""
        self._credential = None
