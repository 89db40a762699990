"""Bearer-token acquisition and caching for vaultclient.

The main entry points are:

- :class:`CredentialCache` -- holds the current :class:`~vaultclient.models.Credential`
  and decides whether it is still usable.
- :class:`TokenProvider` -- abstract base for anything that can exchange a
  :class:`~vaultclient.models.ClientConfig` for a fresh credential.
- :class:`ClientCredentialsProvider` -- the Azure AD client-credentials
  exchange used by default.
- :class:`StaticTokenProvider` -- hands out a pre-issued token.

Typical usage::

    from vaultclient.auth import ClientCredentialsProvider, CredentialCache

    cache = CredentialCache()
    if not cache.is_valid():
        cache.store(ClientCredentialsProvider().acquire(config))
"""

from vaultclient.auth.cache import CredentialCache
from vaultclient.auth.provider import (
    ClientCredentialsProvider,
    StaticTokenProvider,
    TokenProvider,
)

__all__ = [
    "ClientCredentialsProvider",
    "CredentialCache",
    "StaticTokenProvider",
    "TokenProvider",
]
