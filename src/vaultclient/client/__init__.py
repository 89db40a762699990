"""HTTP client module for vaultclient.

Classes:
    :class:`AuthenticatedTransport` -- bearer-authenticated GET/PUT/PATCH
    backed by :class:`httpx.Client`, refreshing the token as needed.
    :class:`SecretClient` -- secret operations on top of the transport.

Functions:
    :func:`walk_pages` -- follows listing continuation links.

Example::

    from vaultclient.client import SecretClient

    with SecretClient.from_config(config) as client:
        for version in client.get_secret_versions("db-password"):
            print(version.id, version.updated)
"""

from vaultclient.client.pagination import walk_pages
from vaultclient.client.secrets import API_VERSION, SecretClient
from vaultclient.client.transport import AuthenticatedTransport

__all__ = ["API_VERSION", "AuthenticatedTransport", "SecretClient", "walk_pages"]
