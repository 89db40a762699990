"""Authenticated HTTP transport for Key Vault requests.

This module provides :class:`AuthenticatedTransport`, a thin wrapper around
:class:`httpx.Client` that guarantees every outgoing request carries a
currently valid bearer token:

- **Token freshness** -- :meth:`~AuthenticatedTransport.ensure_fresh_token`
  runs before every request. It consults the
  :class:`~vaultclient.auth.cache.CredentialCache` and only calls the
  :class:`~vaultclient.auth.provider.TokenProvider` when the cached token is
  missing or expired.
- **Single-flight refresh** -- the check-and-refresh runs under a lock, so
  threads sharing one transport wait for a single in-flight exchange
  instead of each issuing their own.
- **Error mapping** -- network failures become
  :class:`~vaultclient.exceptions.TransportError`. HTTP status codes are
  *not* interpreted here; the response is handed back for the caller to
  decode.

There is no retry: a failed call surfaces immediately.
"""

from __future__ import annotations

import threading
from typing import Optional

import httpx

from vaultclient.auth.cache import CredentialCache
from vaultclient.auth.provider import ClientCredentialsProvider, TokenProvider
from vaultclient.exceptions import TransportError
from vaultclient.models import ClientConfig, Credential
from vaultclient.output import debug


class AuthenticatedTransport:
    """Bearer-authenticated GET/PUT/PATCH against absolute URIs.

    Can be used as a context manager, in which case the underlying
    :class:`httpx.Client` is closed on exit. A client passed in through
    *http_client* belongs to the caller and is never closed here.

    Args:
        config: Identity and endpoint settings.
        provider: Source of fresh credentials. Defaults to
            :class:`~vaultclient.auth.provider.ClientCredentialsProvider`.
        cache: Credential cache. Defaults to an empty
            :class:`~vaultclient.auth.cache.CredentialCache`.
        http_client: Optional pre-configured :class:`httpx.Client`, e.g. one
            built on :class:`httpx.MockTransport` in tests.

    Example::

        with AuthenticatedTransport(config) as transport:
            response = transport.get(f"{config.vault_url}/secrets?api-version=7.0")
    """

    def __init__(
        self,
        config: ClientConfig,
        provider: Optional[TokenProvider] = None,
        cache: Optional[CredentialCache] = None,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self._config = config
        self._provider = provider or ClientCredentialsProvider()
        self._cache = cache or CredentialCache()
        self._client = http_client
        self._owns_client = http_client is None
        self._lock = threading.Lock()

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def cache(self) -> CredentialCache:
        return self._cache

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> AuthenticatedTransport:
        self._http()
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP client if this transport created it."""
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Token handling
    # ------------------------------------------------------------------ #

    def ensure_fresh_token(self) -> Credential:
        """Return a usable credential, acquiring a new one if the cache is stale.

        A failed acquisition leaves the previous credential in the cache.

        Returns:
            The credential to present on the next request.

        Raises:
            AuthorizationError: If the token exchange fails.
        """
        with self._lock:
            if self._cache.is_valid():
                credential = self._cache.current
                assert credential is not None  # is_valid() guarantees this
                return credential
            debug("Cached token missing or expired, acquiring a new one")
            credential = self._provider.acquire(self._config)
            self._cache.store(credential)
            return credential

    # ------------------------------------------------------------------ #
    # Verbs
    # ------------------------------------------------------------------ #

    def get(self, uri: str) -> httpx.Response:
        """Send an authenticated GET to *uri*.

        Returns:
            The :class:`httpx.Response`; its ``text`` is the raw body.

        Raises:
            AuthorizationError: If a token could not be obtained.
            TransportError: On network or timeout failures.
        """
        return self._send("GET", uri)

    def put(self, uri: str, body: str) -> httpx.Response:
        """Send an authenticated PUT with a JSON *body* to *uri*."""
        return self._send("PUT", uri, body)

    def patch(self, uri: str, body: str) -> httpx.Response:
        """Send an authenticated PATCH with a JSON *body* to *uri*."""
        return self._send("PATCH", uri, body)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _http(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(timeout=self._config.timeout)
            self._owns_client = True
        return self._client

    def _send(self, method: str, uri: str, body: Optional[str] = None) -> httpx.Response:
        credential = self.ensure_fresh_token()

        headers = {
            "Accept": "application/json",
            "Authorization": f"Bearer {credential.token}",
        }
        if body is not None:
            headers["Content-Type"] = "application/json"

        client = self._http()
        if client.is_closed:
            raise TransportError(f"{method} {uri} failed: the HTTP client is closed")

        debug(f"{method} {uri}")
        try:
            response = client.request(method, uri, headers=headers, content=body)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise TransportError(f"{method} {uri} failed: {exc}") from exc

        debug(f"{method} {uri} -> HTTP {response.status_code}")
        return response
