"""Secret resource client for the Key Vault REST API.

:class:`SecretClient` turns secret operations into versioned REST calls on
an :class:`~vaultclient.client.transport.AuthenticatedTransport` and decodes
the responses into :class:`~vaultclient.models.Secret` and
:class:`~vaultclient.models.SecretIdentifier` values.

Endpoints used (all with ``api-version=7.0``)::

    GET   /secrets/{name}/{version}
    GET   /secrets?maxresults=N
    GET   /secrets/{name}/versions?maxresults=25
    PUT   /secrets/{name}
    PATCH /secrets/{name}/{version}

Attribute updates are deliberately narrow: each ``update_secret_*`` method
sends exactly one field inside ``{"attributes": {...}}``.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Optional
from urllib.parse import quote

import httpx

from vaultclient.auth.provider import TokenProvider
from vaultclient.client.pagination import decode_page, walk_pages
from vaultclient.client.response import decode_model, raise_for_service_error
from vaultclient.client.transport import AuthenticatedTransport
from vaultclient.models import (
    ClientConfig,
    RecoveryLevel,
    Secret,
    SecretBundle,
    SecretIdentifier,
)

API_VERSION = "7.0"
"""Key Vault REST API version sent on every request."""

DEFAULT_MAX_RESULTS = 25
"""Page size requested for version listings; also the service maximum."""


class SecretClient:
    """Read and write secrets in one vault.

    Args:
        transport: The authenticated transport to send requests through.

    Example::

        with SecretClient.from_config(config) as client:
            client.set_secret("db-password", "s3cr3t")
            secret = client.get_secret("db-password")
            assert secret.value == "s3cr3t"
    """

    def __init__(self, transport: AuthenticatedTransport) -> None:
        self._transport = transport

    @classmethod
    def from_config(
        cls,
        config: ClientConfig,
        provider: Optional[TokenProvider] = None,
        http_client: Optional[httpx.Client] = None,
    ) -> SecretClient:
        """Build a client with its own transport for *config*."""
        return cls(AuthenticatedTransport(config, provider=provider, http_client=http_client))

    @property
    def transport(self) -> AuthenticatedTransport:
        return self._transport

    def __enter__(self) -> SecretClient:
        self._transport.__enter__()
        return self

    def __exit__(self, *args: object) -> None:
        self._transport.__exit__(*args)

    def close(self) -> None:
        self._transport.close()

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    def get_secret(self, name: str) -> Secret:
        """Get the latest version of secret *name*.

        Equivalent to ``get_secret_with_version(name, "")``; the service
        resolves an empty version segment to the current version.
        """
        return self.get_secret_with_version(name, "")

    def get_secret_with_version(self, name: str, version: str) -> Secret:
        """Get one version of secret *name*.

        Raises:
            SecretNotFoundError: If the secret or version does not exist.
            ServiceError: For other error responses (e.g. forbidden).
            DecodeError: If the body is not a secret bundle.
        """
        response = self._transport.get(self._uri(name, version))
        return Secret.from_bundle(decode_model(response, SecretBundle))

    def list_secrets(self, max_results: int) -> list[SecretIdentifier]:
        """List up to *max_results* secrets from the first page only.

        Any ``nextLink`` in the response is ignored.

        Raises:
            ValueError: If *max_results* is outside 1..25.
        """
        _check_max_results(max_results)
        response = self._transport.get(self._uri(maxresults=max_results))
        page = decode_page(response)
        return [SecretIdentifier.from_item(item) for item in page.items]

    def get_secret_versions(self, name: str) -> list[SecretIdentifier]:
        """List every version of secret *name*, most recently updated first.

        Follows continuation links until the listing is exhausted. Versions
        with the same ``updated`` time are ordered by ``id``.
        """
        first_uri = self._uri(name, "versions", maxresults=DEFAULT_MAX_RESULTS)
        versions = walk_pages(self._transport.get, first_uri, require_attributes=True)
        versions.sort(key=lambda v: v.id)
        versions.sort(key=lambda v: v.updated, reverse=True)  # type: ignore[arg-type, return-value]
        return versions

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #

    def set_secret(self, name: str, value: str) -> None:
        """Create secret *name*, or add a new version holding *value*."""
        response = self._transport.put(self._uri(name), _dumps({"value": value}))
        raise_for_service_error(response)

    def update_secret_enabled(self, name: str, version: str, enabled: bool) -> None:
        """Enable or disable one version of secret *name*."""
        self._update_attribute(name, version, "enabled", enabled)

    def update_secret_recovery_level(
        self, name: str, version: str, level: RecoveryLevel
    ) -> None:
        """Set the recovery level of one version of secret *name*."""
        self._update_attribute(name, version, "recoveryLevel", RecoveryLevel(level).value)

    def update_secret_expiration_time(self, name: str, version: str, time: datetime) -> None:
        """Set the expiry of one version of secret *name*.

        Naive datetimes are taken to be UTC.
        """
        if time.tzinfo is None:
            time = time.replace(tzinfo=timezone.utc)
        self._update_attribute(name, version, "exp", int(time.timestamp()))

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _update_attribute(self, name: str, version: str, field: str, value: Any) -> None:
        body = _dumps({"attributes": {field: value}})
        response = self._transport.patch(self._uri(name, version), body)
        raise_for_service_error(response)

    def _uri(self, *segments: str, **params: Any) -> str:
        """Build ``{vault}/secrets/{segments...}?api-version=7.0&{params}``."""
        path = "/".join(quote(s, safe="") for s in segments)
        base = f"{self._transport.config.vault_url}/secrets"
        if segments:
            base = f"{base}/{path}"
        query = {"api-version": API_VERSION}
        query.update({k: str(v) for k, v in params.items()})
        return str(httpx.URL(base, params=query))


def _check_max_results(max_results: int) -> None:
    if not 1 <= max_results <= DEFAULT_MAX_RESULTS:
        raise ValueError(
            f"max_results must be between 1 and {DEFAULT_MAX_RESULTS}, got {max_results}"
        )


def _dumps(body: dict[str, Any]) -> str:
    return json.dumps(body, separators=(",", ":"))
