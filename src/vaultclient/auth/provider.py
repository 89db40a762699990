"""Token providers: exchange client identity for a bearer credential.

This module defines :class:`TokenProvider`, the interface the transport uses
to obtain a fresh :class:`~vaultclient.models.Credential`, and two
implementations:

- :class:`ClientCredentialsProvider` performs the non-interactive OAuth2
  Client Credentials grant (:rfc:`6749` section 4.4) against the tenant's
  Azure AD token endpoint, scoped to the Key Vault resource.
- :class:`StaticTokenProvider` returns a token issued elsewhere, e.g. one
  obtained with ``az account get-access-token``.

Every call to :meth:`TokenProvider.acquire` is a real round trip, so callers
only invoke it when :class:`~vaultclient.auth.cache.CredentialCache`
reports the cached credential as stale.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import httpx

from vaultclient.auth.cache import utc_now
from vaultclient.exceptions import AuthorizationError
from vaultclient.models import ClientConfig, Credential
from vaultclient.output import debug


class TokenProvider(ABC):
    """Abstract base class for bearer-token sources."""

    @abstractmethod
    def acquire(self, config: ClientConfig) -> Credential:
        """Obtain a fresh credential for the vault described by *config*.

        Args:
            config: Identity and endpoint settings of the client.

        Returns:
            A new :class:`~vaultclient.models.Credential`.

        Raises:
            AuthorizationError: If the exchange fails for any reason.
        """
        ...


class ClientCredentialsProvider(TokenProvider):
    """Azure AD client-credentials exchange.

    POSTs ``grant_type=client_credentials`` with the client id, client
    secret and the Key Vault ``resource`` to
    ``{authority_host}/{tenant_id}/oauth2/token``. The expiry is taken from
    ``expires_on`` (absolute epoch seconds) when present, otherwise from
    ``expires_in`` relative to the local clock.

    Args:
        clock: Callable returning the current UTC time, used with
            ``expires_in``.
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        self._clock = clock

    def acquire(self, config: ClientConfig) -> Credential:
        token_data = self._fetch_token(config)
        return Credential(
            token=token_data["access_token"],
            expires_at=self._expiry(token_data),
        )

    def token_url(self, config: ClientConfig) -> str:
        """Return the tenant's token endpoint for *config*."""
        return f"{config.authority_host.rstrip('/')}/{config.tenant_id}/oauth2/token"

    def _fetch_token(self, config: ClientConfig) -> dict[str, Any]:
        """POST to the token endpoint and return the JSON response.

        Raises:
            AuthorizationError: If the HTTP request fails, the response is
                not a JSON object, or ``access_token`` is absent.
        """
        url = self.token_url(config)
        data = {
            "grant_type": "client_credentials",
            "client_id": config.client_id,
            "client_secret": config.client_secret.get_secret_value(),
            "resource": config.resource,
        }
        debug(f"Requesting token for tenant {config.tenant_id} (resource {config.resource})")

        try:
            response = httpx.post(
                url,
                data=data,
                headers={"Accept": "application/json"},
                timeout=config.timeout,
            )
            response.raise_for_status()
            token_data = response.json()
        except httpx.HTTPStatusError as exc:
            raise AuthorizationError(
                f"Token request failed with status {exc.response.status_code}: "
                f"{_error_description(exc.response)}"
            ) from exc
        except httpx.HTTPError as exc:
            raise AuthorizationError(f"Token request failed: {exc}") from exc
        except ValueError as exc:
            raise AuthorizationError(f"Token response is not valid JSON: {exc}") from exc

        if not isinstance(token_data, dict):
            raise AuthorizationError("Token response is not a JSON object")
        if not token_data.get("access_token"):
            raise AuthorizationError("Token response missing 'access_token' field")
        if not isinstance(token_data["access_token"], str):
            raise AuthorizationError("Token response 'access_token' is not a string")
        return token_data

    def _expiry(self, token_data: dict[str, Any]) -> datetime:
        """Compute the absolute expiry of a token response."""
        try:
            if token_data.get("expires_on") is not None:
                epoch = float(token_data["expires_on"])
                return datetime.fromtimestamp(epoch, tz=timezone.utc)
            if token_data.get("expires_in") is not None:
                return self._clock() + timedelta(seconds=float(token_data["expires_in"]))
        except (TypeError, ValueError, OverflowError, OSError) as exc:
            raise AuthorizationError(f"Token response has an invalid expiry: {exc}") from exc
        raise AuthorizationError(
            "Token response missing 'expires_on' and 'expires_in' fields"
        )


class StaticTokenProvider(TokenProvider):
    """Hand out a token that was issued outside this process.

    Args:
        token: The bearer token.
        expires_at: When the token stops being valid. Once it has passed,
            :meth:`acquire` raises instead of returning a dead token.
    """

    def __init__(self, token: str, expires_at: datetime) -> None:
        self._credential = Credential(token=token, expires_at=expires_at)

    def acquire(self, config: ClientConfig) -> Credential:
        if not self._credential.is_usable(utc_now()):
            raise AuthorizationError("Static token has expired")
        return self._credential


def _error_description(response: httpx.Response) -> str:
    """Pull ``error_description`` out of an Azure AD error body, if any."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict):
        return str(body.get("error_description") or body.get("error") or body)
    return str(body)
