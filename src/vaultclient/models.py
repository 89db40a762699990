"""Canonical Pydantic models shared across all vaultclient modules.

The models fall into three groups:

**Client models** -- what library callers construct and receive:
    :class:`ClientConfig`, :class:`Credential`, :class:`RecoveryLevel`,
    :class:`Secret`, and :class:`SecretIdentifier`.

**Wire models** -- the JSON shapes Key Vault sends back, validated before
being turned into client models:
    :class:`SecretAttributes`, :class:`SecretBundle`, :class:`SecretItem`,
    and :class:`ListPage`.

**Configuration models** -- serialised as JSON in the user's config
directory by :mod:`vaultclient.config`:
    :class:`OutputConfig`, :class:`GlobalConfig`, and :class:`VaultProfile`.

Timestamps on the wire are epoch seconds; Pydantic turns them into
timezone-aware UTC :class:`~datetime.datetime` values.
"""

from __future__ import annotations

import enum
from datetime import datetime, timedelta, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

PUBLIC_ENDPOINT_SUFFIX = "vault.azure.net"
"""DNS suffix of vaults in the Azure public cloud."""

PUBLIC_AUTHORITY_HOST = "https://login.microsoftonline.com"
"""Azure AD authority for the public cloud."""


# --- Client models ---


class ClientConfig(BaseModel):
    """Connection and identity settings for one vault.

    Immutable once built. Every request URI is derived from
    :attr:`vault_url` and every token exchange from the identity fields.

    Example::

        ClientConfig(
            client_id="c1a6d79b-082b-4798-b362-a77e96de50db",
            client_secret="...",
            tenant_id="bc598e67-03d8-44d5-aa46-8289b9a39a14",
            vault_name="test-keyvault",
        )
    """

    model_config = ConfigDict(frozen=True)

    client_id: str = Field(description="Azure AD application (client) id")
    client_secret: SecretStr = Field(description="Azure AD client secret")
    tenant_id: str = Field(description="Azure AD tenant (directory) id")
    vault_name: str = Field(description="Key Vault name (first DNS label)")
    endpoint_suffix: str = Field(
        default=PUBLIC_ENDPOINT_SUFFIX,
        description="Vault DNS suffix, e.g. vault.azure.cn for sovereign clouds",
    )
    endpoint: Optional[str] = Field(
        default=None, description="Full vault URL, overrides name + suffix"
    )
    authority_host: str = Field(
        default=PUBLIC_AUTHORITY_HOST, description="Azure AD authority host"
    )
    timeout: float = Field(default=30.0, description="Request timeout in seconds")

    @property
    def vault_url(self) -> str:
        """Base URL of the vault, without a trailing slash."""
        if self.endpoint:
            return self.endpoint.rstrip("/")
        return f"https://{self.vault_name}.{self.endpoint_suffix}"

    @property
    def resource(self) -> str:
        """Token audience for the Key Vault service in this cloud."""
        return f"https://{self.endpoint_suffix}"


class Credential(BaseModel):
    """A bearer token together with the absolute time it stops being valid."""

    model_config = ConfigDict(frozen=True)

    token: str = Field(repr=False)
    expires_at: datetime

    @field_validator("expires_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        """Treat a naive expiry as UTC."""
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def is_usable(self, now: datetime, skew: timedelta = timedelta(0)) -> bool:
        """Return ``True`` when *now* (plus *skew*) is strictly before expiry."""
        return now + skew < self.expires_at


class RecoveryLevel(str, enum.Enum):
    """Deletion-retention policy of a secret, with its wire token as value."""

    PURGEABLE = "Purgeable"
    RECOVERABLE = "Recoverable"
    RECOVERABLE_AND_PROTECTED_SUBSCRIPTION = "Recoverable+ProtectedSubscription"
    RECOVERABLE_AND_PURGEABLE = "Recoverable+Purgeable"


def _last_segment(resource_id: str) -> str:
    return resource_id.rstrip("/").rsplit("/", 1)[-1]


class SecretIdentifier(BaseModel):
    """Metadata for one secret or secret version, without its value.

    Produced by :meth:`~vaultclient.client.SecretClient.list_secrets` and
    :meth:`~vaultclient.client.SecretClient.get_secret_versions`.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    enabled: Optional[bool] = None
    created: Optional[datetime] = None
    updated: Optional[datetime] = None

    @classmethod
    def from_item(cls, item: SecretItem) -> SecretIdentifier:
        """Build an identifier from a raw listing item."""
        attributes = item.attributes
        return cls(
            id=item.id,
            name=_last_segment(item.id),
            enabled=attributes.enabled if attributes else None,
            created=attributes.created if attributes else None,
            updated=attributes.updated if attributes else None,
        )


class Secret(BaseModel):
    """A secret value and its attributes, as returned by a get operation.

    The ``value`` field is excluded from ``repr`` so secrets do not leak into
    tracebacks or debug output.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    value: str = Field(repr=False)
    enabled: bool
    created: datetime
    updated: datetime
    expires: Optional[datetime] = None
    recovery_level: Optional[str] = None

    @property
    def name(self) -> str:
        """Secret name, the path segment after ``/secrets/``."""
        parts = self.id.rstrip("/").split("/")
        return parts[parts.index("secrets") + 1] if "secrets" in parts else parts[-1]

    @property
    def version(self) -> str:
        """Secret version, the final path segment of ``id``."""
        return _last_segment(self.id)

    @classmethod
    def from_bundle(cls, bundle: SecretBundle) -> Secret:
        """Build a secret from a decoded get-secret response."""
        attributes = bundle.attributes
        return cls(
            id=bundle.id,
            value=bundle.value,
            enabled=attributes.enabled,
            created=attributes.created,
            updated=attributes.updated,
            expires=attributes.expires,
            recovery_level=attributes.recovery_level,
        )


# --- Wire models ---


class SecretAttributes(BaseModel):
    """The ``attributes`` object of a secret bundle or listing item."""

    model_config = ConfigDict(populate_by_name=True)

    enabled: bool
    created: datetime
    updated: datetime
    expires: Optional[datetime] = Field(default=None, alias="exp")
    recovery_level: Optional[str] = Field(default=None, alias="recoveryLevel")


class SecretBundle(BaseModel):
    """Body of ``GET /secrets/{name}/{version}``."""

    value: str
    id: str
    attributes: SecretAttributes


class SecretItem(BaseModel):
    """One entry in the ``value`` array of a listing response."""

    id: str
    attributes: Optional[SecretAttributes] = None


class ListPage(BaseModel):
    """One page of a listing response.

    ``next_link`` is the absolute continuation URI, or ``None`` on the last
    page.
    """

    model_config = ConfigDict(populate_by_name=True)

    items: list[SecretItem] = Field(default_factory=list, alias="value")
    next_link: Optional[str] = Field(default=None, alias="nextLink")


# --- Configuration models ---


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/vaultclient/config.json``."""

    default_profile: Optional[str] = Field(
        default=None, description="Profile used when --profile is not given"
    )
    output: OutputConfig = Field(default_factory=OutputConfig)


class VaultProfile(BaseModel):
    """A saved vault connection, one JSON file per profile.

    Identity values are stored as *sources* (``env:VAR``, ``file:/path``,
    ``prompt``) rather than plain text, and resolved by
    :func:`~vaultclient.config.build_client_config` when a client is built.
    ``client_id_source`` may also hold the client id itself, since it is not
    a secret.

    Example::

        VaultProfile(
            name="prod",
            vault_name="contoso-prod",
            tenant_id="bc598e67-03d8-44d5-aa46-8289b9a39a14",
            client_id_source="env:AZURE_CLIENT_ID",
            client_secret_source="env:AZURE_CLIENT_SECRET",
        )
    """

    name: str = Field(description="Profile name")
    vault_name: str = Field(description="Key Vault name")
    tenant_id: str = Field(description="Azure AD tenant id")
    client_id_source: str = Field(
        default="env:AZURE_CLIENT_ID",
        description="Client id source: env:VAR, file:/path, prompt, or the literal id",
    )
    client_secret_source: str = Field(
        default="env:AZURE_CLIENT_SECRET",
        description="Client secret source: env:VAR, file:/path, prompt",
    )
    endpoint_suffix: str = Field(default=PUBLIC_ENDPOINT_SUFFIX)
    endpoint: Optional[str] = None
    authority_host: str = Field(default=PUBLIC_AUTHORITY_HOST)
    timeout: float = Field(default=30.0, description="Request timeout in seconds")
