"""vaultclient -- authenticated client for the Azure Key Vault secrets API.

This package talks to the Key Vault REST API (``api-version=7.0``) using an
Azure AD client-credentials token. It caches the bearer token for its
lifetime, refreshes it when it expires, and decodes secret and listing
responses into Pydantic models.

Typical usage::

    from vaultclient import ClientConfig, SecretClient

    config = ClientConfig(
        client_id="...",
        client_secret="...",
        tenant_id="...",
        vault_name="my-vault",
    )
    with SecretClient.from_config(config) as client:
        client.set_secret("db-password", "s3cr3t")
        secret = client.get_secret("db-password")

Modules:
    models: Pydantic models for configuration and wire payloads.
    exceptions: Error taxonomy with exit-code mapping.
    auth: Credential cache and token providers.
    client: Authenticated transport, secret client, and pagination.
    config: XDG-aware profile and credential-source management for the CLI.
    app: Typer application and ``vaultclient`` entry point.
"""

__version__ = "0.2.0"

from vaultclient.client import AuthenticatedTransport, SecretClient  # noqa: E402
from vaultclient.models import (  # noqa: E402
    ClientConfig,
    Credential,
    RecoveryLevel,
    Secret,
    SecretIdentifier,
)

__all__ = [
    "AuthenticatedTransport",
    "ClientConfig",
    "Credential",
    "RecoveryLevel",
    "Secret",
    "SecretClient",
    "SecretIdentifier",
    "__version__",
]
