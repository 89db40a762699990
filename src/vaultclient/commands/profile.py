"""Profile commands -- save, inspect, and select vault connections.

Provides the ``vaultclient profile`` sub-command group. Each profile stores
a vault name, tenant, and the *sources* of the client id and secret (never
the secret itself), as a :class:`~vaultclient.models.VaultProfile` JSON file.
"""

from __future__ import annotations

from typing import Optional

import typer

from vaultclient.output import format_response, print_records, success, warning


profile_app = typer.Typer(no_args_is_help=True)


@profile_app.command("add")
def profile_add(
    name: str = typer.Argument(help="Profile name."),
    vault_name: str = typer.Option(..., "--vault", help="Key Vault name."),
    tenant_id: str = typer.Option(..., "--tenant", help="Azure AD tenant id."),
    client_id_source: str = typer.Option(
        "env:AZURE_CLIENT_ID",
        "--client-id",
        help="Client id, or its source (env:VAR, file:/path).",
    ),
    client_secret_source: str = typer.Option(
        "env:AZURE_CLIENT_SECRET",
        "--client-secret-source",
        help="Client secret source: env:VAR, file:/path, or prompt.",
    ),
    endpoint_suffix: Optional[str] = typer.Option(
        None, "--endpoint-suffix", help="Vault DNS suffix for non-public clouds."
    ),
    endpoint: Optional[str] = typer.Option(
        None, "--endpoint", help="Full vault URL (overrides name and suffix)."
    ),
    make_default: bool = typer.Option(
        False, "--default", help="Make this the default profile."
    ),
) -> None:
    """Save a vault profile.

    Example::

        vaultclient profile add prod --vault contoso-prod --tenant <tenant-id>
        vaultclient profile add cn --vault contoso --tenant <id> --endpoint-suffix vault.azure.cn
    """
    from vaultclient.config import (
        load_global_config,
        profile_exists,
        save_global_config,
        save_profile,
    )
    from vaultclient.models import VaultProfile

    if profile_exists(name):
        warning(f'Profile "{name}" already exists and will be overwritten.')

    fields = {
        "name": name,
        "vault_name": vault_name,
        "tenant_id": tenant_id,
        "client_id_source": client_id_source,
        "client_secret_source": client_secret_source,
        "endpoint": endpoint,
    }
    if endpoint_suffix:
        fields["endpoint_suffix"] = endpoint_suffix
    save_profile(VaultProfile(**fields))

    if make_default:
        config = load_global_config()
        config.default_profile = name
        save_global_config(config)

    success(f'Profile "{name}" saved.')


@profile_app.command("list")
def profile_list() -> None:
    """List saved profiles, marking the default."""
    from vaultclient.config import list_profiles, load_global_config, load_profile

    default = load_global_config().default_profile
    records = []
    for name in list_profiles():
        profile = load_profile(name)
        records.append(
            {
                "name": name,
                "vault": profile.vault_name,
                "default": "*" if name == default else "",
            }
        )
    print_records(records, ["name", "vault", "default"], title="Profiles")


@profile_app.command("show")
def profile_show(name: str = typer.Argument(help="Profile name.")) -> None:
    """Show a profile's settings."""
    from vaultclient.config import load_profile

    format_response(load_profile(name).model_dump(mode="json"))


@profile_app.command("remove")
def profile_remove(name: str = typer.Argument(help="Profile name.")) -> None:
    """Delete a saved profile."""
    from vaultclient.config import delete_profile, load_global_config, save_global_config

    delete_profile(name)
    config = load_global_config()
    if config.default_profile == name:
        config.default_profile = None
        save_global_config(config)
    success(f'Profile "{name}" removed.')


@profile_app.command("use")
def profile_use(name: str = typer.Argument(help="Profile name.")) -> None:
    """Make *name* the default profile."""
    from vaultclient.config import load_global_config, load_profile, save_global_config

    load_profile(name)
    config = load_global_config()
    config.default_profile = name
    save_global_config(config)
    success(f'Default profile set to "{name}".')
