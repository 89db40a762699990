"""Secret commands -- the ``vaultclient secret`` sub-command group.

Each command resolves the active profile, builds a
:class:`~vaultclient.client.SecretClient` via :func:`open_client`, and runs
one operation. Secret values go to stdout and nowhere else; listings are
rendered as tables, plain TSV, or JSON depending on the output flags.
"""

from __future__ import annotations

import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import typer

from vaultclient.client import SecretClient
from vaultclient.exceptions import InvalidUsageError
from vaultclient.models import RecoveryLevel
from vaultclient.output import format_response, print_data, print_records, success


secret_app = typer.Typer(no_args_is_help=True)


def open_client(ctx: typer.Context) -> SecretClient:
    """Build a client for the profile selected on the command line."""
    from vaultclient.config import build_client_config, resolve_profile

    cli_profile = ctx.obj.get("profile") if ctx.obj else None
    return SecretClient.from_config(build_client_config(resolve_profile(cli_profile)))


@secret_app.command("get")
def secret_get(
    ctx: typer.Context,
    name: str = typer.Argument(help="Secret name."),
    version: str = typer.Option("", "--version", "-V", help="Secret version (default: latest)."),
    metadata: bool = typer.Option(
        False, "--metadata", "-m", help="Show attributes instead of the value."
    ),
) -> None:
    """Print a secret's value, or its attributes with ``--metadata``.

    Example::

        vaultclient secret get db-password
        vaultclient secret get db-password --version 3c9aa4f2... --metadata
    """
    with open_client(ctx) as client:
        secret = client.get_secret_with_version(name, version)

    if metadata:
        format_response(
            {
                "id": secret.id,
                "enabled": secret.enabled,
                "created": secret.created.isoformat(),
                "updated": secret.updated.isoformat(),
                "expires": secret.expires.isoformat() if secret.expires else None,
                "recovery_level": secret.recovery_level,
            }
        )
    else:
        print_data(secret.value)


@secret_app.command("list")
def secret_list(
    ctx: typer.Context,
    max_results: int = typer.Option(25, "--max", min=1, max=25, help="Page size (1-25)."),
) -> None:
    """List secrets (first page only)."""
    with open_client(ctx) as client:
        identifiers = client.list_secrets(max_results)

    records = [
        {"name": i.name, "enabled": i.enabled, "updated": i.updated, "id": i.id}
        for i in identifiers
    ]
    print_records(records, ["name", "enabled", "updated", "id"], title="Secrets")


@secret_app.command("versions")
def secret_versions(
    ctx: typer.Context,
    name: str = typer.Argument(help="Secret name."),
) -> None:
    """List every version of a secret, newest first."""
    with open_client(ctx) as client:
        versions = client.get_secret_versions(name)

    records = [
        {"version": v.name, "enabled": v.enabled, "created": v.created, "updated": v.updated}
        for v in versions
    ]
    print_records(records, ["version", "enabled", "created", "updated"], title=name)


@secret_app.command("set")
def secret_set(
    ctx: typer.Context,
    name: str = typer.Argument(help="Secret name."),
    value: Optional[str] = typer.Argument(None, help="Secret value (default: read stdin)."),
    value_file: Optional[Path] = typer.Option(
        None, "--value-file", "-f", help="Read the value from a file."
    ),
) -> None:
    """Create a secret or add a new version.

    The value comes from the argument, ``--value-file``, or piped stdin.
    Prefer the latter two: arguments end up in shell history.
    """
    if value is not None and value_file is not None:
        raise InvalidUsageError("Pass either VALUE or --value-file, not both")
    if value_file is not None:
        value = value_file.read_text(encoding="utf-8").rstrip("\n")
    elif value is None:
        if sys.stdin.isatty():
            raise InvalidUsageError("No value given: pass VALUE, --value-file, or pipe it on stdin")
        value = sys.stdin.read().rstrip("\n")

    with open_client(ctx) as client:
        client.set_secret(name, value)
    success(f'Secret "{name}" set.')


@secret_app.command("enable")
def secret_enable(
    ctx: typer.Context,
    name: str = typer.Argument(help="Secret name."),
    version: str = typer.Argument(help="Secret version."),
) -> None:
    """Enable one version of a secret."""
    with open_client(ctx) as client:
        client.update_secret_enabled(name, version, True)
    success(f"Enabled {name}/{version}.")


@secret_app.command("disable")
def secret_disable(
    ctx: typer.Context,
    name: str = typer.Argument(help="Secret name."),
    version: str = typer.Argument(help="Secret version."),
) -> None:
    """Disable one version of a secret."""
    with open_client(ctx) as client:
        client.update_secret_enabled(name, version, False)
    success(f"Disabled {name}/{version}.")


@secret_app.command("recovery-level")
def secret_recovery_level(
    ctx: typer.Context,
    name: str = typer.Argument(help="Secret name."),
    version: str = typer.Argument(help="Secret version."),
    level: RecoveryLevel = typer.Argument(help="Recovery level."),
) -> None:
    """Set the recovery level of one version of a secret."""
    with open_client(ctx) as client:
        client.update_secret_recovery_level(name, version, level)
    success(f"Recovery level of {name}/{version} set to {level.value}.")


@secret_app.command("expire")
def secret_expire(
    ctx: typer.Context,
    name: str = typer.Argument(help="Secret name."),
    version: str = typer.Argument(help="Secret version."),
    when: str = typer.Argument(help="Expiry as ISO-8601 or epoch seconds."),
) -> None:
    """Set the expiry of one version of a secret."""
    expires = parse_expiry(when)
    with open_client(ctx) as client:
        client.update_secret_expiration_time(name, version, expires)
    success(f"Expiry of {name}/{version} set to {expires.isoformat()}.")


def parse_expiry(text: str) -> datetime:
    """Parse epoch seconds or an ISO-8601 timestamp; naive values are UTC.

    Raises:
        InvalidUsageError: If *text* is neither.
    """
    text = text.strip()
    if text.isdigit():
        return datetime.fromtimestamp(int(text), tz=timezone.utc)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise InvalidUsageError(f"Invalid expiry '{text}': use ISO-8601 or epoch seconds") from None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
