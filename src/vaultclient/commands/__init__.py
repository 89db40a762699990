"""Built-in CLI sub-commands for vaultclient.

* :mod:`~vaultclient.commands.profile` -- save and select vault profiles.
* :mod:`~vaultclient.commands.secret` -- get, list, set, and update secrets.

Each module exports a :class:`typer.Typer` sub-application registered on the
root app in :mod:`vaultclient.app`.
"""
