"""Shared test fixtures for vaultclient.

Provides an in-memory fake Key Vault served through :class:`httpx.MockTransport`,
a ready-to-use :class:`~vaultclient.client.SecretClient` wired to it, and
config isolation for tests that touch profiles on disk. These fixtures are
discovered automatically by pytest.
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Optional

import httpx
import pytest

from vaultclient.auth.provider import StaticTokenProvider
from vaultclient.client import SecretClient
from vaultclient.models import ClientConfig
from vaultclient.output import OutputManager, reset_output, set_output

VAULT_URL = "https://test-vault.vault.azure.net"
TEST_TOKEN = "test-token"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Install a quiet, colourless OutputManager and reset it afterwards."""
    set_output(OutputManager(no_color=True, quiet=True))
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Fake vault
# ---------------------------------------------------------------------------


def _error(status: int, code: str, message: str) -> httpx.Response:
    return httpx.Response(status, json={"error": {"code": code, "message": message}})


class FakeVault:
    """Just enough of the Key Vault secrets API to exercise the client.

    Every write gets a strictly increasing ``updated`` timestamp, and new
    versions are named ``v0001``, ``v0002``, ... so ordering is predictable.
    All requests are recorded in :attr:`requests`.
    """

    def __init__(self) -> None:
        self.secrets: dict[str, list[dict[str, Any]]] = {}
        self.requests: list[httpx.Request] = []
        self._clock = 1_600_000_000
        self._counter = 0

    # -- helpers --------------------------------------------------------

    def _tick(self) -> int:
        self._clock += 10
        return self._clock

    def add_version(self, name: str, value: str, enabled: bool = True) -> dict[str, Any]:
        self._counter += 1
        now = self._tick()
        version = {
            "version": f"v{self._counter:04d}",
            "value": value,
            "enabled": enabled,
            "created": now,
            "updated": now,
            "recoveryLevel": "Recoverable+Purgeable",
        }
        self.secrets.setdefault(name, []).append(version)
        return version

    def _find(self, name: str, version: str) -> Optional[dict[str, Any]]:
        versions = self.secrets.get(name)
        if not versions:
            return None
        if not version:
            return versions[-1]
        return next((v for v in versions if v["version"] == version), None)

    def _attributes(self, v: dict[str, Any]) -> dict[str, Any]:
        attrs = {
            "enabled": v["enabled"],
            "created": v["created"],
            "updated": v["updated"],
            "recoveryLevel": v["recoveryLevel"],
        }
        if "exp" in v:
            attrs["exp"] = v["exp"]
        return attrs

    def _bundle(self, name: str, v: dict[str, Any]) -> dict[str, Any]:
        return {
            "value": v["value"],
            "id": f"{VAULT_URL}/secrets/{name}/{v['version']}",
            "attributes": self._attributes(v),
        }

    def _page(self, request: httpx.Request, items: list[dict[str, Any]]) -> httpx.Response:
        size = int(request.url.params.get("maxresults", "25"))
        start = int(request.url.params.get("$skiptoken", "0"))
        body: dict[str, Any] = {"value": items[start:start + size], "nextLink": None}
        if start + size < len(items):
            body["nextLink"] = str(
                request.url.copy_set_param("$skiptoken", str(start + size))
            )
        return httpx.Response(200, json=body)

    # -- transport handler ----------------------------------------------

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.headers.get("authorization") != f"Bearer {TEST_TOKEN}":
            return _error(401, "Unauthorized", "Missing or invalid bearer token")
        if request.url.params.get("api-version") != "7.0":
            return _error(400, "BadParameter", "api-version is required")

        parts = request.url.path.split("/")[1:]
        if not parts or parts[0] != "secrets":
            return _error(404, "NotFound", "Unknown path")
        name = parts[1] if len(parts) > 1 else ""
        rest = parts[2] if len(parts) > 2 else ""

        if request.method == "GET" and not name:
            items = [
                {
                    "id": f"{VAULT_URL}/secrets/{n}",
                    "attributes": self._attributes(vs[-1]),
                }
                for n, vs in sorted(self.secrets.items())
            ]
            return self._page(request, items)

        if request.method == "GET" and rest == "versions":
            if name not in self.secrets:
                return _error(404, "SecretNotFound", f"Secret {name} not found")
            items = [
                {
                    "id": f"{VAULT_URL}/secrets/{name}/{v['version']}",
                    "attributes": self._attributes(v),
                }
                for v in self.secrets[name]
            ]
            return self._page(request, items)

        if request.method == "GET":
            found = self._find(name, rest)
            if found is None:
                return _error(404, "SecretNotFound", f"Secret {name} not found")
            if not found["enabled"]:
                return _error(403, "Forbidden", "Operation get is not allowed on a disabled secret.")
            return httpx.Response(200, json=self._bundle(name, found))

        if request.method == "PUT":
            body = json.loads(request.content)
            created = self.add_version(name, body["value"])
            return httpx.Response(200, json=self._bundle(name, created))

        if request.method == "PATCH":
            found = self._find(name, rest)
            if found is None:
                return _error(404, "SecretNotFound", f"Secret {name} not found")
            for key, value in json.loads(request.content)["attributes"].items():
                found[key] = value
            found["updated"] = self._tick()
            bundle = self._bundle(name, found)
            del bundle["value"]
            return httpx.Response(200, json=bundle)

        return _error(405, "MethodNotAllowed", request.method)


# ---------------------------------------------------------------------------
# Client fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def client_config() -> ClientConfig:
    return ClientConfig(
        client_id="c1a6d79b-082b-4798-b362-a77e96de50db",
        client_secret="SUPER_SECRET_KEY",
        tenant_id="bc598e67-03d8-44d5-aa46-8289b9a39a14",
        vault_name="test-vault",
    )


@pytest.fixture
def static_provider() -> StaticTokenProvider:
    return StaticTokenProvider(
        TEST_TOKEN, datetime.now(timezone.utc) + timedelta(hours=1)
    )


@pytest.fixture
def fake_vault() -> FakeVault:
    return FakeVault()


@pytest.fixture
def secret_client(
    client_config: ClientConfig,
    static_provider: StaticTokenProvider,
    fake_vault: FakeVault,
) -> SecretClient:
    """A SecretClient talking to :class:`FakeVault` with a static token."""
    http_client = httpx.Client(transport=httpx.MockTransport(fake_vault.handler))
    client = SecretClient.from_config(
        client_config, provider=static_provider, http_client=http_client
    )
    yield client
    http_client.close()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points the XDG directories at *tmp_path*, forces the XDG layout, and
    clears ``VAULTCLIENT_PROFILE``.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setattr("vaultclient.config._is_xdg_platform", lambda: True)
    monkeypatch.delenv("VAULTCLIENT_PROFILE", raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path
