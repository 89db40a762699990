"""Tests for the ``vaultclient secret`` command group.

The commands run through the real Typer app with :func:`open_client`
patched to return a client wired to the in-memory fake vault.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from vaultclient.app import app, main
from vaultclient.commands.secret import parse_expiry
from vaultclient.exceptions import InvalidUsageError, SecretNotFoundError, TransportError


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def _wired(isolated_config: Path, secret_client, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("vaultclient.commands.secret.open_client", lambda ctx: secret_client)


# ---------------------------------------------------------------------------
# get
# ---------------------------------------------------------------------------


class TestGet:
    def test_prints_value(self, runner: CliRunner, fake_vault) -> None:
        fake_vault.add_version("db-password", "s3cr3t")

        result = runner.invoke(app, ["--plain", "secret", "get", "db-password"])

        assert result.exit_code == 0, result.output
        assert result.stdout.strip() == "s3cr3t"

    def test_specific_version(self, runner: CliRunner, fake_vault) -> None:
        fake_vault.add_version("db-password", "first")
        fake_vault.add_version("db-password", "second")

        result = runner.invoke(app, ["secret", "get", "db-password", "--version", "v0001"])

        assert result.exit_code == 0, result.output
        assert result.stdout.strip() == "first"

    def test_metadata_as_json(self, runner: CliRunner, fake_vault) -> None:
        fake_vault.add_version("db-password", "s3cr3t")

        result = runner.invoke(app, ["--json", "secret", "get", "db-password", "--metadata"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["id"].endswith("/secrets/db-password/v0001")
        assert data["enabled"] is True
        assert data["recovery_level"] == "Recoverable+Purgeable"
        assert "s3cr3t" not in result.stdout

    def test_missing(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["secret", "get", "nope"])

        assert isinstance(result.exception, SecretNotFoundError)
        assert result.exception.exit_code == 4


# ---------------------------------------------------------------------------
# list / versions
# ---------------------------------------------------------------------------


class TestListing:
    def test_list_plain(self, runner: CliRunner, fake_vault) -> None:
        fake_vault.add_version("alpha", "a")
        fake_vault.add_version("beta", "b")

        result = runner.invoke(app, ["--plain", "secret", "list"])

        assert result.exit_code == 0, result.output
        lines = result.stdout.strip().splitlines()
        assert lines[0] == "name\tenabled\tupdated\tid"
        assert [line.split("\t")[0] for line in lines[1:]] == ["alpha", "beta"]

    def test_list_json_respects_max(self, runner: CliRunner, fake_vault) -> None:
        for i in range(5):
            fake_vault.add_version(f"s{i}", "x")

        result = runner.invoke(app, ["--json", "secret", "list", "--max", "3"])

        assert result.exit_code == 0, result.output
        assert [row["name"] for row in json.loads(result.stdout)] == ["s0", "s1", "s2"]
        assert fake_vault.requests[0].url.params["maxresults"] == "3"

    def test_list_max_out_of_range(self, runner: CliRunner, fake_vault) -> None:
        result = runner.invoke(app, ["secret", "list", "--max", "26"])

        assert result.exit_code == 2
        assert fake_vault.requests == []

    def test_versions_newest_first(self, runner: CliRunner, fake_vault) -> None:
        for value in ["one", "two", "three"]:
            fake_vault.add_version("rotating", value)

        result = runner.invoke(app, ["--json", "secret", "versions", "rotating"])

        assert result.exit_code == 0, result.output
        rows = json.loads(result.stdout)
        assert [row["version"] for row in rows] == ["v0003", "v0002", "v0001"]
        assert set(rows[0]) == {"version", "enabled", "created", "updated"}


# ---------------------------------------------------------------------------
# set
# ---------------------------------------------------------------------------


class TestSet:
    def test_from_argument(self, runner: CliRunner, fake_vault) -> None:
        result = runner.invoke(app, ["secret", "set", "db-password", "s3cr3t"])

        assert result.exit_code == 0, result.output
        assert fake_vault.secrets["db-password"][-1]["value"] == "s3cr3t"

    def test_from_file(self, runner: CliRunner, fake_vault, tmp_path: Path) -> None:
        value_file = tmp_path / "value.txt"
        value_file.write_text("from-file\n", encoding="utf-8")

        result = runner.invoke(app, ["secret", "set", "db-password", "-f", str(value_file)])

        assert result.exit_code == 0, result.output
        assert fake_vault.secrets["db-password"][-1]["value"] == "from-file"

    def test_from_stdin(self, runner: CliRunner, fake_vault) -> None:
        result = runner.invoke(app, ["secret", "set", "db-password"], input="piped\n")

        assert result.exit_code == 0, result.output
        assert fake_vault.secrets["db-password"][-1]["value"] == "piped"

    def test_argument_and_file_conflict(self, runner: CliRunner, fake_vault, tmp_path: Path) -> None:
        value_file = tmp_path / "value.txt"
        value_file.write_text("x", encoding="utf-8")

        result = runner.invoke(
            app, ["secret", "set", "db-password", "arg", "--value-file", str(value_file)]
        )

        assert isinstance(result.exception, InvalidUsageError)
        assert fake_vault.requests == []


# ---------------------------------------------------------------------------
# Attribute updates
# ---------------------------------------------------------------------------


class TestUpdates:
    def test_disable_then_enable(self, runner: CliRunner, fake_vault) -> None:
        fake_vault.add_version("db-password", "x")

        result = runner.invoke(app, ["secret", "disable", "db-password", "v0001"])
        assert result.exit_code == 0, result.output
        assert fake_vault.secrets["db-password"][0]["enabled"] is False

        result = runner.invoke(app, ["secret", "enable", "db-password", "v0001"])
        assert result.exit_code == 0, result.output
        assert fake_vault.secrets["db-password"][0]["enabled"] is True

    def test_recovery_level(self, runner: CliRunner, fake_vault) -> None:
        fake_vault.add_version("db-password", "x")

        result = runner.invoke(
            app, ["secret", "recovery-level", "db-password", "v0001", "Recoverable"]
        )

        assert result.exit_code == 0, result.output
        assert json.loads(fake_vault.requests[-1].content) == {
            "attributes": {"recoveryLevel": "Recoverable"}
        }

    def test_recovery_level_rejects_unknown(self, runner: CliRunner, fake_vault) -> None:
        result = runner.invoke(app, ["secret", "recovery-level", "db-password", "v0001", "Deleted"])

        assert result.exit_code == 2
        assert fake_vault.requests == []

    def test_expire(self, runner: CliRunner, fake_vault) -> None:
        fake_vault.add_version("db-password", "x")

        result = runner.invoke(
            app, ["secret", "expire", "db-password", "v0001", "2031-06-01T00:00:00Z"]
        )

        assert result.exit_code == 0, result.output
        body = json.loads(fake_vault.requests[-1].content)
        assert body == {"attributes": {"exp": int(datetime(2031, 6, 1, tzinfo=timezone.utc).timestamp())}}

    def test_expire_invalid(self, runner: CliRunner, fake_vault) -> None:
        result = runner.invoke(app, ["secret", "expire", "db-password", "v0001", "next week"])

        assert isinstance(result.exception, InvalidUsageError)
        assert fake_vault.requests == []


# ---------------------------------------------------------------------------
# parse_expiry
# ---------------------------------------------------------------------------


class TestParseExpiry:
    def test_epoch_seconds(self) -> None:
        assert parse_expiry("1900000000") == datetime.fromtimestamp(1_900_000_000, tz=timezone.utc)

    def test_naive_iso_is_utc(self) -> None:
        assert parse_expiry("2031-06-01T12:00:00") == datetime(2031, 6, 1, 12, tzinfo=timezone.utc)

    def test_offset_kept(self) -> None:
        parsed = parse_expiry("2031-06-01T12:00:00+02:00")
        assert parsed == datetime(2031, 6, 1, 10, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


class TestMain:
    @pytest.fixture(autouse=True)
    def _no_signal_handlers(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("vaultclient.app._setup_signal_handlers", lambda: None)

    def test_vault_error_exit_code(self, capsys: pytest.CaptureFixture[str]) -> None:
        with patch("vaultclient.app.app", side_effect=TransportError("GET failed: refused")):
            with pytest.raises(SystemExit) as exc_info:
                main()

        assert exc_info.value.code == 6
        assert "GET failed: refused" in capsys.readouterr().err

    def test_unexpected_error_writes_crash_log(self, isolated_config: Path) -> None:
        with patch("vaultclient.app.app", side_effect=RuntimeError("boom")):
            with pytest.raises(SystemExit) as exc_info:
                main()

        assert exc_info.value.code == 1
        logs = list((isolated_config / "data" / "vaultclient" / "logs").glob("crash-*.log"))
        assert len(logs) == 1
        assert "boom" in logs[0].read_text()

    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert result.stdout.startswith("vaultclient ")
