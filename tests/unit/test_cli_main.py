"""Unit tests for the CLI app."""

import json
from unittest.mock import MagicMock

import pytest
import typer
from typer.testing import CliRunner

from cordon import __version__
from cordon.cli.main import (
    EXIT_INVALID_ARGUMENT,
    EXIT_SANDBOX_UNAVAILABLE,
    EXIT_TIMEOUT,
    app,
    exit_status,
    parse_bind_spec,
    parse_env_pairs,
)
from tests.helpers.scripts import write_fake_bwrap


@pytest.fixture
def runner():
    """CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def mock_configure_logging(monkeypatch):
    """Keep the CLI callback from replacing the root log handlers."""
    mock = MagicMock()
    monkeypatch.setattr("cordon.cli.main.configure_logging", mock)
    return mock


@pytest.fixture
def sandbox_env(tmp_path, monkeypatch):
    """Point settings at a fake bwrap that echoes its arguments."""

    def _install(body: str = 'for arg in "$@"; do echo "$arg"; done'):
        binary = write_fake_bwrap(tmp_path / "bwrap", body)
        monkeypatch.setenv("SANDBOX_BINARY", str(binary))
        monkeypatch.setenv("SANDBOX_BASE_ARGS", '["--unshare-all"]')
        monkeypatch.setenv("SANDBOX_READ_ONLY_BINDS", '["/usr"]')
        monkeypatch.setenv("SANDBOX_WRITE_BINDS", "[]")
        return binary

    return _install


class TestMainApp:
    def test_app_exists(self):
        assert app.info.name == "cordon"

    def test_app_help(self, runner):
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        assert "bubblewrap sandbox" in result.stdout
        for command in ("build", "run", "check", "version"):
            assert command in result.stdout

    def test_app_no_args_shows_help(self, runner):
        result = runner.invoke(app, [])

        assert "Usage:" in result.output

    def test_log_level_passed_to_logging(self, runner, mock_configure_logging):
        result = runner.invoke(app, ["--log-level", "debug", "version"])

        assert result.exit_code == 0
        mock_configure_logging.assert_called_once_with("DEBUG")

    def test_unknown_log_level(self, runner, mock_configure_logging):
        result = runner.invoke(app, ["--log-level", "chatty", "version"])

        assert result.exit_code == 2
        mock_configure_logging.assert_not_called()


class TestParseBindSpec:
    def test_plain_path(self):
        assert parse_bind_spec("/srv/data") == "/srv/data"

    def test_source_and_target(self):
        assert parse_bind_spec("/tmp/in:/data/in") == {
            "from": "/tmp/in",
            "to": "/data/in",
            "read_only": True,
        }

    def test_writable(self):
        assert parse_bind_spec("/tmp/out:/data/out:rw")["read_only"] is False

    def test_explicit_read_only(self):
        assert parse_bind_spec("/tmp/in:/data/in:ro")["read_only"] is True

    @pytest.mark.parametrize("spec", ["/a:/b:rx", "/a:/b:rw:extra"])
    def test_invalid(self, spec):
        with pytest.raises(typer.BadParameter):
            parse_bind_spec(spec)


class TestParseEnvPairs:
    def test_pairs(self):
        assert parse_env_pairs(["A=1", "B=x=y", "EMPTY="]) == {"A": "1", "B": "x=y", "EMPTY": ""}

    @pytest.mark.parametrize("pair", ["NOVALUE", "=value"])
    def test_invalid(self, pair):
        with pytest.raises(typer.BadParameter):
            parse_env_pairs([pair])


class TestExitStatus:
    @pytest.mark.parametrize(
        ("returncode", "expected"),
        [(5, 5), (1, 1), (None, 1), (0, 1), (-9, 137), (-15, 143)],
    )
    def test_mapping(self, returncode, expected):
        assert exit_status(returncode) == expected


class TestBuildCommand:
    def test_prints_one_token_per_line(self, runner, sandbox_env):
        binary = sandbox_env()

        result = runner.invoke(app, ["build", "--", "/bin/echo", "hi"])

        assert result.exit_code == 0
        assert result.stdout.splitlines() == [
            str(binary),
            "--unshare-all",
            "--ro-bind",
            "/usr",
            "/usr",
            "/bin/echo",
            "hi",
        ]

    def test_json_output(self, runner, sandbox_env):
        binary = sandbox_env()

        result = runner.invoke(
            app,
            ["build", "--json", "--bind", "/tmp/x:/tmp/x:rw", "--", "/bin/echo", "hi"],
        )

        assert result.exit_code == 0
        assert json.loads(result.stdout) == [
            str(binary),
            "--unshare-all",
            "--ro-bind",
            "/usr",
            "/usr",
            "--bind",
            "/tmp/x",
            "/tmp/x",
            "/bin/echo",
            "hi",
        ]

    def test_invalid_bind_path(self, runner, sandbox_env):
        sandbox_env()

        result = runner.invoke(app, ["build", "--bind", "relative/path", "--", "/bin/echo"])

        assert result.exit_code == EXIT_INVALID_ARGUMENT
        assert "Invalid argument" in result.output

    def test_malformed_bind_spec(self, runner, sandbox_env):
        sandbox_env()

        result = runner.invoke(app, ["build", "--bind", "/a:/b:rx", "--", "/bin/echo"])

        assert result.exit_code == 2

    def test_missing_binary(self, runner, tmp_path, monkeypatch):
        monkeypatch.setenv("SANDBOX_BINARY", str(tmp_path / "missing-bwrap"))

        result = runner.invoke(app, ["build", "--", "/bin/echo", "hi"])

        assert result.exit_code == EXIT_SANDBOX_UNAVAILABLE
        assert "Sandbox unavailable" in result.output


class TestRunCommand:
    def test_success_prints_output(self, runner, sandbox_env):
        sandbox_env('echo "ran: $#"')

        result = runner.invoke(app, ["run", "--", "/bin/echo", "hi"])

        assert result.exit_code == 0
        assert "ran: 6" in result.stdout

    def test_exit_status_propagates(self, runner, sandbox_env):
        sandbox_env("echo boom >&2; exit 5")

        result = runner.invoke(app, ["run", "--", "/bin/false"])

        assert result.exit_code == 5
        assert "boom" in result.output

    def test_killed_by_signal(self, runner, sandbox_env):
        sandbox_env("kill -9 $$")

        result = runner.invoke(app, ["run", "--", "/bin/true"])

        assert result.exit_code == 137

    def test_zero_timeout_runs_to_completion(self, runner, sandbox_env):
        sandbox_env("sleep 0.1; echo finished")

        result = runner.invoke(app, ["run", "--timeout", "0", "--", "/bin/true"])

        assert result.exit_code == 0
        assert "finished" in result.stdout

    def test_timeout(self, runner, sandbox_env):
        sandbox_env("exec sleep 5")

        result = runner.invoke(app, ["run", "--timeout", "0.2", "--", "/bin/true"])

        assert result.exit_code == EXIT_TIMEOUT
        assert "Timed out" in result.output

    def test_invalid_workdir(self, runner, sandbox_env):
        sandbox_env()

        result = runner.invoke(app, ["run", "--workdir", "relative", "--", "/bin/true"])

        assert result.exit_code == EXIT_INVALID_ARGUMENT

    def test_missing_binary(self, runner, tmp_path, monkeypatch):
        monkeypatch.setenv("SANDBOX_BINARY", str(tmp_path / "missing-bwrap"))

        result = runner.invoke(app, ["run", "--", "/bin/true"])

        assert result.exit_code == EXIT_SANDBOX_UNAVAILABLE

    def test_env_passed_to_process(self, runner, sandbox_env):
        sandbox_env('echo "job=$JOB_ID"')

        result = runner.invoke(app, ["run", "--env", "JOB_ID=42", "--", "/bin/true"])

        assert result.exit_code == 0
        assert "job=42" in result.stdout
        assert "Environment" not in result.output

    def test_expose_env_prints_table(self, runner, sandbox_env):
        sandbox_env("exit 0")

        result = runner.invoke(
            app,
            ["run", "--env", "JOB_ID=42", "--expose-env", "--", "/bin/true"],
        )

        assert result.exit_code == 0
        assert "Environment" in result.output
        assert "JOB_ID" in result.output


class TestCheckCommand:
    def test_available(self, runner, sandbox_env):
        sandbox_env()

        result = runner.invoke(app, ["check"])

        assert result.exit_code == 0
        assert "Sandbox Runtime" in result.stdout
        assert "yes" in result.stdout

    def test_unavailable(self, runner, tmp_path, monkeypatch):
        monkeypatch.setenv("SANDBOX_BINARY", str(tmp_path / "missing-bwrap"))

        result = runner.invoke(app, ["check"])

        assert result.exit_code == EXIT_SANDBOX_UNAVAILABLE
        assert "not found" in result.stdout


class TestVersionCommand:
    def test_version(self, runner):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert "Cordon" in result.stdout
        assert __version__ in result.stdout
