"""Tests for timecircuits._cli — CLI for inspecting virtual time.

Test Techniques Used:
    - Specification-based Testing: CLI flag parsing and output
    - State-based Testing: Settings overrides reaching logging
    - Error Condition Testing: Invalid flag values, config errors
    - Behavioural Testing: Exit codes
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from datetime import datetime, timedelta
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from timecircuits._cli import (
    EXIT_CONFIG_ERROR,
    EXIT_OK,
    EXIT_RUNTIME_ERROR,
    build_cli,
)

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _restore_root_logger() -> Iterator[None]:
    """The CLI reconfigures the root logger; undo that after each test."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)


@pytest.fixture
def runner() -> CliRunner:
    """Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def env_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Empty .env file, with ambient TIMECIRCUITS_ variables cleared."""
    for name in (
        "TIMECIRCUITS_NAIVE_TIMEZONE",
        "TIMECIRCUITS_ENFORCE_THREAD_AFFINITY",
        "TIMECIRCUITS_LOGGING__LEVEL",
        "TIMECIRCUITS_LOGGING__FORMAT",
        "TIMECIRCUITS_LOGGING__FILE",
    ):
        monkeypatch.delenv(name, raising=False)
    path = tmp_path / ".env"
    path.write_text("")
    return path


def _invoke(runner: CliRunner, env_file: Path, *args: str):  # noqa: ANN202
    cli = build_cli(version="9.9.9")
    return runner.invoke(cli, ["--env-file", str(env_file), *args])


# ---------------------------------------------------------------------------
# TestVersionAndHelp
# ---------------------------------------------------------------------------


class TestVersionAndHelp:
    """--version and --help.

    Technique: Specification-based Testing.
    """

    def test_version_prints_version(self, runner: CliRunner) -> None:
        """--version prints 'timecircuits v{version}' and exits 0."""
        result = runner.invoke(build_cli(version="9.9.9"), ["--version"])

        assert result.exit_code == EXIT_OK
        assert "timecircuits v9.9.9" in result.stdout

    def test_help_lists_options(self, runner: CliRunner) -> None:
        """--help lists every option."""
        result = runner.invoke(build_cli(version="9.9.9"), ["--help"])

        assert result.exit_code == EXIT_OK
        for option in (
            "--version",
            "--travel",
            "--jump",
            "--freeze",
            "--log-level",
            "--log-format",
            "--env-file",
        ):
            assert option in result.stdout


# ---------------------------------------------------------------------------
# TestOperations
# ---------------------------------------------------------------------------


class TestOperations:
    """--travel, --jump and --freeze.

    Technique: Specification-based Testing — output reflects the
    resulting virtual time.
    """

    def test_freeze_prints_frozen_instant(
        self, runner: CliRunner, env_file: Path
    ) -> None:
        result = _invoke(runner, env_file, "--freeze", "2015-10-21T16:29:00+00:00")

        assert result.exit_code == EXIT_OK
        assert result.stdout.strip() == (
            "2015-10-21T16:29:00+00:00 (frozen at 2015-10-21T16:29:00+00:00)"
        )

    def test_travel_then_jump(self, runner: CliRunner, env_file: Path) -> None:
        """Jump is applied after travel."""
        result = _invoke(
            runner,
            env_file,
            "--travel",
            "1955-11-05T06:00:00+00:00",
            "--jump",
            "3600",
        )

        assert result.exit_code == EXIT_OK
        printed = datetime.fromisoformat(result.stdout.split()[0])
        expected = datetime.fromisoformat("1955-11-05T07:00:00+00:00")
        assert expected <= printed < expected + timedelta(seconds=5)
        assert "(offset" in result.stdout

    def test_freeze_applied_last(self, runner: CliRunner, env_file: Path) -> None:
        """Freeze wins over travel and jump."""
        result = _invoke(
            runner,
            env_file,
            "--travel",
            "1955-11-05T06:00:00+00:00",
            "--jump",
            "60",
            "--freeze",
            "1885-09-02T08:00:00+00:00",
        )

        assert result.stdout.startswith("1885-09-02T08:00:00+00:00 (frozen")

    def test_no_operation_prints_real_time(
        self, runner: CliRunner, env_file: Path
    ) -> None:
        result = _invoke(runner, env_file)

        assert result.exit_code == EXIT_OK
        assert result.stdout.strip().endswith("(real)")

    def test_naive_date_uses_env_file_timezone(
        self, runner: CliRunner, env_file: Path
    ) -> None:
        """TIMECIRCUITS_NAIVE_TIMEZONE from --env-file applies."""
        env_file.write_text("TIMECIRCUITS_NAIVE_TIMEZONE=Asia/Tokyo\n")

        result = _invoke(runner, env_file, "--freeze", "2015-10-22T01:29:00")

        assert result.exit_code == EXIT_OK
        assert result.stdout.startswith("2015-10-22T01:29:00+09:00")

    def test_invalid_date_rejected(self, runner: CliRunner, env_file: Path) -> None:
        result = _invoke(runner, env_file, "--freeze", "next thursday")

        assert result.exit_code != EXIT_OK

    def test_invalid_jump_rejected(self, runner: CliRunner, env_file: Path) -> None:
        result = _invoke(runner, env_file, "--jump", "soon")

        assert result.exit_code != EXIT_OK


# ---------------------------------------------------------------------------
# TestLoggingOverrides
# ---------------------------------------------------------------------------


class TestLoggingOverrides:
    """--log-level and --log-format.

    Technique: State-based Testing — overrides reach configure_logging.
    """

    def test_overrides_reach_configure_logging(
        self, runner: CliRunner, env_file: Path
    ) -> None:
        with patch("timecircuits._cli.configure_logging") as configure:
            result = _invoke(
                runner, env_file, "--log-level", "debug", "--log-format", "JSON"
            )

        assert result.exit_code == EXIT_OK
        settings = configure.call_args.args[0]
        assert settings.level == "DEBUG"
        assert settings.format == "json"
        assert configure.call_args.kwargs == {
            "service": "timecircuits",
            "version": "9.9.9",
        }

    def test_invalid_log_level_returns_error(
        self, runner: CliRunner, env_file: Path
    ) -> None:
        result = _invoke(runner, env_file, "--log-level", "INVALID")

        assert result.exit_code != EXIT_OK

    def test_invalid_log_format_returns_error(
        self, runner: CliRunner, env_file: Path
    ) -> None:
        result = _invoke(runner, env_file, "--log-format", "yaml")

        assert result.exit_code != EXIT_OK


# ---------------------------------------------------------------------------
# TestExitCodes
# ---------------------------------------------------------------------------


class TestExitCodes:
    """Exit code tests.

    Technique: Behavioural Testing.
    """

    def test_exit_code_constants_have_expected_values(self) -> None:
        assert EXIT_OK == 0
        assert EXIT_CONFIG_ERROR == 1
        assert EXIT_RUNTIME_ERROR == 3

    def test_config_error_exits_one(self, runner: CliRunner, env_file: Path) -> None:
        """An invalid setting in the env file returns exit code 1."""
        env_file.write_text("TIMECIRCUITS_NAIVE_TIMEZONE=Nowhere/Hill_Valley\n")

        result = _invoke(runner, env_file)

        assert result.exit_code == EXIT_CONFIG_ERROR

    def test_runtime_error_exits_three(
        self, runner: CliRunner, env_file: Path
    ) -> None:
        """An unexpected failure returns exit code 3."""
        with patch(
            "timecircuits._cli.ClockController.from_settings",
            side_effect=RuntimeError("flux capacitor"),
        ):
            result = _invoke(runner, env_file)

        assert result.exit_code == EXIT_RUNTIME_ERROR
