"""Command-line interface for timecircuits (Typer-based).

Provides :func:`build_cli`, a small diagnostic tool that applies a
travel, a jump and/or a freeze to a fresh controller and prints the
resulting virtual time.  Handy for checking how ``.env`` settings such
as ``TIMECIRCUITS_NAIVE_TIMEZONE`` affect naive dates::

    $ timecircuits --travel 1955-11-05T06:00 --jump 3600
    1955-11-05T07:00:00.000412+00:00 (offset ...)
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from typing import Annotated, get_args

import typer
from pydantic import ValidationError

from timecircuits._controller import ClockController
from timecircuits._logging import configure_logging
from timecircuits._settings import LoggingSettings, Settings

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_RUNTIME_ERROR = 3

# ---------------------------------------------------------------------------
# Allowed values (extracted from LoggingSettings Literal types)
# ---------------------------------------------------------------------------

_VALID_LOG_LEVELS: tuple[str, ...] = get_args(
    LoggingSettings.model_fields["level"].annotation,
)
_VALID_LOG_FORMATS: tuple[str, ...] = get_args(
    LoggingSettings.model_fields["format"].annotation,
)


def _parse_date(value: str | None, option: str) -> datetime | None:
    if value is None:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError as exc:
        raise typer.BadParameter(
            f"Invalid ISO 8601 date '{value}'.",
            param_hint=f"'{option}'",
        ) from exc


def build_cli(
    settings_class: type[Settings] = Settings,
    *,
    version: str | None = None,
) -> typer.Typer:
    """Construct the Typer CLI.

    Args:
        settings_class: Settings model loaded at invocation time.
        version: Version string for ``--version``.  Defaults to the
            installed package version.

    Returns:
        A configured :class:`typer.Typer` ready to invoke.
    """
    if version is None:
        from timecircuits import __version__ as version

    cli = typer.Typer(
        help=f"timecircuits v{version} — inspect virtual time.",
    )

    @cli.callback(invoke_without_command=True)
    def main(
        version_flag: Annotated[
            bool | None,
            typer.Option(
                "--version",
                is_eager=True,
                help="Show version and exit.",
            ),
        ] = None,
        travel: Annotated[
            str | None,
            typer.Option("--travel", help="Travel to this ISO 8601 date."),
        ] = None,
        jump: Annotated[
            float | None,
            typer.Option("--jump", help="Then jump by this many seconds."),
        ] = None,
        freeze: Annotated[
            str | None,
            typer.Option("--freeze", help="Then freeze at this ISO 8601 date."),
        ] = None,
        log_level: Annotated[
            str | None,
            typer.Option("--log-level", help="Override log level."),
        ] = None,
        log_format: Annotated[
            str | None,
            typer.Option("--log-format", help="Override log format."),
        ] = None,
        env_file: Annotated[
            str,
            typer.Option("--env-file", help="Path to .env file."),
        ] = ".env",
    ) -> None:
        # -- version ---------------------------------------------------------
        if version_flag:
            typer.echo(f"timecircuits v{version}")
            raise typer.Exit()

        # -- validate options -----------------------------------------------
        if log_level is not None and log_level.upper() not in _VALID_LOG_LEVELS:
            raise typer.BadParameter(
                f"Invalid log level '{log_level}'. "
                f"Choose from: {', '.join(_VALID_LOG_LEVELS)}",
                param_hint="'--log-level'",
            )

        if log_format is not None and log_format.lower() not in _VALID_LOG_FORMATS:
            raise typer.BadParameter(
                f"Invalid log format '{log_format}'. "
                f"Choose from: {', '.join(_VALID_LOG_FORMATS)}",
                param_hint="'--log-format'",
            )

        travel_to = _parse_date(travel, "--travel")
        freeze_at = _parse_date(freeze, "--freeze")

        # -- build settings -------------------------------------------------
        try:
            settings = settings_class(_env_file=env_file)  # type: ignore[call-arg]
        except ValidationError as exc:
            logger.error("Configuration error: %s", exc)
            raise SystemExit(EXIT_CONFIG_ERROR) from exc

        if log_level is not None:
            settings.logging = settings.logging.model_copy(
                update={"level": log_level.upper()},
            )

        if log_format is not None:
            settings.logging = settings.logging.model_copy(
                update={"format": log_format.lower()},
            )

        configure_logging(settings.logging, service="timecircuits", version=version)

        # -- apply operations -----------------------------------------------
        try:
            controller = ClockController.from_settings(settings)
            if travel_to is not None:
                controller.time_travel_to(travel_to)
            if jump is not None:
                controller.jump(jump)
            if freeze_at is not None:
                controller.freeze(freeze_at)
            typer.echo(f"{controller.now().isoformat()} ({controller.mode.describe()})")
        except Exception as exc:
            logger.error("Runtime error: %s", exc)
            sys.exit(EXIT_RUNTIME_ERROR)

    return cli


def main() -> None:
    """Console-script entry point."""
    build_cli()()
