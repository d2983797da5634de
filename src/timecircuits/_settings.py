"""Library configuration via pydantic-settings.

Configuration is loaded from environment variables and/or ``.env``
files.  All variables carry the ``TIMECIRCUITS_`` prefix and nested
models use ``__`` as the delimiter, e.g.
``TIMECIRCUITS_LOGGING__LEVEL=DEBUG``.

The schema covers:

* **Logging** — level, format, optional file sink, rotation.
* **Controller** — how naive datetimes are interpreted and whether
  cross-thread mutation is rejected.
* **pytest plugin** — whether the default controller is reset after
  every test.
"""

from __future__ import annotations

from typing import Annotated, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import (
    BaseModel,
    Field,
    field_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

# -------------------------------------------------------------------
# Sub-models (BaseModel, NOT BaseSettings — nested via composition)
# -------------------------------------------------------------------


class LoggingSettings(BaseModel):
    """Logging configuration.

    When ``file`` is set, logs are also written to a rotating file
    (size-based rotation, ``backup_count`` generations kept).  When
    ``None``, logs go to stderr only.

    The ``format`` field selects the output format:

    - ``"text"`` (default) — human-readable timestamped lines, which
      is what a developer reading test output wants.
    - ``"json"`` — structured JSON lines for CI log collectors.
    """

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING",
        description="Root log level.",
    )
    format: Literal["json", "text"] = Field(
        default="text",
        description=(
            "Log output format. "
            "'json' emits structured JSON lines; "
            "'text' emits human-readable timestamped lines."
        ),
    )
    file: str | None = Field(
        default=None,
        description="Optional log file path. ``None`` means stderr only.",
    )
    max_file_size_mb: Annotated[int, Field(ge=1)] = Field(
        default=10,
        description=(
            "Maximum log file size in megabytes before rotation. "
            "Only applies when ``file`` is set."
        ),
    )
    backup_count: Annotated[int, Field(ge=0)] = Field(
        default=3,
        description="Number of rotated log files to keep.",
    )


# -------------------------------------------------------------------
# Root settings
# -------------------------------------------------------------------


class Settings(BaseSettings):
    """Root settings for timecircuits.

    Example ``.env``::

        TIMECIRCUITS_NAIVE_TIMEZONE=Europe/Madrid
        TIMECIRCUITS_ENFORCE_THREAD_AFFINITY=false
        TIMECIRCUITS_LOGGING__LEVEL=DEBUG
        TIMECIRCUITS_LOGGING__FORMAT=json
    """

    model_config = SettingsConfigDict(
        env_prefix="TIMECIRCUITS_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Logging configuration.",
    )
    naive_timezone: str = Field(
        default="UTC",
        description=(
            "IANA time zone applied to naive datetimes passed to "
            "time_travel_to() and freeze()."
        ),
    )
    enforce_thread_affinity: bool = Field(
        default=True,
        description=(
            "Reject mutations of a controller from a thread other than "
            "the one that last took ownership of it."
        ),
    )
    reset_after_test: bool = Field(
        default=True,
        description=(
            "Have the pytest plugin call back_to_the_present() on the "
            "default controller after every test."
        ),
    )

    @field_validator("naive_timezone")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown time zone {value!r}") from exc
        return value

    @property
    def tzinfo(self) -> ZoneInfo:
        """The :class:`~zoneinfo.ZoneInfo` named by ``naive_timezone``."""
        return ZoneInfo(self.naive_timezone)
