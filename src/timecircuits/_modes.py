"""Modes describing how virtual time is derived from the real clock.

A controller is always in exactly one mode:

* :class:`RealMode` — virtual time is the real clock, unmodified.
* :class:`OffsetMode` — virtual time is the real clock shifted by a
  fixed ``anchor`` of elapsed time, applied in UTC.  Time keeps
  advancing at the real rate.  Both time travel and jumps end up here;
  they only differ in how the anchor is computed.
* :class:`FrozenMode` — virtual time is pinned to ``instant``.

Modes are immutable value objects, so saving one on the context stack
and restoring it later is a plain reference copy.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta


@dataclass(frozen=True, slots=True)
class RealMode:
    """No manipulation active."""

    def resolve(self, real_now: datetime) -> datetime:
        return real_now

    def describe(self) -> str:
        return "real"


@dataclass(frozen=True, slots=True)
class OffsetMode:
    """Virtual time runs at the real rate, shifted by ``anchor``."""

    anchor: timedelta

    def resolve(self, real_now: datetime) -> datetime:
        return real_now.astimezone(UTC) + self.anchor

    def describe(self) -> str:
        return f"offset {self.anchor}"


@dataclass(frozen=True, slots=True)
class FrozenMode:
    """Virtual time is pinned to ``instant``."""

    instant: datetime

    def resolve(self, real_now: datetime) -> datetime:  # noqa: ARG002
        return self.instant

    def describe(self) -> str:
        return f"frozen at {self.instant.isoformat()}"


Mode = RealMode | OffsetMode | FrozenMode
"""Union of all controller modes."""
