"""Wall-clock port and system adapter.

Provides ClockPort (Protocol) and SystemClock for reading the current
time as a timezone-aware :class:`~datetime.datetime`.

**Why a port?** Code that calls ``datetime.now()`` directly cannot be
steered by a test.  Code that receives a ``ClockPort`` can be handed a
:class:`~timecircuits.ClockController` instead, with no monkey-patching
of built-ins.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Protocol, runtime_checkable


@runtime_checkable
class ClockPort(Protocol):
    """Source of the current wall-clock time.

    Application code depends on this protocol rather than on
    ``datetime.now()``.  Production wiring passes a
    :class:`SystemClock`; tests pass a ``ClockController`` (or any
    other object with a matching ``now()``).
    """

    def now(self) -> datetime:
        """Return the current time.

        Returns:
            A timezone-aware datetime.
        """
        ...


class SystemClock:
    """Production clock wrapping ``datetime.now(UTC)``.

    Satisfies :class:`ClockPort` via structural subtyping — no
    base-class inheritance required (PEP 544).

    Usage::

        clock = SystemClock()
        started = clock.now()
        # ... some work ...
        elapsed = clock.now() - started
    """

    def now(self) -> datetime:
        """Return the real current time in UTC."""
        return datetime.now(UTC)

    def __repr__(self) -> str:
        return "SystemClock()"
