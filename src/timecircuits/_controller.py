"""Clock controller — the virtual-time state machine.

A :class:`ClockController` owns the current :data:`~timecircuits.Mode`
and a context stack of saved modes.  Three manipulations are offered,
each in a persistent and a scoped flavour:

* **time travel** — move to a date; time keeps advancing.
* **jump** — move by an interval relative to the current virtual time;
  time keeps advancing (a jump from frozen time un-freezes it).
* **freeze** — pin time to a date.

Persistent calls replace the current mode and leave the stack alone.
Scoped calls (``block=`` argument, or the ``traveling_to`` /
``jumping`` / ``frozen_at`` context managers) save the current mode,
apply the change, run the caller's code and restore the saved mode on
every exit path, exceptions included.

:meth:`ClockController.back_to_the_present` is the full reset: real
time, empty stack, whatever the nesting depth.

The controller satisfies :class:`~timecircuits.ClockPort`, so it can be
injected wherever application code expects a clock.
"""

from __future__ import annotations

import contextlib
import logging
import threading
from collections.abc import Callable, Iterator
from datetime import UTC, datetime, timedelta, tzinfo
from numbers import Real
from typing import TYPE_CHECKING, TypeVar, overload

from timecircuits._clock import ClockPort, SystemClock
from timecircuits._errors import ConcurrentUseError, ThreadOwner
from timecircuits._logging import DEPTH_ATTR, MODE_ATTR
from timecircuits._modes import FrozenMode, Mode, OffsetMode, RealMode

if TYPE_CHECKING:
    from timecircuits._settings import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

Block = Callable[[datetime], T]
"""Caller code run inside a scoped operation.

Receives the virtual time at block entry.
"""

Interval = timedelta | float | int
"""A jump length: a timedelta or a number of seconds."""


class ClockController:
    """Controllable source of virtual time.

    Args:
        clock: The *real* clock virtual time is derived from.
            Defaults to :class:`SystemClock`.  Tests that need exact
            arithmetic pass a :class:`~timecircuits.testing.FakeClock`.
        naive_timezone: Time zone attached to naive datetimes given
            to :meth:`time_travel_to` and :meth:`freeze`.
        enforce_thread_affinity: When true, the first mutation after
            a reset binds the controller to the calling thread and
            mutations from any other thread raise
            :class:`ConcurrentUseError`.

    Example::

        controller = ClockController()
        controller.freeze(datetime(1985, 10, 26, 1, 21, tzinfo=UTC))

        with controller.jumping(timedelta(minutes=1)) as entered:
            assert controller.now() >= entered

        controller.back_to_the_present()
    """

    def __init__(
        self,
        clock: ClockPort | None = None,
        *,
        naive_timezone: tzinfo = UTC,
        enforce_thread_affinity: bool = True,
    ) -> None:
        self._clock: ClockPort = clock if clock is not None else SystemClock()
        self._naive_timezone = naive_timezone
        self._enforce_thread_affinity = enforce_thread_affinity
        self._mode: Mode = RealMode()
        self._stack: list[Mode] = []
        self._owner: ThreadOwner | None = None
        self._owner_lock = threading.Lock()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        clock: ClockPort | None = None,
    ) -> ClockController:
        """Build a controller configured from :class:`Settings`."""
        return cls(
            clock,
            naive_timezone=settings.tzinfo,
            enforce_thread_affinity=settings.enforce_thread_affinity,
        )

    # -- introspection -------------------------------------------------------

    @property
    def clock(self) -> ClockPort:
        """The real clock virtual time is derived from."""
        return self._clock

    @property
    def mode(self) -> Mode:
        """The mode currently used to compute virtual time."""
        return self._mode

    @property
    def depth(self) -> int:
        """Number of scoped operations currently in flight."""
        return len(self._stack)

    @property
    def is_active(self) -> bool:
        """Whether virtual time differs from the real clock."""
        return not isinstance(self._mode, RealMode)

    def __repr__(self) -> str:
        return (
            f"ClockController(mode={self._mode!r}, depth={len(self._stack)}, "
            f"clock={self._clock!r})"
        )

    # -- reads ---------------------------------------------------------------

    def now(self) -> datetime:
        """Return the current virtual time."""
        return self._mode.resolve(self._clock.now())

    def interval_since_now(self, date: datetime) -> timedelta:
        """Return ``date - now()``; negative for dates in the virtual past."""
        return _utc(self._as_datetime(date)) - _utc(self.now())

    def from_now(self, interval: Interval) -> datetime:
        """Return the virtual time *interval* from now, in the zone of now()."""
        current = self.now()
        target = _utc(current) + self._as_interval(interval)
        return target.astimezone(current.tzinfo)

    # -- time travel ---------------------------------------------------------

    @overload
    def time_travel_to(self, date: datetime) -> None: ...

    @overload
    def time_travel_to(self, date: datetime, block: Block[T]) -> T: ...

    def time_travel_to(
        self,
        date: datetime,
        block: Block[T] | None = None,
    ) -> T | None:
        """Travel to *date*; time keeps advancing at the real rate.

        Without *block* the change persists until the next operation.
        With *block*, the travel only lasts while *block* runs; it
        receives the virtual time at entry and its return value is
        returned.
        """
        if block is None:
            target = self._as_datetime(date)
            self._claim("time_travel_to")
            self._travel(target)
            return None
        with self.traveling_to(date) as entered:
            return block(entered)

    @contextlib.contextmanager
    def traveling_to(self, date: datetime) -> Iterator[datetime]:
        """Scoped :meth:`time_travel_to`; yields the virtual time at entry."""
        target = self._as_datetime(date)
        with self._scope("time_travel_to"):
            self._travel(target)
            yield self.now()

    def _travel(self, target: datetime) -> None:
        anchor = _utc(target) - _utc(self._clock.now())
        self._set_mode(OffsetMode(anchor), "time_travel_to")

    # -- jumps ---------------------------------------------------------------

    @overload
    def jump(self, interval: Interval) -> None: ...

    @overload
    def jump(self, interval: Interval, block: Block[T]) -> T: ...

    def jump(
        self,
        interval: Interval,
        block: Block[T] | None = None,
    ) -> T | None:
        """Move virtual time by *interval*, relative to the current mode.

        Positive intervals jump forward, negative ones backward.  The
        jump starts from wherever the clock currently is, including a
        previous travel or freeze; afterwards time advances at the real
        rate even if it was frozen before.
        """
        if block is None:
            delta = self._as_interval(interval)
            self._claim("jump")
            self._jump(delta)
            return None
        with self.jumping(interval) as entered:
            return block(entered)

    @contextlib.contextmanager
    def jumping(self, interval: Interval) -> Iterator[datetime]:
        """Scoped :meth:`jump`; yields the virtual time at entry."""
        delta = self._as_interval(interval)
        with self._scope("jump"):
            self._jump(delta)
            yield self.now()

    def _jump(self, delta: timedelta) -> None:
        real_now = _utc(self._clock.now())
        # Elapsed time, not wall-clock time: a day across a DST change is 24h.
        target = _utc(self._mode.resolve(real_now)) + delta
        self._set_mode(OffsetMode(target - real_now), "jump")

    # -- freeze --------------------------------------------------------------

    @overload
    def freeze(self, date: datetime) -> None: ...

    @overload
    def freeze(self, date: datetime, block: Block[T]) -> T: ...

    def freeze(
        self,
        date: datetime,
        block: Block[T] | None = None,
    ) -> T | None:
        """Pin virtual time to *date*; it does not advance at all."""
        if block is None:
            instant = self._as_datetime(date)
            self._claim("freeze")
            self._set_mode(FrozenMode(instant), "freeze")
            return None
        with self.frozen_at(date) as entered:
            return block(entered)

    @contextlib.contextmanager
    def frozen_at(self, date: datetime) -> Iterator[datetime]:
        """Scoped :meth:`freeze`; yields the frozen instant."""
        instant = self._as_datetime(date)
        with self._scope("freeze"):
            self._set_mode(FrozenMode(instant), "freeze")
            yield self.now()

    # -- reset ---------------------------------------------------------------

    def back_to_the_present(self) -> None:
        """Undo every manipulation and return to the real clock.

        Clears the context stack regardless of nesting depth and
        releases thread ownership.  Safe to call at any time, and
        calling it twice is the same as calling it once.  Call it from
        test teardown so that manipulated time never leaks into the
        next test.
        """
        if self._stack or self.is_active:
            logger.debug(
                "back_to_the_present: dropping %s and %d saved mode(s)",
                self._mode.describe(),
                len(self._stack),
                extra=self._log_state(),
            )
        self._stack.clear()
        self._mode = RealMode()
        with self._owner_lock:
            self._owner = None

    # -- internals -----------------------------------------------------------

    @contextlib.contextmanager
    def _scope(self, operation: str) -> Iterator[None]:
        """Save the current mode, run the body, restore on every exit path."""
        self._claim(operation)
        self._stack.append(self._mode)
        depth = len(self._stack)
        logger.debug(
            "%s: saved %s (depth=%d)",
            operation,
            self._mode.describe(),
            depth,
            extra=self._log_state(),
        )
        try:
            yield
        finally:
            self._restore(operation, depth)

    def _restore(self, operation: str, depth: int) -> None:
        if len(self._stack) < depth:
            # back_to_the_present() ran inside the scope; its reset stands.
            logger.debug(
                "%s: saved mode already discarded by back_to_the_present",
                operation,
                extra=self._log_state(),
            )
            return
        saved = self._stack[depth - 1]
        del self._stack[depth - 1 :]
        self._mode = saved
        logger.debug(
            "%s: restored %s (depth=%d)",
            operation,
            saved.describe(),
            len(self._stack),
            extra=self._log_state(),
        )

    def _set_mode(self, mode: Mode, operation: str) -> None:
        self._mode = mode
        logger.debug(
            "%s: %s (depth=%d)",
            operation,
            mode.describe(),
            len(self._stack),
            extra=self._log_state(),
        )

    def _log_state(self) -> dict[str, object]:
        return {MODE_ATTR: self._mode.describe(), DEPTH_ATTR: len(self._stack)}

    def _claim(self, operation: str) -> None:
        """Bind the controller to the calling thread, or refuse the mutation."""
        if not self._enforce_thread_affinity:
            return
        current = threading.current_thread()
        caller = ThreadOwner(ident=threading.get_ident(), name=current.name)
        with self._owner_lock:
            if self._owner is None:
                self._owner = caller
            owner = self._owner
        if owner.ident != caller.ident:
            logger.warning(
                "Rejected %s() from thread %s; controller owned by %s",
                operation,
                caller,
                owner,
                extra=self._log_state(),
            )
            raise ConcurrentUseError(
                owner=owner,
                intruder=caller,
                operation=operation,
            )

    def _as_datetime(self, value: datetime) -> datetime:
        if not isinstance(value, datetime):
            raise TypeError(
                f"expected a datetime, got {type(value).__name__}: {value!r}"
            )
        if value.tzinfo is None or value.utcoffset() is None:
            return value.replace(tzinfo=self._naive_timezone)
        return value

    @staticmethod
    def _as_interval(value: Interval) -> timedelta:
        if isinstance(value, timedelta):
            return value
        if isinstance(value, Real) and not isinstance(value, bool):
            return timedelta(seconds=float(value))
        raise TypeError(
            "expected a timedelta or a number of seconds, "
            f"got {type(value).__name__}: {value!r}"
        )


def _utc(value: datetime) -> datetime:
    return value.astimezone(UTC)
