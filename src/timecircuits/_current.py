"""Process-wide default controller and context-local binding.

Most test suites want one clock for the whole process, driven through
module-level functions::

    import timecircuits

    timecircuits.freeze(datetime(2015, 10, 21, 16, 29, tzinfo=UTC))
    ...
    timecircuits.back_to_the_present()

Suites that run tests concurrently (threads, asyncio tasks) give each
unit of work its own controller instead::

    with timecircuits.use_controller() as controller:
        controller.jump(3600)
        assert timecircuits.now() == controller.now()

:func:`get_controller` returns the controller bound to the current
context by :func:`use_controller`, falling back to the process-wide
default.  :class:`CurrentClock` is the :class:`ClockPort` to inject
into application code that should follow whichever controller is
current at read time.
"""

from __future__ import annotations

import contextlib
import logging
import threading
from collections.abc import Iterator
from contextvars import ContextVar
from datetime import datetime
from typing import TypeVar

from timecircuits._controller import Block, ClockController, Interval
from timecircuits._settings import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

_default_controller: ClockController | None = None
_default_settings: Settings | None = None
_default_lock = threading.Lock()

_bound_controller: ContextVar[ClockController | None] = ContextVar(
    "timecircuits_controller",
    default=None,
)


def default_controller() -> ClockController:
    """Return the process-wide controller, creating it on first use.

    The controller is configured from :class:`Settings` (environment
    variables and ``.env``) when it is first created.
    """
    global _default_controller, _default_settings
    if _default_controller is None:
        with _default_lock:
            if _default_controller is None:
                _default_settings = Settings()
                _default_controller = ClockController.from_settings(_default_settings)
                logger.debug("Created default controller %r", _default_controller)
    return _default_controller


def set_default_controller(controller: ClockController | None) -> None:
    """Replace the process-wide controller.

    Passing ``None`` discards it; the next :func:`default_controller`
    call creates a fresh one from settings.
    """
    global _default_controller, _default_settings
    with _default_lock:
        _default_controller = controller
        _default_settings = None


def get_controller() -> ClockController:
    """Return the controller in effect for the current context."""
    bound = _bound_controller.get()
    if bound is not None:
        return bound
    return default_controller()


@contextlib.contextmanager
def use_controller(
    controller: ClockController | None = None,
) -> Iterator[ClockController]:
    """Bind *controller* to the current context for the ``with`` body.

    When *controller* is omitted a fresh one is created.  Bindings
    nest, and each thread or asyncio task sees only its own binding
    (``contextvars`` semantics).  New threads start unbound and use
    the process-wide default.
    """
    if controller is None:
        controller = ClockController()
    token = _bound_controller.set(controller)
    try:
        yield controller
    finally:
        _bound_controller.reset(token)


class CurrentClock:
    """:class:`ClockPort` reading whichever controller is current.

    Resolves the controller on every call, so a component built once
    at import time still follows :func:`use_controller` bindings made
    later by a test.
    """

    def now(self) -> datetime:
        """Return the current virtual time."""
        return get_controller().now()

    def __repr__(self) -> str:
        return "CurrentClock()"


# ---------------------------------------------------------------------------
# Module-level shortcuts operating on the current controller
# ---------------------------------------------------------------------------


def now() -> datetime:
    """Current virtual time of the current controller."""
    return get_controller().now()


def time_travel_to(date: datetime, block: Block[T] | None = None) -> T | None:
    """:meth:`ClockController.time_travel_to` on the current controller."""
    if block is None:
        get_controller().time_travel_to(date)
        return None
    return get_controller().time_travel_to(date, block)


def jump(interval: Interval, block: Block[T] | None = None) -> T | None:
    """:meth:`ClockController.jump` on the current controller."""
    if block is None:
        get_controller().jump(interval)
        return None
    return get_controller().jump(interval, block)


def freeze(date: datetime, block: Block[T] | None = None) -> T | None:
    """:meth:`ClockController.freeze` on the current controller."""
    if block is None:
        get_controller().freeze(date)
        return None
    return get_controller().freeze(date, block)


def back_to_the_present() -> None:
    """:meth:`ClockController.back_to_the_present` on the current controller."""
    get_controller().back_to_the_present()
