"""Public test-support utilities for timecircuits.

Provided symbols:

- :class:`FakeClock` — deterministic stand-in for the real clock.
- :func:`make_settings` — factory for ``Settings`` without ``.env`` files.

The pytest fixtures live in :mod:`timecircuits.testing._plugin` and are
registered through the ``pytest11`` entry point.
"""

from timecircuits.testing._clock import EPOCH, FakeClock
from timecircuits.testing._settings import make_settings

__all__ = [
    "EPOCH",
    "FakeClock",
    "make_settings",
]
