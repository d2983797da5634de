"""timecircuits.

A controllable virtual clock for tests: time travel, jumps and frozen
time without sleeping.
"""

from importlib.metadata import PackageNotFoundError, version

from timecircuits._clock import ClockPort, SystemClock
from timecircuits._controller import Block, ClockController, Interval
from timecircuits._current import (
    CurrentClock,
    back_to_the_present,
    default_controller,
    freeze,
    get_controller,
    jump,
    now,
    set_default_controller,
    time_travel_to,
    use_controller,
)
from timecircuits._errors import ConcurrentUseError, ThreadOwner, TimeCircuitsError
from timecircuits._logging import JsonFormatter, configure_logging
from timecircuits._modes import FrozenMode, Mode, OffsetMode, RealMode
from timecircuits._settings import LoggingSettings, Settings

try:
    __version__ = version("timecircuits")
except PackageNotFoundError:
    # Last resort fallback for source checkouts without metadata
    __version__ = "0.0.0+unknown"

__all__ = [
    # Version
    "__version__",
    # Clock
    "ClockPort",
    "CurrentClock",
    "SystemClock",
    # Controller
    "Block",
    "ClockController",
    "Interval",
    # Modes
    "FrozenMode",
    "Mode",
    "OffsetMode",
    "RealMode",
    # Current controller
    "back_to_the_present",
    "default_controller",
    "freeze",
    "get_controller",
    "jump",
    "now",
    "set_default_controller",
    "time_travel_to",
    "use_controller",
    # Errors
    "ConcurrentUseError",
    "ThreadOwner",
    "TimeCircuitsError",
    # Logging
    "JsonFormatter",
    "configure_logging",
    # Settings
    "LoggingSettings",
    "Settings",
]
