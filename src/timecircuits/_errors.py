"""Exception hierarchy for timecircuits.

Clock operations themselves never fail on valid input: any past or
future date and any (negative) interval is accepted, and exceptions
raised by caller-supplied blocks propagate unchanged.  The classes
here cover misuse of the controller only.

Thread ownership::

    TimeCircuitsError
    └── ConcurrentUseError   ← mutation from a second thread

See Also:
    :class:`~timecircuits.ClockController` for where these are raised.
"""

from __future__ import annotations

from dataclasses import dataclass


class TimeCircuitsError(Exception):
    """Base class for all timecircuits errors."""


@dataclass(frozen=True, slots=True)
class ThreadOwner:
    """Identity of the thread a controller is bound to."""

    ident: int
    name: str

    def __str__(self) -> str:
        return f"{self.name} (ident={self.ident})"


class ConcurrentUseError(TimeCircuitsError, RuntimeError):
    """A controller was mutated from a thread that does not own it.

    Interleaved push/mutate/pop sequences from different call stacks
    would break the pairing between a scope's save and its restore,
    so a controller with thread affinity enabled refuses them.

    Attributes:
        owner: The thread the controller is currently bound to.
        intruder: The thread that attempted the mutation.
        operation: Name of the rejected operation.
    """

    def __init__(
        self,
        *,
        owner: ThreadOwner,
        intruder: ThreadOwner,
        operation: str,
    ) -> None:
        self.owner = owner
        self.intruder = intruder
        self.operation = operation
        super().__init__(
            f"{operation}() called from thread {intruder} while the clock "
            f"controller is owned by thread {owner}; give each thread its "
            "own controller via use_controller() or call "
            "back_to_the_present() first"
        )
