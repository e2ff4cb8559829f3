"""
Schedulable tick abstraction.

Timers in iron-log (the workout elapsed clock and the rest countdown) are
periodic callbacks on a single-threaded event path.  They are created
through a Scheduler and torn down through the returned IntervalHandle, so
tests can advance time deterministically and check that nothing leaks
after a session ends.
"""

from dataclasses import dataclass, field
from itertools import count
from typing import Callable, Protocol


class IntervalHandle(Protocol):
    """A cancellable periodic callback."""

    @property
    def active(self) -> bool: ...

    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Something that can run a callback every *interval* seconds."""

    def every(self, interval: float, callback: Callable[[], None]) -> IntervalHandle: ...


_sequence = count()


@dataclass
class _Interval:
    interval: float
    callback: Callable[[], None]
    next_due: float
    seq: int = field(default_factory=lambda: next(_sequence))
    _active: bool = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        self._active = False


class TickScheduler:
    """
    Scheduler driven by explicit calls to advance().

    Callbacks fire in due-time order; a callback may cancel its own or
    any other interval, or register new ones, while time advances.
    """

    def __init__(self, start: float = 0.0):
        self.now = start
        self._intervals: list[_Interval] = []

    def every(self, interval: float, callback: Callable[[], None]) -> _Interval:
        if interval <= 0:
            raise ValueError("interval must be positive")
        handle = _Interval(interval=interval, callback=callback, next_due=self.now + interval)
        self._intervals.append(handle)
        return handle

    def advance(self, seconds: float) -> None:
        """Move time forward, firing every callback that falls due."""
        target = self.now + seconds
        while True:
            due = [h for h in self._intervals if h.active and h.next_due <= target]
            if not due:
                break
            handle = min(due, key=lambda h: (h.next_due, h.seq))
            self.now = handle.next_due
            handle.next_due += handle.interval
            handle.callback()
        self.now = target
        self._intervals = [h for h in self._intervals if h.active]

    @property
    def active_count(self) -> int:
        """Number of intervals still scheduled."""
        return sum(1 for h in self._intervals if h.active)
