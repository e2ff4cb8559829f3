"""
Rest timer policy and countdown state machine.

Rest durations by set type (seconds):

    warmup 60 · working 120 · drop_set 60 · to_failure 90
    (DEFAULT_REST_SECONDS = 90 when there is no set-type context)

States and transitions:

    idle ──start──▶ running ◀──resume── paused
                    running ──pause───▶ paused
                    running ──reaches 0──▶ completed ──▶ idle
    any  ──stop/skip──▶ idle

Only one countdown exists per timer; starting again stops the previous
one first.  Every transition is mirrored to a RestTimerNotifier; failures
of the notifier are logged and never affect timer state.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Literal, Mapping, Protocol

from .config import DEFAULT_REST_SECONDS, REST_SECONDS_BY_SET_TYPE, TICK_SECONDS
from .errors import ValidationError
from .models import SET_TYPE_LABELS
from .scheduling import IntervalHandle, Scheduler

logger = logging.getLogger(__name__)

TimerState = Literal["idle", "running", "paused", "completed"]


@dataclass(frozen=True)
class RestPolicy:
    """Maps a set type to its rest duration."""

    durations: Mapping[str, int] = field(default_factory=lambda: dict(REST_SECONDS_BY_SET_TYPE))
    default_seconds: int = DEFAULT_REST_SECONDS

    def duration_for(self, set_type: str | None) -> int:
        """Rest seconds after a set of the given type (default when unknown)."""
        if set_type is None:
            return self.default_seconds
        return int(self.durations.get(set_type, self.default_seconds))

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any]) -> "RestPolicy":
        """
        Build a policy from the ``rest_timer`` section of the model config.

        Missing keys fall back to the constants in config.py.
        """
        section = cfg.get("rest_timer", {}) or {}
        durations = dict(REST_SECONDS_BY_SET_TYPE)
        for set_type, seconds in (section.get("seconds_by_set_type") or {}).items():
            if set_type not in SET_TYPE_LABELS:
                logger.warning("Ignoring rest duration for unknown set type %r", set_type)
                continue
            durations[set_type] = int(seconds)
        default = int(section.get("default_seconds", DEFAULT_REST_SECONDS))
        return cls(durations=durations, default_seconds=default)


DEFAULT_POLICY = RestPolicy()


def rest_duration_for(set_type: str | None) -> int:
    """Rest seconds for a set type under the default policy."""
    return DEFAULT_POLICY.duration_for(set_type)


class RestTimerNotifier(Protocol):
    """Receives rest timer events (lock screen / live activity surface)."""

    def started(self, exercise_name: str, set_label: str, total_duration_seconds: int) -> None: ...

    def updated(self, remaining_seconds: int, is_paused: bool) -> None: ...

    def ended(self) -> None: ...


class NullNotifier:
    """Notifier that ignores every event."""

    def started(self, exercise_name: str, set_label: str, total_duration_seconds: int) -> None:
        pass

    def updated(self, remaining_seconds: int, is_paused: bool) -> None:
        pass

    def ended(self) -> None:
        pass


class RecordingNotifier:
    """Notifier that keeps every event as a tuple; handy in tests and dry runs."""

    def __init__(self) -> None:
        self.events: list[tuple] = []

    def started(self, exercise_name: str, set_label: str, total_duration_seconds: int) -> None:
        self.events.append(("started", exercise_name, set_label, total_duration_seconds))

    def updated(self, remaining_seconds: int, is_paused: bool) -> None:
        self.events.append(("updated", remaining_seconds, is_paused))

    def ended(self) -> None:
        self.events.append(("ended",))


@dataclass(frozen=True)
class TimerSnapshot:
    """Observable rest timer state."""

    state: TimerState
    remaining_seconds: int
    total_seconds: int
    exercise_name: str
    set_label: str

    @property
    def is_active(self) -> bool:
        return self.state in ("running", "paused")

    @property
    def is_paused(self) -> bool:
        return self.state == "paused"


class RestTimer:
    """Countdown between sets."""

    def __init__(
        self,
        scheduler: Scheduler,
        notifier: RestTimerNotifier | None = None,
        on_complete: Callable[[], None] | None = None,
        policy: RestPolicy = DEFAULT_POLICY,
    ):
        """
        Args:
            scheduler: Source of one-second ticks
            notifier: Mirror for started/updated/ended events
            on_complete: One-shot alert fired when the countdown reaches zero
            policy: Set-type → duration mapping
        """
        self._scheduler = scheduler
        self._notifier: RestTimerNotifier = notifier or NullNotifier()
        self._on_complete = on_complete
        self.policy = policy
        self._handle: IntervalHandle | None = None
        self.state: TimerState = "idle"
        self.remaining_seconds = 0
        self.total_seconds = 0
        self.exercise_name = "Rest"
        self.set_label = ""
        self._listeners: list[Callable[[TimerSnapshot], None]] = []

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return self.state in ("running", "paused")

    @property
    def is_paused(self) -> bool:
        return self.state == "paused"

    def snapshot(self) -> TimerSnapshot:
        return TimerSnapshot(
            state=self.state,
            remaining_seconds=self.remaining_seconds,
            total_seconds=self.total_seconds,
            exercise_name=self.exercise_name,
            set_label=self.set_label,
        )

    def subscribe(self, listener: Callable[[TimerSnapshot], None]) -> Callable[[], None]:
        """Register a listener for snapshots; returns an unsubscribe function."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start(self, duration: int, exercise_name: str = "Rest", set_label: str = "") -> None:
        """Start a countdown, replacing any active one."""
        if duration <= 0:
            raise ValidationError(f"Rest duration must be positive, got {duration}")
        self.stop()
        self.remaining_seconds = duration
        self.total_seconds = duration
        self.exercise_name = exercise_name
        self.set_label = set_label
        self.state = "running"
        self._handle = self._scheduler.every(TICK_SECONDS, self._tick)
        logger.info("Rest timer started: %ss (%s %s)", duration, exercise_name, set_label)
        self._notify("started", exercise_name, set_label, duration)
        self._emit()

    def start_for_set_type(
        self,
        set_type: str | None,
        exercise_name: str = "Rest",
        set_label: str = "",
    ) -> int:
        """Start a countdown sized by the policy; returns the duration used."""
        duration = self.policy.duration_for(set_type)
        self.start(duration, exercise_name=exercise_name, set_label=set_label)
        return duration

    def pause(self) -> None:
        if self.state != "running":
            return
        self.state = "paused"
        self._notify("updated", self.remaining_seconds, True)
        self._emit()

    def resume(self) -> None:
        if self.state != "paused":
            return
        self.state = "running"
        self._notify("updated", self.remaining_seconds, False)
        self._emit()

    def add_time(self, seconds: int) -> None:
        """
        Extend the countdown without changing state.

        From idle this starts a fresh countdown of *seconds*.
        """
        if seconds <= 0:
            raise ValidationError(f"Added rest time must be positive, got {seconds}")
        if not self.is_active:
            self.start(seconds, exercise_name=self.exercise_name, set_label=self.set_label)
            return
        self.remaining_seconds += seconds
        self.total_seconds += seconds
        self._notify("updated", self.remaining_seconds, self.is_paused)
        self._emit()

    def stop(self) -> None:
        """Cancel the countdown and discard remaining time."""
        was_active = self.is_active or self._handle is not None
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self.state = "idle"
        self.remaining_seconds = 0
        self.total_seconds = 0
        if was_active:
            logger.debug("Rest timer stopped")
            self._notify("ended")
            self._emit()

    skip = stop

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _tick(self) -> None:
        if self.state != "running":
            return
        self.remaining_seconds = max(0, self.remaining_seconds - TICK_SECONDS)
        if self.remaining_seconds > 0:
            self._notify("updated", self.remaining_seconds, False)
            self._emit()
            return
        self._complete()

    def _complete(self) -> None:
        self.state = "completed"
        self._emit()
        logger.info("Rest timer completed (%s %s)", self.exercise_name, self.set_label)
        if self._on_complete is not None:
            try:
                self._on_complete()
            except Exception:
                logger.warning("Rest completion alert failed", exc_info=True)
        self.stop()

    def _notify(self, event: str, *args: Any) -> None:
        try:
            getattr(self._notifier, event)(*args)
        except Exception:
            logger.warning("Rest timer notifier failed on %r", event, exc_info=True)

    def _emit(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)
