"""
Tests for the rest timer state machine and the tick scheduler.

Time is driven by TickScheduler.advance(), so every test is
deterministic and can check that no interval outlives the timer.
"""

import pytest

from iron_log.core.errors import ValidationError
from iron_log.core.rest_timer import RecordingNotifier, RestPolicy, RestTimer
from iron_log.core.scheduling import TickScheduler


def _timer(**kwargs) -> tuple[RestTimer, TickScheduler, RecordingNotifier]:
    scheduler = TickScheduler()
    notifier = RecordingNotifier()
    timer = RestTimer(scheduler, notifier=notifier, **kwargs)
    return timer, scheduler, notifier


class TestTickScheduler:

    def test_fires_once_per_interval(self):
        scheduler = TickScheduler()
        ticks = []
        scheduler.every(1, lambda: ticks.append(scheduler.now))
        scheduler.advance(3)
        assert ticks == [1, 2, 3]

    def test_cancel_stops_callbacks(self):
        scheduler = TickScheduler()
        ticks = []
        handle = scheduler.every(1, lambda: ticks.append(1))
        scheduler.advance(2)
        handle.cancel()
        scheduler.advance(5)
        assert len(ticks) == 2
        assert scheduler.active_count == 0

    def test_callback_may_cancel_itself(self):
        scheduler = TickScheduler()
        ticks = []
        handle = None

        def tick():
            ticks.append(1)
            handle.cancel()

        handle = scheduler.every(1, tick)
        scheduler.advance(10)
        assert ticks == [1]

    def test_rejects_non_positive_interval(self):
        with pytest.raises(ValueError):
            TickScheduler().every(0, lambda: None)


class TestRestTimerStates:

    def test_starts_idle(self):
        timer, _, _ = _timer()
        assert timer.state == "idle"
        assert not timer.is_active

    def test_start_runs_countdown(self):
        timer, scheduler, notifier = _timer()
        timer.start(120, "Bench Press", "Set 1 · Working")
        assert timer.state == "running"
        assert timer.remaining_seconds == 120
        assert notifier.events[0] == ("started", "Bench Press", "Set 1 · Working", 120)
        scheduler.advance(5)
        assert timer.remaining_seconds == 115
        assert notifier.events[-1] == ("updated", 115, False)

    def test_pause_freezes_countdown(self):
        timer, scheduler, notifier = _timer()
        timer.start(60)
        scheduler.advance(10)
        timer.pause()
        assert timer.state == "paused"
        assert notifier.events[-1] == ("updated", 50, True)
        scheduler.advance(30)
        assert timer.remaining_seconds == 50
        timer.resume()
        assert timer.state == "running"
        scheduler.advance(10)
        assert timer.remaining_seconds == 40

    def test_pause_and_resume_are_noops_from_wrong_state(self):
        timer, _, notifier = _timer()
        timer.pause()
        timer.resume()
        assert timer.state == "idle"
        assert notifier.events == []

    def test_completion_fires_alert_then_returns_to_idle(self):
        alerts = []
        timer, scheduler, notifier = _timer(on_complete=lambda: alerts.append(timer.state))
        timer.start(3)
        scheduler.advance(3)
        assert alerts == ["completed"]
        assert timer.state == "idle"
        assert timer.remaining_seconds == 0
        assert notifier.events[-1] == ("ended",)
        assert scheduler.active_count == 0

    def test_completion_alert_fires_once(self):
        alerts = []
        timer, scheduler, _ = _timer(on_complete=lambda: alerts.append(1))
        timer.start(2)
        scheduler.advance(20)
        assert alerts == [1]

    def test_failing_alert_does_not_break_timer(self):
        def boom():
            raise RuntimeError("speaker unplugged")

        timer, scheduler, _ = _timer(on_complete=boom)
        timer.start(1)
        scheduler.advance(1)
        assert timer.state == "idle"

    def test_stop_discards_remaining(self):
        timer, scheduler, notifier = _timer()
        timer.start(90)
        scheduler.advance(10)
        timer.skip()
        assert timer.state == "idle"
        assert timer.remaining_seconds == 0
        assert notifier.events[-1] == ("ended",)
        assert scheduler.active_count == 0

    def test_restart_replaces_previous_countdown(self):
        timer, scheduler, notifier = _timer()
        timer.start(90)
        timer.start(60)
        assert scheduler.active_count == 1
        assert ("ended",) in notifier.events
        scheduler.advance(1)
        assert timer.remaining_seconds == 59

    def test_rejects_non_positive_duration(self):
        timer, _, _ = _timer()
        with pytest.raises(ValidationError):
            timer.start(0)


class TestAddTime:

    def test_extends_running_timer(self):
        timer, _, notifier = _timer()
        timer.start(60)
        timer.add_time(30)
        assert timer.state == "running"
        assert timer.remaining_seconds == 90
        assert timer.total_seconds == 90
        assert notifier.events[-1] == ("updated", 90, False)

    def test_extends_paused_timer_without_resuming(self):
        timer, _, notifier = _timer()
        timer.start(60)
        timer.pause()
        timer.add_time(15)
        assert timer.state == "paused"
        assert timer.remaining_seconds == 75
        assert notifier.events[-1] == ("updated", 75, True)

    def test_from_idle_starts_fresh_timer(self):
        timer, scheduler, _ = _timer()
        timer.add_time(30)
        assert timer.state == "running"
        assert timer.remaining_seconds == 30
        assert scheduler.active_count == 1

    def test_rejects_non_positive(self):
        timer, _, _ = _timer()
        with pytest.raises(ValidationError):
            timer.add_time(0)


class TestSetTypeDurations:

    def test_start_for_set_type_uses_policy(self):
        timer, _, _ = _timer(policy=RestPolicy(durations={"working": 150}, default_seconds=45))
        assert timer.start_for_set_type("working") == 150
        assert timer.remaining_seconds == 150
        assert timer.start_for_set_type(None) == 45


class TestNotifierIsolation:

    def test_failing_notifier_does_not_change_state(self):
        class BrokenNotifier:
            def started(self, *args):
                raise RuntimeError("no live activity")

            def updated(self, *args):
                raise RuntimeError("no live activity")

            def ended(self):
                raise RuntimeError("no live activity")

        scheduler = TickScheduler()
        timer = RestTimer(scheduler, notifier=BrokenNotifier())
        timer.start(3)
        scheduler.advance(1)
        assert timer.remaining_seconds == 2
        scheduler.advance(2)
        assert timer.state == "idle"

    def test_snapshots_reach_subscribers(self):
        timer, scheduler, _ = _timer()
        states = []
        unsubscribe = timer.subscribe(lambda snap: states.append(snap.state))
        timer.start(1)
        scheduler.advance(1)
        unsubscribe()
        timer.start(5)
        assert states == ["running", "completed", "idle"]
