"""Unit tests for VirtualTickSource and CountdownTimer."""

import pytest

from cybertrain.engines.timer.countdown import CountdownTimer, format_time
from cybertrain.engines.timer.scoring import UrgencyLevel
from cybertrain.engines.timer.tick_source import VirtualTickSource


class Recorder:
    """Collects timer callbacks in firing order."""

    def __init__(self):
        self.events = []

    def tick(self, time_left, elapsed):
        self.events.append(("tick", time_left, elapsed))

    def warning(self, time_left):
        self.events.append(("warning", time_left))

    def critical(self, time_left):
        self.events.append(("critical", time_left))

    def complete(self):
        self.events.append(("complete",))

    def named(self, name):
        return [e for e in self.events if e[0] == name]


def make_timer(tick, duration=10, recorder=None, **kwargs):
    recorder = recorder or Recorder()
    timer = CountdownTimer(
        duration,
        tick,
        on_tick=recorder.tick,
        on_warning=recorder.warning,
        on_critical=recorder.critical,
        on_complete=recorder.complete,
        **kwargs,
    )
    return timer, recorder


class TestVirtualTickSource:
    """Tests for the deterministic scheduler."""

    def test_periodic_fires_per_interval(self):
        tick = VirtualTickSource()
        fired = []
        tick.schedule(1000, lambda: fired.append(tick.now()))
        tick.advance(3)
        assert fired == [1, 2, 3]

    def test_once_fires_once(self):
        tick = VirtualTickSource()
        fired = []
        tick.schedule_once(500, lambda: fired.append(tick.now()))
        tick.advance(2)
        assert fired == [0.5]
        assert tick.pending == 0

    def test_cancel_stops_firing(self):
        tick = VirtualTickSource()
        fired = []
        handle = tick.schedule(1000, lambda: fired.append(1))
        tick.advance(2)
        handle.cancel()
        tick.advance(5)
        assert fired == [1, 1]
        assert handle.cancelled is True

    def test_callbacks_fire_in_time_order(self):
        tick = VirtualTickSource()
        fired = []
        tick.schedule_once(2000, lambda: fired.append("late"))
        tick.schedule_once(1000, lambda: fired.append("early"))
        tick.advance(3)
        assert fired == ["early", "late"]

    def test_rejects_non_positive_interval(self):
        with pytest.raises(ValueError):
            VirtualTickSource().schedule(0, lambda: None)


class TestCountdownTimer:
    """Tests for countdown ticking and threshold notifications."""

    def test_threshold_sequence(self, tick):
        """Duration 10: warning at 3, critical at 1, complete at 0, in that order."""
        timer, rec = make_timer(tick, 10)
        tick.advance(10)

        assert rec.named("warning") == [("warning", 3)]
        assert rec.named("critical") == [("critical", 1)]
        assert rec.named("complete") == [("complete",)]
        non_tick = [e for e in rec.events if e[0] != "tick"]
        assert non_tick == [("warning", 3), ("critical", 1), ("complete",)]
        assert timer.time_left == 0
        assert timer.is_running is False

    def test_warning_fires_at_7_seconds(self, tick):
        _, rec = make_timer(tick, 10)
        tick.advance(6)
        assert rec.named("warning") == []
        tick.advance(1)
        assert rec.named("warning") == [("warning", 3)]

    def test_complete_fires_exactly_once(self, tick):
        timer, rec = make_timer(tick, 3)
        tick.advance(30)
        assert len(rec.named("complete")) == 1
        timer.start()
        tick.advance(5)
        assert len(rec.named("complete")) == 1

    def test_ticks_report_remaining_and_elapsed(self, tick):
        _, rec = make_timer(tick, 5)
        tick.advance(2)
        assert rec.named("tick") == [("tick", 4, 1), ("tick", 3, 2)]

    def test_time_left_stays_in_bounds(self, tick):
        timer, _ = make_timer(tick, 5)
        for _ in range(8):
            tick.advance(1)
            assert 0 <= timer.time_left <= timer.duration

    def test_pause_stops_ticks(self, tick):
        timer, rec = make_timer(tick, 10)
        tick.advance(2)
        timer.pause()
        tick.advance(5)
        assert timer.time_left == 8
        assert len(rec.named("tick")) == 2
        timer.start()
        tick.advance(1)
        assert timer.time_left == 7

    def test_no_auto_start(self, tick):
        timer, rec = make_timer(tick, 10, auto_start=False)
        tick.advance(3)
        assert timer.time_left == 10
        assert rec.events == []

    def test_reset_restores_duration_and_latches(self, tick):
        """After reset the thresholds can fire again."""
        timer, rec = make_timer(tick, 10)
        tick.advance(8)
        assert timer.state.has_warned is True
        timer.reset()
        assert timer.time_left == 10
        assert timer.state.has_warned is False
        assert timer.is_running is True
        tick.advance(10)
        assert len(rec.named("warning")) == 2
        assert len(rec.named("complete")) == 1

    def test_reset_inside_callback_stops_current_tick(self, tick):
        """A reset from on_tick prevents the rest of that tick's callbacks."""
        rec = Recorder()
        holder = {}

        def on_tick(time_left, elapsed):
            rec.tick(time_left, elapsed)
            if time_left == 3:
                holder["timer"].reset()

        timer = CountdownTimer(10, tick, on_tick=on_tick, on_warning=rec.warning)
        holder["timer"] = timer
        tick.advance(7)
        assert rec.named("warning") == []
        assert timer.time_left == 10

    def test_add_time_is_capped(self, tick):
        timer, _ = make_timer(tick, 10)
        tick.advance(4)
        timer.add_time(2)
        assert timer.time_left == 8
        timer.add_time(100)
        assert timer.time_left == 10

    def test_add_negative_time_rejected(self, tick):
        timer, _ = make_timer(tick, 10)
        with pytest.raises(ValueError):
            timer.add_time(-1)

    def test_invalid_duration_rejected(self, tick):
        with pytest.raises(ValueError):
            CountdownTimer(0, tick)

    def test_urgency_and_progress(self, tick):
        timer, _ = make_timer(tick, 10)
        tick.advance(7)
        assert timer.progress == 30
        assert timer.urgency == UrgencyLevel.WARNING

    def test_display(self, tick):
        timer, _ = make_timer(tick, 125)
        assert timer.display() == "02:05"
        assert format_time(59) == "00:59"
        assert format_time(-3) == "00:00"
