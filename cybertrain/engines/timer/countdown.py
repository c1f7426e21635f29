"""
Countdown timer state machine.

Ticks once per interval, notifies on warning/critical threshold crossings
(each latched once per run) and fires on_complete exactly once at zero.
Thresholds are percentages of the full duration.
"""

from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict

from cybertrain.engines.timer.scoring import UrgencyLevel, calculate_urgency_level
from cybertrain.engines.timer.tick_source import CancelHandle, TickSource
from cybertrain.logging_config import get_logger

logger = get_logger(__name__)

TickCallback = Callable[[int, int], None]
ThresholdCallback = Callable[[int], None]


class TimerState(BaseModel):
    """Snapshot of a countdown."""

    model_config = ConfigDict(frozen=True)

    time_left: int
    duration: int
    is_running: bool
    has_warned: bool
    has_critical_warned: bool


def format_time(seconds: int) -> str:
    """Render seconds as MM:SS."""
    seconds = max(0, int(seconds))
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


class CountdownTimer:
    """Single countdown driven by a TickSource."""

    def __init__(
        self,
        duration: int,
        tick_source: TickSource,
        *,
        auto_start: bool = True,
        warning_threshold: float = 30,
        critical_threshold: float = 10,
        tick_interval_ms: int = 1000,
        on_tick: Optional[TickCallback] = None,
        on_warning: Optional[ThresholdCallback] = None,
        on_critical: Optional[ThresholdCallback] = None,
        on_complete: Optional[Callable[[], None]] = None,
    ):
        if duration <= 0:
            raise ValueError(f"duration must be positive, got {duration}")
        self._duration = duration
        self._tick_source = tick_source
        self.auto_start = auto_start
        self.warning_threshold = warning_threshold
        self.critical_threshold = critical_threshold
        self.tick_interval_ms = tick_interval_ms
        self.on_tick = on_tick
        self.on_warning = on_warning
        self.on_critical = on_critical
        self.on_complete = on_complete

        self._time_left = duration
        self._is_running = False
        self._has_warned = False
        self._has_critical_warned = False
        self._handle: Optional[CancelHandle] = None
        # Bumped by reset() so a tick already in progress stops firing callbacks
        self._run = 0

        if auto_start:
            self.start()

    @property
    def duration(self) -> int:
        return self._duration

    @property
    def time_left(self) -> int:
        return self._time_left

    @property
    def elapsed(self) -> int:
        return self._duration - self._time_left

    @property
    def is_running(self) -> bool:
        return self._is_running

    @property
    def progress(self) -> float:
        """Remaining time as a percentage of the duration."""
        return self._time_left * 100 / self._duration

    @property
    def urgency(self) -> UrgencyLevel:
        return calculate_urgency_level(self._time_left, self._duration)

    @property
    def state(self) -> TimerState:
        return TimerState(
            time_left=self._time_left,
            duration=self._duration,
            is_running=self._is_running,
            has_warned=self._has_warned,
            has_critical_warned=self._has_critical_warned,
        )

    def display(self) -> str:
        return format_time(self._time_left)

    def start(self) -> None:
        """Begin ticking. No-op when already running or expired."""
        if self._is_running or self._time_left == 0:
            return
        self._is_running = True
        self._handle = self._tick_source.schedule(self.tick_interval_ms, self._tick)

    def pause(self) -> None:
        """Stop ticking, keeping time and threshold latches."""
        self._stop()

    def reset(self) -> None:
        """Restore the full duration, clear latches and re-arm auto start."""
        self._stop()
        self._run += 1
        self._time_left = self._duration
        self._has_warned = False
        self._has_critical_warned = False
        if self.auto_start:
            self.start()

    def add_time(self, seconds: int) -> None:
        """Extend the countdown, capped at the duration. Latches stay set."""
        if seconds < 0:
            raise ValueError("seconds must not be negative")
        self._time_left = min(self._time_left + seconds, self._duration)

    def _stop(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._is_running = False

    def _tick(self) -> None:
        if not self._is_running or self._time_left <= 0:
            return
        run = self._run
        new_time = self._time_left - 1
        self._time_left = new_time

        if self.on_tick:
            self.on_tick(new_time, self._duration - new_time)
        if run != self._run:
            return

        progress = new_time * 100 / self._duration
        if self.critical_threshold < progress <= self.warning_threshold and not self._has_warned:
            self._has_warned = True
            logger.debug("Countdown warning", extra={"time_left": new_time})
            if self.on_warning:
                self.on_warning(new_time)
            if run != self._run:
                return

        if progress <= self.critical_threshold and not self._has_critical_warned:
            self._has_critical_warned = True
            logger.debug("Countdown critical", extra={"time_left": new_time})
            if self.on_critical:
                self.on_critical(new_time)
            if run != self._run:
                return

        if new_time <= 0:
            self._time_left = 0
            self._stop()
            if self.on_complete:
                self.on_complete()
