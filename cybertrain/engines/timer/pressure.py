"""
Time pressure indicator - urgency level derived from remaining time.

Only level *transitions* are reported; the same level on consecutive ticks is silent.
"""

from typing import Any, Callable, Dict, Optional

from cybertrain.engines.timer.scoring import UrgencyLevel, get_time_pressure_indicators
from cybertrain.engines.timer.tick_source import CancelHandle, TickSource
from cybertrain.logging_config import get_logger

logger = get_logger(__name__)

UrgencyCallback = Callable[[UrgencyLevel, Dict[str, Any]], None]

ALERT_MESSAGES: Dict[UrgencyLevel, str] = {
    UrgencyLevel.NORMAL: "",
    UrgencyLevel.WARNING: "Time is running low! Speed up your actions.",
    UrgencyLevel.CRITICAL: "CRITICAL: Only seconds remaining!",
}


class TimePressureIndicator:
    """Tracks urgency for a (time_left, total_time) pair and raises alerts on change."""

    def __init__(
        self,
        total_time: int,
        tick_source: TickSource,
        *,
        alert_duration_ms: int = 3000,
        show_alerts: bool = True,
        on_urgency_change: Optional[UrgencyCallback] = None,
    ):
        if total_time <= 0:
            raise ValueError(f"total_time must be positive, got {total_time}")
        self.total_time = total_time
        self.time_left = total_time
        self._tick_source = tick_source
        self.alert_duration_ms = alert_duration_ms
        self.show_alerts = show_alerts
        self.on_urgency_change = on_urgency_change

        self.urgency_level = UrgencyLevel.NORMAL
        self.alert_message = ""
        self.alert_visible = False
        self._dismiss: Optional[CancelHandle] = None

    @property
    def percentage(self) -> float:
        """Remaining time as a percentage, clamped to 0-100."""
        return min(100.0, max(0.0, self.time_left * 100 / self.total_time))

    def update(self, time_left: int, total_time: Optional[int] = None) -> UrgencyLevel:
        """Feed the latest remaining time; returns the current urgency level."""
        if total_time is not None:
            if total_time <= 0:
                raise ValueError(f"total_time must be positive, got {total_time}")
            self.total_time = total_time
        self.time_left = time_left

        indicators = get_time_pressure_indicators(time_left, self.total_time)
        level = indicators.urgency_level
        if level == self.urgency_level:
            return level

        self.urgency_level = level
        logger.debug(
            "Urgency changed",
            extra={"urgency_level": level.value, "time_left": time_left},
        )
        if self.show_alerts:
            self._raise_alert(ALERT_MESSAGES[level])

        if self.on_urgency_change:
            self.on_urgency_change(level, {
                "time_left": time_left,
                "total_time": self.total_time,
                "percentage": indicators.percentage,
            })
        return level

    def dismiss_alert(self) -> None:
        self._cancel_dismiss()
        self.alert_visible = False

    def reset(self) -> None:
        """Back to normal urgency with no pending alert."""
        self.dismiss_alert()
        self.alert_message = ""
        self.urgency_level = UrgencyLevel.NORMAL
        self.time_left = self.total_time

    def _raise_alert(self, message: str) -> None:
        self._cancel_dismiss()
        self.alert_message = message
        self.alert_visible = bool(message)
        if message:
            self._dismiss = self._tick_source.schedule_once(self.alert_duration_ms, self._auto_dismiss)

    def _auto_dismiss(self) -> None:
        self._dismiss = None
        self.alert_visible = False

    def _cancel_dismiss(self) -> None:
        if self._dismiss is not None:
            self._dismiss.cancel()
            self._dismiss = None
