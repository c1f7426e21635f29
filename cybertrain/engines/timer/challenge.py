"""
Timed challenge container.

Wires a CountdownTimer, a TimePressureIndicator and a TimerResultAnimation
around a challenge body, owns the challenge state machine and scores the
attempt when the body reports completion or the timer runs out.
"""

import uuid
from typing import Any, Callable, Dict, List, Optional, Protocol

from pydantic import BaseModel, Field

from cybertrain.config import Settings
from cybertrain.engines.timer.countdown import CountdownTimer
from cybertrain.engines.timer.pressure import TimePressureIndicator
from cybertrain.engines.timer.result_animation import (
    AnimationStage,
    ResultSummary,
    ResultType,
    TimerResultAnimation,
    determine_result_type,
)
from cybertrain.engines.timer.scoring import (
    BonusResult,
    ScoreResult,
    ScoringWeights,
    UrgencyLevel,
    calculate_time_bonus,
    calculate_timer_score,
)
from cybertrain.engines.timer.tick_source import TickSource
from cybertrain.kernel.errors import InvalidTransitionError
from cybertrain.logging_config import get_logger
from cybertrain.orchestration.state_machine import ChallengeState, ChallengeStateMachine

logger = get_logger(__name__)


class UserAction(BaseModel):
    """One learner action, timestamped in seconds since the challenge started."""

    type: str
    timestamp: float
    data: Dict[str, Any] = Field(default_factory=dict)


class ChallengeResult(ScoreResult):
    """Final score data handed to the host."""

    bonus: Optional[BonusResult] = None
    additional_data: Dict[str, Any] = Field(default_factory=dict)
    user_actions: int = 0
    result_type: ResultType


class ChallengeOptions(BaseModel):
    """Timing knobs for one challenge; defaults mirror Settings."""

    auto_start: bool = True
    warning_threshold: float = 30
    critical_threshold: float = 10
    tick_interval_ms: int = 1000
    alert_duration_ms: int = 3000
    reveal_delay_ms: int = 500
    details_delay_ms: int = 1500
    exit_delay_ms: int = 500
    auto_continue_ms: Optional[int] = None

    @classmethod
    def from_settings(cls, settings: Settings, **overrides: Any) -> "ChallengeOptions":
        values: Dict[str, Any] = {
            "warning_threshold": settings.timer_warning_threshold,
            "critical_threshold": settings.timer_critical_threshold,
            "tick_interval_ms": settings.timer_tick_interval_ms,
            "alert_duration_ms": settings.pressure_alert_duration_ms,
            "reveal_delay_ms": settings.result_reveal_delay_ms,
            "details_delay_ms": settings.result_details_delay_ms,
            "exit_delay_ms": settings.result_exit_delay_ms,
            "auto_continue_ms": settings.result_auto_continue_ms,
        }
        values.update(overrides)
        return cls(**values)


class ChallengeSnapshot(BaseModel):
    """Read-only view of a challenge for hosts and the API."""

    id: str
    title: str
    description: str
    state: ChallengeState
    time_limit: int
    time_left: int
    time_display: str
    is_paused: bool
    time_used: float
    urgency_level: UrgencyLevel
    alert_message: str
    alert_visible: bool
    user_actions: List[UserAction]
    result: Optional[ChallengeResult] = None
    show_results: bool = False
    result_stage: Optional[AnimationStage] = None
    result_summary: Optional[ResultSummary] = None


class ChallengeContext:
    """What a challenge body sees of its container."""

    def __init__(self, container: "TimedChallengeContainer"):
        self._container = container

    @property
    def is_active(self) -> bool:
        return self._container.is_active

    @property
    def time_left(self) -> int:
        return self._container.timer.time_left

    @property
    def challenge_state(self) -> ChallengeState:
        return self._container.state

    def report_complete(self, accuracy: float = 1.0, data: Optional[Dict[str, Any]] = None) -> Optional[ChallengeResult]:
        return self._container.complete(accuracy, data)

    def track_action(self, action_type: str, data: Optional[Dict[str, Any]] = None) -> Optional[UserAction]:
        return self._container.track_action(action_type, data)


class ChallengeBody(Protocol):
    """The interactive exercise mounted inside a timed challenge."""

    def start(self, context: ChallengeContext) -> None:
        ...


class TimedChallengeContainer:
    """One timed attempt at a challenge, restartable via reset."""

    def __init__(
        self,
        time_limit: int,
        tick_source: TickSource,
        *,
        title: str = "",
        description: str = "",
        body: Optional[ChallengeBody] = None,
        scoring_weights: Optional[ScoringWeights] = None,
        options: Optional[ChallengeOptions] = None,
        on_complete: Optional[Callable[[ChallengeResult], None]] = None,
        on_time_up: Optional[Callable[[ChallengeResult], None]] = None,
        on_result_dismissed: Optional[Callable[[], None]] = None,
        challenge_id: Optional[str] = None,
    ):
        if time_limit <= 0:
            raise ValueError(f"time_limit must be positive, got {time_limit}")
        self.id = challenge_id or str(uuid.uuid4())
        self.time_limit = time_limit
        self.title = title
        self.description = description
        self.body = body
        self.scoring_weights = scoring_weights or ScoringWeights()
        self.options = options or ChallengeOptions()
        self.on_complete = on_complete
        self.on_time_up = on_time_up
        self.on_result_dismissed = on_result_dismissed
        self._tick_source = tick_source

        self.state_machine = ChallengeStateMachine(self.id)
        self.timer = CountdownTimer(
            time_limit,
            tick_source,
            auto_start=False,
            warning_threshold=self.options.warning_threshold,
            critical_threshold=self.options.critical_threshold,
            tick_interval_ms=self.options.tick_interval_ms,
            on_tick=self._handle_tick,
            on_complete=self._handle_time_up,
        )
        self.pressure = TimePressureIndicator(
            time_limit,
            tick_source,
            alert_duration_ms=self.options.alert_duration_ms,
            on_urgency_change=self._handle_urgency_change,
        )
        self.context = ChallengeContext(self)

        self.actions: List[UserAction] = []
        self.result: Optional[ChallengeResult] = None
        self.animation: Optional[TimerResultAnimation] = None
        self.show_results = False
        self._started_at: Optional[float] = None
        self._ended_at: Optional[float] = None
        self._paused_at: Optional[float] = None
        self._paused_total = 0.0

        if self.options.auto_start:
            self.start_challenge()

    # -- state -------------------------------------------------------------

    @property
    def state(self) -> ChallengeState:
        return self.state_machine.state

    @property
    def is_paused(self) -> bool:
        return self._paused_at is not None

    @property
    def is_active(self) -> bool:
        return self.state == ChallengeState.ACTIVE and not self.is_paused

    def time_used(self) -> float:
        """Seconds spent in the attempt, excluding paused intervals."""
        if self._started_at is None:
            return 0.0
        if self._ended_at is not None:
            end = self._ended_at
        elif self._paused_at is not None:
            end = self._paused_at
        else:
            end = self._tick_source.now()
        return max(0.0, end - self._started_at - self._paused_total)

    # -- host commands -----------------------------------------------------

    def start_challenge(self) -> None:
        self.state_machine.transition(ChallengeState.ACTIVE)
        self._started_at = self._tick_source.now()
        self.timer.start()
        if self.body is not None:
            self.body.start(self.context)

    def pause_challenge(self) -> None:
        """Freeze the countdown without leaving the active state."""
        if self.state != ChallengeState.ACTIVE:
            raise InvalidTransitionError(self.state.value, "paused")
        if self.is_paused:
            return
        self.timer.pause()
        self._paused_at = self._tick_source.now()

    def resume_challenge(self) -> None:
        if self.state != ChallengeState.ACTIVE:
            raise InvalidTransitionError(self.state.value, "resumed")
        if self._paused_at is None:
            return
        self._paused_total += self._tick_source.now() - self._paused_at
        self._paused_at = None
        self.timer.start()

    def reset_challenge(self) -> None:
        """Back to ready with a fresh timer, empty action log and no result."""
        if self.state != ChallengeState.READY:
            self.state_machine.transition(ChallengeState.READY)
        self.timer.reset()
        self.pressure.reset()
        if self.animation is not None:
            self.animation.cancel()
        self.animation = None
        self.show_results = False
        self.actions = []
        self.result = None
        self._started_at = None
        self._ended_at = None
        self._paused_at = None
        self._paused_total = 0.0
        if self.options.auto_start:
            self.start_challenge()

    def continue_result(self) -> None:
        """Acknowledge the result screen."""
        if self.animation is not None:
            self.animation.continue_()

    def close(self) -> None:
        """Cancel every scheduled callback; the challenge keeps its current state."""
        self.timer.pause()
        self.pressure.dismiss_alert()
        if self.animation is not None:
            self.animation.cancel()

    # -- body-facing -------------------------------------------------------

    def track_action(self, action_type: str, data: Optional[Dict[str, Any]] = None) -> Optional[UserAction]:
        if not self.is_active:
            logger.debug(
                "Ignoring action outside active challenge",
                extra={"challenge_id": self.id, "action_type": action_type, "state": self.state.value},
            )
            return None
        action = UserAction(type=action_type, timestamp=self.time_used(), data=data or {})
        self.actions.append(action)
        return action

    def complete(self, accuracy: float = 1.0, additional_data: Optional[Dict[str, Any]] = None) -> Optional[ChallengeResult]:
        """Body-reported success. Ignored unless the attempt is active and running."""
        if not self.is_active:
            logger.info(
                "Ignoring completion outside active challenge",
                extra={"challenge_id": self.id, "state": self.state.value, "paused": self.is_paused},
            )
            return None

        self._ended_at = self._tick_source.now()
        self.timer.pause()
        self.state_machine.transition(ChallengeState.COMPLETED)

        time_used = self.time_used()
        score = calculate_timer_score(
            self.time_limit,
            time_used,
            accuracy=accuracy,
            completed=True,
            weights=self.scoring_weights,
        )
        bonus = calculate_time_bonus(self.time_limit, time_used, score.total_score)
        self.result = ChallengeResult(
            **score.model_dump(),
            bonus=bonus,
            additional_data=additional_data or {},
            user_actions=len(self.actions),
            result_type=determine_result_type(score, bonus),
        )
        logger.info(
            "Challenge completed",
            extra={
                "challenge_id": self.id,
                "total_score": score.total_score,
                "final_score": bonus.final_score,
                "time_used": round(time_used, 2),
            },
        )
        self._show_result()
        if self.on_complete:
            self.on_complete(self.result)
        return self.result

    # -- timer wiring ------------------------------------------------------

    def _handle_tick(self, time_left: int, elapsed: int) -> None:
        self.pressure.update(time_left)

    def _handle_urgency_change(self, level: UrgencyLevel, indicators: Dict[str, Any]) -> None:
        self.track_action("urgency_change", {
            "urgency_level": level.value,
            "time_left": indicators["time_left"],
            "percentage": indicators["percentage"],
        })

    def _handle_time_up(self) -> None:
        if self.state != ChallengeState.ACTIVE:
            return
        self._ended_at = self._tick_source.now()
        self.state_machine.transition(ChallengeState.TIMEOUT)

        time_used = self.time_used() if self._started_at is not None else float(self.time_limit)
        score = calculate_timer_score(
            self.time_limit,
            time_used,
            accuracy=0,
            completed=False,
            weights=self.scoring_weights,
        )
        self.result = ChallengeResult(
            **score.model_dump(),
            user_actions=len(self.actions),
            result_type=determine_result_type(score, None, timed_out=True),
        )
        logger.info(
            "Challenge timed out",
            extra={"challenge_id": self.id, "total_score": score.total_score},
        )
        self._show_result()
        if self.on_time_up:
            self.on_time_up(self.result)

    def _show_result(self) -> None:
        if self.result is None:
            return
        self.animation = TimerResultAnimation(
            self._tick_source,
            self.result.result_type,
            score=self.result,
            bonus=self.result.bonus,
            on_animation_complete=self._handle_animation_complete,
            reveal_delay_ms=self.options.reveal_delay_ms,
            details_delay_ms=self.options.details_delay_ms,
            exit_delay_ms=self.options.exit_delay_ms,
            auto_continue_ms=self.options.auto_continue_ms,
        )
        self.show_results = True
        self.animation.mount()

    def _handle_animation_complete(self) -> None:
        self.show_results = False
        if self.on_result_dismissed:
            self.on_result_dismissed()

    # -- views -------------------------------------------------------------

    def snapshot(self) -> ChallengeSnapshot:
        return ChallengeSnapshot(
            id=self.id,
            title=self.title,
            description=self.description,
            state=self.state,
            time_limit=self.time_limit,
            time_left=self.timer.time_left,
            time_display=self.timer.display(),
            is_paused=self.is_paused,
            time_used=self.time_used(),
            urgency_level=self.pressure.urgency_level,
            alert_message=self.pressure.alert_message if self.pressure.alert_visible else "",
            alert_visible=self.pressure.alert_visible,
            user_actions=list(self.actions),
            result=self.result,
            show_results=self.show_results,
            result_stage=self.animation.stage if self.animation else None,
            result_summary=self.animation.summary() if self.animation else None,
        )
