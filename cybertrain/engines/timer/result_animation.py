"""
Staged result reveal shown after a challenge ends.

hidden -> visible (after reveal delay) -> details (after details delay)
-> exiting (on continue) -> complete (after exit delay, fires on_animation_complete once)
"""

from enum import Enum
from typing import Callable, Dict, Optional

from pydantic import BaseModel

from cybertrain.engines.timer.scoring import BonusResult, ScoreResult
from cybertrain.engines.timer.tick_source import CancelHandle, TickSource

SUCCESS_THRESHOLD = 80


class ResultType(str, Enum):
    EXCELLENT = "excellent"
    SUCCESS = "success"
    FAILURE = "failure"
    TIMEOUT = "timeout"


class AnimationStage(str, Enum):
    HIDDEN = "hidden"
    VISIBLE = "visible"
    DETAILS = "details"
    EXITING = "exiting"
    COMPLETE = "complete"


RESULT_COPY: Dict[ResultType, Dict[str, str]] = {
    ResultType.EXCELLENT: {
        "title": "Excellent!",
        "message": "Outstanding performance! You completed the challenge with exceptional speed and accuracy.",
    },
    ResultType.SUCCESS: {
        "title": "Success!",
        "message": "You successfully completed the challenge within the time limit.",
    },
    ResultType.FAILURE: {
        "title": "Not Quite Right",
        "message": "You completed the challenge, but there were some errors in your approach.",
    },
    ResultType.TIMEOUT: {
        "title": "Time's Up!",
        "message": "You ran out of time before completing the challenge.",
    },
}


def determine_result_type(
    score: Optional[ScoreResult],
    bonus: Optional[BonusResult] = None,
    timed_out: bool = False,
) -> ResultType:
    """Pick the headline for a finished attempt; a time bonus outranks everything."""
    if score is None:
        return ResultType.SUCCESS
    if bonus is not None and bonus.had_bonus:
        return ResultType.EXCELLENT
    if timed_out:
        return ResultType.TIMEOUT
    if score.total_score >= SUCCESS_THRESHOLD:
        return ResultType.SUCCESS
    return ResultType.FAILURE


class ResultSummary(BaseModel):
    """What the result screen shows."""

    result_type: ResultType
    title: str
    message: str
    total_score: int = 0
    completion_score: int = 0
    speed_score: int = 0
    accuracy_score: int = 0
    time_used: float = 0.0
    time_limit: int = 0
    bonus_points: int = 0
    bonus_percentage: int = 0
    final_score: int = 0


class TimerResultAnimation:
    """Timed reveal of a challenge result."""

    def __init__(
        self,
        tick_source: TickSource,
        result_type: ResultType,
        score: Optional[ScoreResult] = None,
        bonus: Optional[BonusResult] = None,
        *,
        on_animation_complete: Optional[Callable[[], None]] = None,
        reveal_delay_ms: int = 500,
        details_delay_ms: int = 1500,
        exit_delay_ms: int = 500,
        auto_continue_ms: Optional[int] = None,
    ):
        self._tick_source = tick_source
        self.result_type = result_type
        self.score = score
        self.bonus = bonus
        self.on_animation_complete = on_animation_complete
        self.reveal_delay_ms = reveal_delay_ms
        self.details_delay_ms = details_delay_ms
        self.exit_delay_ms = exit_delay_ms
        self.auto_continue_ms = auto_continue_ms

        self.stage = AnimationStage.HIDDEN
        self._pending: Optional[CancelHandle] = None
        self._completed = False

    @property
    def visible(self) -> bool:
        return self.stage in (AnimationStage.VISIBLE, AnimationStage.DETAILS)

    @property
    def show_details(self) -> bool:
        return self.stage == AnimationStage.DETAILS

    def mount(self) -> None:
        """Start the reveal sequence."""
        if self.stage != AnimationStage.HIDDEN or self._pending is not None:
            return
        self._pending = self._tick_source.schedule_once(self.reveal_delay_ms, self._reveal)

    def continue_(self) -> None:
        """Acknowledge the result; completion fires after the exit delay."""
        if self.stage not in (AnimationStage.VISIBLE, AnimationStage.DETAILS):
            return
        self._cancel_pending()
        self.stage = AnimationStage.EXITING
        self._pending = self._tick_source.schedule_once(self.exit_delay_ms, self._finish)

    def cancel(self) -> None:
        """Drop any pending stage without firing completion."""
        self._cancel_pending()

    def summary(self) -> ResultSummary:
        copy = RESULT_COPY[self.result_type]
        data: Dict[str, object] = {}
        if self.score is not None:
            data.update(
                total_score=self.score.total_score,
                completion_score=self.score.completion_score,
                speed_score=self.score.speed_score,
                accuracy_score=self.score.accuracy_score,
                time_used=self.score.time_used,
                time_limit=self.score.time_limit,
                final_score=self.score.total_score,
            )
        if self.bonus is not None:
            data.update(
                bonus_points=self.bonus.bonus_points,
                bonus_percentage=self.bonus.bonus_percentage,
                final_score=self.bonus.final_score,
            )
        return ResultSummary(result_type=self.result_type, title=copy["title"], message=copy["message"], **data)

    def _reveal(self) -> None:
        self.stage = AnimationStage.VISIBLE
        self._pending = self._tick_source.schedule_once(self.details_delay_ms, self._show_details)

    def _show_details(self) -> None:
        self.stage = AnimationStage.DETAILS
        self._pending = None
        if self.auto_continue_ms is not None:
            self._pending = self._tick_source.schedule_once(self.auto_continue_ms, self.continue_)

    def _finish(self) -> None:
        self._pending = None
        self.stage = AnimationStage.COMPLETE
        if self._completed:
            return
        self._completed = True
        if self.on_animation_complete:
            self.on_animation_complete()

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
