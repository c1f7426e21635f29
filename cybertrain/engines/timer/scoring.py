"""
Timer scoring - pure functions over challenge timing.

Score breakdown (each component 0-100):
- Completion: 100 when finished, otherwise the share of time used, capped at 50
- Speed: 100 within half the limit, sliding down to 70 at the full limit
- Accuracy: child-reported accuracy as a percentage

Bonus: up to 30% extra for finishing within 70% of the limit.
"""

import math
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class UrgencyLevel(str, Enum):
    """Remaining-time urgency classification."""

    NORMAL = "normal"
    WARNING = "warning"
    CRITICAL = "critical"


WARNING_PERCENTAGE = 30
CRITICAL_PERCENTAGE = 10

SPEED_FULL_MARKS_RATIO = 0.5
SPEED_FLOOR = 70
BONUS_CUTOFF_RATIO = 0.7
BONUS_MAX_RATIO = 0.4
BONUS_MAX_PERCENTAGE = 30


def _round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (builtin round() is banker's rounding)."""
    return int(math.floor(value + 0.5))


def _require_positive(name: str, value: float) -> None:
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")


class ScoringWeights(BaseModel):
    """Relative weights of the three score components."""

    model_config = ConfigDict(frozen=True)

    completion: float = Field(default=0.4, ge=0)
    speed: float = Field(default=0.4, ge=0)
    accuracy: float = Field(default=0.2, ge=0)

    def normalized(self) -> "ScoringWeights":
        total = self.completion + self.speed + self.accuracy
        if total <= 0:
            raise ValueError("At least one scoring weight must be positive")
        return ScoringWeights(
            completion=self.completion / total,
            speed=self.speed / total,
            accuracy=self.accuracy / total,
        )


class ScoreResult(BaseModel):
    """Score breakdown for one challenge attempt."""

    model_config = ConfigDict(frozen=True)

    completion_score: int
    speed_score: int
    accuracy_score: int
    total_score: int
    time_used: float
    time_limit: int
    completed: bool
    weights: ScoringWeights


class BonusResult(BaseModel):
    """Time bonus earned on top of a completed attempt's total score."""

    model_config = ConfigDict(frozen=True)

    had_bonus: bool
    bonus_points: int
    bonus_percentage: int
    final_score: int


class TimePressureIndicators(BaseModel):
    """Display hints derived from the remaining time."""

    urgency_level: UrgencyLevel
    percentage: float
    should_alert: bool
    should_flash: bool


def calculate_timer_score(
    time_limit: int,
    time_used: float,
    accuracy: float = 1.0,
    completed: bool = True,
    weights: Optional[ScoringWeights] = None,
) -> ScoreResult:
    """
    Blend completion, speed and accuracy into a 0-100 score.

    Raises:
        ValueError: time_limit is not positive or time_used is negative.
    """
    _require_positive("time_limit", time_limit)
    if time_used < 0:
        raise ValueError(f"time_used must not be negative, got {time_used}")

    norm = (weights or ScoringWeights()).normalized()
    ratio = time_used / time_limit
    accuracy = min(1.0, max(0.0, accuracy))

    if completed:
        completion_score = 100
        if ratio <= SPEED_FULL_MARKS_RATIO:
            speed_score = 100
        elif ratio >= 1:
            speed_score = SPEED_FLOOR
        else:
            speed_score = _round_half_up(100 - (ratio - SPEED_FULL_MARKS_RATIO) * 60)
    else:
        completion_score = min(50, _round_half_up(ratio * 100))
        speed_score = max(0, _round_half_up(50 - ratio * 50))

    accuracy_score = _round_half_up(accuracy * 100)
    total = _round_half_up(
        completion_score * norm.completion
        + speed_score * norm.speed
        + accuracy_score * norm.accuracy
    )

    return ScoreResult(
        completion_score=completion_score,
        speed_score=speed_score,
        accuracy_score=accuracy_score,
        total_score=min(100, max(0, total)),
        time_used=time_used,
        time_limit=time_limit,
        completed=completed,
        weights=norm,
    )


def calculate_time_bonus(time_limit: int, time_used: float, base_score: int) -> BonusResult:
    """Bonus for fast finishes: 30% at or under 40% of the limit, tapering to 0 at 70%."""
    _require_positive("time_limit", time_limit)
    ratio = time_used / time_limit

    if ratio > BONUS_CUTOFF_RATIO:
        return BonusResult(had_bonus=False, bonus_points=0, bonus_percentage=0, final_score=base_score)

    if ratio <= BONUS_MAX_RATIO:
        percentage = BONUS_MAX_PERCENTAGE
    else:
        percentage = _round_half_up((BONUS_CUTOFF_RATIO - ratio) * 100)

    points = _round_half_up(base_score * percentage / 100)
    return BonusResult(
        had_bonus=True,
        bonus_points=points,
        bonus_percentage=percentage,
        final_score=base_score + points,
    )


def _remaining_percentage(time_left: float, total_time: float) -> float:
    _require_positive("total_time", total_time)
    return time_left * 100 / total_time


def calculate_urgency_level(time_left: float, total_time: float) -> UrgencyLevel:
    """Classify remaining time: <=10% critical, <=30% warning, otherwise normal."""
    percentage = _remaining_percentage(time_left, total_time)
    if percentage <= CRITICAL_PERCENTAGE:
        return UrgencyLevel.CRITICAL
    if percentage <= WARNING_PERCENTAGE:
        return UrgencyLevel.WARNING
    return UrgencyLevel.NORMAL


def get_time_pressure_indicators(time_left: float, total_time: float) -> TimePressureIndicators:
    level = calculate_urgency_level(time_left, total_time)
    percentage = min(100.0, max(0.0, _remaining_percentage(time_left, total_time)))
    return TimePressureIndicators(
        urgency_level=level,
        percentage=percentage,
        should_alert=level != UrgencyLevel.NORMAL,
        should_flash=level == UrgencyLevel.CRITICAL,
    )
