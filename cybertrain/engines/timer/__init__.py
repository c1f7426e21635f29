"""
Timed challenge engine.

Components:
- scoring: completion/speed/accuracy blend, time bonus, urgency levels
- tick_source: virtual and asyncio schedulers
- countdown: CountdownTimer state machine
- pressure: TimePressureIndicator urgency transitions
- result_animation: staged result reveal
- challenge: TimedChallengeContainer orchestrating all of the above
- registry: live challenge sessions served by the API
"""

from cybertrain.engines.timer.challenge import (
    ChallengeBody,
    ChallengeContext,
    ChallengeOptions,
    ChallengeResult,
    ChallengeSnapshot,
    TimedChallengeContainer,
    UserAction,
)
from cybertrain.engines.timer.countdown import CountdownTimer, TimerState, format_time
from cybertrain.engines.timer.pressure import TimePressureIndicator
from cybertrain.engines.timer.registry import ChallengeRegistry
from cybertrain.engines.timer.result_animation import (
    AnimationStage,
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
    calculate_urgency_level,
    get_time_pressure_indicators,
)
from cybertrain.engines.timer.tick_source import (
    AsyncioTickSource,
    CancelHandle,
    TickSource,
    VirtualTickSource,
)

__all__ = [
    "ChallengeBody",
    "ChallengeContext",
    "ChallengeOptions",
    "ChallengeResult",
    "ChallengeSnapshot",
    "TimedChallengeContainer",
    "UserAction",
    "CountdownTimer",
    "TimerState",
    "format_time",
    "TimePressureIndicator",
    "ChallengeRegistry",
    "AnimationStage",
    "ResultType",
    "TimerResultAnimation",
    "determine_result_type",
    "BonusResult",
    "ScoreResult",
    "ScoringWeights",
    "UrgencyLevel",
    "calculate_time_bonus",
    "calculate_timer_score",
    "calculate_urgency_level",
    "get_time_pressure_indicators",
    "AsyncioTickSource",
    "CancelHandle",
    "TickSource",
    "VirtualTickSource",
]
