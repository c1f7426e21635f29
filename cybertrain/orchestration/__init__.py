"""Lifecycle state machines."""

from cybertrain.orchestration.state_machine import (
    ChallengeState,
    ChallengeStateMachine,
    can_transition,
    valid_transitions,
)

__all__ = [
    "ChallengeState",
    "ChallengeStateMachine",
    "can_transition",
    "valid_transitions",
]
