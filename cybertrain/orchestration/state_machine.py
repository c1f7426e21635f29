"""
State machine for the timed challenge lifecycle.

ready -> active -> (completed | timeout) -> ready
Valid transitions and the command that triggers each are defined here.
"""

from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from cybertrain.kernel.errors import InvalidTransitionError
from cybertrain.logging_config import get_logger

logger = get_logger(__name__)


class ChallengeState(str, Enum):
    READY = "ready"
    ACTIVE = "active"
    COMPLETED = "completed"
    TIMEOUT = "timeout"


# Valid transitions: (from_state, to_state) -> triggering command
_TRANSITIONS: Dict[Tuple[str, str], str] = {
    (ChallengeState.READY.value, ChallengeState.ACTIVE.value): "start",
    (ChallengeState.ACTIVE.value, ChallengeState.COMPLETED.value): "complete",
    (ChallengeState.ACTIVE.value, ChallengeState.TIMEOUT.value): "time_up",
    (ChallengeState.COMPLETED.value, ChallengeState.READY.value): "reset",
    (ChallengeState.TIMEOUT.value, ChallengeState.READY.value): "reset",
    # Abandoning an attempt in progress
    (ChallengeState.ACTIVE.value, ChallengeState.READY.value): "reset",
}

TERMINAL_STATES = frozenset({ChallengeState.COMPLETED, ChallengeState.TIMEOUT})


def valid_transitions(from_state: str) -> List[str]:
    """Return list of valid target states from given state."""
    return sorted({t for (f, t) in _TRANSITIONS if f == from_state})


def can_transition(from_state: str, to_state: str) -> bool:
    return (from_state, to_state) in _TRANSITIONS


TransitionListener = Callable[[ChallengeState, ChallengeState, str], None]


class ChallengeStateMachine:
    """Holds the current challenge state and enforces the transition table."""

    def __init__(
        self,
        challenge_id: str,
        on_transition: Optional[TransitionListener] = None,
    ):
        self.challenge_id = challenge_id
        self.state = ChallengeState.READY
        self.on_transition = on_transition

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def can(self, to_state: ChallengeState) -> bool:
        return can_transition(self.state.value, to_state.value)

    def transition(self, to_state: ChallengeState) -> ChallengeState:
        """Move to to_state or raise InvalidTransitionError."""
        from_state = self.state
        if not can_transition(from_state.value, to_state.value):
            raise InvalidTransitionError(from_state.value, to_state.value)

        command = _TRANSITIONS[(from_state.value, to_state.value)]
        self.state = to_state
        logger.info(
            "Challenge state changed",
            extra={
                "challenge_id": self.challenge_id,
                "from_state": from_state.value,
                "to_state": to_state.value,
                "command": command,
            },
        )
        if self.on_transition:
            self.on_transition(from_state, to_state, command)
        return to_state
