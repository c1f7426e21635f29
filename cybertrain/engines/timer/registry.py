"""
Live challenge sessions for the HTTP API.

Each session gets its own tick source so timers bind to whichever event loop
is running when the session is created.
"""

from typing import Any, Callable, Dict, List, Optional

from cybertrain.config import Settings
from cybertrain.engines.timer.challenge import ChallengeOptions, TimedChallengeContainer
from cybertrain.engines.timer.scoring import ScoringWeights
from cybertrain.engines.timer.tick_source import AsyncioTickSource, TickSource
from cybertrain.kernel.errors import UnknownChallengeError
from cybertrain.logging_config import get_logger

logger = get_logger(__name__)


class ChallengeRegistry:
    """Create, look up and dispose of TimedChallengeContainers by ID."""

    def __init__(
        self,
        settings: Settings,
        tick_source_factory: Callable[[], TickSource] = AsyncioTickSource,
    ):
        self.settings = settings
        self._tick_source_factory = tick_source_factory
        self._challenges: Dict[str, TimedChallengeContainer] = {}

    def default_weights(self) -> ScoringWeights:
        return ScoringWeights(
            completion=self.settings.scoring_weight_completion,
            speed=self.settings.scoring_weight_speed,
            accuracy=self.settings.scoring_weight_accuracy,
        )

    def create(
        self,
        time_limit: int,
        *,
        title: str = "",
        description: str = "",
        scoring_weights: Optional[ScoringWeights] = None,
        **option_overrides: Any,
    ) -> TimedChallengeContainer:
        options = ChallengeOptions.from_settings(self.settings, **option_overrides)
        container = TimedChallengeContainer(
            time_limit,
            self._tick_source_factory(),
            title=title,
            description=description,
            scoring_weights=scoring_weights or self.default_weights(),
            options=options,
        )
        self._challenges[container.id] = container
        logger.info(
            "Challenge created",
            extra={"challenge_id": container.id, "time_limit": time_limit, "auto_start": options.auto_start},
        )
        return container

    def get(self, challenge_id: str) -> TimedChallengeContainer:
        container = self._challenges.get(challenge_id)
        if container is None:
            raise UnknownChallengeError(challenge_id)
        return container

    def remove(self, challenge_id: str) -> bool:
        container = self._challenges.pop(challenge_id, None)
        if container is None:
            return False
        container.close()
        logger.info("Challenge removed", extra={"challenge_id": challenge_id, "state": container.state.value})
        return True

    def list_challenges(self) -> List[TimedChallengeContainer]:
        return list(self._challenges.values())

    def close_all(self) -> None:
        for container in self._challenges.values():
            container.close()
        self._challenges.clear()

    def __len__(self) -> int:
        return len(self._challenges)
