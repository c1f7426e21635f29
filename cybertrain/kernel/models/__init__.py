"""
Domain models.
"""

from cybertrain.kernel.models.base import Entity, generate_id, utcnow
from cybertrain.kernel.models.module import (
    Activity,
    ActivityType,
    Aggregation,
    Badge,
    BadgeRarity,
    ContentSchema,
    Difficulty,
    Module,
    ModuleSequence,
    ScoreRequirement,
    ScoreTarget,
    ValidationResult,
)
from cybertrain.kernel.models.progress import (
    EarnedBadge,
    ProgressAck,
    ProgressRecord,
    ProgressStatus,
    ProgressUpdate,
    UserProgress,
)

__all__ = [
    "Entity",
    "generate_id",
    "utcnow",
    "Activity",
    "ActivityType",
    "Aggregation",
    "Badge",
    "BadgeRarity",
    "ContentSchema",
    "Difficulty",
    "Module",
    "ModuleSequence",
    "ScoreRequirement",
    "ScoreTarget",
    "ValidationResult",
    "EarnedBadge",
    "ProgressAck",
    "ProgressRecord",
    "ProgressStatus",
    "ProgressUpdate",
    "UserProgress",
]
