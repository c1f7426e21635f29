"""
Catalog entities: Badge, Activity, Module, ModuleSequence, ContentSchema.

Modules own their activities. Badges are shared references.
validate() collects every problem instead of stopping at the first.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from cybertrain.kernel.models.base import Entity


class ActivityType(str, Enum):
    QUIZ = "quiz"
    SIMULATION = "simulation"
    ROLEPLAY = "roleplay"
    DRAGDROP = "dragdrop"
    INTERACTIVE = "interactive"
    READING = "reading"


class Difficulty(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class BadgeRarity(str, Enum):
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"


class ScoreTarget(str, Enum):
    MODULE = "module"
    ACTIVITY = "activity"
    CATEGORY = "category"


class Aggregation(str, Enum):
    AVERAGE = "average"
    MIN = "min"
    MAX = "max"
    SUM = "sum"


class ValidationResult(BaseModel):
    """Outcome of a validate() call."""

    is_valid: bool
    errors: List[str] = Field(default_factory=list)


class ScoreRequirement(BaseModel):
    """Minimum score on a module, an activity or a whole category."""

    type: ScoreTarget
    target_id: str
    min_score: float
    aggregation_type: Aggregation = Aggregation.AVERAGE


class Badge(Entity):
    """Reward granted for completing a module."""

    name: str = ""
    description: str = ""
    image_url: str = ""
    category: str = "general"
    points: int = Field(default=0, ge=0)
    rarity: BadgeRarity = BadgeRarity.COMMON
    requirements: List[Any] = Field(default_factory=list)
    is_active: bool = True


class Activity(Entity):
    """A single scored exercise within a module."""

    title: str = ""
    description: str = ""
    type: ActivityType = ActivityType.QUIZ
    content: Dict[str, Any] = Field(default_factory=dict)
    points: int = 0
    time_limit: Optional[int] = None  # seconds, None = untimed
    passing_score: float = 0.7
    max_attempts: int = 3
    is_required: bool = True
    order: int = 0
    prerequisites: List[str] = Field(default_factory=list)  # activity IDs
    score_prerequisites: List[ScoreRequirement] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    def validate(self) -> ValidationResult:  # type: ignore[override]
        errors: List[str] = []
        if not self.title.strip():
            errors.append("Activity title is required")
        if not 0 <= self.passing_score <= 1:
            errors.append("Passing score must be between 0 and 1")
        if self.max_attempts < 1:
            errors.append("Maximum attempts must be at least 1")
        if self.points < 0:
            errors.append("Points cannot be negative")
        if self.time_limit is not None and self.time_limit <= 0:
            errors.append("Time limit must be positive")
        if self.id in self.prerequisites:
            errors.append("Activity cannot be its own prerequisite")
        return ValidationResult(is_valid=not errors, errors=errors)

    def is_available(self, completed_activity_ids: List[str]) -> bool:
        completed = set(completed_activity_ids)
        return all(p in completed for p in self.prerequisites)


class Module(Entity):
    """A training unit made of ordered activities, gated by prerequisite modules."""

    title: str = ""
    description: str = ""
    objectives: List[str] = Field(default_factory=list)
    prerequisites: List[str] = Field(default_factory=list)  # module IDs
    custom_prerequisites: List[str] = Field(default_factory=list)  # rule IDs
    activities: List[Activity] = Field(default_factory=list)
    badge_reward: Optional[Badge] = None
    min_passing_score: float = 0.8
    estimated_duration: int = 60  # minutes
    version: str = "1.0.0"
    is_published: bool = False
    category: str = "general"
    difficulty: Difficulty = Difficulty.BEGINNER
    tags: List[str] = Field(default_factory=list)
    order: int = 0
    metadata: Dict[str, Any] = Field(default_factory=dict)

    def model_post_init(self, __context: Any) -> None:
        object.__setattr__(self, "activities", sorted(self.activities, key=lambda a: a.order))

    def add_activity(self, activity: Activity) -> "Module":
        self.activities = sorted([*self.activities, activity], key=lambda a: a.order)
        return self

    def remove_activity(self, activity_id: str) -> "Module":
        self.activities = [a for a in self.activities if a.id != activity_id]
        return self

    def replace_activity(self, activity: Activity) -> "Module":
        self.activities = sorted(
            [activity if a.id == activity.id else a for a in self.activities],
            key=lambda a: a.order,
        )
        return self

    def get_activity(self, activity_id: str) -> Optional[Activity]:
        return next((a for a in self.activities if a.id == activity_id), None)

    def get_available_activities(self, completed_activity_ids: List[str]) -> List[Activity]:
        return [a for a in self.activities if a.is_available(completed_activity_ids)]

    def get_total_points(self) -> int:
        return sum(a.points for a in self.activities)

    def is_available(self, completed_module_ids: List[str]) -> bool:
        completed = set(completed_module_ids)
        return all(p in completed for p in self.prerequisites)

    def validate(self) -> ValidationResult:  # type: ignore[override]
        errors: List[str] = []
        if not self.title.strip():
            errors.append("Module title is required")
        if not self.description.strip():
            errors.append("Module description is required")
        if not self.activities:
            errors.append("Module must have at least one activity")
        if not 0 <= self.min_passing_score <= 1:
            errors.append("Minimum passing score must be between 0 and 1")
        if self.id in self.prerequisites:
            errors.append("Module cannot be its own prerequisite")

        seen = set()
        for index, activity in enumerate(self.activities, start=1):
            if activity.id in seen:
                errors.append(f"Activity {index}: Duplicate activity id {activity.id}")
            seen.add(activity.id)
            result = activity.validate()
            if not result.is_valid:
                errors.append(f"Activity {index}: {', '.join(result.errors)}")

        return ValidationResult(is_valid=not errors, errors=errors)


class ModuleSequence(Entity):
    """Named learning path over an ordered set of modules."""

    title: str = ""
    description: str = ""
    modules: List[Module] = Field(default_factory=list)
    is_required: bool = True
    category: str = "general"
    metadata: Dict[str, Any] = Field(default_factory=dict)

    def model_post_init(self, __context: Any) -> None:
        object.__setattr__(self, "modules", sorted(self.modules, key=lambda m: m.order))

    @computed_field  # type: ignore[prop-decorator]
    @property
    def estimated_duration(self) -> int:
        """Sum of member module durations, in minutes."""
        return sum(m.estimated_duration for m in self.modules)

    def add_module(self, module: Module) -> "ModuleSequence":
        self.modules = sorted([*self.modules, module], key=lambda m: m.order)
        return self

    def get_next_available_module(self, completed_module_ids: List[str]) -> Optional[Module]:
        completed = set(completed_module_ids)
        return next(
            (m for m in self.modules if m.id not in completed and m.is_available(completed_module_ids)),
            None,
        )


class ContentSchema(Entity):
    """
    Named, versioned content ruleset bound to one activity type.

    Frozen once registered; toggle is_active through with_active().
    """

    model_config = ConfigDict(frozen=True)

    name: str = ""
    version: str = "1.0.0"
    activity_type: str = "generic"
    description: str = ""
    rules: Dict[str, Any] = Field(default_factory=dict)  # JSON Schema of the content model
    is_active: bool = True

    def with_active(self, is_active: bool) -> "ContentSchema":
        return self.model_copy(update={"is_active": is_active})
