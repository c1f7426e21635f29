"""
Prerequisite checker.

Evaluates whether a learner's progress satisfies the prerequisites of a module
or activity: completion of prerequisite modules/activities, score thresholds,
and pluggable custom rules (time spent, badges, streaks, or a registered
validator callable).

The checker only reads UserProgress; it never mutates it.
"""

from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, Field

from cybertrain.kernel.models.module import Activity, Aggregation, Module, ScoreRequirement, ScoreTarget
from cybertrain.kernel.models.progress import ProgressRecord, ProgressStatus, UserProgress
from cybertrain.logging_config import get_logger

logger = get_logger(__name__)


class RuleType(str, Enum):
    TIME_SPENT = "time_spent"
    BADGE_EARNED = "badge_earned"
    STREAK = "streak"
    CUSTOM = "custom"


class DetailType(str, Enum):
    MODULE_COMPLETION = "module_completion"
    ACTIVITY_COMPLETION = "activity_completion"
    SCORE_REQUIREMENT = "score_requirement"
    CUSTOM_RULE = "custom_rule"


class NextStepAction(str, Enum):
    COMPLETE_MODULE = "complete_module"
    COMPLETE_ACTIVITY = "complete_activity"
    IMPROVE_SCORE = "improve_score"
    CUSTOM = "custom"


class PrerequisiteRule(BaseModel):
    """
    A named custom prerequisite.

    conditions by type:
        time_spent:   min_time_spent (s), target_type ("module"|"activity"), target_id
        badge_earned: badge_ids, min_count (default 1)
        streak:       min_streak, streak_type (default "daily")
        custom:       anything the registered validator understands
    """

    id: str
    type: str = RuleType.CUSTOM.value
    conditions: Dict[str, Any] = Field(default_factory=dict)
    description: str = ""
    is_active: bool = True


class RequirementCheck(BaseModel):
    """Outcome of one check. data carries rule-specific figures."""

    is_met: bool
    reason: str
    progress: Optional[ProgressRecord] = None
    data: Dict[str, Any] = Field(default_factory=dict)


class PrerequisiteDetail(RequirementCheck):
    type: DetailType
    prerequisite_id: Optional[str] = None
    rule_id: Optional[str] = None
    requirement: Optional[ScoreRequirement] = None


class PrerequisiteResult(BaseModel):
    is_met: bool
    reason: str
    details: List[PrerequisiteDetail] = Field(default_factory=list)
    module_id: Optional[str] = None
    activity_id: Optional[str] = None


class PrerequisiteSummary(BaseModel):
    total: int
    met: int
    unmet: int


class NextStep(BaseModel):
    action: NextStepAction
    target_id: Optional[str] = None
    description: str


class PrerequisiteReport(PrerequisiteResult):
    summary: PrerequisiteSummary
    next_steps: List[NextStep] = Field(default_factory=list)


# (progress, context, rule) -> RequirementCheck or {"is_met", "reason", "details"}
CustomValidator = Callable[
    [UserProgress, Mapping[str, Any], PrerequisiteRule],
    Union[RequirementCheck, Mapping[str, Any]],
]
ModuleLookup = Callable[[str], Optional[Module]]
ActivityLookup = Callable[[str], Optional[Activity]]


def _fmt(value: float) -> str:
    # 0.85 -> "0.85", 1.0 -> "1"
    return f"{value:g}"


class PrerequisiteChecker:
    """Stateless apart from its rule and validator registries."""

    def __init__(
        self,
        module_lookup: Optional[ModuleLookup] = None,
        activity_lookup: Optional[ActivityLookup] = None,
        *,
        default_module_passing_score: float = 0.8,
        default_activity_passing_score: float = 0.7,
    ):
        self._module_lookup = module_lookup or (lambda _id: None)
        self._activity_lookup = activity_lookup or (lambda _id: None)
        self.default_module_passing_score = default_module_passing_score
        self.default_activity_passing_score = default_activity_passing_score
        self._rules: Dict[str, PrerequisiteRule] = {}
        self._custom_validators: Dict[str, CustomValidator] = {}

    # ------------------------------------------------------------------
    # Registries
    # ------------------------------------------------------------------

    def register_rule(self, rule: PrerequisiteRule) -> None:
        self._rules[rule.id] = rule

    def get_rule(self, rule_id: str) -> Optional[PrerequisiteRule]:
        return self._rules.get(rule_id)

    def register_custom_validator(self, rule_id: str, validator: CustomValidator) -> None:
        self._custom_validators[rule_id] = validator

    # ------------------------------------------------------------------
    # Aggregate checks
    # ------------------------------------------------------------------

    def check_module_prerequisites(
        self,
        module_id: str,
        progress: UserProgress,
        module: Optional[Module] = None,
    ) -> PrerequisiteResult:
        module = module or self._module_lookup(module_id)
        if module is None:
            return PrerequisiteResult(is_met=False, reason="Module not found", module_id=module_id)

        details: List[PrerequisiteDetail] = []
        for prereq_id in module.prerequisites:
            check = self.check_module_completion(prereq_id, progress)
            details.append(
                PrerequisiteDetail(
                    type=DetailType.MODULE_COMPLETION,
                    prerequisite_id=prereq_id,
                    **check.model_dump(),
                )
            )
        for rule_id in module.custom_prerequisites:
            check = self.check_custom_rule(rule_id, progress, {"module_id": module_id})
            details.append(
                PrerequisiteDetail(type=DetailType.CUSTOM_RULE, rule_id=rule_id, **check.model_dump())
            )

        return self._summarize(details, module_id=module_id)

    def check_activity_prerequisites(
        self,
        activity_id: str,
        progress: UserProgress,
        activity: Optional[Activity] = None,
    ) -> PrerequisiteResult:
        activity = activity or self._activity_lookup(activity_id)
        if activity is None:
            return PrerequisiteResult(is_met=False, reason="Activity not found", activity_id=activity_id)

        details: List[PrerequisiteDetail] = []
        for prereq_id in activity.prerequisites:
            check = self.check_activity_completion(prereq_id, progress)
            details.append(
                PrerequisiteDetail(
                    type=DetailType.ACTIVITY_COMPLETION,
                    prerequisite_id=prereq_id,
                    **check.model_dump(),
                )
            )
        for requirement in activity.score_prerequisites:
            check = self.check_score_requirement(requirement, progress)
            details.append(
                PrerequisiteDetail(
                    type=DetailType.SCORE_REQUIREMENT,
                    requirement=requirement,
                    **check.model_dump(),
                )
            )

        return self._summarize(details, activity_id=activity_id)

    @staticmethod
    def _summarize(details: List[PrerequisiteDetail], **ids: str) -> PrerequisiteResult:
        all_met = all(d.is_met for d in details)
        return PrerequisiteResult(
            is_met=all_met,
            reason="All prerequisites met" if all_met else "Some prerequisites not met",
            details=details,
            **ids,
        )

    # ------------------------------------------------------------------
    # Single checks
    # ------------------------------------------------------------------

    def check_module_completion(self, module_id: str, progress: UserProgress) -> RequirementCheck:
        record = progress.modules.get(module_id)
        if record is None:
            return RequirementCheck(is_met=False, reason="Module not started")

        if record.status == ProgressStatus.COMPLETED:
            threshold = self._module_threshold(module_id, record)
            if record.score >= threshold:
                return RequirementCheck(
                    is_met=True, reason="Module completed with passing score", progress=record
                )
            return RequirementCheck(
                is_met=False,
                reason="Module completed but score too low",
                progress=record,
                data={"actual_score": record.score, "required_score": threshold},
            )
        return RequirementCheck(is_met=False, reason="Module not completed", progress=record)

    def check_activity_completion(self, activity_id: str, progress: UserProgress) -> RequirementCheck:
        record = progress.activities.get(activity_id)
        if record is None:
            return RequirementCheck(is_met=False, reason="Activity not started")

        if record.status == ProgressStatus.COMPLETED:
            threshold = self._activity_threshold(activity_id, record)
            if record.score >= threshold:
                return RequirementCheck(
                    is_met=True, reason="Activity completed with passing score", progress=record
                )
            return RequirementCheck(
                is_met=False,
                reason="Activity completed but score too low",
                progress=record,
                data={"actual_score": record.score, "required_score": threshold},
            )
        return RequirementCheck(is_met=False, reason="Activity not completed", progress=record)

    def _module_threshold(self, module_id: str, record: ProgressRecord) -> float:
        # record override, then catalog value, then configured default
        if record.min_passing_score is not None:
            return record.min_passing_score
        module = self._module_lookup(module_id)
        if module is not None:
            return module.min_passing_score
        return self.default_module_passing_score

    def _activity_threshold(self, activity_id: str, record: ProgressRecord) -> float:
        if record.passing_score is not None:
            return record.passing_score
        activity = self._activity_lookup(activity_id)
        if activity is not None:
            return activity.passing_score
        return self.default_activity_passing_score

    def check_score_requirement(self, requirement: ScoreRequirement, progress: UserProgress) -> RequirementCheck:
        required = requirement.min_score

        if requirement.type == ScoreTarget.MODULE:
            record = progress.modules.get(requirement.target_id)
            actual = record.score if record is not None else 0.0
            label = "Module score"
        elif requirement.type == ScoreTarget.ACTIVITY:
            record = progress.activities.get(requirement.target_id)
            actual = record.score if record is not None else 0.0
            label = "Activity score"
        else:
            actual = self.calculate_category_score(
                requirement.target_id, progress, requirement.aggregation_type
            )
            label = f"Category {requirement.aggregation_type.value} score"

        return RequirementCheck(
            is_met=actual >= required,
            reason=f"{label}: {_fmt(actual)}, required: {_fmt(required)}",
            data={"actual_score": actual, "required_score": required},
        )

    def check_custom_rule(
        self,
        rule_id: str,
        progress: UserProgress,
        context: Optional[Mapping[str, Any]] = None,
    ) -> RequirementCheck:
        """
        Evaluate a registered rule.

        Missing or inactive rules are treated as met. A registered validator
        takes precedence over the built-in rule types; if it raises, the rule
        is not met and the exception is logged. So is a validator whose result
        is neither a RequirementCheck nor a mapping of its fields.
        """
        rule = self._rules.get(rule_id)
        if rule is None or not rule.is_active:
            return RequirementCheck(is_met=True, reason="Rule not found or inactive")

        validator = self._custom_validators.get(rule_id)
        if validator is not None:
            try:
                return self._coerce_outcome(validator(progress, context or {}, rule))
            except Exception as e:
                logger.exception("Custom prerequisite validator failed", extra={"rule_id": rule_id})
                return RequirementCheck(is_met=False, reason=f"Custom validator error: {e}")

        if rule.type == RuleType.TIME_SPENT.value:
            return self._check_time_spent(rule, progress)
        if rule.type == RuleType.BADGE_EARNED.value:
            return self._check_badges(rule, progress)
        if rule.type == RuleType.STREAK.value:
            return self._check_streak(rule, progress)
        return RequirementCheck(is_met=True, reason="Unknown rule type, defaulting to met")

    @staticmethod
    def _coerce_outcome(outcome: Any) -> RequirementCheck:
        if isinstance(outcome, RequirementCheck):
            return outcome
        if not isinstance(outcome, Mapping):
            raise TypeError(f"expected a mapping or RequirementCheck, got {type(outcome).__name__}")
        details = outcome.get("details") or {}
        if not isinstance(details, Mapping):
            raise TypeError(f"details must be a mapping, got {type(details).__name__}")
        return RequirementCheck(
            is_met=bool(outcome.get("is_met", False)),
            reason=str(outcome.get("reason", "Custom validation")),
            data=dict(details),
        )

    @staticmethod
    def _check_time_spent(rule: PrerequisiteRule, progress: UserProgress) -> RequirementCheck:
        conditions = rule.conditions
        required = float(conditions.get("min_time_spent", 0))
        target_id = conditions.get("target_id")
        if conditions.get("target_type") == "activity":
            record = progress.activities.get(target_id)
        else:
            record = progress.modules.get(target_id)
        spent = record.time_spent if record is not None else 0.0
        return RequirementCheck(
            is_met=spent >= required,
            reason=f"Time spent: {_fmt(spent)}s, required: {_fmt(required)}s",
            data={"time_spent": spent, "required": required},
        )

    @staticmethod
    def _check_badges(rule: PrerequisiteRule, progress: UserProgress) -> RequirementCheck:
        required_ids = list(rule.conditions.get("badge_ids", []))
        min_count = int(rule.conditions.get("min_count", 1))
        earned_ids = {b.id for b in progress.badges}
        earned = sum(1 for bid in required_ids if bid in earned_ids)
        return RequirementCheck(
            is_met=earned >= min_count,
            reason=f"Earned {earned} of required badges, need {min_count}",
            data={"earned": earned, "required": min_count},
        )

    @staticmethod
    def _check_streak(rule: PrerequisiteRule, progress: UserProgress) -> RequirementCheck:
        streak_type = rule.conditions.get("streak_type", "daily")
        required = int(rule.conditions.get("min_streak", 0))
        current = progress.streaks.get(streak_type, 0)
        return RequirementCheck(
            is_met=current >= required,
            reason=f"Current {streak_type} streak: {current}, required: {required}",
            data={"current": current, "required": required},
        )

    def calculate_category_score(
        self,
        category: str,
        progress: UserProgress,
        aggregation: Aggregation = Aggregation.AVERAGE,
    ) -> float:
        """Aggregate scores of completed modules in category; 0 when there are none."""
        scores: List[float] = []
        for module_id, record in progress.modules.items():
            if record.status != ProgressStatus.COMPLETED:
                continue
            record_category = record.category
            if record_category is None:
                module = self._module_lookup(module_id)
                record_category = module.category if module is not None else None
            if record_category == category:
                scores.append(record.score)

        if not scores:
            return 0.0
        if aggregation == Aggregation.MIN:
            return min(scores)
        if aggregation == Aggregation.MAX:
            return max(scores)
        if aggregation == Aggregation.SUM:
            return sum(scores)
        return sum(scores) / len(scores)

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def get_prerequisite_details(self, module_id: str, progress: UserProgress) -> PrerequisiteReport:
        result = self.check_module_prerequisites(module_id, progress)
        met = sum(1 for d in result.details if d.is_met)
        unmet = [d for d in result.details if not d.is_met]
        return PrerequisiteReport(
            **result.model_dump(exclude={"details"}),
            details=result.details,
            summary=PrerequisiteSummary(total=len(result.details), met=met, unmet=len(unmet)),
            next_steps=self.get_next_steps(unmet),
        )

    def get_next_steps(self, unmet: List[PrerequisiteDetail]) -> List[NextStep]:
        steps: List[NextStep] = []
        for detail in unmet:
            if detail.type == DetailType.MODULE_COMPLETION:
                steps.append(NextStep(
                    action=NextStepAction.COMPLETE_MODULE,
                    target_id=detail.prerequisite_id,
                    description=f"Complete the required module: {detail.prerequisite_id}",
                ))
            elif detail.type == DetailType.ACTIVITY_COMPLETION:
                steps.append(NextStep(
                    action=NextStepAction.COMPLETE_ACTIVITY,
                    target_id=detail.prerequisite_id,
                    description=f"Complete the required activity: {detail.prerequisite_id}",
                ))
            elif detail.type == DetailType.SCORE_REQUIREMENT and detail.requirement is not None:
                steps.append(NextStep(
                    action=NextStepAction.IMPROVE_SCORE,
                    target_id=detail.requirement.target_id,
                    description=f"Improve your score to at least {_fmt(detail.requirement.min_score)}",
                ))
            else:
                steps.append(NextStep(
                    action=NextStepAction.CUSTOM,
                    target_id=detail.rule_id,
                    description=detail.reason,
                ))
        return steps
