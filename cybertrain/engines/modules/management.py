"""
Module management service - the catalog facade.

Owns modules, activities, badges and sequences; validates everything on the
way in; keeps the sequencing graph and the prerequisite checker in sync; and
announces every change to listeners.

Single writer: callers serialize mutations (the event loop does this for the
API). Nothing here locks.
"""

from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from cybertrain.config import Settings
from cybertrain.engines.modules.content_validator import ContentSchemaValidator, format_validation_errors
from cybertrain.engines.modules.prerequisites import NextStep, PrerequisiteChecker, PrerequisiteDetail
from cybertrain.engines.modules.sequencing import (
    ModuleDependencies,
    ModuleSequencingService,
    SequencingStatistics,
    StartCheck,
    count_by,
)
from cybertrain.kernel.errors import (
    ActivityDependencyError,
    ContentValidationError,
    ModuleDependencyError,
    ModuleValidationError,
    TrainingPlatformError,
    UnknownActivityError,
    UnknownModuleError,
)
from cybertrain.kernel.events.emitter import EventEmitter, EventName
from cybertrain.kernel.events.event_types import (
    ActivityAddedEvent,
    ActivityRemovedEvent,
    ActivityUpdatedEvent,
    BadgeAddedEvent,
    BaseEvent,
    CatalogEventType,
    DataImportedEvent,
    ErrorEvent,
    InitializedEvent,
    ModuleAddedEvent,
    ModuleRemovedEvent,
    ModuleUpdatedEvent,
    SequenceAddedEvent,
)
from cybertrain.kernel.models.base import utcnow
from cybertrain.kernel.models.module import Activity, Badge, Difficulty, Module, ModuleSequence
from cybertrain.kernel.models.progress import UserProgress
from cybertrain.logging_config import get_logger

logger = get_logger(__name__)


class CatalogData(BaseModel):
    """Catalog payload accepted by initialize() and import_data()."""

    modules: List[Module] = Field(default_factory=list)
    # Module activities also travel inside their module; entries no module owns
    # are kept as unassigned activities
    activities: List[Activity] = Field(default_factory=list)
    badges: List[Badge] = Field(default_factory=list)
    sequences: List[ModuleSequence] = Field(default_factory=list)


class CatalogExport(CatalogData):
    exported_at: datetime
    version: str


class UserStartCheck(StartCheck):
    details: List[PrerequisiteDetail] = Field(default_factory=list)
    next_steps: List[NextStep] = Field(default_factory=list)


class CatalogStatistics(SequencingStatistics):
    total_badges: int
    activities_by_type: Dict[str, int]
    badges_by_category: Dict[str, int]


class SystemValidation(BaseModel):
    is_valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


def _errors_of(exc: Exception) -> List[str]:
    if isinstance(exc, ValidationError):
        return format_validation_errors(exc)
    return [str(exc)]


class ModuleManagementService:
    """Catalog of modules, activities, badges and sequences."""

    def __init__(
        self,
        sequencing: Optional[ModuleSequencingService] = None,
        checker: Optional[PrerequisiteChecker] = None,
        validator: Optional[ContentSchemaValidator] = None,
        emitter: Optional[EventEmitter] = None,
        *,
        strict_content_validation: bool = True,
        export_format_version: str = "1.0.0",
    ):
        self._modules: Dict[str, Module] = {}
        self._activities: Dict[str, Activity] = {}
        self._activity_owner: Dict[str, str] = {}  # activity id -> module id
        self._badges: Dict[str, Badge] = {}
        self._sequences: Dict[str, ModuleSequence] = {}

        self.sequencing = sequencing or ModuleSequencingService()
        self.checker = checker or PrerequisiteChecker(self.get_module, self.get_activity)
        self.validator = validator or ContentSchemaValidator()
        self.emitter = emitter or EventEmitter()
        self.strict_content_validation = strict_content_validation
        self.export_format_version = export_format_version

    @classmethod
    def from_settings(cls, settings: Settings) -> "ModuleManagementService":
        service = cls(
            strict_content_validation=settings.strict_content_validation,
            export_format_version=settings.export_format_version,
        )
        service.checker.default_module_passing_score = settings.default_module_passing_score
        service.checker.default_activity_passing_score = settings.default_activity_passing_score
        return service

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on(self, event: EventName, listener: Callable[[BaseEvent], None]) -> None:
        self.emitter.on(event, listener)

    def off(self, event: EventName, listener: Callable[[BaseEvent], None]) -> None:
        self.emitter.off(event, listener)

    def emit(self, event: EventName, payload: BaseEvent) -> int:
        return self.emitter.emit(event, payload)

    def _emit_error(self, context: str, exc: Exception) -> None:
        self.emit(
            CatalogEventType.ERROR,
            ErrorEvent(context=context, error=str(exc), error_type=type(exc).__name__),
        )

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def initialize(self, data: Union[CatalogData, Mapping[str, Any], None] = None) -> bool:
        """
        Replace the catalog with data.

        Returns False (catalog untouched, error event emitted) when anything in
        data fails validation.
        """
        if not self._load(data or CatalogData(), "initialize"):
            return False
        self.emit(CatalogEventType.INITIALIZED, InitializedEvent(module_count=len(self._modules)))
        logger.info("Module catalog initialized", extra={"module_count": len(self._modules)})
        return True

    def import_data(self, data: Union[CatalogData, Mapping[str, Any]]) -> bool:
        """Replace the catalog with a previous export; restores the old catalog on failure."""
        if not self._load(data, "import"):
            return False
        self.emit(
            CatalogEventType.DATA_IMPORTED,
            DataImportedEvent(
                module_count=len(self._modules),
                activity_count=len(self._activities),
                badge_count=len(self._badges),
            ),
        )
        logger.info(
            "Module catalog imported",
            extra={"module_count": len(self._modules), "activity_count": len(self._activities)},
        )
        return True

    def _load(self, data: Union[CatalogData, Mapping[str, Any]], context: str) -> bool:
        snapshot = (
            dict(self._modules),
            dict(self._activities),
            dict(self._activity_owner),
            dict(self._badges),
            dict(self._sequences),
        )
        try:
            catalog = data if isinstance(data, CatalogData) else CatalogData.model_validate(data)
            self._clear()
            for badge in catalog.badges:
                self._badges[badge.id] = badge
            for module in catalog.modules:
                self._reject_duplicate(module)
                self._accept_module(module)
                self._store_module(module)
            for activity in catalog.activities:
                if activity.id in self._activities:
                    continue
                self._accept_activity(activity)
                self._activities[activity.id] = activity
            for sequence in catalog.sequences:
                self._sequences[sequence.id] = sequence
                self.sequencing.register_sequence(sequence)
        except (TrainingPlatformError, ValueError) as e:
            (self._modules, self._activities, self._activity_owner,
             self._badges, self._sequences) = snapshot
            self._resync_sequencing()
            logger.error(
                "Failed to load module catalog",
                extra={"context": context, "error": str(e), "error_type": type(e).__name__},
            )
            self._emit_error(context, e)
            return False
        return True

    def _clear(self) -> None:
        self._modules = {}
        self._activities = {}
        self._activity_owner = {}
        self._badges = {}
        self._sequences = {}
        self.sequencing.clear()

    def _resync_sequencing(self) -> None:
        self.sequencing.clear()
        for module in self._modules.values():
            self.sequencing.register_module(module)
        for sequence in self._sequences.values():
            self.sequencing.register_sequence(sequence)

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------

    def _check_content(self, activity: Activity) -> None:
        # Empty content means "not authored yet" and is accepted
        if not activity.content:
            return
        result = self.validator.validate_content(activity.content, activity.type.value)
        if result.is_valid:
            return
        message = f"Activity {activity.id} content invalid: {', '.join(result.errors)}"
        if self.strict_content_validation:
            raise ContentValidationError(message, result.errors)
        logger.warning(
            "Accepting activity with invalid content",
            extra={"activity_id": activity.id, "errors": result.errors},
        )

    def _reject_duplicate(self, module: Module) -> None:
        if module.id in self._modules:
            error = f"Module {module.id} already exists"
            raise ModuleValidationError(f"Module validation failed: {error}", [error])

    def _accept_module(self, module: Module, prefix: str = "Module validation failed") -> None:
        validation = module.validate()
        if not validation.is_valid:
            logger.warning(
                "Module validation failed",
                extra={"module_id": module.id, "errors": validation.errors},
            )
            raise ModuleValidationError(f"{prefix}: {', '.join(validation.errors)}", validation.errors)
        for activity in module.activities:
            owner = self._activity_owner.get(activity.id)
            if owner is not None and owner != module.id:
                error = f"Activity {activity.id} already belongs to module {owner}"
                raise ModuleValidationError(f"{prefix}: {error}", [error])
            self._check_content(activity)

    def _accept_activity(self, activity: Activity, prefix: str = "Activity validation failed") -> None:
        validation = activity.validate()
        if not validation.is_valid:
            raise ModuleValidationError(f"{prefix}: {', '.join(validation.errors)}", validation.errors)
        self._check_content(activity)

    def _store_module(self, module: Module) -> None:
        previous = self._modules.get(module.id)
        if previous is not None:
            for activity in previous.activities:
                self._activities.pop(activity.id, None)
                self._activity_owner.pop(activity.id, None)
        self._modules[module.id] = module
        for activity in module.activities:
            self._activities[activity.id] = activity
            self._activity_owner[activity.id] = module.id
        self.sequencing.register_module(module)

    # ------------------------------------------------------------------
    # Modules
    # ------------------------------------------------------------------

    def add_module(self, module: Module) -> Module:
        """
        Validate and register a new module.

        Raises:
            ModuleValidationError: module is invalid or its ID is taken.
            ContentValidationError: activity content fails its schema (strict mode).
        """
        self._reject_duplicate(module)
        self._accept_module(module)
        self._store_module(module)

        logger.info(
            "Module added",
            extra={"module_id": module.id, "activity_count": len(module.activities)},
        )
        self.emit(CatalogEventType.MODULE_ADDED, ModuleAddedEvent(module_id=module.id, module=module))
        return module

    def update_module(self, module_id: str, updates: Mapping[str, Any]) -> Module:
        """Apply updates to a copy, validate it, then commit. The stored module is untouched on failure."""
        existing = self._modules.get(module_id)
        if existing is None:
            raise UnknownModuleError(module_id)

        prefix = "Module validation failed after update"
        try:
            candidate = existing.updated(updates)
        except ValueError as e:
            errors = _errors_of(e)
            raise ModuleValidationError(f"{prefix}: {', '.join(errors)}", errors) from e
        self._accept_module(candidate, prefix)
        self._store_module(candidate)

        logger.info("Module updated", extra={"module_id": module_id, "fields": sorted(updates)})
        self.emit(
            CatalogEventType.MODULE_UPDATED,
            ModuleUpdatedEvent(module_id=module_id, module=candidate, updates=dict(updates)),
        )
        return candidate

    def remove_module(self, module_id: str) -> bool:
        """
        Remove a module and its activities. False if it does not exist.

        Raises:
            ModuleDependencyError: another module lists it as a prerequisite.
        """
        module = self._modules.get(module_id)
        if module is None:
            return False
        dependents = [m.id for m in self._modules.values() if module_id in m.prerequisites]
        if dependents:
            raise ModuleDependencyError(module_id, dependents)

        del self._modules[module_id]
        for activity in module.activities:
            self._activities.pop(activity.id, None)
            self._activity_owner.pop(activity.id, None)
        self.sequencing.unregister_module(module_id)

        logger.info("Module removed", extra={"module_id": module_id})
        self.emit(CatalogEventType.MODULE_REMOVED, ModuleRemovedEvent(module_id=module_id, module=module))
        return True

    def get_module(self, module_id: str) -> Optional[Module]:
        return self._modules.get(module_id)

    def get_modules(
        self,
        category: Optional[str] = None,
        difficulty: Optional[Union[Difficulty, str]] = None,
        is_published: Optional[bool] = None,
        tags: Optional[List[str]] = None,
    ) -> List[Module]:
        """Filtered modules sorted by order. tags matches modules carrying any of them."""
        modules = list(self._modules.values())
        if category is not None:
            modules = [m for m in modules if m.category == category]
        if difficulty is not None:
            modules = [m for m in modules if m.difficulty == Difficulty(difficulty)]
        if is_published is not None:
            modules = [m for m in modules if m.is_published == is_published]
        if tags:
            wanted = set(tags)
            modules = [m for m in modules if wanted.intersection(m.tags)]
        return sorted(modules, key=lambda m: m.order)

    # ------------------------------------------------------------------
    # Activities
    # ------------------------------------------------------------------

    def add_activity_to_module(self, module_id: str, activity: Activity) -> Activity:
        module = self._modules.get(module_id)
        if module is None:
            raise UnknownModuleError(module_id)
        if activity.id in self._activities:
            error = f"Activity {activity.id} already exists"
            raise ModuleValidationError(f"Activity validation failed: {error}", [error])
        self._accept_activity(activity)

        module.add_activity(activity)
        self._activities[activity.id] = activity
        self._activity_owner[activity.id] = module_id

        logger.info("Activity added", extra={"activity_id": activity.id, "module_id": module_id})
        self.emit(
            CatalogEventType.ACTIVITY_ADDED,
            ActivityAddedEvent(activity_id=activity.id, module_id=module_id, activity=activity),
        )
        return activity

    def update_activity(self, activity_id: str, updates: Mapping[str, Any]) -> Activity:
        existing = self._activities.get(activity_id)
        if existing is None:
            raise UnknownActivityError(activity_id)

        prefix = "Activity validation failed after update"
        try:
            candidate = existing.updated(updates)
        except ValueError as e:
            errors = _errors_of(e)
            raise ModuleValidationError(f"{prefix}: {', '.join(errors)}", errors) from e
        self._accept_activity(candidate, prefix)

        module_id = self._activity_owner.get(activity_id)
        if module_id is not None:
            self._modules[module_id].replace_activity(candidate)
        self._activities[activity_id] = candidate

        logger.info("Activity updated", extra={"activity_id": activity_id, "fields": sorted(updates)})
        self.emit(
            CatalogEventType.ACTIVITY_UPDATED,
            ActivityUpdatedEvent(
                activity_id=activity_id, module_id=module_id, activity=candidate, updates=dict(updates)
            ),
        )
        return candidate

    def remove_activity(self, activity_id: str) -> bool:
        """
        Remove an activity from its module. False if it does not exist.

        Raises:
            ActivityDependencyError: another activity lists it as a prerequisite.
        """
        activity = self._activities.get(activity_id)
        if activity is None:
            return False
        dependents = [a.id for a in self._activities.values() if activity_id in a.prerequisites]
        if dependents:
            raise ActivityDependencyError(activity_id, dependents)

        module_id = self._activity_owner.pop(activity_id, None)
        if module_id is not None:
            self._modules[module_id].remove_activity(activity_id)
        del self._activities[activity_id]

        logger.info("Activity removed", extra={"activity_id": activity_id, "module_id": module_id})
        self.emit(
            CatalogEventType.ACTIVITY_REMOVED,
            ActivityRemovedEvent(activity_id=activity_id, module_id=module_id, activity=activity),
        )
        return True

    def get_activity(self, activity_id: str) -> Optional[Activity]:
        return self._activities.get(activity_id)

    # ------------------------------------------------------------------
    # Badges and sequences
    # ------------------------------------------------------------------

    def add_badge(self, badge: Badge) -> Badge:
        self._badges[badge.id] = badge
        logger.info("Badge added", extra={"badge_id": badge.id})
        self.emit(CatalogEventType.BADGE_ADDED, BadgeAddedEvent(badge=badge))
        return badge

    def get_badges(self) -> List[Badge]:
        return list(self._badges.values())

    def add_sequence(self, sequence: ModuleSequence) -> ModuleSequence:
        self._sequences[sequence.id] = sequence
        self.sequencing.register_sequence(sequence)
        self.emit(
            CatalogEventType.SEQUENCE_ADDED,
            SequenceAddedEvent(sequence_id=sequence.id, module_count=len(sequence.modules)),
        )
        return sequence

    def get_sequences(self) -> List[ModuleSequence]:
        return list(self._sequences.values())

    # ------------------------------------------------------------------
    # Learner queries
    # ------------------------------------------------------------------

    def get_available_modules(self, progress: UserProgress) -> List[Module]:
        return self.sequencing.get_available_modules(progress.completed_module_ids())

    def get_next_recommended_module(self, progress: UserProgress) -> Optional[Module]:
        return self.sequencing.get_next_recommended_module(
            progress.completed_module_ids(), progress.in_progress_module_ids()
        )

    def can_user_start_module(self, module_id: str, progress: UserProgress) -> UserStartCheck:
        """Graph check first (published, prerequisites completed), then scores and custom rules."""
        base = self.sequencing.can_start_module(module_id, progress.completed_module_ids())
        if not base.can_start:
            return UserStartCheck(**base.model_dump())

        report = self.checker.get_prerequisite_details(module_id, progress)
        if not report.is_met:
            return UserStartCheck(
                can_start=False,
                reason=report.reason,
                details=report.details,
                next_steps=report.next_steps,
            )
        return UserStartCheck(can_start=True, reason=base.reason, details=report.details)

    def get_learning_path(self, progress: UserProgress, target_module_id: Optional[str] = None) -> List[Module]:
        return self.sequencing.get_learning_path(progress.completed_module_ids(), target_module_id)

    def get_module_dependencies(self, module_id: str) -> ModuleDependencies:
        if module_id not in self._modules:
            raise UnknownModuleError(module_id)
        return self.sequencing.get_module_dependencies(module_id)

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def get_statistics(self) -> CatalogStatistics:
        base = self.sequencing.get_statistics()
        return CatalogStatistics(
            **base.model_dump(exclude={"total_activities"}),
            total_activities=len(self._activities),
            total_badges=len(self._badges),
            activities_by_type=count_by(a.type.value for a in self._activities.values()),
            badges_by_category=count_by(b.category for b in self._badges.values()),
        )

    def validate_system(self) -> SystemValidation:
        errors = list(self.sequencing.validate_sequence().errors)
        warnings: List[str] = []

        for module in self._modules.values():
            validation = module.validate()
            errors.extend(f"Module {module.id}: {error}" for error in validation.errors)

        for activity in self._activities.values():
            for prereq_id in activity.prerequisites:
                if prereq_id not in self._activities:
                    errors.append(f"Activity {activity.id} has invalid prerequisite: {prereq_id}")
            if activity.id not in self._activity_owner:
                warnings.append(f"Activity {activity.id} is not associated with any module")

        if errors:
            logger.warning("System validation failed", extra={"error_count": len(errors)})
        return SystemValidation(is_valid=not errors, errors=errors, warnings=warnings)

    def export_data(self) -> CatalogExport:
        logger.info("Module catalog exported", extra={"module_count": len(self._modules)})
        return CatalogExport(
            modules=list(self._modules.values()),
            activities=list(self._activities.values()),
            badges=list(self._badges.values()),
            sequences=list(self._sequences.values()),
            exported_at=utcnow(),
            version=self.export_format_version,
        )
