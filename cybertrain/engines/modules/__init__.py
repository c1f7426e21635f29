"""
Module engine: sequencing graph, prerequisite checks, content validation
and the catalog management facade.
"""

from cybertrain.engines.modules.content_validator import (
    ContentCheck,
    ContentSchemaValidator,
    ContentValidationResult,
)
from cybertrain.engines.modules.management import (
    CatalogData,
    CatalogExport,
    CatalogStatistics,
    ModuleManagementService,
    SystemValidation,
    UserStartCheck,
)
from cybertrain.engines.modules.prerequisites import (
    DetailType,
    NextStep,
    NextStepAction,
    PrerequisiteChecker,
    PrerequisiteDetail,
    PrerequisiteReport,
    PrerequisiteResult,
    PrerequisiteRule,
    RequirementCheck,
    RuleType,
)
from cybertrain.engines.modules.sequencing import (
    ModuleDependencies,
    ModuleSequencingService,
    SequencingStatistics,
    StartCheck,
)

__all__ = [
    "CatalogData",
    "CatalogExport",
    "CatalogStatistics",
    "ContentCheck",
    "ContentSchemaValidator",
    "ContentValidationResult",
    "DetailType",
    "ModuleDependencies",
    "ModuleManagementService",
    "ModuleSequencingService",
    "NextStep",
    "NextStepAction",
    "PrerequisiteChecker",
    "PrerequisiteDetail",
    "PrerequisiteReport",
    "PrerequisiteResult",
    "PrerequisiteRule",
    "RequirementCheck",
    "RuleType",
    "SequencingStatistics",
    "StartCheck",
    "SystemValidation",
    "UserStartCheck",
]
