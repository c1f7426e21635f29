"""
Domain exceptions.

Mutating operations raise these; diagnostic queries return result objects instead.
The API layer maps each family onto an HTTP status code.
"""

from typing import List, Optional


class TrainingPlatformError(Exception):
    """Base class for all domain errors."""


class ModuleValidationError(TrainingPlatformError):
    """A module failed validation on add or update."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = list(errors or [])


class ContentValidationError(TrainingPlatformError):
    """Activity content does not satisfy its content schema."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = list(errors or [])


class UnknownModuleError(TrainingPlatformError):
    """Referenced module is not registered."""

    def __init__(self, module_id: str):
        super().__init__(f"Module {module_id} not found")
        self.module_id = module_id


class UnknownActivityError(TrainingPlatformError):
    """Referenced activity is not registered."""

    def __init__(self, activity_id: str):
        super().__init__(f"Activity {activity_id} not found")
        self.activity_id = activity_id


class ModuleDependencyError(TrainingPlatformError):
    """Module cannot be removed while other modules list it as a prerequisite."""

    def __init__(self, module_id: str, dependents: List[str]):
        super().__init__(f"Cannot remove module {module_id}: it is required by other modules")
        self.module_id = module_id
        self.dependents = dependents


class ActivityDependencyError(TrainingPlatformError):
    """Activity cannot be removed while other activities list it as a prerequisite."""

    def __init__(self, activity_id: str, dependents: List[str]):
        super().__init__(f"Cannot remove activity {activity_id}: it is required by other activities")
        self.activity_id = activity_id
        self.dependents = dependents


class InvalidTransitionError(TrainingPlatformError):
    """Requested challenge state change is not in the transition table."""

    def __init__(self, from_state: str, to_state: str):
        super().__init__(f"Invalid transition: {from_state} -> {to_state}")
        self.from_state = from_state
        self.to_state = to_state


class UnknownChallengeError(TrainingPlatformError):
    """No live challenge session with this ID."""

    def __init__(self, challenge_id: str):
        super().__init__(f"Challenge {challenge_id} not found")
        self.challenge_id = challenge_id
