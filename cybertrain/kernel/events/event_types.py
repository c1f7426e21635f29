"""
Catalog lifecycle events.

Event names plus the Pydantic payload delivered to listeners for each.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from cybertrain.kernel.models.base import utcnow
from cybertrain.kernel.models.module import Activity, Badge, Module


class CatalogEventType(str, Enum):
    INITIALIZED = "initialized"
    MODULE_ADDED = "moduleAdded"
    MODULE_UPDATED = "moduleUpdated"
    MODULE_REMOVED = "moduleRemoved"
    ACTIVITY_ADDED = "activityAdded"
    ACTIVITY_UPDATED = "activityUpdated"
    ACTIVITY_REMOVED = "activityRemoved"
    BADGE_ADDED = "badgeAdded"
    SEQUENCE_ADDED = "sequenceAdded"
    DATA_IMPORTED = "dataImported"
    ERROR = "error"


class BaseEvent(BaseModel):
    """Base event payload structure."""

    model_config = ConfigDict(extra="allow")

    timestamp: datetime = Field(default_factory=utcnow)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class InitializedEvent(BaseEvent):
    module_count: int


class ModuleEvent(BaseEvent):
    """Module-related event payloads."""

    module_id: str
    module: Optional[Module] = None


class ModuleAddedEvent(ModuleEvent):
    pass


class ModuleUpdatedEvent(ModuleEvent):
    updates: Dict[str, Any] = Field(default_factory=dict)


class ModuleRemovedEvent(ModuleEvent):
    pass


class ActivityEvent(BaseEvent):
    """Activity-related event payloads."""

    activity_id: str
    module_id: Optional[str] = None
    activity: Optional[Activity] = None


class ActivityAddedEvent(ActivityEvent):
    pass


class ActivityUpdatedEvent(ActivityEvent):
    updates: Dict[str, Any] = Field(default_factory=dict)


class ActivityRemovedEvent(ActivityEvent):
    pass


class BadgeAddedEvent(BaseEvent):
    badge: Badge


class SequenceAddedEvent(BaseEvent):
    sequence_id: str
    module_count: int


class DataImportedEvent(BaseEvent):
    module_count: int
    activity_count: int
    badge_count: int


class ErrorEvent(BaseEvent):
    context: str
    error: str
    error_type: str
