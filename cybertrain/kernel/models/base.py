"""
Base model with common fields and utilities.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Set, TypeVar

from pydantic import BaseModel, ConfigDict, Field

E = TypeVar("E", bound="Entity")

# Fields that update() never overwrites
_IMMUTABLE_FIELDS: Set[str] = {"id", "created_at", "updated_at"}


def generate_id() -> str:
    """Generate a new entity ID."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Entity(BaseModel):
    """Base for catalog entities: stable string id plus timestamps."""

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=generate_id)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def to_json(self) -> Dict[str, Any]:
        """Canonical serialization: flat dict, ISO dates, nested owned children."""
        return self.model_dump(mode="json")

    def updated(self: E, changes: Mapping[str, Any]) -> E:
        """
        Return a re-validated copy with changes applied and updated_at bumped.

        Raises:
            ValueError: a key is not a field of this entity or is immutable.
            pydantic.ValidationError: a value has the wrong type.
        """
        unknown = sorted(k for k in changes if k not in type(self).model_fields)
        if unknown:
            raise ValueError(f"Unknown fields: {', '.join(unknown)}")
        frozen = sorted(k for k in changes if k in _IMMUTABLE_FIELDS)
        if frozen:
            raise ValueError(f"Fields cannot be updated: {', '.join(frozen)}")

        data = self.model_dump()
        data.update(changes)
        data["updated_at"] = utcnow()
        return type(self).model_validate(data)
