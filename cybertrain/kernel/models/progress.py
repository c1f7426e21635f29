"""
Learner progress snapshots.

Progress is owned by the persistence collaborator; the engines only read it.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class ProgressStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class ProgressRecord(BaseModel):
    """Progress on one module or activity."""

    status: ProgressStatus = ProgressStatus.NOT_STARTED
    score: float = 0.0
    time_spent: float = 0.0  # seconds
    completed_at: Optional[datetime] = None
    category: Optional[str] = None
    # Per-record threshold overrides; checker falls back to catalog defaults
    min_passing_score: Optional[float] = None
    passing_score: Optional[float] = None


class EarnedBadge(BaseModel):
    id: str
    name: str = ""
    category: Optional[str] = None
    earned_at: Optional[datetime] = None


class UserProgress(BaseModel):
    """Everything recorded about one learner."""

    user_id: Optional[str] = None
    modules: Dict[str, ProgressRecord] = Field(default_factory=dict)
    activities: Dict[str, ProgressRecord] = Field(default_factory=dict)
    badges: List[EarnedBadge] = Field(default_factory=list)
    streaks: Dict[str, int] = Field(default_factory=dict)

    def module_ids_with_status(self, status: ProgressStatus) -> List[str]:
        return [mid for mid, record in self.modules.items() if record.status == status]

    def completed_module_ids(self) -> List[str]:
        return self.module_ids_with_status(ProgressStatus.COMPLETED)

    def in_progress_module_ids(self) -> List[str]:
        return self.module_ids_with_status(ProgressStatus.IN_PROGRESS)

    def completed_activity_ids(self) -> List[str]:
        return [aid for aid, record in self.activities.items() if record.status == ProgressStatus.COMPLETED]


class ProgressUpdate(BaseModel):
    """A single progress report from an activity or module."""

    module_id: Optional[str] = None
    activity_id: Optional[str] = None
    completed: bool = False
    score: Optional[float] = Field(default=None, ge=0, le=1)
    time_spent: float = Field(default=0.0, ge=0)
    category: Optional[str] = None


class ProgressAck(BaseModel):
    user_id: str
    module_id: Optional[str] = None
    activity_id: Optional[str] = None
    status: ProgressStatus
    updated_at: datetime
