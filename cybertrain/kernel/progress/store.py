"""
Progress persistence boundary.

The engines only need two async calls; storage is up to the implementation.
InMemoryProgressStore backs the API and tests.
"""

import asyncio
from typing import Dict, Protocol

from cybertrain.kernel.models.base import utcnow
from cybertrain.kernel.models.progress import (
    ProgressAck,
    ProgressRecord,
    ProgressStatus,
    ProgressUpdate,
    UserProgress,
)
from cybertrain.logging_config import get_logger

logger = get_logger(__name__)


class ProgressStore(Protocol):
    async def get_user_progress(self, user_id: str) -> UserProgress:
        ...

    async def update_progress(self, user_id: str, update: ProgressUpdate) -> ProgressAck:
        ...


def _apply(record: ProgressRecord, update: ProgressUpdate) -> ProgressRecord:
    now = utcnow()
    status = ProgressStatus.COMPLETED if update.completed else ProgressStatus.IN_PROGRESS
    # A completed record stays completed; a later in-progress report only adds time
    if record.status == ProgressStatus.COMPLETED and not update.completed:
        status = ProgressStatus.COMPLETED
    return record.model_copy(update={
        "status": status,
        "score": update.score if update.score is not None else record.score,
        "time_spent": record.time_spent + update.time_spent,
        "completed_at": now if update.completed else record.completed_at,
        "category": update.category or record.category,
    })


class InMemoryProgressStore:
    """Dict-backed store. Snapshots handed out are deep copies."""

    def __init__(self) -> None:
        self._progress: Dict[str, UserProgress] = {}
        self._lock = asyncio.Lock()

    async def get_user_progress(self, user_id: str) -> UserProgress:
        progress = self._progress.get(user_id)
        if progress is None:
            return UserProgress(user_id=user_id)
        return progress.model_copy(deep=True)

    async def update_progress(self, user_id: str, update: ProgressUpdate) -> ProgressAck:
        if update.module_id is None and update.activity_id is None:
            raise ValueError("Progress update needs a module_id or an activity_id")

        async with self._lock:
            current = self._progress.get(user_id) or UserProgress(user_id=user_id)
            modules = dict(current.modules)
            activities = dict(current.activities)
            if update.activity_id is not None:
                activities[update.activity_id] = _apply(
                    activities.get(update.activity_id, ProgressRecord()), update
                )
                target = activities[update.activity_id]
            if update.module_id is not None and update.activity_id is None:
                modules[update.module_id] = _apply(modules.get(update.module_id, ProgressRecord()), update)
                target = modules[update.module_id]
            elif update.module_id is not None and update.module_id not in modules:
                # Activity progress implies the module is under way
                modules[update.module_id] = ProgressRecord(status=ProgressStatus.IN_PROGRESS)

            self._progress[user_id] = current.model_copy(update={
                "modules": modules,
                "activities": activities,
            })

        logger.info(
            "Progress updated",
            extra={
                "module_id": update.module_id,
                "activity_id": update.activity_id,
                "status": target.status.value,
            },
        )
        return ProgressAck(
            user_id=user_id,
            module_id=update.module_id,
            activity_id=update.activity_id,
            status=target.status,
            updated_at=utcnow(),
        )

    async def replace(self, progress: UserProgress) -> None:
        """Seed a learner's full progress snapshot."""
        if progress.user_id is None:
            raise ValueError("Progress snapshot needs a user_id")
        async with self._lock:
            self._progress[progress.user_id] = progress.model_copy(deep=True)
