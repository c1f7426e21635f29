"""
FastAPI dependencies: services held on app.state and the calling learner.
"""

from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException, Request, status

from cybertrain.engines.modules.management import ModuleManagementService
from cybertrain.engines.timer.registry import ChallengeRegistry
from cybertrain.kernel.progress.store import InMemoryProgressStore
from cybertrain.logging_config import user_id_var


def get_catalog(request: Request) -> ModuleManagementService:
    return request.app.state.catalog


def get_progress_store(request: Request) -> InMemoryProgressStore:
    return request.app.state.progress_store


def get_challenge_registry(request: Request) -> ChallengeRegistry:
    return request.app.state.challenges


async def get_current_user_id(
    x_user_id: Annotated[Optional[str], Header(alias="X-User-ID")] = None,
) -> str:
    """Learner identity from the X-User-ID header; authentication happens upstream."""
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-ID header",
        )
    user_id_var.set(x_user_id)
    return x_user_id


Catalog = Annotated[ModuleManagementService, Depends(get_catalog)]
ProgressStoreDep = Annotated[InMemoryProgressStore, Depends(get_progress_store)]
Challenges = Annotated[ChallengeRegistry, Depends(get_challenge_registry)]
CurrentUserId = Annotated[str, Depends(get_current_user_id)]
