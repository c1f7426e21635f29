"""
Learner endpoints - what the calling learner can take next, and progress reporting.
"""

from typing import List, Optional

from fastapi import APIRouter, HTTPException, status

from cybertrain.api.deps import Catalog, CurrentUserId, ProgressStoreDep
from cybertrain.engines.modules.management import UserStartCheck
from cybertrain.kernel.models.module import Module
from cybertrain.kernel.models.progress import ProgressAck, ProgressUpdate, UserProgress
from cybertrain.schemas.modules import RecommendationResponse

router = APIRouter()


@router.get("/modules/available", response_model=List[Module])
async def available_modules(user_id: CurrentUserId, catalog: Catalog, store: ProgressStoreDep):
    progress = await store.get_user_progress(user_id)
    return catalog.get_available_modules(progress)


@router.get("/modules/recommended", response_model=RecommendationResponse)
async def recommended_module(user_id: CurrentUserId, catalog: Catalog, store: ProgressStoreDep):
    progress = await store.get_user_progress(user_id)
    module = catalog.get_next_recommended_module(progress)
    if module is None:
        return RecommendationResponse(reason="No module is currently available")
    return RecommendationResponse(module=module, reason="Next available module in sequence")


@router.get("/modules/{module_id}/can-start", response_model=UserStartCheck)
async def can_start_module(
    module_id: str,
    user_id: CurrentUserId,
    catalog: Catalog,
    store: ProgressStoreDep,
):
    progress = await store.get_user_progress(user_id)
    return catalog.can_user_start_module(module_id, progress)


@router.get("/learning-path", response_model=List[Module])
async def learning_path(
    user_id: CurrentUserId,
    catalog: Catalog,
    store: ProgressStoreDep,
    target: Optional[str] = None,
):
    """Ordered modules to take next; with target, only what leads to it."""
    progress = await store.get_user_progress(user_id)
    return catalog.get_learning_path(progress, target)


@router.get("/progress", response_model=UserProgress)
async def get_progress(user_id: CurrentUserId, store: ProgressStoreDep):
    return await store.get_user_progress(user_id)


@router.post("/progress", response_model=ProgressAck)
async def report_progress(update: ProgressUpdate, user_id: CurrentUserId, store: ProgressStoreDep):
    try:
        return await store.update_progress(user_id, update)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
