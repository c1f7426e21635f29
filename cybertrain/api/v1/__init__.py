"""
API v1 routes.
"""

from fastapi import APIRouter

from cybertrain.api.v1 import challenges, learners, modules

router = APIRouter()

router.include_router(modules.router, prefix="/modules", tags=["Modules"])
router.include_router(learners.router, prefix="/learners/me", tags=["Learners"])
router.include_router(challenges.router, prefix="/challenges", tags=["Challenges"])
