"""
Module catalog API schemas.
"""

from typing import Optional

from pydantic import BaseModel

from cybertrain.kernel.models.module import Module


class ImportResponse(BaseModel):
    success: bool
    module_count: int
    activity_count: int
    badge_count: int


class RecommendationResponse(BaseModel):
    module: Optional[Module] = None
    reason: str
