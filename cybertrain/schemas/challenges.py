"""
Timed challenge API schemas.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from cybertrain.engines.timer.scoring import ScoringWeights


class ChallengeCreateRequest(BaseModel):
    time_limit: int = Field(gt=0, description="Seconds")
    title: str = ""
    description: str = ""
    auto_start: bool = True
    scoring_weights: Optional[ScoringWeights] = None


class ChallengeActionRequest(BaseModel):
    type: str = Field(min_length=1)
    data: Dict[str, Any] = Field(default_factory=dict)


class ChallengeCompleteRequest(BaseModel):
    accuracy: float = Field(default=1.0, ge=0, le=1)
    additional_data: Dict[str, Any] = Field(default_factory=dict)
