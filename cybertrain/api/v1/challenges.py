"""
Timed challenge endpoints.

Challenge timers tick on the server's event loop; clients poll the snapshot.
"""

from fastapi import APIRouter, status

from cybertrain.api.deps import Challenges
from cybertrain.engines.timer.challenge import ChallengeSnapshot
from cybertrain.kernel.errors import UnknownChallengeError
from cybertrain.schemas.challenges import (
    ChallengeActionRequest,
    ChallengeCompleteRequest,
    ChallengeCreateRequest,
)
from cybertrain.schemas.common import SuccessResponse

router = APIRouter()


@router.post("", response_model=ChallengeSnapshot, status_code=status.HTTP_201_CREATED)
async def create_challenge(body: ChallengeCreateRequest, challenges: Challenges):
    container = challenges.create(
        body.time_limit,
        title=body.title,
        description=body.description,
        scoring_weights=body.scoring_weights,
        auto_start=body.auto_start,
    )
    return container.snapshot()


@router.get("/{challenge_id}", response_model=ChallengeSnapshot)
async def get_challenge(challenge_id: str, challenges: Challenges):
    return challenges.get(challenge_id).snapshot()


@router.delete("/{challenge_id}", response_model=SuccessResponse)
async def delete_challenge(challenge_id: str, challenges: Challenges):
    """Stop the session's timers and forget it."""
    if not challenges.remove(challenge_id):
        raise UnknownChallengeError(challenge_id)
    return SuccessResponse(message=f"Challenge {challenge_id} removed")


@router.post("/{challenge_id}/start", response_model=ChallengeSnapshot)
async def start_challenge(challenge_id: str, challenges: Challenges):
    container = challenges.get(challenge_id)
    container.start_challenge()
    return container.snapshot()


@router.post("/{challenge_id}/pause", response_model=ChallengeSnapshot)
async def pause_challenge(challenge_id: str, challenges: Challenges):
    container = challenges.get(challenge_id)
    container.pause_challenge()
    return container.snapshot()


@router.post("/{challenge_id}/resume", response_model=ChallengeSnapshot)
async def resume_challenge(challenge_id: str, challenges: Challenges):
    container = challenges.get(challenge_id)
    container.resume_challenge()
    return container.snapshot()


@router.post("/{challenge_id}/reset", response_model=ChallengeSnapshot)
async def reset_challenge(challenge_id: str, challenges: Challenges):
    container = challenges.get(challenge_id)
    container.reset_challenge()
    return container.snapshot()


@router.post("/{challenge_id}/actions", response_model=ChallengeSnapshot)
async def track_action(challenge_id: str, body: ChallengeActionRequest, challenges: Challenges):
    """Record a learner action. Ignored unless the challenge is active and running."""
    container = challenges.get(challenge_id)
    container.track_action(body.type, body.data)
    return container.snapshot()


@router.post("/{challenge_id}/complete", response_model=ChallengeSnapshot)
async def complete_challenge(challenge_id: str, body: ChallengeCompleteRequest, challenges: Challenges):
    """Report success. A completion that arrives after time-up is ignored; the snapshot says which won."""
    container = challenges.get(challenge_id)
    container.complete(body.accuracy, body.additional_data)
    return container.snapshot()


@router.post("/{challenge_id}/results/continue", response_model=ChallengeSnapshot)
async def continue_result(challenge_id: str, challenges: Challenges):
    container = challenges.get(challenge_id)
    container.continue_result()
    return container.snapshot()
