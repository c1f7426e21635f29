"""
Pytest fixtures for the training platform tests.
"""

from typing import Any, AsyncGenerator, Dict, List, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from cybertrain.config import get_settings
from cybertrain.engines.modules.management import ModuleManagementService
from cybertrain.engines.timer.tick_source import VirtualTickSource
from cybertrain.kernel.models.module import Activity, ActivityType, Module
from cybertrain.kernel.models.progress import ProgressRecord, ProgressStatus, UserProgress


def quiz_content() -> Dict[str, Any]:
    """Minimal valid quiz payload, authored in camelCase like the content files."""
    return {
        "questions": [
            {
                "id": "q1",
                "question": "Which log shows the first login from the mule account?",
                "type": "multiple_choice",
                "options": ["Bank audit log", "ISP log", "Device log"],
                "correctAnswer": "Bank audit log",
                "explanation": "The bank audit log records every authenticated session.",
            }
        ],
        "passingScore": 0.7,
    }


def make_activity(activity_id: str, order: int = 0, **overrides: Any) -> Activity:
    data: Dict[str, Any] = {
        "id": activity_id,
        "title": f"Activity {activity_id}",
        "type": ActivityType.QUIZ,
        "content": quiz_content(),
        "points": 10,
        "order": order,
    }
    data.update(overrides)
    return Activity(**data)


def make_module(
    module_id: str,
    order: int = 0,
    prerequisites: Optional[List[str]] = None,
    **overrides: Any,
) -> Module:
    data: Dict[str, Any] = {
        "id": module_id,
        "title": f"Module {module_id}",
        "description": f"Description of {module_id}",
        "activities": [make_activity(f"{module_id}-a1")],
        "prerequisites": prerequisites or [],
        "is_published": True,
        "order": order,
    }
    data.update(overrides)
    return Module(**data)


def completed(*module_ids: str, score: float = 0.9, **record: Any) -> UserProgress:
    """Progress with each module completed at score."""
    return UserProgress(
        user_id="learner-1",
        modules={
            mid: ProgressRecord(status=ProgressStatus.COMPLETED, score=score, **record)
            for mid in module_ids
        },
    )


@pytest.fixture(name="make_module")
def make_module_fixture():
    return make_module


@pytest.fixture(name="make_activity")
def make_activity_fixture():
    return make_activity


@pytest.fixture(name="completed")
def completed_fixture():
    return completed


@pytest.fixture(name="quiz_content")
def quiz_content_fixture():
    return quiz_content


@pytest.fixture
def tick() -> VirtualTickSource:
    """Manually advanced clock for deterministic timer tests."""
    return VirtualTickSource()


@pytest.fixture
def catalog() -> ModuleManagementService:
    """Catalog with a linear A -> B -> C chain plus an unpublished D."""
    service = ModuleManagementService()
    service.add_module(make_module("A", order=1))
    service.add_module(make_module("B", order=2, prerequisites=["A"]))
    service.add_module(make_module("C", order=3, prerequisites=["B"]))
    service.add_module(make_module("D", order=4, is_published=False))
    return service


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Async client against the app with fresh in-memory services."""
    from cybertrain.main import app, init_state

    init_state(app, get_settings())
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac
    finally:
        app.state.challenges.close_all()
