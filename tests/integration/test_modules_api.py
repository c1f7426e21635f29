"""Integration tests for /api/v1/modules endpoints."""

import pytest
from httpx import AsyncClient

BASE = "/api/v1/modules"


@pytest.fixture
def module_json(make_module):
    """Module payload as a client would send it."""

    def build(module_id: str, order: int = 0, prerequisites=None, **overrides):
        return make_module(module_id, order, prerequisites, **overrides).model_dump(mode="json")

    return build


@pytest.fixture
async def seeded(client: AsyncClient, module_json) -> AsyncClient:
    """Client whose catalog holds the chain A -> B -> C."""
    for payload in (
        module_json("A", 1),
        module_json("B", 2, ["A"]),
        module_json("C", 3, ["B"], tags=["mobile"]),
    ):
        r = await client.post(BASE, json=payload)
        assert r.status_code == 201, r.text
    return client


class TestModuleCrud:
    """Tests for module authoring endpoints."""

    async def test_create_and_get(self, client: AsyncClient, module_json):
        r = await client.post(BASE, json=module_json("A"))
        assert r.status_code == 201, r.text
        assert r.json()["id"] == "A"
        assert r.json()["activities"][0]["content"]["passingScore"] == 0.7

        r = await client.get(f"{BASE}/A")
        assert r.status_code == 200
        assert r.json()["title"] == "Module A"

    async def test_list_with_filters(self, seeded: AsyncClient):
        r = await seeded.get(BASE)
        assert [m["id"] for m in r.json()] == ["A", "B", "C"]

        r = await seeded.get(BASE, params={"tags": "mobile"})
        assert [m["id"] for m in r.json()] == ["C"]

        r = await seeded.get(BASE, params={"is_published": "false"})
        assert r.json() == []

    async def test_unknown_module_is_404(self, client: AsyncClient):
        r = await client.get(f"{BASE}/nope")
        assert r.status_code == 404
        assert r.json()["detail"] == "Module nope not found"

    async def test_duplicate_is_422(self, seeded: AsyncClient, module_json):
        r = await seeded.post(BASE, json=module_json("A"))
        assert r.status_code == 422
        assert r.json()["errors"] == ["Module A already exists"]

    async def test_invalid_module_is_422(self, client: AsyncClient, module_json):
        r = await client.post(BASE, json=module_json("E", description="", activities=[]))
        assert r.status_code == 422
        assert "Module description is required" in r.json()["errors"]

    async def test_invalid_content_is_422(self, client: AsyncClient, module_json, make_activity):
        bad = make_activity("E-a1", content={"questions": [], "passingScore": 0.7})
        r = await client.post(BASE, json=module_json("E", activities=[bad]))
        assert r.status_code == 422
        assert r.json()["detail"].startswith("Activity E-a1 content invalid")

    async def test_malformed_body_is_validation_error(self, client: AsyncClient):
        r = await client.post(BASE, json={"id": "E", "title": ["not", "a", "string"]})
        assert r.status_code == 422
        assert r.json()["detail"] == "Validation error"

    async def test_update(self, seeded: AsyncClient):
        r = await seeded.put(f"{BASE}/A", json={"title": "Phishing basics"})
        assert r.status_code == 200
        assert r.json()["title"] == "Phishing basics"

        r = await seeded.put(f"{BASE}/A", json={"min_passing_score": 3})
        assert r.status_code == 422
        assert r.json()["detail"].startswith("Module validation failed after update")

    async def test_delete(self, seeded: AsyncClient):
        r = await seeded.delete(f"{BASE}/A")
        assert r.status_code == 409
        assert r.json()["dependents"] == ["B"]

        r = await seeded.delete(f"{BASE}/C")
        assert r.status_code == 200
        assert r.json() == {"success": True, "message": "Module C removed"}

        r = await seeded.delete(f"{BASE}/C")
        assert r.status_code == 404


class TestModuleActivitiesAndGraph:
    """Tests for activities, dependencies and catalog reports."""

    async def test_add_activity(self, seeded: AsyncClient, make_activity):
        payload = make_activity("A-a2", order=5).model_dump(mode="json")
        r = await seeded.post(f"{BASE}/A/activities", json=payload)
        assert r.status_code == 201, r.text

        r = await seeded.get(f"{BASE}/A")
        assert [a["id"] for a in r.json()["activities"]] == ["A-a1", "A-a2"]

    async def test_add_activity_to_unknown_module(self, client: AsyncClient, make_activity):
        r = await client.post(f"{BASE}/nope/activities", json=make_activity("x").model_dump(mode="json"))
        assert r.status_code == 404

    async def test_dependencies(self, seeded: AsyncClient):
        r = await seeded.get(f"{BASE}/B/dependencies")
        assert r.status_code == 200
        data = r.json()
        assert [m["id"] for m in data["prerequisites"]] == ["A"]
        assert [m["id"] for m in data["dependents"]] == ["C"]

    async def test_statistics(self, seeded: AsyncClient):
        r = await seeded.get(f"{BASE}/statistics")
        assert r.status_code == 200
        data = r.json()
        assert data["total_modules"] == 3
        assert data["activities_by_type"] == {"quiz": 3}

    async def test_validate_reports_cycle(self, seeded: AsyncClient):
        r = await seeded.get(f"{BASE}/validate")
        assert r.json()["is_valid"] is True

        await seeded.put(f"{BASE}/A", json={"prerequisites": ["C"]})
        r = await seeded.get(f"{BASE}/validate")
        data = r.json()
        assert data["is_valid"] is False
        assert data["errors"][0].startswith("Circular dependency detected involving module:")


class TestImportExport:
    """Tests for catalog export and import."""

    async def test_round_trip(self, seeded: AsyncClient):
        exported = (await seeded.get(f"{BASE}/export")).json()
        assert exported["version"] == "1.0.0"
        assert len(exported["activities"]) == 3

        await seeded.delete(f"{BASE}/C")
        r = await seeded.post(f"{BASE}/import", json=exported)
        assert r.status_code == 200
        assert r.json() == {"success": True, "module_count": 3, "activity_count": 3, "badge_count": 0}

    async def test_failed_import_keeps_catalog(self, seeded: AsyncClient):
        r = await seeded.post(f"{BASE}/import", json={"modules": [{"id": "X"}]})
        assert r.status_code == 422
        assert r.json()["detail"] == "Catalog import failed; previous catalog kept"

        r = await seeded.get(BASE)
        assert [m["id"] for m in r.json()] == ["A", "B", "C"]
