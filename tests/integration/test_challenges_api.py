"""Integration tests for /api/v1/challenges endpoints."""

from httpx import AsyncClient

BASE = "/api/v1/challenges"


async def create(client: AsyncClient, **body) -> dict:
    payload = {"time_limit": 120, "title": "Trace the ransom wallet", "auto_start": False}
    payload.update(body)
    r = await client.post(BASE, json=payload)
    assert r.status_code == 201, r.text
    return r.json()


class TestChallengeLifecycle:
    """Tests for starting, pausing and finishing a challenge over HTTP."""

    async def test_create_ready(self, client: AsyncClient):
        data = await create(client)
        assert data["state"] == "ready"
        assert data["time_left"] == 120
        assert data["time_display"] == "02:00"
        assert data["urgency_level"] == "normal"
        assert data["result"] is None

        r = await client.get(f"{BASE}/{data['id']}")
        assert r.status_code == 200
        assert r.json()["title"] == "Trace the ransom wallet"

    async def test_auto_start(self, client: AsyncClient):
        data = await create(client, auto_start=True)
        assert data["state"] == "active"

    async def test_pause_and_resume(self, client: AsyncClient):
        cid = (await create(client))["id"]
        assert (await client.post(f"{BASE}/{cid}/start")).json()["state"] == "active"

        r = await client.post(f"{BASE}/{cid}/pause")
        assert r.json()["is_paused"] is True

        r = await client.post(f"{BASE}/{cid}/actions", json={"type": "inspect_headers"})
        assert r.json()["user_actions"] == []

        r = await client.post(f"{BASE}/{cid}/resume")
        assert r.json()["is_paused"] is False

        r = await client.post(f"{BASE}/{cid}/actions", json={"type": "inspect_headers", "data": {"tab": 2}})
        actions = r.json()["user_actions"]
        assert [a["type"] for a in actions] == ["inspect_headers"]
        assert actions[0]["data"] == {"tab": 2}

    async def test_complete_then_reset(self, client: AsyncClient):
        cid = (await create(client))["id"]
        assert (await client.post(f"{BASE}/{cid}/start")).json()["state"] == "active"

        r = await client.post(f"{BASE}/{cid}/complete", json={"accuracy": 1.0, "additional_data": {"wallet": "bc1q"}})
        data = r.json()
        assert data["state"] == "completed"
        assert data["result"]["completed"] is True
        assert data["result"]["completion_score"] == 100
        assert data["result"]["additional_data"] == {"wallet": "bc1q"}
        assert data["show_results"] is True
        assert data["result_stage"] is not None

        again = await client.post(f"{BASE}/{cid}/complete", json={"accuracy": 0.1})
        assert again.json()["result"] == data["result"]

        r = await client.post(f"{BASE}/{cid}/start")
        assert r.status_code == 409

        r = await client.post(f"{BASE}/{cid}/reset")
        data = r.json()
        assert data["state"] == "ready"
        assert data["result"] is None
        assert data["user_actions"] == []

    async def test_reset_with_auto_start_rearms(self, client: AsyncClient):
        cid = (await create(client, auto_start=True))["id"]
        await client.post(f"{BASE}/{cid}/actions", json={"type": "flag_wallet"})
        await client.post(f"{BASE}/{cid}/complete", json={"accuracy": 0.5})

        data = (await client.post(f"{BASE}/{cid}/reset")).json()
        assert data["state"] == "active"
        assert data["result"] is None
        assert data["user_actions"] == []

    async def test_custom_weights(self, client: AsyncClient):
        weights = {"completion": 1, "speed": 0, "accuracy": 0}
        cid = (await create(client, auto_start=True, scoring_weights=weights))["id"]
        r = await client.post(f"{BASE}/{cid}/complete", json={"accuracy": 0.0})
        assert r.json()["result"]["total_score"] == 100


class TestChallengeRemoval:
    """Tests for evicting challenge sessions."""

    async def test_delete_evicts_session(self, client: AsyncClient):
        cid = (await create(client, auto_start=True))["id"]
        before = (await client.get("/health")).json()["active_challenges"]

        r = await client.delete(f"{BASE}/{cid}")
        assert r.status_code == 200
        assert r.json() == {"success": True, "message": f"Challenge {cid} removed"}
        assert (await client.get(f"{BASE}/{cid}")).status_code == 404
        assert (await client.get("/health")).json()["active_challenges"] == before - 1

    async def test_delete_unknown_is_404(self, client: AsyncClient):
        r = await client.delete(f"{BASE}/nope")
        assert r.status_code == 404
        assert r.json()["detail"] == "Challenge nope not found"


class TestChallengeErrors:
    """Tests for error mapping on challenge endpoints."""

    async def test_unknown_challenge_is_404(self, client: AsyncClient):
        r = await client.get(f"{BASE}/nope")
        assert r.status_code == 404
        assert r.json()["detail"] == "Challenge nope not found"

    async def test_pause_before_start_is_409(self, client: AsyncClient):
        cid = (await create(client))["id"]
        r = await client.post(f"{BASE}/{cid}/pause")
        assert r.status_code == 409
        assert r.json()["detail"] == "Invalid transition: ready -> paused"

    async def test_non_positive_time_limit_is_422(self, client: AsyncClient):
        r = await client.post(BASE, json={"time_limit": 0})
        assert r.status_code == 422

    async def test_accuracy_out_of_range_is_422(self, client: AsyncClient):
        cid = (await create(client, auto_start=True))["id"]
        r = await client.post(f"{BASE}/{cid}/complete", json={"accuracy": 1.5})
        assert r.status_code == 422
