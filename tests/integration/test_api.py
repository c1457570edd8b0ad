"""
Integration Tests for the FastAPI service

Tests for health, case catalog, ranking, points and the session endpoints.
Uses async httpx for ASGI app testing.
"""
import pytest
import httpx
import uuid

from aiie.main import app


@pytest.fixture
async def async_client():
    """Create async test client."""
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client


@pytest.fixture
def user_id() -> str:
    return f"user-{uuid.uuid4().hex[:8]}"


async def _open_session(client, user_id, case_id="ankle-inversion", mode="learning"):
    response = await client.post("/api/v1/sessions", json={
        "case_id": case_id, "user_id": user_id, "mode": mode,
    })
    assert response.status_code == 201
    return response.json()["session_id"]


@pytest.mark.asyncio
class TestHealthEndpoints:
    """Tests for health check endpoints."""

    async def test_root_endpoint(self, async_client):
        response = await async_client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_health_endpoint(self, async_client):
        response = await async_client.get("/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "healthy"
        assert "version" in data
        assert data["active_sessions"] >= 0


@pytest.mark.asyncio
class TestCaseEndpoints:
    """Tests for the case catalog."""

    async def test_list_cases(self, async_client):
        response = await async_client.get("/api/v1/cases")
        assert response.status_code == 200
        ids = [c["id"] for c in response.json()["cases"]]
        assert "ankle-inversion" in ids

    async def test_get_case_hides_hints(self, async_client):
        response = await async_client.get("/api/v1/cases/breast-mass-45")
        assert response.status_code == 200

        data = response.json()
        assert data["clinical_input"]["red_flags"] == ["palpable breast mass"]
        assert len(data["imaging_catalog"]) == 4
        assert "hints" not in data
        assert "optimal_imaging_ids" not in data

    async def test_unknown_case_is_404(self, async_client):
        response = await async_client.get("/api/v1/cases/does-not-exist")
        assert response.status_code == 404
        assert response.json()["error"] == "CASE_NOT_FOUND"

    async def test_case_ranking(self, async_client):
        response = await async_client.get("/api/v1/cases/peds-rlq-pain/ranking")
        assert response.status_code == 200

        data = response.json()
        assert data["optimal_option_id"] == "us-appendix"
        assert data["results"][0]["is_optimal"]
        assert len(data["results"]) == 5


@pytest.mark.asyncio
class TestRankEndpoint:
    """Tests for ad-hoc ranking."""

    async def test_rank(self, async_client):
        response = await async_client.post("/api/v1/rank", json={
            "clinical_input": {
                "age": 70, "sex": "male", "duration": "acute", "severity": "severe",
                "red_flags": ["fever"], "neurologic_deficit": True,
            },
            "imaging_catalog": [
                {"id": "ct", "modality": "ct", "cost_usd": 400, "radiation_msv": 2},
                {"id": "mri", "modality": "mri", "cost_usd": 1200},
            ],
        })
        assert response.status_code == 200

        data = response.json()
        assert data["optimal_option_id"] == "mri"
        assert [r["imaging_option_id"] for r in data["results"]] == ["mri", "ct", "no-imaging"]
        assert data["results"][-1]["acr_rating"] == 1
        assert data["results"][-1]["alternative_recommendation"].startswith("Consider ")
        assert any(c["citation"] for c in data["results"][0]["contributions"])

    async def test_empty_catalog(self, async_client):
        response = await async_client.post("/api/v1/rank", json={
            "clinical_input": {"age": 30, "sex": "female"},
            "imaging_catalog": [],
        })
        assert response.status_code == 200
        assert response.json() == {"results": [], "optimal_option_id": None}

    async def test_missing_age_is_input_error(self, async_client):
        response = await async_client.post("/api/v1/rank", json={
            "clinical_input": {"sex": "female"},
            "imaging_catalog": [{"id": "xr", "modality": "xray"}],
        })
        assert response.status_code == 422

        data = response.json()
        assert data["error"] == "INPUT_ERROR"
        assert data["details"]["field"] == "age"

    async def test_negative_cost_is_input_error(self, async_client):
        response = await async_client.post("/api/v1/rank", json={
            "clinical_input": {"age": 30, "sex": "female"},
            "imaging_catalog": [{"id": "xr", "modality": "xray", "cost_usd": -5}],
        })
        assert response.status_code == 422
        assert response.json()["details"]["field"] == "cost_usd"


@pytest.mark.asyncio
class TestPointsEndpoint:
    """Tests for the points calculator."""

    async def test_points(self, async_client):
        response = await async_client.post("/api/v1/points", json={
            "effective_acr_rating": 9,
            "current_streak_days": 10,
            "time_spent_seconds": 90,
            "hints_used": 0,
        })
        assert response.status_code == 200
        assert response.json() == {
            "base": 90, "streak_bonus": 9, "speed_bonus": 9, "no_hints_bonus": 9, "total": 117,
        }

    async def test_rating_out_of_range(self, async_client):
        response = await async_client.post("/api/v1/points", json={"effective_acr_rating": 10})
        assert response.status_code == 422


@pytest.mark.asyncio
class TestSessionEndpoints:
    """Tests for the learner session lifecycle."""

    async def test_learning_flow(self, async_client, user_id):
        session_id = await _open_session(async_client, user_id)
        base = f"/api/v1/sessions/{session_id}"

        response = await async_client.post(f"{base}/hints", json={})
        assert response.json()["accepted"]
        assert len(response.json()["session"]["revealed_hints"]) == 1

        response = await async_client.post(f"{base}/selection", json={"option_id": "xr-ankle"})
        assert response.json()["session"]["state"]["selection"] == ["xr-ankle"]

        response = await async_client.post(f"{base}/submit")
        data = response.json()
        assert data["accepted"]
        evaluation = data["session"]["state"]["evaluation"]
        assert evaluation["is_correct"]
        assert evaluation["score"] == 95

        response = await async_client.post(f"{base}/review")
        assert response.json()["session"]["state"]["phase"] == "reviewing"

        response = await async_client.get(f"/api/v1/users/{user_id}/attempts")
        data = response.json()
        assert len(data["attempts"]) == 1
        assert data["streak_days"] == 1

    async def test_empty_submit_is_denied(self, async_client, user_id):
        session_id = await _open_session(async_client, user_id)
        response = await async_client.post(f"/api/v1/sessions/{session_id}/submit")
        assert response.status_code == 200

        data = response.json()
        assert not data["accepted"]
        assert data["reason"] == "incomplete_selection"
        assert data["reason_kind"] == "incomplete_selection"

    async def test_quiz_denies_hints(self, async_client, user_id):
        session_id = await _open_session(async_client, user_id, mode="quiz")
        response = await async_client.post(f"/api/v1/sessions/{session_id}/hints", json={})
        data = response.json()
        assert data["reason"] == "hints_unavailable_in_quiz"
        assert data["reason_kind"] == "invalid_transition"
        assert data["session"]["state"]["countdown_active"]

    async def test_mode_switch(self, async_client, user_id):
        session_id = await _open_session(async_client, user_id)
        response = await async_client.post(
            f"/api/v1/sessions/{session_id}/mode", json={"mode": "quiz"}
        )
        state = response.json()["session"]["state"]
        assert state["mode"] == "quiz"
        assert state["countdown_active"]

    async def test_clear_selection(self, async_client, user_id):
        session_id = await _open_session(async_client, user_id)
        base = f"/api/v1/sessions/{session_id}"
        await async_client.post(f"{base}/selection", json={"option_id": "ct-ankle"})
        response = await async_client.post(f"{base}/selection", json={})
        assert response.json()["session"]["state"]["selection"] == []

    async def test_retry(self, async_client, user_id):
        session_id = await _open_session(async_client, user_id)
        base = f"/api/v1/sessions/{session_id}"
        await async_client.post(f"{base}/selection", json={"option_id": "mri-ankle"})
        await async_client.post(f"{base}/submit")

        response = await async_client.post(f"{base}/retry")
        data = response.json()
        assert data["accepted"]
        assert data["session"]["state"]["attempt_number"] == 2

    async def test_unknown_session_is_404(self, async_client):
        response = await async_client.get("/api/v1/sessions/sess_missing")
        assert response.status_code == 404

    async def test_unknown_case_session_is_404(self, async_client, user_id):
        response = await async_client.post("/api/v1/sessions", json={
            "case_id": "nope", "user_id": user_id,
        })
        assert response.status_code == 404

    async def test_delete_session(self, async_client, user_id):
        session_id = await _open_session(async_client, user_id)
        response = await async_client.delete(f"/api/v1/sessions/{session_id}")
        assert response.status_code == 204

        response = await async_client.get(f"/api/v1/sessions/{session_id}")
        assert response.status_code == 404
