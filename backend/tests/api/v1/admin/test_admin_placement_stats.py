"""
Tests for placement statistics, result audit and retake admin endpoints.
"""
import pytest

BASE = "/v1/admin"


@pytest.fixture
async def completed_session_id(async_client, async_auth_headers, question_bank):
    """Start and submit a test with every answer wrong."""
    start = await async_client.post(
        "/v1/placement-test/start", headers=async_auth_headers
    )
    data = start.json()
    submit = await async_client.post(
        f"/v1/placement-test/{data['session']['id']}/submit",
        json={
            "answers": [
                {"question_id": q["id"], "answer": "Z"} for q in data["questions"]
            ]
        },
        headers=async_auth_headers,
    )
    assert submit.status_code == 200, submit.text
    return data["session"]["id"]


class TestPlacementStats:
    """Tests for GET /v1/admin/placement-stats."""

    async def test_empty_stats(self, async_client, admin_headers):
        response = await async_client.get(
            f"{BASE}/placement-stats", headers=admin_headers
        )

        assert response.status_code == 200
        body = response.json()
        assert body["total_completed"] == 0
        assert [b["range"] for b in body["score_distribution"]] == [
            "0-19",
            "20-39",
            "40-59",
            "60-79",
            "80-100",
        ]

    async def test_stats_after_completion(
        self, async_client, admin_headers, completed_session_id
    ):
        response = await async_client.get(
            f"{BASE}/placement-stats", headers=admin_headers
        )

        body = response.json()
        assert body["total_completed"] == 1
        assert body["level_distribution"]["beginner"] == 1
        assert body["score_distribution"][0] == {"range": "0-19", "count": 1}
        assert all(c["average_percentage"] == 0 for c in body["category_averages"])

    async def test_requires_admin_token(self, async_client, async_auth_headers):
        response = await async_client.get(
            f"{BASE}/placement-stats", headers=async_auth_headers
        )

        assert response.status_code == 422


class TestReaggregate:
    """Tests for GET /v1/admin/placement-sessions/{id}/reaggregate."""

    async def test_stored_matches_recomputed(
        self, async_client, admin_headers, completed_session_id
    ):
        response = await async_client.get(
            f"{BASE}/placement-sessions/{completed_session_id}/reaggregate",
            headers=admin_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "completed"
        assert body["matches"] is True
        assert body["stored"] == body["recomputed"]

    async def test_session_abandoned_by_retake_can_be_audited(
        self, async_client, admin_headers, async_test_user, completed_session_id
    ):
        retake = await async_client.post(
            f"{BASE}/placement-retake/{async_test_user.id}", headers=admin_headers
        )
        assert retake.status_code == 200

        response = await async_client.get(
            f"{BASE}/placement-sessions/{completed_session_id}/reaggregate",
            headers=admin_headers,
        )

        body = response.json()
        assert body["status"] == "abandoned"
        assert body["stored"] is not None
        assert body["stored"]["percentage_score"] == 0
        assert body["matches"] is True

    async def test_in_progress_has_no_stored_aggregate(
        self, async_client, admin_headers, async_auth_headers, question_bank
    ):
        start = await async_client.post(
            "/v1/placement-test/start", headers=async_auth_headers
        )
        session_id = start.json()["session"]["id"]

        response = await async_client.get(
            f"{BASE}/placement-sessions/{session_id}/reaggregate",
            headers=admin_headers,
        )

        body = response.json()
        assert body["stored"] is None
        assert body["matches"] is False
        assert body["recomputed"]["total_questions"] == 0

    async def test_unknown_session(self, async_client, admin_headers):
        response = await async_client.get(
            f"{BASE}/placement-sessions/321/reaggregate", headers=admin_headers
        )

        assert response.status_code == 404


class TestRetake:
    """Tests for POST /v1/admin/placement-retake/{user_id}."""

    async def test_retake_allows_new_start(
        self,
        async_client,
        admin_headers,
        async_auth_headers,
        async_test_user,
        completed_session_id,
    ):
        blocked = await async_client.post(
            "/v1/placement-test/start", headers=async_auth_headers
        )
        assert blocked.status_code == 409

        response = await async_client.post(
            f"{BASE}/placement-retake/{async_test_user.id}", headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json()["sessions_abandoned"] == 1

        restarted = await async_client.post(
            "/v1/placement-test/start", headers=async_auth_headers
        )
        assert restarted.status_code == 200
        assert restarted.json()["session"]["attempt_number"] == 2

    async def test_retake_twice_is_harmless(
        self, async_client, admin_headers, async_test_user, completed_session_id
    ):
        url = f"{BASE}/placement-retake/{async_test_user.id}"
        await async_client.post(url, headers=admin_headers)

        response = await async_client.post(url, headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["sessions_abandoned"] == 0

    async def test_unknown_user_returns_404(self, async_client, admin_headers):
        response = await async_client.post(
            f"{BASE}/placement-retake/9876", headers=admin_headers
        )

        assert response.status_code == 404
