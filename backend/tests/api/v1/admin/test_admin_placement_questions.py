"""
Tests for the placement question bank admin endpoints.
"""
from factories import choice_key, matching_key

BASE = "/v1/admin/placement-questions"


def create_payload(**overrides):
    payload = {
        "question_text": "Match each acronym to its expansion.",
        "question_type": "acronym-matching",
        "category": "web-development",
        "difficulty": "easy",
        "points": 3,
        "time_allocation": 90,
        "skills_tested": ["acronyms"],
        "answer_key": matching_key(),
        "explanation": "Standard expansions.",
    }
    payload.update(overrides)
    return payload


class TestAdminTokenRequired:
    """Tests for X-Admin-Token enforcement."""

    async def test_missing_token_returns_422(self, async_client):
        response = await async_client.get(BASE)

        assert response.status_code == 422

    async def test_wrong_token_returns_401(self, async_client):
        response = await async_client.get(BASE, headers={"X-Admin-Token": "nope"})

        assert response.status_code == 401
        assert "WWW-Authenticate" not in response.headers


class TestCreateQuestion:
    """Tests for POST /v1/admin/placement-questions."""

    async def test_create_matching_question(self, async_client, admin_headers):
        response = await async_client.post(
            BASE, json=create_payload(), headers=admin_headers
        )

        assert response.status_code == 201, response.text
        body = response.json()
        assert body["id"] > 0
        assert body["question_type"] == "acronym-matching"
        assert body["answer_key"]["correct_matches"] == matching_key()["correct_matches"]
        assert body["is_active"] is True

    async def test_mismatched_answer_key_returns_400_with_fields(
        self, async_client, admin_headers
    ):
        payload = create_payload()
        payload["answer_key"]["correct_matches"][1]["right_id"] = "R7"

        response = await async_client.post(BASE, json=payload, headers=admin_headers)

        assert response.status_code == 400
        assert "answer_key.correct_matches[1].right_id" in response.json()["fields"]

    async def test_choice_key_for_matching_type_returns_400(
        self, async_client, admin_headers
    ):
        response = await async_client.post(
            BASE, json=create_payload(answer_key=choice_key("A")), headers=admin_headers
        )

        assert response.status_code == 400

    async def test_unknown_category_returns_422(self, async_client, admin_headers):
        response = await async_client.post(
            BASE, json=create_payload(category="cooking"), headers=admin_headers
        )

        assert response.status_code == 422


class TestListAndGetQuestions:
    """Tests for GET endpoints."""

    async def test_list_paginates(self, async_client, admin_headers, question_bank):
        response = await async_client.get(
            BASE, params={"page": 1, "limit": 4}, headers=admin_headers
        )

        body = response.json()
        assert body["total"] == 9
        assert body["pages"] == 3
        assert len(body["questions"]) == 4
        assert "answer_key" in body["questions"][0]

    async def test_list_filters(self, async_client, admin_headers, question_bank):
        response = await async_client.get(
            BASE,
            params={"difficulty": "hard", "is_active": True},
            headers=admin_headers,
        )

        body = response.json()
        assert body["total"] == 2
        assert {q["difficulty"] for q in body["questions"]} == {"hard"}

    async def test_get_one(self, async_client, admin_headers, question_bank):
        question = question_bank[0]

        response = await async_client.get(f"{BASE}/{question.id}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["question_text"] == question.question_text

    async def test_get_missing_returns_404(self, async_client, admin_headers):
        response = await async_client.get(f"{BASE}/4040", headers=admin_headers)

        assert response.status_code == 404


class TestUpdateQuestion:
    """Tests for PUT /v1/admin/placement-questions/{id}."""

    async def test_partial_update(self, async_client, admin_headers, question_bank):
        question = question_bank[0]

        response = await async_client.put(
            f"{BASE}/{question.id}",
            json={"points": 4, "is_active": False},
            headers=admin_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["points"] == 4
        assert body["is_active"] is False
        assert body["question_text"] == question.question_text

    async def test_null_is_active_returns_400(
        self, async_client, admin_headers, question_bank
    ):
        question = question_bank[0]

        response = await async_client.put(
            f"{BASE}/{question.id}", json={"is_active": None}, headers=admin_headers
        )

        assert response.status_code == 400
        assert "is_active" in response.json()["fields"]

    async def test_invalid_update_returns_400(
        self, async_client, admin_headers, question_bank
    ):
        question = question_bank[0]

        response = await async_client.put(
            f"{BASE}/{question.id}",
            json={"answer_key": choice_key("Q")},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert "answer_key.correct_option" in response.json()["fields"]


class TestDeleteQuestion:
    """Tests for DELETE /v1/admin/placement-questions/{id}."""

    async def test_delete_unused(self, async_client, admin_headers, question_bank):
        question = question_bank[0]

        response = await async_client.delete(
            f"{BASE}/{question.id}", headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json()["deleted"] is True
        missing = await async_client.get(f"{BASE}/{question.id}", headers=admin_headers)
        assert missing.status_code == 404

    async def test_delete_used_deactivates(
        self, async_client, admin_headers, async_auth_headers, question_bank
    ):
        start = await async_client.post(
            "/v1/placement-test/start", headers=async_auth_headers
        )
        used_id = start.json()["questions"][0]["id"]

        response = await async_client.delete(f"{BASE}/{used_id}", headers=admin_headers)

        assert response.json()["deleted"] is False
        question = await async_client.get(f"{BASE}/{used_id}", headers=admin_headers)
        assert question.json()["is_active"] is False
