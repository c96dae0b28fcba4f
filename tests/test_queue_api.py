from clinic_rotation.core.security import UserRole
from tests.conftest import TestingSessionLocal, add_clinician, auth_headers

FRONT_DESK = auth_headers(UserRole.FRONT_DESK)
ADMIN = auth_headers(UserRole.ADMIN)


def seed_doctors(*names):
    db = TestingSessionLocal()
    try:
        return [add_clinician(db, name).id for name in names]
    finally:
        db.close()


class TestQueueAccess:

    def test_requires_token(self, client):
        response = client.get("/api/v1/queue/peek")
        assert response.status_code in (401, 403)

    def test_rejects_invalid_token(self, client):
        headers = {"Authorization": "Bearer invalid_token"}

        response = client.get("/api/v1/queue/peek", headers=headers)
        assert response.status_code == 401

    def test_doctors_cannot_drive_the_queue(self, client):
        response = client.post("/api/v1/queue/next", headers=auth_headers(UserRole.DOCTOR))
        assert response.status_code == 403

    def test_reset_is_admin_only(self, client):
        seed_doctors("Dr. Aydin")

        response = client.post(
            "/api/v1/queue/reset", json={"confirmed": True}, headers=FRONT_DESK
        )
        assert response.status_code == 403


class TestQueueEndpoints:

    def test_initialize_queue(self, client):
        ids = seed_doctors("Dr. Aydin", "Dr. Baran", "Dr. Cem")

        response = client.post("/api/v1/queue/initialize", headers=FRONT_DESK)
        assert response.status_code == 200

        data = response.json()
        assert data["cursor"] == 0
        assert data["size"] == 3
        assert sorted(entry["clinician_id"] for entry in data["entries"]) == sorted(ids)
        assert data["entries"][0]["is_next"] is True
        assert data["next_clinician"]["clinician_id"] == data["entries"][0]["clinician_id"]
        assert data["next_clinician"]["clinician_name"].startswith("Dr. ")

    def test_initialize_without_doctors(self, client):
        response = client.post("/api/v1/queue/initialize", headers=FRONT_DESK)
        assert response.status_code == 409
        assert response.json()["error"] == "NoEligibleClinicians"

        response = client.get("/api/v1/queue", headers=FRONT_DESK)
        assert response.status_code == 404

    def test_next_cycles_through_everyone(self, client, fake_redis):
        ids = seed_doctors("Dr. Aydin", "Dr. Baran", "Dr. Cem")

        picks = [
            client.post("/api/v1/queue/next", headers=FRONT_DESK).json()["clinician_id"]
            for _ in range(3)
        ]
        assert sorted(picks) == sorted(ids)

        state = client.get("/api/v1/queue", headers=FRONT_DESK).json()
        assert state["cursor"] == 0
        assert [entry["clinician_id"] for entry in state["entries"]] == picks
        assert len(fake_redis.published) == 4

    def test_next_warns_on_back_to_back_rotation(self, client):
        seed_doctors("Dr. Solo")

        first = client.post("/api/v1/queue/next", headers=FRONT_DESK).json()
        second = client.post("/api/v1/queue/next", headers=FRONT_DESK).json()

        assert first["warnings"] == []
        assert second["clinician_id"] == first["clinician_id"]
        assert second["warnings"][0]["count"] == 2
        assert "Dr. Solo" in second["warnings"][0]["message"]

    def test_peek_does_not_consume(self, client):
        seed_doctors("Dr. Aydin", "Dr. Baran")

        empty = client.get("/api/v1/queue/peek", headers=FRONT_DESK).json()
        assert empty == {"clinician_id": None, "clinician_name": None}

        client.post("/api/v1/queue/initialize", headers=FRONT_DESK)
        first = client.get("/api/v1/queue/peek", headers=FRONT_DESK).json()
        second = client.get("/api/v1/queue/peek", headers=FRONT_DESK).json()
        assert first == second

        picked = client.post("/api/v1/queue/next", headers=FRONT_DESK).json()
        assert picked["clinician_id"] == first["clinician_id"]
        assert picked["source"] == "rotation"

    def test_reset_requires_confirmation(self, client):
        seed_doctors("Dr. Aydin", "Dr. Baran")
        client.post("/api/v1/queue/next", headers=FRONT_DESK)

        response = client.post(
            "/api/v1/queue/reset", json={"confirmed": False}, headers=ADMIN
        )
        assert response.status_code == 400
        assert response.json()["error"] == "ResetNotConfirmed"

        state = client.get("/api/v1/queue", headers=FRONT_DESK).json()
        assert state["cursor"] == 1

    def test_reset_starts_new_rotation(self, client, fake_redis):
        seed_doctors("Dr. Aydin", "Dr. Baran")
        client.post("/api/v1/queue/next", headers=FRONT_DESK)

        response = client.post(
            "/api/v1/queue/reset", json={"confirmed": True}, headers=ADMIN
        )
        assert response.status_code == 200
        assert response.json()["cursor"] == 0
        assert '"reset"' in fake_redis.published[-1][1]


class TestAssignments:

    def test_rotation_assignment(self, client):
        ids = seed_doctors("Dr. Aydin", "Dr. Baran")

        response = client.post(
            "/api/v1/assignments", json={"source": "rotation"}, headers=FRONT_DESK
        )
        assert response.status_code == 200

        data = response.json()
        assert data["source"] == "rotation"
        assert data["clinician_id"] in ids
        assert data["warnings"] == []

    def test_back_to_back_rotation_warns(self, client):
        seed_doctors("Dr. Solo")

        first = client.post(
            "/api/v1/assignments", json={"source": "rotation"}, headers=FRONT_DESK
        ).json()
        second = client.post(
            "/api/v1/assignments", json={"source": "rotation"}, headers=FRONT_DESK
        ).json()

        assert first["warnings"] == []
        assert len(second["warnings"]) == 1
        assert second["warnings"][0]["count"] == 2
        assert "Dr. Solo" in second["warnings"][0]["message"]

    def test_preference_assignment_skips_rotation(self, client):
        ids = seed_doctors("Dr. Aydin", "Dr. Baran")

        for _ in range(2):
            response = client.post(
                "/api/v1/assignments",
                json={"source": "preference", "clinician_id": ids[1]},
                headers=FRONT_DESK
            )
            assert response.status_code == 200
            assert response.json()["clinician_name"] == "Dr. Baran"
            assert response.json()["warnings"] == []

        assert client.get("/api/v1/queue", headers=FRONT_DESK).status_code == 404

    def test_preference_for_unknown_clinician(self, client):
        response = client.post(
            "/api/v1/assignments",
            json={"source": "preference", "clinician_id": 999},
            headers=FRONT_DESK
        )
        assert response.status_code == 404
        assert response.json()["error"] == "ClinicianNotFound"

    def test_preference_needs_a_clinician(self, client):
        response = client.post(
            "/api/v1/assignments", json={"source": "preference"}, headers=FRONT_DESK
        )
        assert response.status_code == 400


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
