"""
Integration tests for profile endpoints.
"""

import pytest


@pytest.fixture
def auth_headers(api_client, registration_payload):
    token = api_client.post("/api/auth/register", json=registration_payload).json()["token"]
    return {"Authorization": f"Bearer {token}"}


class TestProfile:
    """Tests for /api/user/profile."""

    @pytest.mark.api
    def test_get_profile(self, api_client, auth_headers):
        response = api_client.get("/api/user/profile", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["user"]["email"] == "a@b.ro"
        assert data["user"]["nume"] == "Popescu"

    @pytest.mark.api
    def test_get_profile_without_token(self, api_client):
        response = api_client.get("/api/user/profile")

        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Nu ești autentificat"}

    @pytest.mark.api
    def test_get_profile_invalid_token(self, api_client):
        response = api_client.get("/api/user/profile", headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 401
        assert response.json()["message"] == "Token invalid sau expirat"

    @pytest.mark.api
    def test_get_profile_unknown_account(self, api_client, jwt_handler):
        token = jwt_handler.create_session_token("missing-account")

        response = api_client.get("/api/user/profile", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 404
        assert response.json()["message"] == "Utilizator negăsit"

    @pytest.mark.api
    def test_state_token_is_not_a_session(self, api_client, jwt_handler):
        token = jwt_handler.create_state_token("github")

        response = api_client.get("/api/user/profile", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    @pytest.mark.api
    def test_update_profile(self, api_client, auth_headers):
        response = api_client.put(
            "/api/user/profile",
            headers=auth_headers,
            json={"prenume": "Vasile", "nrTelefon": "+40 723 456 789"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Profil actualizat cu succes"
        assert data["user"]["prenume"] == "Vasile"
        assert data["user"]["nrTelefon"] == "0723456789"
        assert data["user"]["nume"] == "Popescu"

    @pytest.mark.api
    def test_update_profile_invalid_phone(self, api_client, auth_headers):
        response = api_client.put("/api/user/profile", headers=auth_headers, json={"nrTelefon": "12345"})

        assert response.status_code == 400
        assert "phone" in response.json()["errors"]

    @pytest.mark.api
    def test_update_profile_taken_phone(self, api_client, auth_headers, registration_payload):
        registration_payload["email"] = "other@b.ro"
        registration_payload["nrTelefon"] = "0734567890"
        api_client.post("/api/auth/register", json=registration_payload)

        response = api_client.put("/api/user/profile", headers=auth_headers, json={"nrTelefon": "0734567890"})

        assert response.status_code == 400
        assert response.json()["message"] == "Numărul de telefon este deja înregistrat"

    @pytest.mark.api
    def test_update_profile_without_token(self, api_client):
        response = api_client.put("/api/user/profile", json={"prenume": "Vasile"})

        assert response.status_code == 401
