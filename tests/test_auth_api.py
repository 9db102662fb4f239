"""
DevCamper API — Auth Endpoint Tests
====================================

Registration, login, the protect guard (header vs cookie), profile updates
and the forgot/reset password flow. Outgoing email is mocked.
"""

from unittest.mock import AsyncMock, patch

import pytest

from devcamper.services.email_service import email_service

AUTH = "/api/v1/auth"


async def register(client, email="jane@example.com", password="123456", role="user"):
    response = await client.post(
        f"{AUTH}/register",
        json={"name": "Jane Doe", "email": email, "password": password, "role": role},
    )
    client.cookies.clear()
    return response


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


class TestRegisterAndLogin:
    @pytest.mark.asyncio
    async def test_register_returns_token_and_sets_cookie(self, test_client):
        response = await test_client.post(
            f"{AUTH}/register",
            json={"name": "Jane Doe", "email": "Jane@Example.com", "password": "123456", "role": "publisher"},
        )
        test_client.cookies.clear()

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["token"]
        cookie = response.headers["set-cookie"]
        assert cookie.startswith("token=")
        assert "httponly" in cookie.lower()

        me = await test_client.get(f"{AUTH}/me", headers=bearer(body["token"]))
        data = me.json()["data"]
        assert data["email"] == "jane@example.com"
        assert data["role"] == "publisher"
        assert "password_hash" not in data

    @pytest.mark.asyncio
    async def test_duplicate_email_rejected(self, test_client):
        await register(test_client)
        response = await register(test_client)

        assert response.status_code == 400
        assert response.json()["error"] == "duplicate_error"
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_admin_role_cannot_be_self_assigned(self, test_client):
        response = await register(test_client, role="admin")
        assert response.status_code == 422
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_login(self, test_client):
        await register(test_client)
        response = await test_client.post(f"{AUTH}/login", json={"email": "jane@example.com", "password": "123456"})
        test_client.cookies.clear()

        assert response.status_code == 200
        assert response.json()["token"]

    @pytest.mark.asyncio
    async def test_login_requires_both_fields(self, test_client):
        response = await test_client.post(f"{AUTH}/login", json={"email": "jane@example.com"})
        assert response.status_code == 400
        assert response.json()["message"] == "Please provide an email and password"

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, test_client):
        await register(test_client)
        response = await test_client.post(f"{AUTH}/login", json={"email": "jane@example.com", "password": "wrong!"})
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials"

    @pytest.mark.asyncio
    async def test_login_unknown_email(self, test_client):
        response = await test_client.post(f"{AUTH}/login", json={"email": "ghost@example.com", "password": "123456"})
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials"


class TestProtect:
    @pytest.mark.asyncio
    async def test_no_token(self, test_client):
        response = await test_client.get(f"{AUTH}/me")

        assert response.status_code == 401
        body = response.json()
        assert body == {
            "success": False,
            "error": "not_authenticated",
            "message": "Not authorized to access this route",
            "request_id": response.headers["X-Request-ID"],
        }

    @pytest.mark.asyncio
    async def test_invalid_token(self, test_client):
        response = await test_client.get(f"{AUTH}/me", headers=bearer("garbage"))
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_cookie_token(self, test_client):
        token = (await register(test_client)).json()["token"]
        test_client.cookies.set("token", token)
        try:
            response = await test_client.get(f"{AUTH}/me")
        finally:
            test_client.cookies.clear()
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_header_wins_over_cookie(self, test_client):
        token = (await register(test_client)).json()["token"]
        test_client.cookies.set("token", "stale-cookie-token")
        try:
            response = await test_client.get(f"{AUTH}/me", headers=bearer(token))
        finally:
            test_client.cookies.clear()
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_token_of_deleted_user(self, test_client, make_user):
        admin, admin_headers = await make_user("admin")
        token = (await register(test_client)).json()["token"]
        me = (await test_client.get(f"{AUTH}/me", headers=bearer(token))).json()["data"]

        await test_client.delete(f"/api/v1/users/{me['id']}", headers=admin_headers)

        response = await test_client.get(f"{AUTH}/me", headers=bearer(token))
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_logout_clears_cookie(self, test_client):
        token = (await register(test_client)).json()["token"]
        response = await test_client.get(f"{AUTH}/logout", headers=bearer(token))
        test_client.cookies.clear()

        assert response.status_code == 200
        assert response.json() == {"success": True, "data": {}}
        assert response.headers["set-cookie"].startswith("token=none")


class TestProfile:
    @pytest.mark.asyncio
    async def test_update_details(self, test_client):
        token = (await register(test_client)).json()["token"]
        response = await test_client.put(
            f"{AUTH}/updatedetails",
            json={"name": "Jane Smith", "email": "jane.smith@example.com"},
            headers=bearer(token),
        )
        assert response.status_code == 200
        assert response.json()["data"]["name"] == "Jane Smith"
        assert response.json()["data"]["email"] == "jane.smith@example.com"

    @pytest.mark.asyncio
    async def test_update_details_to_taken_email(self, test_client):
        await register(test_client, email="taken@example.com")
        token = (await register(test_client)).json()["token"]
        response = await test_client.put(
            f"{AUTH}/updatedetails", json={"email": "taken@example.com"}, headers=bearer(token)
        )
        assert response.status_code == 400
        assert response.json()["error"] == "duplicate_error"

    @pytest.mark.asyncio
    async def test_update_password(self, test_client):
        token = (await register(test_client)).json()["token"]

        wrong = await test_client.put(
            f"{AUTH}/updatepassword",
            json={"current_password": "nope!!", "new_password": "abcdef"},
            headers=bearer(token),
        )
        assert wrong.status_code == 401
        assert wrong.json()["message"] == "Password is incorrect"

        ok = await test_client.put(
            f"{AUTH}/updatepassword",
            json={"current_password": "123456", "new_password": "abcdef"},
            headers=bearer(token),
        )
        test_client.cookies.clear()
        assert ok.status_code == 200
        assert ok.json()["token"]

        login = await test_client.post(f"{AUTH}/login", json={"email": "jane@example.com", "password": "abcdef"})
        test_client.cookies.clear()
        assert login.status_code == 200


class TestPasswordReset:
    @pytest.mark.asyncio
    async def test_forgot_and_reset(self, test_client):
        await register(test_client)

        with patch.object(email_service, "send", new_callable=AsyncMock) as mock_send:
            response = await test_client.post(f"{AUTH}/forgotpassword", json={"email": "jane@example.com"})

        assert response.status_code == 200
        assert response.json() == {"success": True, "data": "Email sent"}
        kwargs = mock_send.await_args.kwargs
        assert kwargs["to"] == "jane@example.com"
        assert "http://test/api/v1/auth/resetpassword/" in kwargs["body"]
        raw_token = kwargs["body"].rsplit("/resetpassword/", 1)[1].strip()

        reset = await test_client.put(f"{AUTH}/resetpassword/{raw_token}", json={"password": "newpass"})
        test_client.cookies.clear()
        assert reset.status_code == 200
        assert reset.json()["token"]

        login = await test_client.post(f"{AUTH}/login", json={"email": "jane@example.com", "password": "newpass"})
        test_client.cookies.clear()
        assert login.status_code == 200

        # Tokens are single use
        again = await test_client.put(f"{AUTH}/resetpassword/{raw_token}", json={"password": "another"})
        assert again.status_code == 400
        assert again.json()["message"] == "Invalid token"

    @pytest.mark.asyncio
    async def test_forgot_password_unknown_email(self, test_client):
        response = await test_client.post(f"{AUTH}/forgotpassword", json={"email": "ghost@example.com"})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_email_failure_is_500(self, test_client):
        # SMTP_HOST is unset in the test settings
        await register(test_client)
        response = await test_client.post(f"{AUTH}/forgotpassword", json={"email": "jane@example.com"})

        assert response.status_code == 500
        assert response.json()["error"] == "email_error"

    @pytest.mark.asyncio
    async def test_unknown_reset_token(self, test_client):
        response = await test_client.put(f"{AUTH}/resetpassword/{'0' * 40}", json={"password": "newpass"})
        assert response.status_code == 400
