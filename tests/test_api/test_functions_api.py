"""
Tests for /functions/v1 endpoints and the impersonation flow
"""
from unittest.mock import patch

from app.config import Settings
from app.domain.role import Role

NEW_USER = {
    "client_code": "YQ100",
    "full_name": "Бакыт Осмонов",
    "phone": "+996555123456",
    "pvz_location": "nariman",
    "password": "secret123",
}


class TestCreateUser:
    def test_requires_session(self, client):
        response = client.post("/functions/v1/create-user", json=NEW_USER)
        assert response.status_code == 401
        assert response.json()["kind"] == "unauthenticated"

    def test_non_admin_forbidden(self, client, make_account, login):
        make_account(role=Role.PVZ)
        login("+996555000111")
        response = client.post("/functions/v1/create-user", json=NEW_USER)
        assert response.status_code == 403
        assert response.json() == {"error": "Доступ запрещён", "kind": "forbidden"}

    def test_admin_creates_user(self, client, admin_account, login):
        login("+996700900900")
        response = client.post("/functions/v1/create-user", json=NEW_USER)
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert isinstance(body["user_id"], int)

        again = client.post("/functions/v1/create-user", json=dict(NEW_USER, phone="+996555654321"))
        assert again.status_code == 409
        assert again.json()["error"] == "Пользователь с таким ID уже существует"

    def test_missing_fields(self, client, admin_account, login):
        login("+996700900900")
        response = client.post("/functions/v1/create-user", json={"client_code": "YQ1"})
        assert response.status_code == 400
        assert response.json()["error"] == "Все поля обязательны"


class TestTelegramAuth:
    def test_unknown_id(self, client):
        response = client.post("/functions/v1/telegram-auth", json={"telegram_id": "404"})
        assert response.status_code == 404
        assert response.json()["error"] == "User not found"

    def test_token_logs_in(self, client, make_account):
        user, _ = make_account(client_code="YQ9", telegram_id="555001")
        body = client.post("/functions/v1/telegram-auth", json={"telegram_id": 555001}).json()
        assert body["user"]["client_code"] == "YQ9"

        assert client.post("/auth/redeem", json={"token": body["token"]}).status_code == 200
        assert client.get("/auth/me").json()["user_id"] == user.id


class TestCreateAdmin:
    def test_bootstrap_then_exists(self, client):
        settings = Settings(BOOTSTRAP_ADMIN_PHONE="+996558105551", BOOTSTRAP_ADMIN_PASSWORD="admin-pass-1")
        with patch("app.application.bootstrap.get_settings", return_value=settings):
            first = client.post("/functions/v1/create-admin")
            second = client.post("/functions/v1/create-admin")

        assert first.status_code == 200
        assert first.json()["message"] == "Admin created successfully"
        assert second.json() == {"message": "Admin already exists"}

    def test_not_configured(self, client):
        settings = Settings(BOOTSTRAP_ADMIN_PHONE="", BOOTSTRAP_ADMIN_PASSWORD="")
        with patch("app.application.bootstrap.get_settings", return_value=settings):
            response = client.post("/functions/v1/create-admin")
        assert response.status_code == 400
        assert response.json()["kind"] == "validation"


class TestImpersonationFlow:
    def test_login_as_user_and_back(self, client, admin_account, make_account, login):
        admin, _ = admin_account
        target, _ = make_account(phone="+996555111222", full_name="Айбек Мамытов", client_code="YQ7")
        login("+996700900900")

        issued = client.post("/functions/v1/admin-login-as-user", json={"target_user_id": target.id}).json()
        assert issued["success"] is True
        assert issued["user_name"] == "Айбек Мамытов"
        assert issued["admin_id"] == admin.id

        redeemed = client.post("/auth/impersonation/redeem", json={"token": issued["token"]})
        assert redeemed.status_code == 200

        me = client.get("/auth/me").json()
        assert me["user_id"] == target.id
        assert me["impersonating"] == {"user_name": "Айбек Мамытов", "admin_id": admin.id}
        # acting as the client: no admin rights
        assert client.get("/api/v1/admin/users").status_code == 403

        restored = client.post("/auth/impersonation/restore")
        assert restored.status_code == 200
        assert restored.json()["redirect"] == "/admin/users"
        assert client.get("/auth/me").json()["user_id"] == admin.id
        assert client.get("/api/v1/admin/users").status_code == 200

    def test_ticket_is_single_use(self, client, admin_account, make_account, login):
        target, _ = make_account(phone="+996555111222", client_code="YQ7")
        login("+996700900900")
        token = client.post("/functions/v1/admin-login-as-user", json={"target_user_id": target.id}).json()["token"]

        assert client.post("/auth/impersonation/redeem", json={"token": token}).status_code == 200
        client.post("/auth/impersonation/restore")
        assert client.post("/auth/impersonation/redeem", json={"token": token}).status_code == 401

    def test_unknown_target(self, client, admin_account, login):
        login("+996700900900")
        response = client.post("/functions/v1/admin-login-as-user", json={"target_user_id": 999})
        assert response.status_code == 404

    def test_restore_without_impersonation(self, client, admin_account, login):
        login("+996700900900")
        assert client.post("/auth/impersonation/restore").status_code == 401
