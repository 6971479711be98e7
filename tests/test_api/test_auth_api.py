"""
Tests for /auth endpoints and /health
"""
from app.application.identity import IdentityGateway


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.text == "ok"


class TestRegisterAndLogin:
    def test_register_logs_in(self, client):
        response = client.post("/auth/register", json={
            "full_name": "Айбек Мамытов",
            "phone": "+996555000111",
            "password": "secret123",
            "pvz_location": "dostuk",
        })
        assert response.status_code == 200
        assert response.json()["client_code"] == "JL1"

        me = client.get("/auth/me").json()
        assert me["role"] == "user"
        assert me["home"] == "/dashboard"
        assert me["impersonating"] is None

    def test_register_validation_error_shape(self, client):
        response = client.post("/auth/register", json={
            "full_name": "Айбек Мамытов",
            "phone": "123",
            "password": "secret123",
            "pvz_location": "dostuk",
        })
        assert response.status_code == 400
        assert response.json() == {"error": "Введите корректный номер телефона", "kind": "validation"}

    def test_admin_login_redirect(self, client, admin_account, login):
        assert login("+996700900900")["redirect"] == "/admin/users"

    def test_wrong_password(self, client, make_account):
        make_account()
        response = client.post("/auth/login", json={"phone": "+996555000111", "password": "wrong123"})
        assert response.status_code == 401
        assert response.json()["kind"] == "unauthenticated"

    def test_me_without_session(self, client):
        assert client.get("/auth/me").status_code == 401

    def test_logout(self, client, make_account, login):
        make_account()
        login("+996555000111")
        assert client.post("/auth/logout").status_code == 200
        assert client.get("/auth/me").status_code == 401


class TestTokenLogin:
    def test_redeem_login_token(self, client, db_session, make_account):
        user, _ = make_account()
        token = IdentityGateway(db_session).issue_login_token(user.id)
        db_session.commit()

        response = client.post("/auth/redeem", json={"token": token})
        assert response.status_code == 200
        assert client.get("/auth/me").json()["user_id"] == user.id

        again = client.post("/auth/redeem", json={"token": token})
        assert again.status_code == 401


class TestChangePassword:
    def test_change(self, client, make_account, login):
        make_account()
        login("+996555000111")
        response = client.post("/auth/change-password", json={
            "new_password": "newpass1",
            "confirm_password": "newpass1",
        })
        assert response.status_code == 200
        client.post("/auth/logout")
        login("+996555000111", "newpass1")

    def test_mismatch(self, client, make_account, login):
        make_account()
        login("+996555000111")
        response = client.post("/auth/change-password", json={
            "new_password": "newpass1",
            "confirm_password": "newpass2",
        })
        assert response.status_code == 400
        assert response.json()["error"] == "Пароли не совпадают"
