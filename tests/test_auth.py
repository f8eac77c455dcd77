from fastapi import status
import pytest

from app.errors import ExpiredToken, InvalidToken, NoToken
from app.services.auth_service import AuthService, hash_password, verify_password

ADMIN = {"username": "admin", "password": "s3cret-pass", "name": "Site Admin"}


def test_password_hashing():
    stored = hash_password("hunter2")
    assert stored != "hunter2"
    assert verify_password("hunter2", stored)
    assert not verify_password("hunter3", stored)
    assert hash_password("hunter2") != stored


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
    assert client.get("/").text == "Server is running!"


def test_register_first_admin(client):
    assert client.get("/api/auth/check-admin-exists").json()["admin_exists"] is False

    response = client.post("/api/auth/register", json=ADMIN)
    assert response.status_code == status.HTTP_201_CREATED
    body = response.json()
    assert body["token"]
    assert body["user"]["role"] == "admin"
    assert body["user"]["email"] == "admin@invoices.local"

    assert client.get("/api/auth/check-admin-exists").json()["admin_exists"] is True


def test_second_registration_is_rejected(client, auth_headers):
    response = client.post("/api/auth/register", json={"username": "other", "password": "pw"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"] == "Admin already exists"


def test_register_requires_credentials(client):
    response = client.post("/api/auth/register", json={"username": "admin"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["code"] == "REGISTRATION_REJECTED"


def test_login(client, auth_headers):
    response = client.post("/api/auth/login", json={"username": "admin", "password": ADMIN["password"]})
    assert response.status_code == status.HTTP_200_OK
    token = response.json()["token"]

    me = client.get("/api/auth/me", headers={"X-Auth-Token": token})
    assert me.status_code == status.HTTP_200_OK
    assert me.json()["username"] == "admin"
    assert "password_hash" not in me.json()


@pytest.mark.parametrize("username,password", [("admin", "wrong"), ("nobody", "s3cret-pass")])
def test_login_with_bad_credentials(client, auth_headers, username, password):
    response = client.post("/api/auth/login", json={"username": username, "password": password})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["code"] == "INVALID_CREDENTIALS"


def test_check_admin(client, auth_headers):
    response = client.get("/api/auth/check-admin", headers=auth_headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["is_admin"] is True


def test_change_password(client, auth_headers):
    response = client.post(
        "/api/auth/change-password",
        json={"current_password": "wrong", "new_password": "n3w"},
        headers=auth_headers,
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST

    response = client.post(
        "/api/auth/change-password",
        json={"current_password": ADMIN["password"], "new_password": "n3w"},
        headers=auth_headers,
    )
    assert response.status_code == status.HTTP_200_OK

    assert client.post("/api/auth/login", json={"username": "admin", "password": "n3w"}).status_code == 200
    old = client.post("/api/auth/login", json={"username": "admin", "password": ADMIN["password"]})
    assert old.status_code == status.HTTP_401_UNAUTHORIZED


def test_verify_token(conn):
    auth = AuthService(conn)
    token, user = auth.register("admin", "pw")
    identity = auth.verify(token)
    assert identity.user_id == user.id
    assert identity.username == "admin"
    assert identity.role.value == "admin"

    with pytest.raises(NoToken):
        auth.verify(None)
    with pytest.raises(InvalidToken):
        auth.verify(token + "x")


def test_expired_token(conn):
    auth = AuthService(conn, token_ttl_hours=0)
    token, _ = auth.register("admin", "pw")
    with pytest.raises(ExpiredToken):
        auth.verify(token)


def test_expired_token_over_http(client, db_path):
    from app.database import connect

    connection = connect(db_path)
    token, _ = AuthService(connection, token_ttl_hours=0).register("admin", "pw")
    connection.close()

    response = client.get("/api/invoices", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["code"] == "TOKEN_EXPIRED"


def _token_count(conn):
    return conn.execute("SELECT COUNT(*) FROM auth_tokens").fetchone()[0]


def test_expired_token_is_removed_on_verify(conn):
    auth = AuthService(conn, token_ttl_hours=0)
    token, _ = auth.register("admin", "pw")
    assert _token_count(conn) == 1
    with pytest.raises(ExpiredToken):
        auth.verify(token)
    assert _token_count(conn) == 0
    with pytest.raises(InvalidToken):
        auth.verify(token)


def test_new_login_clears_expired_tokens(conn):
    expired, _ = AuthService(conn, token_ttl_hours=0).register("admin", "pw")
    assert _token_count(conn) == 1

    token, _ = AuthService(conn).login("admin", "pw")
    assert _token_count(conn) == 1
    with pytest.raises(InvalidToken):
        AuthService(conn).verify(expired)
    assert AuthService(conn).verify(token).username == "admin"
