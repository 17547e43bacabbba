import threading
from datetime import datetime, timedelta, timezone

from models import storage
from models.user import User
from tests.helpers import PASSWORD, bearer, login, register


def test_register_then_duplicate(client):
    resp = register(client)
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["id"] > 0
    assert body["email"] == "a@x.com"
    assert body["name"] == "A"
    assert "password" not in body and "password_hash" not in body

    again = register(client)
    assert again.status_code == 409
    assert again.get_json()["error"] == "CONFLICT"


def test_register_normalizes_email(client):
    assert register(client, email="  A@X.com ").status_code == 201
    assert register(client, email="a@x.com").status_code == 409


def test_register_validation(client):
    resp = client.post("/auth/register", json={"name": "", "email": "nope", "password": "123"})
    assert resp.status_code == 422
    body = resp.get_json()
    assert body["error"] == "VALIDATION_ERROR"
    assert set(body["details"]) >= {"name", "email", "password"}


def test_register_without_body(client):
    resp = client.post("/auth/register", data="not json")
    assert resp.status_code == 422


def test_login_returns_token_pair(client):
    register(client)
    resp = login(client)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["access_token"]
    assert body["refresh_token"]
    assert body["token_type"] == "bearer"
    assert body["expires_in"] == 3600


def test_login_wrong_password(client):
    register(client)
    resp = login(client, password="wrong-password")
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "INVALID_CREDENTIALS"


def test_login_unknown_email(client):
    resp = login(client, email="ghost@x.com")
    assert resp.status_code == 404
    assert resp.get_json()["message"] == "User does not exist"


def test_login_unknown_email_concealed(app, client):
    app.extensions["session_flow"].conceal_unknown_email = True
    assert login(client, email="ghost@x.com").status_code == 401


def test_login_missing_fields(client):
    resp = client.post("/auth/login", json={"email": "a@x.com"})
    assert resp.status_code == 422
    assert "password" in resp.get_json()["details"]


def test_refresh_rotation_over_http(client):
    register(client)
    first = login(client).get_json()

    resp = client.post("/auth/refresh", json={"refresh_token": first["refresh_token"]})
    assert resp.status_code == 200
    second = resp.get_json()
    assert second["refresh_token"] != first["refresh_token"]
    assert second["access_token"]

    reused = client.post("/auth/refresh", json={"refresh_token": first["refresh_token"]})
    assert reused.status_code == 401
    assert reused.get_json()["error"] == "INVALID_REFRESH_TOKEN"


def test_refresh_garbage_token(client):
    resp = client.post("/auth/refresh", json={"refresh_token": "deadbeef"})
    assert resp.status_code == 401


def test_refresh_missing_token(client):
    assert client.post("/auth/refresh", json={}).status_code == 422


def test_logout_revokes_and_always_succeeds(client):
    register(client)
    tokens = login(client).get_json()

    for _ in range(2):
        resp = client.post("/auth/logout", json={"refresh_token": tokens["refresh_token"]})
        assert resp.status_code == 200
        assert resp.get_json() == {"message": "logged out"}

    resp = client.post("/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert resp.status_code == 401

    assert client.post("/auth/logout").status_code == 200
    assert client.post("/auth/logout", json={"refresh_token": "unknown"}).status_code == 200


def test_logout_leaves_access_token_usable(client):
    register(client)
    tokens = login(client).get_json()
    client.post("/auth/logout", json={"refresh_token": tokens["refresh_token"]})
    assert client.get("/me", headers=bearer(tokens["access_token"])).status_code == 200


def test_concurrent_refresh_over_http(app):
    register(app.test_client())
    secret = login(app.test_client()).get_json()["refresh_token"]
    storage.close()

    barrier = threading.Barrier(2)
    statuses = []
    lock = threading.Lock()

    def worker():
        client = app.test_client()
        barrier.wait()
        resp = client.post("/auth/refresh", json={"refresh_token": secret})
        with lock:
            statuses.append(resp.status_code)

    threads = [threading.Thread(target=worker) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    assert sorted(statuses) == [200, 401]


def test_me(client):
    register(client)
    tokens = login(client).get_json()
    resp = client.get("/me", headers=bearer(tokens["access_token"]))
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["email"] == "a@x.com"
    assert body["name"] == "A"
    assert body["role"] == "admin"
    assert body["id"] > 0


def test_me_without_token(client):
    resp = client.get("/me")
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "UNAUTHORIZED"


def test_me_with_wrong_scheme(client):
    assert client.get("/me", headers={"Authorization": "Token abc"}).status_code == 401


def test_me_with_invalid_token(client):
    resp = client.get("/me", headers=bearer("not.a.jwt"))
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "INVALID_TOKEN"


def test_me_with_expired_token(app, client):
    body = register(client).get_json()
    signer = app.extensions["token_signer"]
    issued = datetime.now(timezone.utc) - timedelta(hours=2)
    token = signer.issue_access(body["id"], "admin", now=issued)
    resp = client.get("/me", headers=bearer(token))
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "TOKEN_EXPIRED"


def test_me_for_missing_user(app, client):
    token = app.extensions["token_signer"].issue_access(999, "admin")
    resp = client.get("/me", headers=bearer(token))
    assert resp.status_code == 404


def test_password_never_stored_in_clear(client):
    register(client)
    user = storage.get_session().query(User).filter_by(email="a@x.com").one()
    assert user.password_hash != PASSWORD
    assert user.password_hash.startswith("$argon2")


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.get_json() == {"status": "ok", "version": "1.0.0", "database": "ok"}


def test_register_strips_name(client):
    resp = register(client, name="  Alice  ")
    assert resp.status_code == 201
    assert resp.get_json()["name"] == "Alice"

    blank = register(client, name="   ", email="b@x.com")
    assert blank.status_code == 422
    assert "name" in blank.get_json()["details"]
